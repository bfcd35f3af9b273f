"""Domain errors raised by the journal services."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List


class WorkflowError(Exception):
    kind = "workflow_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.kind, "detail": self.message}


class ValidationError(WorkflowError):
    kind = "validation_error"

    def __init__(self, fields: Iterable[str], message: str | None = None):
        self.fields: List[str] = list(dict.fromkeys(fields))
        super().__init__(message or "Missing or invalid fields: " + ", ".join(self.fields))

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["fields"] = list(self.fields)
        return payload


class ForbiddenError(WorkflowError):
    kind = "forbidden"

    def __init__(self, message: str = "You are not allowed to access this journal."):
        super().__init__(message)


class ConflictError(WorkflowError):
    kind = "conflict"

    def __init__(self, message: str, current_status: str | None = None):
        super().__init__(message)
        self.current_status = current_status

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["current_status"] = self.current_status
        return payload


class NotFoundError(WorkflowError):
    kind = "not_found"


class NarrativeUnavailableError(Exception):
    """The narrative generator could not produce a report."""

    kind = "narrative_unavailable"

    def __init__(self, message: str = "Narrative report could not be generated."):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.kind, "detail": self.message}
