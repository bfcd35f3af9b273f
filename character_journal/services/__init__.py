"""Service layer exports."""

from .activity_record import ACTIVITY_FIELDS, ActivityRecord
from .behavior_service import attribute_validated_log, list_contributor_history, submit_behavior_score
from .errors import (
    ConflictError,
    ForbiddenError,
    NarrativeUnavailableError,
    NotFoundError,
    ValidationError,
    WorkflowError,
)
from .history_service import class_history, parent_history, student_history
from .mission_service import (
    assign_mission,
    get_contributor_data,
    list_contributor_missions,
    list_student_missions,
)
from .narrative_service import generate_student_report
from .notification_service import WhatsAppNotifier
from .workflow_service import DailyLogWorkflow, create_workflow

__all__ = [
    "ACTIVITY_FIELDS",
    "ActivityRecord",
    "DailyLogWorkflow",
    "create_workflow",
    "WhatsAppNotifier",
    "attribute_validated_log",
    "list_contributor_history",
    "submit_behavior_score",
    "assign_mission",
    "get_contributor_data",
    "list_contributor_missions",
    "list_student_missions",
    "student_history",
    "parent_history",
    "class_history",
    "generate_student_report",
    "WorkflowError",
    "ValidationError",
    "ForbiddenError",
    "ConflictError",
    "NotFoundError",
    "NarrativeUnavailableError",
]
