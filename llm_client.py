from __future__ import annotations

import json
import re
from types import SimpleNamespace
from typing import Any, Dict, List

from anthropic import Anthropic
from openai import OpenAI

from model_selection import PROVIDER_DEFAULTS, apply_model_selection

REPORT_KEYS = ("executive_summary", "character_progress", "report_narrative")

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _content_to_text(content: Any) -> str:
    """Normalize chat completion content into a plain string."""

    if content is None:
        return ""
    if isinstance(content, str):
        return content

    if hasattr(content, "text") and isinstance(content.text, str):
        return content.text

    if isinstance(content, list):
        parts: List[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
                continue
            if hasattr(part, "text") and isinstance(part.text, str):
                parts.append(part.text)
                continue
            if isinstance(part, dict):
                value = part.get("text")
                if isinstance(value, str):
                    parts.append(value)
        joined = "\n".join(p.strip() for p in parts if p.strip())
        if joined:
            return joined

    return str(content).strip()


def _strip_code_fence(text: str) -> str:
    return _FENCE_PATTERN.sub("", text.strip()).strip()


def parse_report_json(text: str) -> Dict[str, str]:
    """Parse the generator reply into the three report sections."""

    try:
        data = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as exc:
        raise ValueError("Narrative reply is not valid JSON") from exc
    if not isinstance(data, dict):
        raise ValueError("Narrative reply is not a JSON object")

    missing = [key for key in REPORT_KEYS if not isinstance(data.get(key), str) or not data[key].strip()]
    if missing:
        raise ValueError(f"Narrative reply is missing: {', '.join(missing)}")
    return {key: data[key].strip() for key in REPORT_KEYS}


class UnifiedClient:
    """Provider-agnostic chat client driven by model_selection."""

    def __init__(self, agent_key: str = "narrative"):
        provider, model_name, base_url, api_key = apply_model_selection(agent_key)

        if not api_key:
            provider_meta = PROVIDER_DEFAULTS.get(provider, {})
            expected_key = provider_meta.get("api_key_env", "GEMINI_API_KEY")
            raise RuntimeError(
                f"API key for provider '{provider}' is not set. Please set '{expected_key}' in your secrets.env file."
            )

        self.provider = provider
        self.model_name = model_name
        self.base_url = base_url
        self.api_key = api_key

        if self.provider == "claude":
            self.client = Anthropic(api_key=self.api_key)
        else:
            client_kwargs: Dict[str, Any] = {"api_key": self.api_key}
            if self.base_url:
                client_kwargs["base_url"] = self.base_url
            if self.provider == "gemini":
                client_kwargs["default_headers"] = {"x-goog-api-key": self.api_key}
            self.client = OpenAI(**client_kwargs)

        self.chat = self

    @property
    def completions(self):
        return self

    def create(self, **kwargs):
        if self.provider == "claude":
            return self._create_anthropic(**kwargs)

        # Newer OpenAI models reject max_tokens; retry once with max_completion_tokens
        try:
            return self.client.chat.completions.create(**kwargs)
        except Exception as e:
            err_str = str(e).lower()
            if "max_tokens" in err_str and "max_tokens" in kwargs:
                kwargs["max_completion_tokens"] = kwargs.pop("max_tokens")
                return self.client.chat.completions.create(**kwargs)
            raise

    def _create_anthropic(self, **kwargs):
        model = kwargs.get("model", self.model_name)
        messages = kwargs.get("messages", [])

        system_prompt = ""
        filtered_messages = []

        for msg in messages:
            if msg.get("role") == "system":
                system_prompt += msg.get("content", "") + "\n"
            else:
                filtered_messages.append(msg)

        response = self.client.messages.create(
            model=model,
            system=system_prompt.strip(),
            messages=filtered_messages,
            max_tokens=kwargs.get("max_tokens", 1024),
            temperature=kwargs.get("temperature", 0.4),
        )

        content = response.content[0].text if response.content else ""

        message = SimpleNamespace(content=content, parsed=None)
        choice = SimpleNamespace(message=message)
        return SimpleNamespace(choices=[choice])


def generate_report_narrative(student_name: str, day_summaries: List[Dict[str, Any]]) -> Dict[str, str]:
    """Ask the selected model for a homeroom report narrative and return its sections."""

    client = UnifiedClient()
    logs_text = json.dumps(day_summaries, ensure_ascii=False)

    prompt = (
        f'Bertindaklah sebagai Wali Kelas profesional. Analisis data kegiatan siswa "{student_name}" berikut:\n'
        f"{logs_text}\n"
        "\n"
        "Berikan output JSON (raw) dengan key:\n"
        "- executive_summary (1 kalimat ringkas tentang kekuatan & kelemahan)\n"
        "- character_progress (2 kalimat tentang perkembangan sosial/spiritual/fisik)\n"
        '- report_narrative (Narasi rapor 3-4 kalimat yang personal, gunakan kata "Ananda", '
        "sebutkan contoh kegiatan spesifik, nada apresiatif namun memberi saran)\n"
    )

    response = client.chat.completions.create(
        model=client.model_name,
        messages=[
            {"role": "system", "content": "Jawab hanya dengan objek JSON tanpa teks lain."},
            {"role": "user", "content": prompt},
        ],
        temperature=0.4,
        max_tokens=1024,
    )
    message = response.choices[0].message
    return parse_report_json(_content_to_text(getattr(message, "content", "")))
