"""Load model selection for the report narrative generator."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, List, Tuple

# 日本語: 既定はGemini (OpenAI互換エンドポイント経由) / English: Gemini is the default provider
DEFAULT_SELECTION = {"provider": "gemini", "model": "gemini-2.5-flash", "base_url": ""}

PROVIDER_DEFAULTS: Dict[str, Dict[str, str | List[str] | None]] = {
    "openai": {
        "api_key_env": "OPENAI_API_KEY",
        "api_key_aliases": [],
        "base_url_env": "OPENAI_BASE_URL",
        "default_base_url": None,
    },
    "claude": {
        "api_key_env": "CLAUDE_API_KEY",
        "api_key_aliases": ["ANTHROPIC_API_KEY"],
        "base_url_env": "CLAUDE_API_BASE",
        "default_base_url": None,
    },
    "gemini": {
        "api_key_env": "GEMINI_API_KEY",
        "api_key_aliases": ["GOOGLE_API_KEY"],
        "base_url_env": "GEMINI_API_BASE",
        # Google の OpenAI 互換エンドポイント
        "default_base_url": "https://generativelanguage.googleapis.com/v1beta/openai",
    },
    "groq": {
        "api_key_env": "GROQ_API_KEY",
        "api_key_aliases": [],
        "base_url_env": "GROQ_API_BASE",
        "default_base_url": "https://api.groq.com/openai/v1",
    },
}


def _coerce_selection(raw: Dict[str, str] | None) -> Dict[str, str | None]:
    """Normalise provider/model/base_url fields and fall back to defaults."""

    provider = DEFAULT_SELECTION["provider"]
    model = DEFAULT_SELECTION["model"]
    base_url: str | None = None

    if isinstance(raw, dict):
        raw_provider = raw.get("provider")
        raw_model = raw.get("model")
        raw_base_url = raw.get("base_url")
        if isinstance(raw_provider, str) and raw_provider.strip():
            provider = raw_provider.strip()
        if isinstance(raw_model, str) and raw_model.strip():
            model = raw_model.strip()
        if isinstance(raw_base_url, str) and raw_base_url.strip():
            base_url = raw_base_url.strip()

    return {"provider": provider, "model": model, "base_url": base_url}


def _load_selection(agent_key: str) -> Dict[str, str | None]:
    env_path = os.getenv("NARRATIVE_SETTINGS_PATH")
    if not env_path:
        return dict(DEFAULT_SELECTION)

    try:
        data = json.loads(Path(env_path).read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError):
        return dict(DEFAULT_SELECTION)

    if not isinstance(data, dict):
        return dict(DEFAULT_SELECTION)

    selection = data.get("selection") or data
    chosen = selection.get(agent_key) if isinstance(selection, dict) else None
    if not isinstance(chosen, dict):
        return dict(DEFAULT_SELECTION)

    return _coerce_selection(chosen)


def _resolve_api_key(meta: Dict[str, str | List[str] | None]) -> str:
    """Resolve provider-specific API key without exposing the value."""

    candidates = []
    primary = meta.get("api_key_env")
    aliases = meta.get("api_key_aliases") or []
    if isinstance(primary, str):
        candidates.append(primary)
    if isinstance(aliases, list):
        candidates.extend(alias for alias in aliases if isinstance(alias, str))

    for env_name in candidates:
        value = os.getenv(env_name)
        if value:
            return value

    return ""


def _resolve_base_url(provider: str, explicit: str | None, meta: Dict[str, str | List[str] | None]) -> str | None:
    base_env = meta.get("base_url_env")
    env_value = os.getenv(base_env) if isinstance(base_env, str) else None
    default_base = meta.get("default_base_url")
    target = (explicit or env_value or (default_base if isinstance(default_base, str) else "") or "").strip()
    if not target:
        return None

    # 日本語: Gemini は OpenAI 互換パスへ寄せる / English: Snap Gemini hosts onto the OpenAI-compatible path
    lower = target.lower()
    if provider == "gemini" and "generativelanguage.googleapis.com" in lower and "/openai" not in lower:
        target = target.rstrip("/") + "/openai"
    return target.rstrip("/")


def apply_model_selection(agent_key: str = "narrative", override: Dict[str, str] | None = None) -> Tuple[str, str, str | None, str]:
    selection = _coerce_selection(override or _load_selection(agent_key))
    provider = selection["provider"]
    model = selection["model"]

    meta = PROVIDER_DEFAULTS.get(provider, PROVIDER_DEFAULTS["openai"])
    base_url = _resolve_base_url(provider, selection.get("base_url"), meta)
    api_key = _resolve_api_key(meta)

    # Note: the caller passes api_key and base_url to the client; os.environ is left untouched.
    return provider, model, base_url, api_key
