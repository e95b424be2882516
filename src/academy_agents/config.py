"""
config.py — Central settings for the Academy agent pipeline
============================================================
All configuration is loaded from environment variables / .env file.
Copy .env.example → .env and fill in your values.

Live mode activates automatically when either the Azure OpenAI pair
(AZURE_OPENAI_ENDPOINT + AZURE_OPENAI_API_KEY) or a plain OPENAI_API_KEY
contains a real (non-placeholder) value and FORCE_MOCK_MODE is not set.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env into os.environ (no-op if already set, safe to call multiple times)
load_dotenv(override=False)


# ─── Helpers ────────────────────────────────────────────────────────────────

def _is_placeholder(value: str) -> bool:
    """Return True if the value looks like an unfilled template placeholder."""
    return not value or "<" in value or value.startswith("your-") or value == "PLACEHOLDER"


# ─── OpenAI / Azure OpenAI ───────────────────────────────────────────────────

@dataclass(frozen=True)
class OpenAIConfig:
    endpoint:       str
    api_key:        str
    deployment:     str
    api_version:    str
    openai_api_key: str = ""

    @property
    def azure_configured(self) -> bool:
        """True when both endpoint and key are real (non-placeholder) values."""
        return (
            bool(self.endpoint)
            and bool(self.api_key)
            and not _is_placeholder(self.endpoint)
            and not _is_placeholder(self.api_key)
        )

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key) and not _is_placeholder(self.openai_api_key)

    @property
    def is_configured(self) -> bool:
        return self.azure_configured or self.openai_configured


# ─── Pipeline behaviour ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AgentSettings:
    max_retries:     int  = 2      # correction attempts after the first parse
    history_window:  int  = 10     # messages rendered into each prompt
    max_input_chars: int  = 2000   # sanitizer truncation bound
    attempt_repair:  bool = True   # trailing-comma repair before json.loads


# ─── App-level settings ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppConfig:
    force_mock_mode: bool


# ─── Master settings object ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    openai: OpenAIConfig
    agents: AgentSettings
    app:    AppConfig

    @property
    def live_mode(self) -> bool:
        """True when OpenAI creds are real and FORCE_MOCK_MODE is false."""
        return self.openai.is_configured and not self.app.force_mock_mode

    def status_summary(self) -> dict[str, str]:
        """Return a dict of service → status badge for the demo console."""
        def badge(ok: bool) -> str:
            return "🟢 Live" if ok else "⚪ Not configured"

        return {
            "Azure OpenAI":   badge(self.openai.azure_configured),
            "OpenAI":         badge(self.openai.openai_configured),
            "Generation mode": "live" if self.live_mode else "mock",
            "Max retries":    str(self.agents.max_retries),
        }


def get_settings() -> Settings:
    """Load all configuration from environment variables."""
    _str  = lambda k, d="": os.getenv(k, d).strip()
    _int  = lambda k, d=0: int(os.getenv(k, str(d)) or d)
    _bool = lambda k, d=False: os.getenv(k, str(d)).lower() in ("1", "true", "yes")

    return Settings(
        openai=OpenAIConfig(
            endpoint       = _str("AZURE_OPENAI_ENDPOINT").rstrip("/"),
            api_key        = _str("AZURE_OPENAI_API_KEY"),
            deployment     = _str("AZURE_OPENAI_DEPLOYMENT", "gpt-4o"),
            api_version    = _str("AZURE_OPENAI_API_VERSION", "2024-12-01-preview"),
            openai_api_key = _str("OPENAI_API_KEY"),
        ),
        agents=AgentSettings(
            max_retries     = max(0, _int("AGENT_MAX_RETRIES", 2)),
            history_window  = max(0, _int("AGENT_HISTORY_WINDOW", 10)),
            max_input_chars = max(1, _int("AGENT_MAX_INPUT_CHARS", 2000)),
            attempt_repair  = _bool("AGENT_ATTEMPT_REPAIR", True),
        ),
        app=AppConfig(
            force_mock_mode = _bool("FORCE_MOCK_MODE", False),
        ),
    )
