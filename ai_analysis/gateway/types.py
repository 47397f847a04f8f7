"""Core types and DTOs for the provider gateway layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from ai_analysis.core.config import Settings, settings

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AttemptOutcome(str, Enum):
    """Outcome of a single provider call attempt."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    MALFORMED_RESPONSE = "malformed_response"


# ---------------------------------------------------------------------------
# Rate limit window
# ---------------------------------------------------------------------------


@dataclass
class RateLimitWindow:
    """Fixed admission window for one caller key."""

    key: str
    count: int
    reset_at: float  # epoch seconds

    def is_expired(self, now: float) -> bool:
        return now > self.reset_at


# ---------------------------------------------------------------------------
# Provider call records
# ---------------------------------------------------------------------------


@dataclass
class ProviderCallAttempt:
    """One attempt inside a single ProviderClient invocation. Never persisted."""

    attempt_number: int  # 1-based
    started_at: datetime
    timeout_at: datetime
    outcome: AttemptOutcome = AttemptOutcome.SUCCESS
    status_code: int = 0  # Set for HTTP_ERROR
    latency_ms: int = 0
    error_message: str = ""


@dataclass
class ProviderCallResult:
    """Successful provider invocation: raw message content plus call metadata."""

    text: str  # RawProviderText, untyped
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    attempts: list[ProviderCallAttempt] = field(default_factory=list)
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def retry_count(self) -> int:
        return max(0, len(self.attempts) - 1)

    def to_dict(self) -> dict[str, Any]:
        """Diagnostics view (content length only, never the content itself)."""
        return {
            "model": self.model,
            "content_length": len(self.text),
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
            "retry_count": self.retry_count,
            "attempts": [
                {
                    "attempt": a.attempt_number,
                    "outcome": a.outcome.value,
                    "status_code": a.status_code,
                    "latency_ms": a.latency_ms,
                }
                for a in self.attempts
            ],
            "completed_at": self.completed_at.isoformat(),
        }


# ---------------------------------------------------------------------------
# Provider config
# ---------------------------------------------------------------------------


DEFAULT_SYSTEM_PROMPT = (
    "You are a professional assessment analyst. Always answer with a single valid JSON object "
    "that follows the requested structure exactly, without Markdown fences or commentary."
)


@dataclass
class ProviderConfig:
    """Connection and retry configuration for the LLM provider."""

    api_key: str = ""
    api_url: str = "https://api.deepseek.com/v1/chat/completions"
    model: str = "deepseek-chat"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout_seconds: float = 45.0  # Per attempt
    max_retries: int = 2  # Retries after the first attempt
    base_retry_delay: float = 1.0  # Base delay for exponential backoff (seconds)

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> ProviderConfig:
        s = source or settings
        return cls(
            api_key=s.deepseek_api_key,
            api_url=s.deepseek_api_url,
            model=s.deepseek_model,
            temperature=s.ai_temperature,
            max_tokens=s.ai_max_tokens,
            timeout_seconds=s.ai_timeout_seconds,
            max_retries=s.ai_max_retries,
            base_retry_delay=s.ai_base_retry_delay,
        )
