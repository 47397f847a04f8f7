"""Sentry error tracking.

Enabled only when SENTRY_DSN is set. Events are scrubbed before sending:
questionnaire answers (PHQ-9 among them) and raw model output never leave
the process.
"""

import logging

from ai_analysis.core.config import settings

logger = logging.getLogger(__name__)

SCRUBBED_KEYS = frozenset({"answers", "prompt", "raw_text", "content", "messages", "authorization"})


def scrub_event(event: dict, hint: dict | None = None) -> dict:
    """``before_send`` hook: blank out answer payloads and model text."""

    def _scrub(value):
        if isinstance(value, dict):
            return {k: "[scrubbed]" if str(k).lower() in SCRUBBED_KEYS else _scrub(v) for k, v in value.items()}
        if isinstance(value, list):
            return [_scrub(v) for v in value]
        return value

    for section in ("extra", "contexts", "request"):
        if section in event:
            event[section] = _scrub(event[section])
    for frame_holder in event.get("exception", {}).get("values", []):
        for frame in (frame_holder.get("stacktrace") or {}).get("frames", []):
            if "vars" in frame:
                frame["vars"] = _scrub(frame["vars"])
    return event


def init_sentry() -> bool:
    """Initialize Sentry if SENTRY_DSN is configured. Returns whether it was enabled."""
    if not settings.sentry_dsn:
        logger.debug("Sentry disabled (no SENTRY_DSN)")
        return False

    import sentry_sdk
    from sentry_sdk.integrations.httpx import HttpxIntegration
    from sentry_sdk.integrations.redis import RedisIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        traces_sample_rate=0.1 if settings.app_env == "production" else 1.0,
        send_default_pii=False,
        before_send=scrub_event,
        integrations=[HttpxIntegration(), RedisIntegration()],
    )
    sentry_sdk.set_tag("service", "ai_analysis")
    logger.info("Sentry initialized (env=%s)", settings.app_env)
    return True
