"""Startup configuration validation guardrails."""

import logging


logger = logging.getLogger(__name__)


def _require_positive(settings, names) -> None:
    """Fail closed on zero/negative sizing knobs."""
    bad = [name for name in names if getattr(settings, name) <= 0]
    if bad:
        raise RuntimeError(
            f"STARTUP FAILED: non-positive values for {', '.join(bad)}\n"
            "Fix them in .env or container environment and restart the server."
        )


def validate_startup_config(settings) -> None:
    """Centralized startup guardrails for required and warning-level config."""
    _require_positive(settings, (
        "SESSION_TTL_S",
        "SWEEP_INTERVAL_S",
        "FALLBACK_MAX_BYTES",
        "RELAY_OUTBOX_SIZE",
    ))

    if not 1 <= settings.CODE_DIGITS <= 9:
        raise RuntimeError(
            f"STARTUP FAILED: CODE_DIGITS must be between 1 and 9 (got {settings.CODE_DIGITS})."
        )
    if settings.CODE_MAX_ATTEMPTS < 0:
        raise RuntimeError("STARTUP FAILED: CODE_MAX_ATTEMPTS cannot be negative.")

    if settings.SWEEP_INTERVAL_S > settings.SESSION_TTL_S:
        logger.warning(
            "CONFIG WARNING: SWEEP_INTERVAL_S=%d exceeds SESSION_TTL_S=%d, expired sessions linger",
            settings.SWEEP_INTERVAL_S, settings.SESSION_TTL_S,
        )
    if settings.ENV == "prod" and not settings.PUBLIC_BASE_URL:
        logger.warning("CONFIG WARNING: PUBLIC_BASE_URL is not set; joinUrl trusts proxy headers")
