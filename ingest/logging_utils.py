"""Structured logging helpers for hotspot polling."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping


def _encode_context(context: Mapping[str, Any]) -> str:
    try:
        return json.dumps(context, default=str, sort_keys=True, ensure_ascii=False)
    except TypeError:
        return json.dumps({k: str(v) for k, v in context.items()}, sort_keys=True)


def mask_secret(value: str | None) -> str:
    """Hide all but the edges of an API key or token."""
    if not value:
        return ""
    if len(value) <= 6:
        return "***"
    return f"{value[:3]}***{value[-3:]}"


def log_event(
    logger: logging.Logger,
    event: str,
    message: str,
    *,
    level: str = "info",
    **fields: Any,
) -> None:
    """Log ``message`` tagged with ``event`` and a JSON context suffix.

    ``None`` fields are dropped so call sites can pass optional values freely:

        log_event(LOGGER, "hotspots.fetch", "Source failed", source=src, error=err)
    """
    context = {key: value for key, value in fields.items() if value is not None}
    payload = f"[{event}] {message}"
    if context:
        payload = f"{payload} | {_encode_context(context)}"
    emit = getattr(logger, level, logger.info)
    emit(payload, extra={"event": event, "context": context})
