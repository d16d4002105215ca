"""
app/logging_utils.py

Structured logging helpers for the ingestion pipeline.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    exc: BaseException | None = None,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.

    When ``exc`` is given its message is added under ``error`` and the
    exception is attached as ``exc_info`` so handlers can render the trace.
    """

    if not logger.isEnabledFor(level):
        return
    payload: dict[str, Any] = {"event": event, **fields}
    if exc is not None:
        payload["error"] = str(exc)
    exc_info = (type(exc), exc, exc.__traceback__) if exc is not None else None
    logger.log(level, json.dumps(payload, default=str, sort_keys=True), exc_info=exc_info)
