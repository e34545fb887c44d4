"""JSON log lines for delivery and admission events."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from hookgate.core.request_context import get_request_id


def log_json(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """Emit ``event`` and ``fields`` as one JSON line.

    Fields left as ``None`` are omitted. UUIDs, datetimes and other values
    that JSON cannot encode are written as strings.
    """
    if not logger.isEnabledFor(level):
        return

    record: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": logging.getLevelName(level),
        "logger": logger.name,
        "event": event,
    }
    request_id = get_request_id()
    if request_id:
        record["request_id"] = request_id

    record.update((key, value) for key, value in fields.items() if value is not None)
    logger.log(level, json.dumps(record, default=str))
