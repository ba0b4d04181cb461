"""Structured audit events.

Exactly one event is written per tool call, as a JSON line on stderr. Events must never
contain the access token or argument values beyond the target project reference.
"""

from __future__ import annotations

import json
import sys
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, TextIO

SUCCEEDED = "succeeded"
REMOTE_ERROR = "remote_error"
REJECTED = "rejected"
FAULTED = "faulted"


def new_correlation_id() -> str:
    """Generate a random correlation id for traceability."""
    return uuid.uuid4().hex


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def target_from_args(arguments: Mapping[str, Any] | Any) -> str:
    """Best-effort project reference for the audit trail."""
    if isinstance(arguments, Mapping):
        project_id = arguments.get("project_id")
        if isinstance(project_id, (str, int)) and not isinstance(project_id, bool):
            return str(project_id)
    return "-"


@dataclass(frozen=True, slots=True)
class AuditEvent:
    """A single audit event."""

    timestamp: str
    correlation_id: str
    operation: str
    target: str
    outcome: str
    reason: str | None
    duration_ms: int | None


class AuditLogger:
    """Writes audit events as JSONL to stderr."""

    def __init__(self, *, stream: TextIO | None = None) -> None:
        self._stream = stream

    def write_event(self, event: AuditEvent) -> None:
        payload: dict[str, Any] = {
            "timestamp": event.timestamp,
            "correlation_id": event.correlation_id,
            "operation": event.operation,
            "target": event.target,
            "outcome": event.outcome,
        }
        if event.reason is not None:
            payload["reason"] = event.reason
        if event.duration_ms is not None:
            payload["duration_ms"] = event.duration_ms

        line = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        print(line, file=self._stream or sys.stderr)

    def measure_start(self) -> float:
        """Return a monotonic start timestamp for duration measurement."""
        return time.monotonic()

    def measure_duration_ms(self, start: float) -> int:
        """Convert a monotonic start timestamp into elapsed milliseconds."""
        return int((time.monotonic() - start) * 1000)


def build_event(
    *,
    correlation_id: str,
    operation: str,
    target: str,
    outcome: str,
    reason: str | None = None,
    duration_ms: int | None = None,
) -> AuditEvent:
    """Construct an audit event."""
    return AuditEvent(
        timestamp=_now_rfc3339(),
        correlation_id=correlation_id,
        operation=operation,
        target=target,
        outcome=outcome,
        reason=reason,
        duration_ms=duration_ms,
    )
