"""Structured audit logging helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

audit_logger = logging.getLogger("schoolshelf.audit")


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    tenant_id: str | None = None
    membership_id: str | None = None
    identity_ref: str | None = None
    actor_email: str | None = None
    trace_id: str | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "tenant_id": context.tenant_id,
        "membership_id": context.membership_id,
        "identity_ref": context.identity_ref,
        "actor_email": context.actor_email,
        "trace_id": context.trace_id,
    }
    payload.update(fields)
    return payload


def audit(event: str, context: LogContext, success: bool = True, **fields: Any) -> dict[str, Any]:
    """Write one audit record and return the payload that was logged."""
    payload = build_log_event(event, context, success=success, **fields)
    level = logging.INFO if success else logging.WARNING
    audit_logger.log(level, "audit.%s", event.lower(), extra={"event": event, "audit": payload})
    return payload
