"""Audit trail for sensitive actions, emitted after the response status is known."""

import json
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response

audit_logger = logging.getLogger("app.audit")


def audit_action(action: str, resource: str) -> Callable[[Request], None]:
    """
    Dependency marking the request as auditable.

    Put it after the gate dependencies: requests rejected before it are not audited.
    """

    def mark(request: Request) -> None:
        request.state.audit = (action, resource)

    return mark


def build_audit_record(request: Request, status_code: int) -> dict[str, Any] | None:
    """The audit entry for a marked request, or None when the request is not audited."""
    marker = getattr(request.state, "audit", None)
    if marker is None:
        return None
    action, resource = marker
    actor = getattr(request.state, "user", None)
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "actorId": getattr(actor, "id", None),
        "actorEmail": getattr(actor, "email", None),
        "action": action,
        "resource": resource,
        "method": request.method,
        "path": request.url.path,
        "callerAddress": request.client.host if request.client else None,
        "statusCode": status_code,
        "userAgent": request.headers.get("user-agent"),
    }


def emit_audit_record(record: dict[str, Any]) -> None:
    audit_logger.info("[AUDIT] %s", json.dumps(record))


def register_audit_middleware(app: FastAPI) -> None:
    """Observe final status codes of audited requests; the response is passed through untouched."""

    @app.middleware("http")
    async def audit_responses(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            response = await call_next(request)
        except Exception:
            record = build_audit_record(request, 500)
            if record is not None:
                emit_audit_record(record)
            raise
        record = build_audit_record(request, response.status_code)
        if record is not None:
            emit_audit_record(record)
        return response
