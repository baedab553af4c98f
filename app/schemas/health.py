"""Health check response: service state and the storage backend chosen at start-up."""

from typing import Literal

from pydantic import Field

from app.schemas.auth import CamelModel


class HealthResponse(CamelModel):
    status: Literal["ok"] = "ok"
    environment: str = Field(description="APP_ENV (dev or prod)")
    version: str
    backend: Literal["relational", "document"] = Field(
        description="Fixed for the process lifetime",
    )
    # Only reported for the relational backend; re-checked on every call.
    database: Literal["connected", "disconnected"] | None = None
