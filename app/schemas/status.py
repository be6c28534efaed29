"""Pydantic schemas for the status endpoint."""

from typing import Literal

from pydantic import Field

from app.schemas.common import CamelModel


class MigrationInfo(CamelModel):
    revision: str
    description: str


class DatabaseStatus(CamelModel):
    name: str | None = Field(default=None, description="Database name")
    version: str | None = Field(default=None, description="Server version string")
    max_connections: int | None = None
    current_connections: int | None = None
    applied_migrations: int = 0
    migrations: list[MigrationInfo] = Field(default_factory=list)


class StatusResponse(CamelModel):
    """Response body for GET /status."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    database: DatabaseStatus
