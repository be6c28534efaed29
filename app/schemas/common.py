"""Shared response shapes: error envelope, pages, confirmations."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ItemT = TypeVar("ItemT")


class CamelModel(BaseModel):
    """Base for wire schemas: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorEnvelope(CamelModel):
    """The single error body returned for every failed request."""

    status_code: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Human-readable error message")
    error: str = Field(..., description="Error category label (e.g. Not Found)")
    timestamp: datetime = Field(..., description="When the error was produced (UTC)")
    path: str = Field(..., description="Request path that failed")


class PageResponse(CamelModel, Generic[ItemT]):
    """One page of projected records."""

    data: list[ItemT]
    total: int
    page: int
    limit: int
    total_pages: int


class MessageResponse(BaseModel):
    message: str
