"""Common schema module."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class APIEnvelope(BaseModel):
    status: str = "ok"
    message: str | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ErrorEnvelope(BaseModel):
    status: str = "error"
    error_code: str
    detail: str


class BulkIdsRequest(BaseModel):
    user_ids: list[str]


class BulkResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: int
    failed: int
    errors: list[str] = []
