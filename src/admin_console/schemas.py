# This file defines the wire envelope shared by every admin API endpoint.
# It exists so shape validation happens once, before any normalizer touches the payload.
# Unknown fields are ignored because the backend adds diagnostics fields without notice.
# A body that fails validation here surfaces as a malformed-response error.

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool = True
    data: Any | None = None
    message: str | None = None
    errors: Any | None = None


class ListData(BaseModel):
    """List payload; field names vary between endpoints so both spellings are accepted."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    items: list[dict[str, Any]] | None = None
    result_items: list[dict[str, Any]] | None = Field(default=None, alias="resultItems")
    page: int | None = Field(default=None, ge=1)
    current_page: int | None = Field(default=None, alias="currentPage", ge=1)
    page_size: int | None = Field(default=None, alias="pageSize", ge=1)
    limit: int | None = Field(default=None, ge=1)
    total: int | None = Field(default=None, ge=0)
    total_items: int | None = Field(default=None, alias="totalItems", ge=0)

    def records(self) -> list[dict[str, Any]] | None:
        if self.items is not None:
            return self.items
        return self.result_items


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str | None = None
    title: str | None = None
    detail: Any | None = None
    errors: Any | None = None

    def describe(self) -> str | None:
        if self.message:
            return self.message
        if self.title:
            return self.title
        if isinstance(self.detail, str) and self.detail:
            return self.detail
        if self.errors:
            return str(self.errors)
        return None
