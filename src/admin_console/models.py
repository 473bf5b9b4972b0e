# This file defines the canonical in-memory model for admin collections.
# It exists so the store, gateway, and controller agree on one shape for criteria, pages, and resources.
# Every dataclass is frozen; state changes happen by replacing values, never by mutating them.
# Resource records only materialize from server responses through the normalizers.

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Generic, Protocol, TypeVar

PAGINATION_KEYS = frozenset({"page", "limit"})


def compute_total_pages(*, total_count: int, page_size: int) -> int:
    """Compute deterministic total page count."""

    if total_count <= 0:
        return 0
    return ((total_count - 1) // page_size) + 1


@dataclass(frozen=True)
class FilterCriteria:
    page: int = 1
    limit: int = 10
    filters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.limit < 1:
            raise ValueError("limit must be >= 1")

    def get(self, key: str, default: Any = None) -> Any:
        if key == "page":
            return self.page
        if key == "limit":
            return self.limit
        return self.filters.get(key, default)

    def with_changes(
        self,
        *,
        page: int | None = None,
        limit: int | None = None,
        filters: Mapping[str, Any] | None = None,
    ) -> FilterCriteria:
        return replace(
            self,
            page=self.page if page is None else page,
            limit=self.limit if limit is None else limit,
            filters=dict(self.filters if filters is None else filters),
        )

    def cache_key(self) -> tuple[Any, ...]:
        return (self.page, self.limit, tuple(sorted(self.filters.items())))

    def to_query(self, field_map: Mapping[str, str]) -> dict[str, Any]:
        """Render wire query parameters, renaming canonical filter keys via `field_map`."""

        query: dict[str, Any] = {"page": self.page, "limit": self.limit}
        for key, value in sorted(self.filters.items()):
            wire_key = field_map.get(key, key)
            if isinstance(value, date):
                value = value.isoformat()
            elif isinstance(value, bool):
                value = str(value).lower()
            query[wire_key] = value
        return query


@dataclass(frozen=True)
class PaginationMeta:
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_totals(cls, *, page: int, limit: int, total: int) -> PaginationMeta:
        limit = max(1, int(limit))
        total = max(0, int(total))
        return cls(
            page=max(1, int(page)),
            limit=limit,
            total=total,
            total_pages=compute_total_pages(total_count=total, page_size=limit),
        )


class Resource(Protocol):
    id: str


ResourceT = TypeVar("ResourceT", bound=Resource)


@dataclass(frozen=True)
class ResourcePage(Generic[ResourceT]):
    items: tuple[ResourceT, ...]
    pagination: PaginationMeta

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(item.id for item in self.items)


@dataclass(frozen=True)
class User:
    id: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: str
    status: str
    plan: str
    role: str
    is_active: bool
    email_verified: bool
    country: str | None
    created_at: datetime | None
    updated_at: datetime | None
    last_active: datetime | None


@dataclass(frozen=True)
class Transaction:
    id: str
    reference: str
    gateway_reference: str | None
    buyer_id: str
    email: str
    customer_name: str
    status: str
    payment_method: str
    type: str
    amount: float
    total_amount: float
    currency: str
    description: str
    created_at: datetime | None
    updated_at: datetime | None
    completed_at: datetime | None


@dataclass(frozen=True)
class Prediction:
    id: str
    match: str
    picks_count: int
    accuracy: float
    status: str
    posted_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None
