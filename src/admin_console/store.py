# This file holds the per-view collection state: filter criteria, last-known pagination, and selection.
# It exists so the controller has exactly one writer for that state and tests can build fresh instances.
# The store never touches the network; every method is a synchronous in-memory transition.
# Selection survives refreshes and page changes until it is explicitly cleared.

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Generic

from src.admin_console.errors import ValidationFailedError
from src.admin_console.models import (
    PAGINATION_KEYS,
    FilterCriteria,
    PaginationMeta,
    ResourceT,
)


class CollectionStateStore(Generic[ResourceT]):
    def __init__(self, *, default_limit: int = 10, max_limit: int = 100) -> None:
        if default_limit < 1 or max_limit < default_limit:
            raise ValueError("default_limit must be >= 1 and <= max_limit")
        self.default_limit = default_limit
        self.max_limit = max_limit
        self._criteria = FilterCriteria(page=1, limit=default_limit)
        self._pagination: PaginationMeta | None = None
        self._selected: frozenset[str] = frozenset()
        self._items: tuple[ResourceT, ...] = ()

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def pagination(self) -> PaginationMeta | None:
        return self._pagination

    @property
    def selected_ids(self) -> frozenset[str]:
        return self._selected

    @property
    def items(self) -> tuple[ResourceT, ...]:
        return self._items

    def clamp_limit(self, limit: int) -> int:
        return max(1, min(_paging_int("limit", limit), self.max_limit))

    def set_filter(self, changes: Mapping[str, Any]) -> bool:
        """Merge `changes` into the criteria; returns True when the criteria changed."""

        current = self._criteria
        filters = dict(current.filters)
        filters_changed = False
        for key, value in changes.items():
            if key in PAGINATION_KEYS:
                continue
            if value is None or (isinstance(value, str) and not value.strip()):
                if key in filters:
                    del filters[key]
                    filters_changed = True
                continue
            if isinstance(value, str):
                value = value.strip()
            if filters.get(key) != value:
                filters[key] = value
                filters_changed = True

        limit = current.limit
        if changes.get("limit") is not None:
            limit = self.clamp_limit(changes["limit"])

        page = current.page
        if filters_changed:
            page = 1
        elif changes.get("page") is not None:
            requested = _paging_int("page", changes["page"])
            if self._page_in_bounds(requested):
                page = requested

        updated = current.with_changes(page=page, limit=limit, filters=filters)
        if updated == current:
            return False
        self._criteria = updated
        return True

    def clear_filter(self) -> bool:
        cleared = FilterCriteria(page=1, limit=self.default_limit)
        if cleared == self._criteria:
            return False
        self._criteria = cleared
        return True

    def set_page(self, page: int) -> bool:
        page = _paging_int("page", page)
        if not self._page_in_bounds(page) or page == self._criteria.page:
            return False
        self._criteria = self._criteria.with_changes(page=page)
        return True

    def toggle_selection(self, resource_id: str) -> None:
        self._selected = self._selected ^ {str(resource_id)}

    def select_all(self, resource_ids: Iterable[str]) -> None:
        self._selected = frozenset(str(resource_id) for resource_id in resource_ids)

    def deselect(self, resource_ids: Iterable[str]) -> None:
        self._selected = self._selected - {str(resource_id) for resource_id in resource_ids}

    def clear_selection(self) -> None:
        self._selected = frozenset()

    def is_selected(self, resource_id: str) -> bool:
        return str(resource_id) in self._selected

    def replace_snapshot(self, items: Iterable[ResourceT], pagination: PaginationMeta) -> None:
        self._items = tuple(items)
        self._pagination = pagination

    def _page_in_bounds(self, page: int) -> bool:
        if page < 1:
            return False
        if self._pagination is None:
            return True
        return page <= max(self._pagination.total_pages, 1)


def _paging_int(key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationFailedError(f"{key} must be an integer, got {value!r}") from exc
