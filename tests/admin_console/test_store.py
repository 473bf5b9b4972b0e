# This test file validates the collection state store transitions.
# It exists so page resets, page bounds, and selection persistence stay predictable.
# The store is synchronous, so every check is a plain in-memory assertion.

from __future__ import annotations

import pytest

from src.admin_console.errors import ValidationFailedError
from src.admin_console.models import PaginationMeta
from src.admin_console.store import CollectionStateStore
from tests.admin_console.support import make_user


def _store_with_pages(total: int, *, limit: int = 10) -> CollectionStateStore:
    store = CollectionStateStore(default_limit=limit)
    store.replace_snapshot(
        [make_user(1)],
        PaginationMeta.from_totals(page=1, limit=limit, total=total),
    )
    return store


def test_filter_change_resets_page() -> None:
    store = _store_with_pages(50)
    assert store.set_page(3)

    assert store.set_filter({"status": "active"})

    assert store.criteria.page == 1
    assert store.criteria.filters == {"status": "active"}


def test_page_change_keeps_filters() -> None:
    store = _store_with_pages(50)
    store.set_filter({"plan": "premium"})

    assert store.set_page(2)

    assert store.criteria.page == 2
    assert store.criteria.filters == {"plan": "premium"}


@pytest.mark.parametrize("page", [0, -1, 6])
def test_out_of_range_page_is_a_no_op(page: int) -> None:
    store = _store_with_pages(50)

    assert not store.set_page(page)
    assert store.criteria.page == 1


def test_same_page_is_a_no_op() -> None:
    store = _store_with_pages(50)

    assert not store.set_page(1)


def test_page_one_allowed_for_empty_result() -> None:
    store = _store_with_pages(0)
    store.set_page(1)

    assert store.criteria.page == 1
    assert not store.set_page(2)


def test_blank_values_remove_filter_keys() -> None:
    store = CollectionStateStore()
    store.set_filter({"search": " ada ", "status": "active"})

    assert store.criteria.filters == {"search": "ada", "status": "active"}
    assert store.set_filter({"search": "   ", "status": None})
    assert store.criteria.filters == {}


def test_unchanged_filters_report_no_change() -> None:
    store = CollectionStateStore()
    store.set_filter({"status": "active"})

    assert not store.set_filter({"status": "active"})


def test_limit_is_clamped() -> None:
    store = CollectionStateStore(default_limit=10, max_limit=50)

    store.set_filter({"limit": 500})

    assert store.criteria.limit == 50


def test_clear_filter_restores_defaults() -> None:
    store = _store_with_pages(50, limit=20)
    store.set_filter({"status": "active", "limit": 30})

    assert store.clear_filter()
    assert store.criteria.filters == {}
    assert store.criteria.page == 1
    assert store.criteria.limit == 20
    assert not store.clear_filter()


def test_toggle_twice_restores_selection() -> None:
    store = CollectionStateStore()
    store.select_all(["1", "2"])

    store.toggle_selection("3")
    store.toggle_selection("3")

    assert store.selected_ids == frozenset({"1", "2"})


def test_selection_survives_snapshot_replacement() -> None:
    store = _store_with_pages(30)
    store.toggle_selection("1")

    store.set_page(2)
    store.replace_snapshot(
        [make_user(11)], PaginationMeta.from_totals(page=2, limit=10, total=30)
    )

    assert store.is_selected("1")


def test_select_all_replaces_and_deselect_removes() -> None:
    store = CollectionStateStore()
    store.select_all(["1", "2"])

    store.select_all(["3"])
    assert store.selected_ids == frozenset({"3"})

    store.deselect(["3"])
    assert store.selected_ids == frozenset()


def test_non_numeric_paging_values_are_validation_failures() -> None:
    store = _store_with_pages(50)

    with pytest.raises(ValidationFailedError, match="page must be an integer"):
        store.set_page("x")  # type: ignore[arg-type]
    with pytest.raises(ValidationFailedError, match="limit must be an integer"):
        store.set_filter({"limit": "many"})

    assert store.criteria.page == 1
    assert store.criteria.limit == 10
