# This test file validates the record normalizers for every admin resource type.
# It exists so heterogeneous backend spellings keep mapping to one canonical shape.
# Normalizers must be deterministic and must never mutate the records they read.

from __future__ import annotations

import copy
from datetime import UTC, datetime

import pytest

from src.admin_console.errors import MalformedResponseError
from src.admin_console.models import FilterCriteria
from src.admin_console.normalizers import (
    normalize_page,
    normalize_prediction,
    normalize_transaction,
    normalize_user,
    parse_timestamp,
)
from tests.admin_console.support import user_record


def test_user_status_prefers_is_active_over_status_id() -> None:
    user = normalize_user(user_record(1, isActive=False, statusId=1))

    assert user.status == "inactive"
    assert user.is_active is False


def test_user_fallbacks_fill_missing_fields() -> None:
    user = normalize_user({"id": 12, "firstName": "Grace", "userPlanId": 2, "statusId": 3})

    assert user.id == "12"
    assert user.full_name == "Grace"
    assert user.plan == "premium"
    assert user.status == "suspended"
    assert user.role == "user"
    assert user.email == ""
    assert user.created_at is None
    assert user.country is None


def test_user_phone_and_admin_role() -> None:
    user = normalize_user(
        user_record(3, phoneNumber="8012345678", countryCode="+234", isAdmin=True)
    )

    assert user.phone == "+2348012345678"
    assert user.role == "admin"


def test_transaction_defaults_and_aliases() -> None:
    transaction = normalize_transaction(
        {
            "id": 5,
            "customerEmail": "buyer@example.com",
            "amount": 1500,
            "status": "successful",
            "channel": "paypal",
            "dateCreated": "2025-03-01T10:00:00Z",
        }
    )

    assert transaction.email == "buyer@example.com"
    assert transaction.customer_name == "buyer"
    assert transaction.status == "Successful"
    assert transaction.payment_method == "paypal"
    assert transaction.total_amount == 1500.0
    assert transaction.currency == "NGN"
    assert transaction.description == "Subscription Payment"
    assert transaction.updated_at == datetime(2025, 3, 1, 10, 0, tzinfo=UTC)


def test_prediction_builds_match_from_teams() -> None:
    prediction = normalize_prediction(
        {"id": "p1", "home": "Arsenal", "away": "Chelsea", "status": "EXPIRED", "picksCount": "3"}
    )

    assert prediction.match == "Arsenal vs Chelsea"
    assert prediction.status == "expired"
    assert prediction.picks_count == 3


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2025-01-02T03:04:05Z", datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)),
        ("2025-01-02T03:04:05", datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)),
        ("not a date", None),
        (None, None),
    ],
)
def test_parse_timestamp(raw: object, expected: datetime | None) -> None:
    assert parse_timestamp(raw) == expected


def test_normalizers_are_deterministic_and_do_not_mutate() -> None:
    record = user_record(8, lastActive="2025-06-01T00:00:00+02:00")
    original = copy.deepcopy(record)

    first = normalize_user(record)
    second = normalize_user(record)

    assert first == second
    assert record == original
    assert first.last_active == datetime(2025, 5, 31, 22, 0, tzinfo=UTC)


def test_missing_identifier_is_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        normalize_transaction({"reference": "no-id"})


def test_page_falls_back_to_requested_paging() -> None:
    page = normalize_page(
        {"items": [user_record(1), user_record(2)]},
        normalize_user,
        requested=FilterCriteria(page=2, limit=25),
    )

    assert page.pagination.page == 2
    assert page.pagination.limit == 25
    assert page.pagination.total == 2
    assert page.pagination.total_pages == 1


def test_zero_total_means_zero_pages() -> None:
    page = normalize_page(
        {"items": [], "total": 0}, normalize_user, requested=FilterCriteria()
    )

    assert page.items == ()
    assert page.pagination.total_pages == 0
