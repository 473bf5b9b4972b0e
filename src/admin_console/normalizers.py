# This file maps heterogeneous backend records into the canonical resource dataclasses.
# It exists because the admin API spells the same fields differently across endpoints and releases.
# Every function is pure: no clock, no randomness, and the input mapping is never mutated.
# Missing optional fields get fixed fallbacks so no absent value leaks into the canonical model.

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import ValidationError

from src.admin_console.errors import MalformedResponseError
from src.admin_console.models import (
    FilterCriteria,
    PaginationMeta,
    Prediction,
    ResourcePage,
    Transaction,
    User,
)
from src.admin_console.schemas import ListData

T = TypeVar("T")

USER_STATUSES = ("active", "inactive", "suspended", "pending")
USER_PLANS = {1: "free", 2: "premium", 3: "basic", 4: "enterprise"}
USER_STATUS_IDS = {1: "active", 2: "inactive", 3: "suspended", 4: "pending"}
TRANSACTION_STATUSES = ("Successful", "Pending", "Failed", "Cancelled", "Refunded")
PAYMENT_METHODS = ("Paystack", "credit_card", "paypal", "bank_transfer", "crypto", "wallet")
TRANSACTION_TYPES = ("Subscription", "payment", "refund", "withdrawal", "deposit")
PREDICTION_STATUSES = ("scheduled", "active", "expired", "cancelled")


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value).strip()


def _number(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _identifier(record: Mapping[str, Any], resource: str) -> str:
    raw = record.get("id")
    if raw is None or isinstance(raw, bool) or str(raw).strip() == "":
        raise MalformedResponseError(
            f"{resource} record is missing an identifier", details=dict(record)
        )
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    return str(raw).strip()


def parse_timestamp(value: Any) -> datetime | None:
    """Parse ISO-8601 strings or datetimes into timezone-aware UTC datetimes."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _choice(value: Any, allowed: tuple[str, ...], default: str, *, casefold: bool = False) -> str:
    text = _text(value)
    if casefold:
        lookup = {option.lower(): option for option in allowed}
        return lookup.get(text.lower(), default)
    return text if text in allowed else default


def _user_status(record: Mapping[str, Any]) -> str:
    # isActive wins over statusId when both are present.
    is_active = record.get("isActive")
    if is_active is True:
        return "active"
    if is_active is False:
        return "inactive"
    status = record.get("status")
    if isinstance(status, str) and status.lower() in USER_STATUSES:
        return status.lower()
    status_id = record.get("statusId")
    if isinstance(status_id, int) and not isinstance(status_id, bool):
        return USER_STATUS_IDS.get(status_id, "inactive")
    return "inactive"


def _user_plan(record: Mapping[str, Any]) -> str:
    plan = record.get("plan")
    if isinstance(plan, str) and plan:
        return plan.lower()
    plan_id = record.get("userPlanId")
    if isinstance(plan_id, int) and not isinstance(plan_id, bool):
        return USER_PLANS.get(plan_id, "free")
    return "free"


def _user_phone(record: Mapping[str, Any]) -> str:
    phone_number = _text(record.get("phoneNumber"))
    country_code = _text(record.get("countryCode"))
    if phone_number:
        if country_code and not phone_number.startswith("+"):
            return f"{country_code}{phone_number}"
        return phone_number
    return _text(record.get("phone"))


def normalize_user(record: Mapping[str, Any]) -> User:
    user_id = _identifier(record, "user")
    first_name = _text(_first(record, "firstName", "first_name"))
    last_name = _text(_first(record, "lastName", "last_name"))
    status = _user_status(record)
    is_active = record.get("isActive")
    role = "admin" if record.get("isAdmin") is True else _text(record.get("role")) or "user"
    created_at = parse_timestamp(_first(record, "createdAt", "dateCreated"))
    updated_at = parse_timestamp(_first(record, "updatedAt", "dateUpdated")) or created_at

    return User(
        id=user_id,
        email=_text(record.get("email")),
        first_name=first_name,
        last_name=last_name,
        full_name=f"{first_name} {last_name}".strip(),
        phone=_user_phone(record),
        status=status,
        plan=_user_plan(record),
        role=role,
        is_active=is_active if isinstance(is_active, bool) else status == "active",
        email_verified=record.get("emailVerified") is True,
        country=_text(_first(record, "country", "location")) or None,
        created_at=created_at,
        updated_at=updated_at,
        last_active=parse_timestamp(record.get("lastActive")) or created_at,
    )


def normalize_transaction(record: Mapping[str, Any]) -> Transaction:
    transaction_id = _identifier(record, "transaction")
    email = _text(_first(record, "email", "customerEmail"))
    amount = _number(record.get("amount"))
    payment_type = _choice(
        _first(record, "paymentType", "type"), TRANSACTION_TYPES, "Subscription"
    )
    created_at = parse_timestamp(_first(record, "dateCreated", "createdAt"))
    completed_at = parse_timestamp(record.get("completedAt"))

    return Transaction(
        id=transaction_id,
        reference=_text(record.get("reference")),
        gateway_reference=_text(record.get("gatewayReference")) or None,
        buyer_id=_text(record.get("buyerId")),
        email=email,
        customer_name=_text(record.get("customerName")) or (email.split("@")[0] or "Customer"),
        status=_choice(record.get("status"), TRANSACTION_STATUSES, "Pending", casefold=True),
        payment_method=_choice(
            _first(record, "channel", "paymentMethod"), PAYMENT_METHODS, "Paystack"
        ),
        type=payment_type,
        amount=amount,
        total_amount=_number(record.get("totalAmount"), amount),
        currency=_text(record.get("currency"), "NGN") or "NGN",
        description=_text(record.get("description")) or f"{payment_type} Payment",
        created_at=created_at,
        updated_at=completed_at or parse_timestamp(record.get("updatedAt")) or created_at,
        completed_at=completed_at,
    )


def normalize_prediction(record: Mapping[str, Any]) -> Prediction:
    prediction_id = _identifier(record, "prediction")
    match = _text(_first(record, "match", "title"))
    if not match and record.get("home") and record.get("away"):
        match = f"{_text(record.get('home'))} vs {_text(record.get('away'))}"
    posted_at = parse_timestamp(_first(record, "datePostedUtc", "datePosted"))
    created_at = parse_timestamp(_first(record, "dateCreated", "createdAt")) or posted_at

    return Prediction(
        id=prediction_id,
        match=match,
        picks_count=int(_number(_first(record, "picksCount", "picks"))),
        accuracy=_number(record.get("accuracy")),
        status=_choice(record.get("status"), PREDICTION_STATUSES, "scheduled", casefold=True),
        posted_at=posted_at,
        created_at=created_at,
        updated_at=parse_timestamp(_first(record, "dateUpdated", "updatedAt")) or created_at,
    )


def normalize_page(
    data: Any,
    normalize: Callable[[Mapping[str, Any]], T],
    *,
    requested: FilterCriteria,
) -> ResourcePage[Any]:
    """Reconcile list payload spellings and normalize every record."""

    if not isinstance(data, Mapping):
        raise MalformedResponseError("List response data is not an object", details=data)
    try:
        parsed = ListData.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(
            "List response data has an unexpected shape", details=str(exc)
        ) from exc

    records = parsed.records()
    if records is None:
        raise MalformedResponseError("List response is missing items", details=sorted(data.keys()))

    items = tuple(normalize(record) for record in records)
    page = parsed.page or parsed.current_page or requested.page
    limit = parsed.page_size or parsed.limit or requested.limit
    total = parsed.total if parsed.total is not None else parsed.total_items
    if total is None:
        total = len(items)

    return ResourcePage(
        items=items,
        pagination=PaginationMeta.from_totals(page=page, limit=limit, total=total),
    )
