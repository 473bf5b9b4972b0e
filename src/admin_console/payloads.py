# This file validates create/update payloads before they are sent to the admin API.
# It exists so form mistakes are reported as validation failures without a network round trip.
# Models accept snake_case or camelCase input and always serialize to the backend's camelCase names.
# Only validated, alias-rendered dictionaries ever reach the gateway.

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from src.admin_console.errors import ValidationFailedError

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_NAME_PATTERN = r"^[a-zA-Z\s'-]+$"


class _WirePayload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


class CreateUserPayload(_WirePayload):
    first_name: str = Field(min_length=1, max_length=50, pattern=_NAME_PATTERN)
    last_name: str = Field(min_length=1, max_length=50, pattern=_NAME_PATTERN)
    email: str = Field(pattern=_EMAIL_PATTERN)
    phone_number: str | None = Field(default=None, pattern=r"^[0-9]{7,15}$")
    country_code: str | None = Field(default=None, pattern=r"^\+[0-9]{1,4}$")
    role_name: Literal["user", "admin", "moderator"] = "user"
    plan: Literal["free", "basic", "premium", "enterprise"] = "free"
    is_active: bool = True
    send_welcome_email: bool = False

    @field_validator("phone_number", "country_code", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class UpdateTransactionPayload(_WirePayload):
    status: Literal["Successful", "Pending", "Failed", "Cancelled", "Refunded"] | None = None
    amount: float | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, max_length=500)


class PredictionPick(_WirePayload):
    market: str = Field(min_length=1)
    selection_key: str = Field(min_length=1)
    selection_label: str = Field(min_length=1)
    confidence: float = Field(ge=0, le=100)
    odds: float | None = Field(default=None, gt=0)
    tip: str | None = None


class CreatePredictionPayload(_WirePayload):
    fixture_id: int = Field(ge=1)
    title: str = Field(min_length=1, max_length=200)
    analysis: str = Field(min_length=10)
    accuracy: float = Field(ge=0, le=100)
    audience: Literal["PREMIUM", "FREE", "All"] = "All"
    is_premium: bool = False
    picks: list[PredictionPick] = Field(min_length=1)


class UpdatePredictionPayload(_WirePayload):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    analysis: str | None = Field(default=None, min_length=10)
    accuracy: float | None = Field(default=None, ge=0, le=100)
    audience: Literal["PREMIUM", "FREE", "All"] | None = None
    is_premium: bool | None = None


def validate_payload(model: type[BaseModel] | None, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Validate `payload` against `model` and return the camelCase wire body."""

    if not isinstance(payload, Mapping):
        raise ValidationFailedError("Payload must be a mapping of field names to values")
    if model is None:
        return dict(payload)
    try:
        validated = model.model_validate(dict(payload))
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()})
        raise ValidationFailedError(
            f"Invalid payload fields: {', '.join(fields)}",
            details=exc.errors(include_url=False),
        ) from exc
    return validated.model_dump(by_alias=True, exclude_none=True)
