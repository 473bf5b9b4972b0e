# This file defines the error taxonomy shared by the gateway and the collection controller.
# It exists so every failure is classified once, at the boundary where it happens.
# The controller records the kind instead of raising, which keeps view callbacks exception-free.
# MutationOutcome is the value every mutation produces for the view and for refresh decisions.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    NETWORK = "network"
    SERVER_ERROR = "server_error"
    MALFORMED = "malformed"
    VALIDATION_FAILED = "validation_failed"
    UNKNOWN = "unknown"


class CollectionError(RuntimeError):
    """Base error with a machine-readable kind and optional server details."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class UnauthorizedError(CollectionError):
    """Raised when the credential is missing or rejected with 401/403."""

    kind = ErrorKind.UNAUTHORIZED


class NetworkError(CollectionError):
    """Raised on transport failures and timeouts."""

    kind = ErrorKind.NETWORK


class ServerError(CollectionError):
    """Raised on non-2xx responses or envelopes reporting `success: false`."""

    kind = ErrorKind.SERVER_ERROR


class MalformedResponseError(CollectionError):
    """Raised when a response body does not match the expected envelope."""

    kind = ErrorKind.MALFORMED


class ValidationFailedError(CollectionError):
    """Raised before any request is sent when a payload or operation is invalid."""

    kind = ErrorKind.VALIDATION_FAILED


def error_kind_of(exc: BaseException) -> ErrorKind:
    if isinstance(exc, CollectionError):
        return exc.kind
    return ErrorKind.UNKNOWN


def error_message_of(exc: BaseException) -> str:
    if isinstance(exc, CollectionError):
        return exc.message
    return str(exc) or exc.__class__.__name__


@dataclass(frozen=True)
class MutationOutcome:
    success: bool
    error_kind: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def ok(cls, message: str | None = None) -> MutationOutcome:
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, exc: BaseException) -> MutationOutcome:
        return cls(success=False, error_kind=error_kind_of(exc), message=error_message_of(exc))
