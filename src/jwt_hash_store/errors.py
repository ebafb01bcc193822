from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ValidationErrorKind(str, Enum):
    BLACKLISTED = "blacklisted"
    NOT_FOUND = "not_found"
    STORE_COMMUNICATION_FAILURE = "store_communication_failure"


class TokenStoreError(Exception):
    """Base token store exception."""


class TokenValidationError(TokenStoreError):
    """Raised when a token is rejected by validation."""

    kind: ValidationErrorKind
    default_message = "JWT validation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class TokenBlacklistedError(TokenValidationError):
    """Raised when a matching blacklisted record exists."""

    kind = ValidationErrorKind.BLACKLISTED
    default_message = "JWT is blacklisted"


class TokenNotFoundError(TokenValidationError):
    """Raised when no matching valid record exists."""

    kind = ValidationErrorKind.NOT_FOUND
    default_message = "JWT does not exist in valid list"


class InvalidIdentifierError(TokenStoreError, ValueError):
    """Raised when an identifier would break the record key layout."""


class StoreNotConnectedError(TokenStoreError, RuntimeError):
    """Raised when the Redis manager is used outside connect()/close()."""


_ERRORS_BY_KIND: dict[ValidationErrorKind, type[TokenValidationError]] = {
    ValidationErrorKind.BLACKLISTED: TokenBlacklistedError,
    ValidationErrorKind.NOT_FOUND: TokenNotFoundError,
}


@dataclass(frozen=True)
class ValidationResult:
    kind: ValidationErrorKind | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.kind is None

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_kind(self) -> None:
        if self.kind is None:
            return
        if self.kind is ValidationErrorKind.STORE_COMMUNICATION_FAILURE:
            if self.error is not None:
                raise self.error
            raise TokenStoreError("token store is unreachable")
        raise _ERRORS_BY_KIND[self.kind]()
