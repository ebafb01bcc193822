from __future__ import annotations

from enum import Enum
import hashlib

from jwt_hash_store.errors import InvalidIdentifierError

KEY_DELIMITER = ":"
_GLOB_SPECIAL = "\\*?[]"


class TokenCategory(str, Enum):
    VALID = "valid"
    BLACKLISTED = "blacklisted"


def fingerprint_token(raw_token: str | bytes) -> str:
    """Return the lowercase hex SHA-256 digest of the token's exact bytes."""
    if isinstance(raw_token, str):
        raw_token = raw_token.encode("utf-8")
    return hashlib.sha256(raw_token).hexdigest()


def _ensure_identifier(identifier: str) -> str:
    if KEY_DELIMITER in identifier:
        raise InvalidIdentifierError(f"identifier must not contain {KEY_DELIMITER!r}: {identifier!r}")
    return identifier


def compose_record_key(prefix: str, identifier: str, fingerprint: str) -> str:
    return KEY_DELIMITER.join((prefix, _ensure_identifier(identifier), fingerprint))


def compose_scan_pattern(prefix: str, identifier: str) -> str:
    # SCAN MATCH is glob syntax; an identifier like "a*" must only match itself.
    return KEY_DELIMITER.join((_escape_glob(prefix), _escape_glob(_ensure_identifier(identifier)), "*"))


def _escape_glob(value: str) -> str:
    return "".join(f"\\{char}" if char in _GLOB_SPECIAL else char for char in value)
