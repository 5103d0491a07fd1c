from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Protocol

# JSON keys of the stored document. Rows written by existing authorization
# servers use this exact layout, so it must not change.
_KEY_ID = "ID"
_KEY_SECRET = "Secret"
_KEY_DOMAIN = "Domain"
_KEY_PUBLIC = "Public"
_KEY_USER_ID = "UserID"
_KEY_METADATA = "Metadata"

# user_id column is a signed BIGINT
_MAX_USER_ID = 2**63 - 1


class ClientInfo(Protocol):
    """What a store needs from a client on create()."""

    @property
    def client_id(self) -> str: ...
    @property
    def secret(self) -> str: ...
    @property
    def domain(self) -> str: ...
    @property
    def is_public(self) -> bool: ...
    @property
    def user_id(self) -> str: ...
    def to_json(self) -> str: ...


@dataclass(frozen=True, slots=True)
class OAuthClient:
    client_id: str
    secret: str
    domain: str
    is_public: bool = False
    user_id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict, hash=False)

    def to_json(self) -> str:
        """Encode as the stored JSON document.

        Raises TypeError or ValueError when metadata holds values JSON
        cannot represent, or shapes it would not decode back unchanged
        (tuples, non-str keys).
        """
        doc: dict[str, Any] = {
            _KEY_ID: self.client_id,
            _KEY_SECRET: self.secret,
            _KEY_DOMAIN: self.domain,
            _KEY_PUBLIC: self.is_public,
            _KEY_USER_ID: self.user_id,
        }
        if self.metadata:
            _check_json_native(self.metadata, "Metadata")
            doc[_KEY_METADATA] = self.metadata
        return json.dumps(doc, separators=(",", ":"), allow_nan=False)

    @staticmethod
    def from_json(data: str) -> OAuthClient:
        """Decode a stored JSON document.

        Missing keys and JSON nulls fall back to empty values; unknown keys
        are ignored. Raises ValueError for malformed JSON, a non-object
        document, or a field of the wrong type.
        """
        doc = json.loads(data)
        if not isinstance(doc, dict):
            raise ValueError(f"client document must be a JSON object, got {type(doc).__name__}")
        return OAuthClient(
            client_id=_field(doc, _KEY_ID, str, ""),
            secret=_field(doc, _KEY_SECRET, str, ""),
            domain=_field(doc, _KEY_DOMAIN, str, ""),
            is_public=_field(doc, _KEY_PUBLIC, bool, False),
            user_id=_field(doc, _KEY_USER_ID, str, ""),
            metadata=_field(doc, _KEY_METADATA, dict, {}),
        )


def _field(doc: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = doc.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ValueError(
            f"client field {key!r} must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _check_json_native(value: Any, path: str) -> None:
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{path} keys must be str, got {key!r}")
            _check_json_native(item, f"{path}.{key}")
    elif isinstance(value, list):
        for index, item in enumerate(value):
            _check_json_native(item, f"{path}[{index}]")
    elif isinstance(value, tuple):
        raise ValueError(f"{path} must be a list, not a tuple")


def parse_user_id(raw: str) -> int | None:
    """Parse a string user ID into the integer stored in the user_id column.

    Only plain ASCII digits are accepted (no sign, whitespace or
    underscores). Returns None when the string does not parse or does not
    fit the column.
    """
    if not raw or not raw.isascii() or not raw.isdigit():
        return None
    value = int(raw)
    if value > _MAX_USER_ID:
        return None
    return value
