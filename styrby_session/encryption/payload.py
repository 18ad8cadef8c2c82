"""
Encrypted Payload — The persisted unit and its text codec.

Wire format (fixed once data exists in storage):
    content_encrypted = base64(ciphertext)   len(ciphertext) = len(utf8) + 16
    encryption_nonce  = base64(nonce)        len(nonce) = 24

Both fields use standard, padded base64 (RFC 4648 section 4) and always
travel together.
"""
import base64
import binascii
from collections.abc import Mapping
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from .errors import InvalidInputError

CONTENT_FIELD = "content_encrypted"
NONCE_FIELD = "encryption_nonce"
_WIRE_FIELDS = ("contentEncrypted", "nonce")


def encode_b64(data: bytes) -> str:
    """Encode bytes as padded standard base64 text."""
    return base64.b64encode(data).decode("ascii")


def decode_b64(text: str, name: str = "value") -> bytes:
    """Decode padded standard base64 text.

    Args:
        text: base64 text.
        name: Field name used in the error message.

    Raises:
        InvalidInputError: If text is not a string or not valid base64.
    """
    if not isinstance(text, str):
        raise InvalidInputError(f"{name} must be a base64 string")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as err:
        raise InvalidInputError(f"{name} is not valid base64") from err


def _missing_fields(err: ValidationError) -> str:
    names = sorted({str(e["loc"][0]) for e in err.errors() if e["loc"]})
    return ", ".join(names) or "payload"


class EncryptedPayload(BaseModel):
    """Ciphertext and nonce of one encrypted message, both base64 encoded."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content_encrypted: StrictStr = Field(alias="contentEncrypted")
    nonce: StrictStr

    @classmethod
    def from_mapping(cls, value: Mapping[str, Any]) -> "EncryptedPayload":
        """Build a payload from a ``{"contentEncrypted", "nonce"}`` mapping.

        Raises:
            InvalidInputError: If a field is missing or is not a string.
        """
        if not isinstance(value, Mapping):
            raise InvalidInputError(
                f"Encrypted payload must be a mapping, got {type(value).__name__}"
            )
        try:
            # Only the wire names are accepted, matching is_encrypted_payload().
            data = {name: value[name] for name in _WIRE_FIELDS if name in value}
            return cls.model_validate(data)
        except ValidationError as err:
            # pydantic messages echo the input values, keep only field names.
            raise InvalidInputError(
                f"Invalid encrypted payload field(s): {_missing_fields(err)}"
            ) from None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "EncryptedPayload":
        """Build a payload from a storage row with
        ``content_encrypted`` and ``encryption_nonce`` columns.

        Raises:
            InvalidInputError: If either column is missing or not a string.
        """
        for name in (CONTENT_FIELD, NONCE_FIELD):
            if not isinstance(row.get(name), str):
                raise InvalidInputError(f"payload missing {name} field")
        return cls(content_encrypted=row[CONTENT_FIELD], nonce=row[NONCE_FIELD])

    @staticmethod
    def record_has_payload(row: Mapping[str, Any]) -> bool:
        """True if the row carries both encrypted fields, non-empty."""
        return bool(row.get(CONTENT_FIELD)) and bool(row.get(NONCE_FIELD))

    def to_record(self) -> dict[str, str]:
        """Return the storage columns for this payload."""
        return {
            CONTENT_FIELD: self.content_encrypted,
            NONCE_FIELD: self.nonce,
        }

    def to_dict(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)

    def to_json(self) -> bytes:
        """Serialize as a JSON object with ``contentEncrypted`` and ``nonce``."""
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_json(cls, data: bytes | str) -> "EncryptedPayload":
        """Parse a payload serialized with :meth:`to_json`.

        Raises:
            InvalidInputError: If data is not a JSON object with both fields.
        """
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as err:
            raise InvalidInputError("Encrypted payload is not valid JSON") from err
        return cls.from_mapping(parsed)

    def decode(self) -> tuple[bytes, bytes]:
        """Return ``(ciphertext, nonce)`` as raw bytes.

        Raises:
            InvalidInputError: If either field is not valid base64.
        """
        return (
            decode_b64(self.content_encrypted, "contentEncrypted"),
            decode_b64(self.nonce, "nonce"),
        )

    @property
    def ciphertext_size(self) -> int:
        return len(decode_b64(self.content_encrypted, "contentEncrypted"))

    @property
    def nonce_size(self) -> int:
        return len(decode_b64(self.nonce, "nonce"))
