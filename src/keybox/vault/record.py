# Keybox: Record Data Model
#
# One credential entry. Plaintext fields live in memory only; the persisted
# form carries the ciphertext, per-field IVs, category, timestamps and id.

import base64
import binascii
import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from .errors import SerializationError

# Column order used by row() and the list/find tables
RECORD_HEADER = ["ID", "CATEGORY", "ACCOUNT", "PASSWORD", "UPDATED_AT"]


def encode_for_storage(data: bytes) -> str:
    """Encode binary data for the JSON blob (base64)."""
    return base64.b64encode(data).decode("ascii")


def decode_from_storage(data: str) -> bytes:
    """Decode base64-encoded data from the JSON blob."""
    return base64.b64decode(data.encode("ascii"), validate=True)


def format_datetime(timestamp: int) -> str:
    """Render a Unix timestamp as ``YYYY/MM/DD HH:MM:SS`` (local time)."""
    if not timestamp:
        return ""
    try:
        return datetime.fromtimestamp(timestamp).strftime("%Y/%m/%d %H:%M:%S")
    except (ValueError, OverflowError, OSError):
        return ""


@dataclass
class Record:
    """A credential entry held by the box.

    ``account_iv``/``password_iv`` are empty until the codec first encrypts
    the record; after that they always have the cipher's block size.
    """

    id: str = ""
    category: str = ""
    plain_account: str = field(default="", repr=False)
    plain_password: str = field(default="", repr=False)
    cipher_account: bytes = b""
    cipher_password: bytes = b""
    account_iv: bytes = b""
    password_iv: bytes = b""
    created_at: int = 0
    last_updated_at: int = 0

    def copy(self) -> "Record":
        return copy.copy(self)

    def migrate(self, other: "Record") -> None:
        """Merge an incoming update into this record.

        Non-empty category/account/password replace the current values.
        ``id`` and ``created_at`` are kept. A changed sensitive value drops
        its IV so the next encryption draws a fresh one.
        """
        if other.category:
            self.category = other.category
        if other.plain_account and other.plain_account != self.plain_account:
            self.plain_account = other.plain_account
            self.account_iv = b""
        if other.plain_password and other.plain_password != self.plain_password:
            self.plain_password = other.plain_password
            self.password_iv = b""

    def match(self, word: str) -> bool:
        """Case-insensitive substring match on category or plaintext account."""
        needle = word.casefold()
        return needle in self.category.casefold() or needle in self.plain_account.casefold()

    def row(self) -> List[str]:
        return [
            self.id,
            self.category,
            self.plain_account,
            self.plain_password,
            format_datetime(self.last_updated_at),
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Persisted form. Plaintext fields are never included."""
        return {
            "id": self.id,
            "category": self.category,
            "account": encode_for_storage(self.cipher_account),
            "password": encode_for_storage(self.cipher_password),
            "account_iv": encode_for_storage(self.account_iv),
            "password_iv": encode_for_storage(self.password_iv),
            "created_at": self.created_at,
            "last_updated_at": self.last_updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        if not isinstance(data, dict):
            raise SerializationError(f"record must be an object, got {type(data).__name__}")
        try:
            return cls(
                id=str(data["id"]),
                category=str(data.get("category", "")),
                cipher_account=decode_from_storage(data.get("account", "")),
                cipher_password=decode_from_storage(data.get("password", "")),
                account_iv=decode_from_storage(data.get("account_iv", "")),
                password_iv=decode_from_storage(data.get("password_iv", "")),
                created_at=int(data.get("created_at", 0)),
                last_updated_at=int(data.get("last_updated_at", 0)),
            )
        except KeyError as e:
            raise SerializationError(f"record is missing field {e}") from e
        except (binascii.Error, ValueError, TypeError, AttributeError) as e:
            raise SerializationError(f"malformed record {data.get('id')!r}: {e}") from e
