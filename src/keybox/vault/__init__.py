# Keybox: Vault Module - Encrypted Credential Store
#
# Records with AES-CFB encrypted account/password fields,
# kept in a lock-guarded box and persisted through a repository.

from .box import Box
from .codec import RecordCodec, derive_key
from .errors import (
    AllocateIDFailed,
    Ambiguous,
    CipherInitError,
    EmptyMasterPassword,
    InvalidIVLength,
    KeyboxError,
    MasterPasswordTooShort,
    PasswordNotFound,
    PasswordNotFoundWithAccount,
    RepositoryError,
    SerializationError,
)
from .id_alloc import IdAllocator
from .record import RECORD_HEADER, Record
from .table import Table, write_table

__all__ = [
    "Box",
    "Record",
    "RECORD_HEADER",
    "RecordCodec",
    "derive_key",
    "IdAllocator",
    "Table",
    "write_table",
    # Errors
    "KeyboxError",
    "MasterPasswordTooShort",
    "EmptyMasterPassword",
    "PasswordNotFound",
    "PasswordNotFoundWithAccount",
    "Ambiguous",
    "AllocateIDFailed",
    "InvalidIVLength",
    "CipherInitError",
    "SerializationError",
    "RepositoryError",
]
