# Keybox: Vault Exception Classes
#
# Every failure the box can report derives from KeyboxError so callers
# (the CLI, embedding applications) can catch the whole family at once.


class KeyboxError(Exception):
    """Base exception for keybox operations."""


class MasterPasswordTooShort(KeyboxError):
    """Raised when the master password is shorter than the minimum length."""

    def __init__(self, min_length: int = 6):
        self.min_length = min_length
        super().__init__(f"master password too short (minimum {min_length} characters)")


class EmptyMasterPassword(KeyboxError):
    """Raised when an operation runs before the box is initialized."""

    def __init__(self):
        super().__init__("master password is empty, initialize the box first")


class PasswordNotFound(KeyboxError):
    """Raised when no record matches the requested id (or id prefix)."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"password {record_id!r} not found")


class PasswordNotFoundWithAccount(KeyboxError):
    """Raised when no record matches the requested category and account."""

    def __init__(self, category: str, account: str):
        self.category = category
        self.account = account
        super().__init__(
            f"password with category {category!r} and account {account!r} not found"
        )


class Ambiguous(KeyboxError):
    """Raised when a query resolves to more than one record without permission.

    ``candidates`` holds copies of the matching records, sorted by id.
    """

    def __init__(self, candidates):
        self.candidates = list(candidates)
        ids = ", ".join(c.id for c in self.candidates)
        super().__init__(f"ambiguous: {len(self.candidates)} passwords matched ({ids})")

    @property
    def ids(self):
        return [c.id for c in self.candidates]


class AllocateIDFailed(KeyboxError):
    """Raised when the allocator cannot find an unused id."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"failed to allocate a unique id after {attempts} attempts")


class InvalidIVLength(KeyboxError):
    """Raised when a stored IV does not match the cipher block size."""

    def __init__(self, field: str, length: int, expected: int):
        self.field = field
        self.length = length
        self.expected = expected
        super().__init__(
            f"invalid length of {field} IV: got {length}, expected {expected}"
        )


class CipherInitError(KeyboxError):
    """Raised when the block cipher cannot be constructed."""


class SerializationError(KeyboxError):
    """Raised when the persisted blob cannot be encoded or decoded."""


class RepositoryError(KeyboxError):
    """Raised when the storage backend fails to load or save."""
