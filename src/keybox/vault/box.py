# Keybox: Box - Encrypted Credential Store
#
# In-memory record set guarded by one reader/writer lock.
# Sensitive fields encrypted per record (see codec.py).
# The whole collection is persisted as one JSON blob through a repository.
#
# Mutations (initialize, add, remove, remove_by_account, clear, load, save)
# hold the lock exclusively for their full duration, including the
# repository call. Reads (list, find, get, records) hold it shared.

import json
import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..core.audit_log import AuditLogger, EventSeverity, EventType, get_audit_logger
from ..core.rwlock import ReadWriteLock
from .codec import RecordCodec
from .errors import (
    Ambiguous,
    EmptyMasterPassword,
    KeyboxError,
    MasterPasswordTooShort,
    PasswordNotFound,
    PasswordNotFoundWithAccount,
    SerializationError,
)
from .id_alloc import IdAllocator
from .query import account_matcher, resolve_id, select, sort_by_id, word_matcher
from .record import Record
from .table import Table

logger = logging.getLogger(__name__)

# Caller mistakes are audited as alerts, everything else as critical
_ALERT_ERRORS = (
    Ambiguous,
    EmptyMasterPassword,
    MasterPasswordTooShort,
    PasswordNotFound,
    PasswordNotFoundWithAccount,
)


class Box:
    """
    Password box.

    Usage::

        box = Box(FileRepository("~/.keybox/box.json"))
        box.initialize("master-password")
        record_id, created = box.add(Record(category="mail", plain_account="me",
                                            plain_password="s3cret"))
        write_table(sys.stdout, box.list())

    Args:
        repo: Storage backend (load()/save() of the JSON blob)
        allocator: Id allocator (default: IdAllocator with SystemRandom)
        random_bytes: IV source for the codec (default: os.urandom)
        audit_logger: Audit sink (default: the global audit logger)
        clock: Returns the current Unix time
    """

    MIN_MASTER_PASSWORD_LENGTH = 6

    def __init__(
        self,
        repo,
        allocator: Optional[IdAllocator] = None,
        random_bytes: Optional[Callable[[int], bytes]] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.repo = repo
        self._allocator = allocator or IdAllocator()
        self._random_bytes = random_bytes
        self._audit = audit_logger
        self._clock = clock

        self._lock = ReadWriteLock()
        self._master_password = ""
        self._codec: Optional[RecordCodec] = None
        self._passwords: Dict[str, Record] = {}

    # ── Lifecycle ─────────────────────────────────────────────────────

    @property
    def is_initialized(self) -> bool:
        with self._lock.read_locked():
            return bool(self._master_password)

    def initialize(self, master_password: str) -> None:
        """
        Authenticate the box: load, decrypt, re-encrypt and persist all records.

        The box state only changes once the re-encrypted blob is saved; a
        failure leaves it as it was.

        Raises:
            MasterPasswordTooShort: If shorter than MIN_MASTER_PASSWORD_LENGTH.
            InvalidIVLength: If a persisted record carries a malformed IV.
            CipherInitError, SerializationError, RepositoryError
        """
        with self._audited("initialize"):
            if len(master_password) < self.MIN_MASTER_PASSWORD_LENGTH:
                raise MasterPasswordTooShort(self.MIN_MASTER_PASSWORD_LENGTH)

            with self._lock.write_locked():
                codec = RecordCodec(master_password, self._random_bytes)
                passwords = self._unmarshal(self.repo.load(), codec)
                self._persist(passwords, codec)

                self._master_password = master_password
                self._codec = codec
                self._passwords = passwords

            logger.info("Box initialized with %d passwords", len(passwords))
            self._log(
                EventType.BOX_INITIALIZED,
                EventSeverity.INFO,
                "Box initialized",
                {"count": len(passwords)},
            )

    def load(self) -> None:
        """Replace the in-memory records with the persisted ones.

        Records are decrypted only when the box is initialized.
        """
        with self._audited("load"):
            with self._lock.write_locked():
                self._passwords = self._unmarshal(self.repo.load(), self._codec)

    def save(self) -> None:
        """Persist the in-memory records."""
        with self._audited("save"):
            with self._lock.write_locked():
                self._persist(self._passwords, self._codec)

    # ── Mutations ─────────────────────────────────────────────────────

    def add(self, record: Record) -> Tuple[str, bool]:
        """
        Add a new record or update an existing one.

        An empty ``record.id`` creates a new record with a fresh id. A known
        id merges the incoming fields into the stored record. The caller's
        object is never stored; the box keeps its own copy.

        Returns:
            (id, created) where created is False for an update

        Raises:
            EmptyMasterPassword: If the box is not initialized.
            PasswordNotFound: If ``record.id`` is set but unknown.
            AllocateIDFailed: If no free id could be drawn.
        """
        with self._audited("add"):
            with self._lock.write_locked():
                self._require_master_password()
                now = int(self._clock())

                existing = self._passwords.get(record.id) if record.id else None
                if existing is not None:
                    target = existing.copy()
                    target.migrate(record)
                    target.last_updated_at = now
                    created = False
                elif record.id:
                    raise PasswordNotFound(record.id)
                else:
                    target = record.copy()
                    target.id = self._allocator.allocate(self._passwords)
                    target.created_at = target.created_at or now
                    target.last_updated_at = now
                    created = True

                self._codec.encrypt(target)
                self._commit({**self._passwords, target.id: target})
                logger.debug("Stored password %s (created=%s)", target.id, created)

            self._log(
                EventType.RECORD_ADDED if created else EventType.RECORD_UPDATED,
                EventSeverity.INFO,
                f"Password {'added' if created else 'updated'}",
                {"password_id": target.id, "category": target.category},
            )
            return target.id, created

    def remove(self, ids: Iterable[str], allow_ambiguous: bool = False) -> List[str]:
        """
        Remove records by id or id prefix.

        Each requested id resolves to its exact match or, failing that, to
        every record whose id starts with it. The whole batch is resolved
        before anything is deleted, so any failure leaves the box untouched.

        Returns:
            Deleted ids, in resolution order

        Raises:
            EmptyMasterPassword: If the box is not initialized.
            PasswordNotFound: If a requested id matches nothing.
            Ambiguous: If a prefix matches several records and
                ``allow_ambiguous`` is False.
        """
        with self._audited("remove"):
            with self._lock.write_locked():
                self._require_master_password()

                resolved: List[str] = []
                for requested in ids:
                    # An empty prefix would match every record
                    if not requested:
                        raise PasswordNotFound(requested)
                    matches = resolve_id(self._passwords, requested)
                    if not matches:
                        raise PasswordNotFound(requested)
                    if len(matches) > 1 and not allow_ambiguous:
                        raise Ambiguous(m.copy() for m in matches)
                    for match in matches:
                        if match.id not in resolved:
                            resolved.append(match.id)

                if not resolved:
                    return []
                self._commit(self._without(resolved))

            self._log(
                EventType.RECORD_REMOVED,
                EventSeverity.ALERT,
                f"Removed {len(resolved)} password(s)",
                {"password_ids": resolved},
            )
            return resolved

    def remove_by_account(
        self, category: str, account: str, allow_ambiguous: bool = False
    ) -> List[str]:
        """
        Remove records whose category and plaintext account match exactly.

        Returns:
            Deleted ids, ascending

        Raises:
            EmptyMasterPassword: If the box is not initialized.
            PasswordNotFoundWithAccount: If nothing matches.
            Ambiguous: If several records match and ``allow_ambiguous`` is False.
        """
        with self._audited("remove_by_account"):
            with self._lock.write_locked():
                self._require_master_password()

                matches = select(self._passwords.values(), account_matcher(category, account))
                if not matches:
                    raise PasswordNotFoundWithAccount(category, account)
                if len(matches) > 1 and not allow_ambiguous:
                    raise Ambiguous(m.copy() for m in matches)

                ids = [m.id for m in matches]
                self._commit(self._without(ids))

            self._log(
                EventType.RECORD_REMOVED,
                EventSeverity.ALERT,
                f"Removed {len(ids)} password(s) by account",
                {"password_ids": ids, "category": category},
            )
            return ids

    def clear(self) -> List[str]:
        """Remove every record. Persists only if something was removed."""
        with self._audited("clear"):
            with self._lock.write_locked():
                self._require_master_password()
                ids = sorted(self._passwords)
                if ids:
                    self._commit({})

            if ids:
                self._log(
                    EventType.BOX_CLEARED,
                    EventSeverity.ALERT,
                    f"Box cleared ({len(ids)} passwords)",
                    {"count": len(ids)},
                )
            return ids

    # ── Queries ───────────────────────────────────────────────────────

    def list(self, no_header: bool = False) -> Table:
        """All records ascending by id, as a table."""
        with self._lock.read_locked():
            self._require_master_password()
            return Table.from_records(sort_by_id(self._passwords.values()), no_header)

    def find(self, word: str, no_header: bool = True) -> Table:
        """Records whose category or account contains ``word`` (case-insensitive)."""
        with self._lock.read_locked():
            self._require_master_password()
            return Table.from_records(select(self._passwords.values(), word_matcher(word)), no_header)

    def get(self, record_id: str) -> Record:
        """Copy of the record with exactly ``record_id``."""
        with self._lock.read_locked():
            self._require_master_password()
            record = self._passwords.get(record_id)
            if record is None:
                raise PasswordNotFound(record_id)
            return record.copy()

    def records(self) -> List[Record]:
        """Copies of all records, ascending by id."""
        with self._lock.read_locked():
            self._require_master_password()
            return [r.copy() for r in sort_by_id(self._passwords.values())]

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._passwords)

    # ── Internals (caller holds the lock) ─────────────────────────────

    def _require_master_password(self):
        if not self._master_password:
            raise EmptyMasterPassword()

    def _commit(self, passwords: Dict[str, Record]):
        """Save ``passwords`` and adopt them; a failed save keeps the old state."""
        self._persist(passwords, self._codec)
        self._passwords = passwords

    def _without(self, ids: List[str]) -> Dict[str, Record]:
        removed = set(ids)
        return {k: v for k, v in self._passwords.items() if k not in removed}

    def _persist(self, passwords: Dict[str, Record], codec: Optional[RecordCodec]):
        data = self._marshal(passwords, codec)
        logger.debug("Saving box blob (%d passwords, %d bytes)", len(passwords), len(data))
        self.repo.save(data)

    @staticmethod
    def _marshal(passwords: Dict[str, Record], codec: Optional[RecordCodec]) -> bytes:
        # Without a codec the records still hold their loaded ciphertext
        if codec is not None:
            for record in passwords.values():
                codec.encrypt(record)
        items = [r.to_dict() for r in sort_by_id(passwords.values())]
        return json.dumps(items, indent=4).encode("utf-8")

    @staticmethod
    def _unmarshal(data: bytes, codec: Optional[RecordCodec]) -> Dict[str, Record]:
        if not data:
            return {}
        try:
            items = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SerializationError(f"failed to parse box blob: {e}") from e
        if not isinstance(items, list):
            raise SerializationError(
                f"box blob must be a JSON array, got {type(items).__name__}"
            )

        passwords: Dict[str, Record] = {}
        for item in items:
            record = Record.from_dict(item)
            if codec is not None:
                codec.decrypt(record)
            passwords[record.id] = record
        logger.debug("Loaded %d passwords from box blob", len(passwords))
        return passwords

    # ── Audit ─────────────────────────────────────────────────────────

    def _log(self, event_type: EventType, severity: EventSeverity, message: str, details=None):
        audit = self._audit or get_audit_logger()
        audit.log_event(event_type=event_type, severity=severity, message=message, details=details)

    @contextmanager
    def _audited(self, operation: str):
        try:
            yield
        except KeyboxError as e:
            severity = (
                EventSeverity.ALERT if isinstance(e, _ALERT_ERRORS) else EventSeverity.CRITICAL
            )
            logger.warning("Box %s failed: %s", operation, type(e).__name__)
            self._log(
                EventType.BOX_ERROR,
                severity,
                f"Box {operation} failed: {type(e).__name__}",
                {"operation": operation, "error": type(e).__name__},
            )
            raise
