# Keybox: Box Repositories
#
# A repository persists the box as one opaque byte blob. The box never
# hands it record structure, and it never interprets the bytes.
#
#   load() -> bytes   b"" when nothing has been saved yet
#   save(data)        replaces the whole stored blob atomically

import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from ..vault.errors import RepositoryError

logger = logging.getLogger(__name__)


class BoxRepository(ABC):
    """Storage backend contract for the box blob."""

    @abstractmethod
    def load(self) -> bytes:
        """Return the last saved blob, or b"" if there is none."""

    @abstractmethod
    def save(self, data: bytes) -> None:
        """Replace the stored blob with ``data``."""


class MemoryRepository(BoxRepository):
    """Keeps the blob in memory. Counts saves for inspection."""

    def __init__(self, data: bytes = b""):
        self._data = bytes(data)
        self._lock = threading.Lock()
        self.save_count = 0

    @property
    def data(self) -> bytes:
        with self._lock:
            return self._data

    def load(self) -> bytes:
        with self._lock:
            return self._data

    def save(self, data: bytes) -> None:
        with self._lock:
            self._data = bytes(data)
            self.save_count += 1


class FileRepository(BoxRepository):
    """
    Stores the blob in a single file.

    Saves go to a temp file in the same directory followed by os.replace(),
    so readers see either the old or the new blob, never a partial one.
    The file is restricted to owner read/write.
    """

    FILE_MODE = 0o600

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> bytes:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            logger.debug("Box file %s does not exist yet", self.path)
            return b""
        except OSError as e:
            raise RepositoryError(f"failed to read {self.path}: {e}") from e

    def save(self, data: bytes) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
        except OSError as e:
            raise RepositoryError(f"failed to prepare {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, self.FILE_MODE)
            os.replace(tmp_name, self.path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.warning("Could not remove temp file %s", tmp_name)
            raise RepositoryError(f"failed to write {self.path}: {e}") from e
        logger.debug("Saved %d bytes to %s", len(data), self.path)
