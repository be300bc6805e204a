# Keybox: Storage Backends
#
# Byte-blob repositories the box persists through.

from .repository import BoxRepository, FileRepository, MemoryRepository
from .sqlite_repository import SqliteRepository

__all__ = ["BoxRepository", "MemoryRepository", "FileRepository", "SqliteRepository"]
