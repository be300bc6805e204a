# Keybox - Main Package
#
# Local, single-user encrypted credential store.
# Version: 0.1.0

__version__ = "0.1.0"
__author__ = "Keybox Team"
__description__ = "Local encrypted password box"

from .storage import BoxRepository, FileRepository, MemoryRepository, SqliteRepository
from .vault import Box, KeyboxError, Record, Table, write_table

__all__ = [
    "__version__",
    "Box",
    "Record",
    "Table",
    "write_table",
    "KeyboxError",
    "BoxRepository",
    "MemoryRepository",
    "FileRepository",
    "SqliteRepository",
]
