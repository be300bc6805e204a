# Keybox: Configuration
#
# Settings come from environment variables, optionally seeded from a .env
# file in the working directory (python-dotenv). Explicit env mappings
# (tests, embedding) skip the .env lookup.

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

BACKEND_FILE = "file"
BACKEND_SQLITE = "sqlite"
BACKENDS = (BACKEND_FILE, BACKEND_SQLITE)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Resolved keybox settings."""

    home: Path
    box_file: Path
    log_dir: Path
    backend: str = BACKEND_FILE
    master_password: Optional[str] = None
    audit: bool = True

    def make_repository(self):
        """Build the storage backend selected by ``backend``."""
        from ..storage import FileRepository, SqliteRepository

        if self.backend == BACKEND_SQLITE:
            return SqliteRepository(self.box_file)
        return FileRepository(self.box_file)


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Resolve settings from ``env`` (default: os.environ after loading .env).

    Variables:
        KEYBOX_HOME: base directory (default ~/.keybox)
        KEYBOX_BOX_FILE: box location (default <home>/box.json or box.db)
        KEYBOX_LOG_DIR: audit log directory (default <home>/logs)
        KEYBOX_BACKEND: "file" or "sqlite" (default "file")
        KEYBOX_MASTER_PASSWORD: master password for non-interactive use
        KEYBOX_AUDIT: "0" disables audit logging

    Raises:
        ValueError: If KEYBOX_BACKEND names an unknown backend.
    """
    if env is None:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ

    home = Path(env.get("KEYBOX_HOME") or Path.home() / ".keybox").expanduser()

    backend = (env.get("KEYBOX_BACKEND") or BACKEND_FILE).strip().lower()
    if backend not in BACKENDS:
        raise ValueError(f"unknown KEYBOX_BACKEND {backend!r}, expected one of {BACKENDS}")

    default_name = "box.db" if backend == BACKEND_SQLITE else "box.json"
    box_file = Path(env.get("KEYBOX_BOX_FILE") or home / default_name).expanduser()
    log_dir = Path(env.get("KEYBOX_LOG_DIR") or home / "logs").expanduser()

    audit_raw = env.get("KEYBOX_AUDIT")
    audit = True if audit_raw is None else audit_raw.strip().lower() in _TRUE_VALUES

    return Settings(
        home=home,
        box_file=box_file,
        log_dir=log_dir,
        backend=backend,
        master_password=env.get("KEYBOX_MASTER_PASSWORD") or None,
        audit=audit,
    )
