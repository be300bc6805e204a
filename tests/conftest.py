"""
Shared pytest fixtures for the keybox test suite.

The autouse fixture below isolates tests from the real audit log: any code
path that falls back to ``get_audit_logger()`` writes into a temp directory
instead of ``~/.keybox/logs``.
"""

import random

import pytest

from keybox.core import AuditLogger, set_audit_logger
from keybox.storage import MemoryRepository
from keybox.vault import Box, IdAllocator, Record

MASTER_PASSWORD = "correct-horse"


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path, monkeypatch):
    """Point the global audit logger at a temp directory for every test."""
    for name in (
        "KEYBOX_HOME",
        "KEYBOX_BOX_FILE",
        "KEYBOX_LOG_DIR",
        "KEYBOX_BACKEND",
        "KEYBOX_MASTER_PASSWORD",
        "KEYBOX_AUDIT",
    ):
        monkeypatch.delenv(name, raising=False)

    audit = AuditLogger(log_dir=tmp_path / "audit_logs")
    set_audit_logger(audit)

    yield audit

    audit.close()
    set_audit_logger(None)


class SequenceAllocator(IdAllocator):
    """Allocator that hands out candidates from a fixed list."""

    def __init__(self, candidates, max_attempts=10):
        super().__init__(max_attempts=max_attempts)
        self._candidates = iter(candidates)
        self.calls = 0

    def candidate(self):
        self.calls += 1
        return next(self._candidates)


class Clock:
    """Manually advanced Unix clock."""

    def __init__(self, now=1_700_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds=1):
        self.now += seconds


@pytest.fixture
def repo():
    return MemoryRepository()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def box(repo, clock, _isolate_audit_logs):
    """An initialized, empty box over a memory repository."""
    b = Box(
        repo,
        allocator=IdAllocator(rng=random.Random(1234)),
        audit_logger=_isolate_audit_logs,
        clock=clock,
    )
    b.initialize(MASTER_PASSWORD)
    return b


def make_box(repo, ids, clock=None, audit_logger=None):
    """Initialized box whose new records get ``ids`` in order."""
    b = Box(
        repo,
        allocator=SequenceAllocator(ids),
        audit_logger=audit_logger,
        clock=clock or Clock(),
    )
    b.initialize(MASTER_PASSWORD)
    return b


def record(category="", account="", password="", record_id=""):
    return Record(
        id=record_id,
        category=category,
        plain_account=account,
        plain_password=password,
    )
