"""Tests for the box's reader/writer lock."""

import threading
import time

from keybox.core import ReadWriteLock


class TestReadWriteLock:
    def test_readers_share(self):
        lock = ReadWriteLock()
        inside = threading.Barrier(3, timeout=5)

        def reader():
            with lock.read_locked():
                inside.wait()  # all three readers hold the lock at once

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        assert not any(t.is_alive() for t in threads)

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events = []
        lock.acquire_write()

        def reader():
            with lock.read_locked():
                events.append("read")

        t = threading.Thread(target=reader)
        t.start()
        time.sleep(0.05)
        assert events == []

        events.append("write-done")
        lock.release_write()
        t.join(timeout=5)
        assert events == ["write-done", "read"]

    def test_writer_waits_for_readers(self):
        lock = ReadWriteLock()
        events = []
        lock.acquire_read()

        def writer():
            with lock.write_locked():
                events.append("write")

        t = threading.Thread(target=writer)
        t.start()
        time.sleep(0.05)
        assert events == []

        lock.release_read()
        t.join(timeout=5)
        assert events == ["write"]

    def test_release_on_exception(self):
        lock = ReadWriteLock()
        try:
            with lock.write_locked():
                raise ValueError("boom")
        except ValueError:
            pass
        with lock.read_locked():
            pass
