"""
Replay ledger: the authoritative set of consumed authorization hashes.

An entry moves from absent to consumed exactly once and is never deleted.
``consume`` is a single atomic compare-and-set: across any number of
concurrent callers for the same hash, exactly one observes SUCCESS.

Backends:
- InMemoryReplayLedger: a set guarded by a lock; lost on restart
- SqliteReplayLedger: a table keyed by the hash; durable across restarts
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger("meta_relay.relayer.replay")


class ConsumeResult(str, Enum):
    SUCCESS = "success"
    ALREADY_CONSUMED = "already_consumed"


class ReplayLedger(ABC):
    """Abstract store of consumed authorization hashes."""

    # Serializes check, debit and consume for executors that consume after the
    # transfer. None when writers outside this process may share the ledger.
    sequencer: threading.Lock | None = None

    @abstractmethod
    def is_consumed(self, digest: bytes) -> bool:
        """Return True if the hash has already been consumed."""

    @abstractmethod
    def consume(self, digest: bytes) -> ConsumeResult:
        """Atomically mark the hash consumed; report if it already was."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of consumed hashes."""


class InMemoryReplayLedger(ReplayLedger):
    """Process-local replay ledger."""

    def __init__(self) -> None:
        self._consumed: set[bytes] = set()
        self._lock = threading.Lock()
        self.sequencer = threading.Lock()

    def is_consumed(self, digest: bytes) -> bool:
        with self._lock:
            return bytes(digest) in self._consumed

    def consume(self, digest: bytes) -> ConsumeResult:
        key = bytes(digest)
        with self._lock:
            if key in self._consumed:
                return ConsumeResult.ALREADY_CONSUMED
            self._consumed.add(key)
        logger.debug("Consumed %s", key.hex()[:16])
        return ConsumeResult.SUCCESS

    def __len__(self) -> int:
        with self._lock:
            return len(self._consumed)


class SqliteReplayLedger(ReplayLedger):
    """
    SQLite-backed replay ledger.

    Consumption is one ``INSERT OR IGNORE`` against the hash primary key, so
    the database itself arbitrates races, including between processes that
    share the file.

    Usage:
        ledger = SqliteReplayLedger("relay.db")
        ...
        ledger.close()
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
        with self._lock:
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS consumed_hashes (
                    hash BLOB PRIMARY KEY,
                    consumed_at TEXT NOT NULL
                )
                """
            )

    def is_consumed(self, digest: bytes) -> bool:
        with self._lock:
            row = self._conn.execute(
                "SELECT 1 FROM consumed_hashes WHERE hash = ?", (bytes(digest),)
            ).fetchone()
        return row is not None

    def consume(self, digest: bytes) -> ConsumeResult:
        key = bytes(digest)
        with self._lock:
            cursor = self._conn.execute(
                "INSERT OR IGNORE INTO consumed_hashes (hash, consumed_at) VALUES (?, ?)",
                (key, datetime.now(timezone.utc).isoformat()),
            )
        if cursor.rowcount != 1:
            return ConsumeResult.ALREADY_CONSUMED
        logger.debug("Consumed %s (persisted to %s)", key.hex()[:16], self.path)
        return ConsumeResult.SUCCESS

    def __len__(self) -> int:
        with self._lock:
            (count,) = self._conn.execute("SELECT COUNT(*) FROM consumed_hashes").fetchone()
        return int(count)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

