"""SQLite-backed flakiness ledger.

Design Pattern: Adapter Pattern
SqliteFlakinessLog adapts a SQLite database to the FlakinessSink interface.

The ledger keeps every "passed only after retry" signal with its
preceding failures, so recurring flaky failures can be grouped by
fingerprint across many runs.

Implementation details:
- aiosqlite for async operations
- WAL mode for concurrent reads
- INTEGER timestamps (milliseconds)
- Index on fingerprint for grouping queries
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from pypatience.models import FlakinessSignal, SinkError
from pypatience.sinks.base import FlakinessSink

__all__ = ["SqliteFlakinessLog", "RecordedSignal", "FingerprintCount"]


@dataclass(frozen=True)
class RecordedSignal:
    """A signal as read back from the ledger.

    Attributes:
        attempt_id: Identifier of the flaky attempt
        name: Attempt name, if any
        attempts_used: Executions needed to succeed
        emitted_at: When the signal was emitted (UTC)
        failures: One-line summaries of the preceding failures, oldest first
    """

    attempt_id: str
    name: str | None
    attempts_used: int
    emitted_at: datetime
    failures: tuple[str, ...]


@dataclass(frozen=True)
class FingerprintCount:
    """How often one failure fingerprint preceded an eventual success."""

    fingerprint: int
    error_type: str
    message: str
    occurrences: int


class SqliteFlakinessLog(FlakinessSink):
    """SQLite-backed durable flakiness ledger.

    After __init__, the instance is not yet usable. Call connect() first.
    This follows asyncio best practices (no async in __init__).

    Usage:
        ledger = SqliteFlakinessLog("flaky.db")
        await ledger.connect()
        try:
            classifier = RetryClassifier(sink=ledger)
            ...
            for entry in await ledger.top_fingerprints(10):
                print(entry.error_type, entry.occurrences)
        finally:
            await ledger.close()
    """

    def __init__(self, db_path: str):
        """Initialize ledger (connection not opened yet).

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = db_path
        self._connection: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()  # Serialize access to shared connection

    @classmethod
    async def in_memory(cls) -> SqliteFlakinessLog:
        """
        Create an in-memory ledger for testing.

        Returns:
            Connected in-memory ledger instance
        """
        instance = cls(":memory:")
        await instance.connect()
        return instance

    def __repr__(self) -> str:
        if self.db_path == ":memory:":
            return "SqliteFlakinessLog(in-memory)"
        return f"SqliteFlakinessLog({self.db_path})"

    async def connect(self) -> None:
        """Open database connection and initialize schema.

        Fixed initialization sequence:
        1. Open connection
        2. Enable WAL mode
        3. Create tables and indexes
        """
        if self._connection is not None:
            return

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            connection = await aiosqlite.connect(
                self.db_path,
                timeout=5.0,
                isolation_level=None,  # Autocommit mode, explicit transactions below
            )
        except aiosqlite.Error as e:
            raise SinkError(f"Failed to open flakiness ledger {self.db_path}: {e}") from e

        try:
            # In-memory databases return "memory" and don't support WAL
            cursor = await connection.execute("PRAGMA journal_mode=WAL")
            result = await cursor.fetchone()
            await cursor.close()
            if result:
                mode = result[0].upper()
                if mode not in ("WAL", "MEMORY"):
                    raise SinkError(f"Failed to enable WAL mode, got: {result[0]}")

            await connection.execute("PRAGMA busy_timeout=5000")
            await self._create_schema(connection)
        except SinkError:
            await connection.close()
            raise
        except aiosqlite.Error as e:
            await connection.close()
            raise SinkError(f"Failed to open flakiness ledger {self.db_path}: {e}") from e

        # Only a fully initialized connection is kept
        self._connection = connection

    async def _create_schema(self, connection: aiosqlite.Connection) -> None:
        """Create tables and indexes.

        Schema design:
        - flaky_signals: one row per signal
        - flaky_failures: one row per failure preceding a success
        - INTEGER timestamps (milliseconds) for precision
        """
        await connection.execute("""
            CREATE TABLE IF NOT EXISTS flaky_signals (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                attempt_id TEXT NOT NULL,
                name TEXT,
                attempts_used INTEGER NOT NULL,
                emitted_at INTEGER NOT NULL
            )
        """)

        await connection.execute("""
            CREATE TABLE IF NOT EXISTS flaky_failures (
                signal_id INTEGER NOT NULL REFERENCES flaky_signals(id),
                attempt_number INTEGER NOT NULL,
                phase TEXT CHECK( phase IN ('PRECONDITION','OPERATION') ) NOT NULL,
                classification TEXT CHECK( classification IN (
                    'TRANSIENT','DETERMINISTIC','UNKNOWN'
                ) ) NOT NULL,
                error_type TEXT NOT NULL,
                message TEXT NOT NULL,
                fingerprint INTEGER NOT NULL,
                timestamp INTEGER NOT NULL,
                PRIMARY KEY (signal_id, attempt_number)
            )
        """)

        await connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_flaky_failures_fingerprint
            ON flaky_failures(fingerprint)
        """)

        await connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_flaky_signals_emitted
            ON flaky_signals(emitted_at)
        """)

    async def emit(self, signal: FlakinessSignal) -> None:
        """Persist one signal and its failure history atomically.

        Raises:
            SinkError: If not connected or the write fails
        """
        async with self._lock:
            # Checked under the lock so a concurrent close() cannot interleave
            self._check_connected()
            try:
                await self._connection.execute("BEGIN IMMEDIATE")
                cursor = await self._connection.execute(
                    """
                    INSERT INTO flaky_signals (attempt_id, name, attempts_used, emitted_at)
                    VALUES (?, ?, ?, ?)
                """,
                    (
                        signal.attempt_id,
                        signal.name,
                        signal.attempts_used,
                        _to_millis(signal.emitted_at),
                    ),
                )
                signal_id = cursor.lastrowid
                await cursor.close()

                await self._connection.executemany(
                    """
                    INSERT INTO flaky_failures (
                        signal_id, attempt_number, phase, classification,
                        error_type, message, fingerprint, timestamp
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                    [
                        (
                            signal_id,
                            record.attempt_number,
                            record.phase.value,
                            record.classification.value,
                            record.error_type,
                            record.message,
                            record.fingerprint,
                            _to_millis(record.timestamp),
                        )
                        for record in signal.failure_history
                    ],
                )
                await self._connection.execute("COMMIT")
            except aiosqlite.Error as e:
                if self._connection.in_transaction:
                    await self._connection.execute("ROLLBACK")
                raise SinkError(f"Failed to record signal for {signal.label}: {e}") from e

    async def count(self) -> int:
        """Number of signals recorded."""
        self._check_connected()

        cursor = await self._connection.execute("SELECT COUNT(*) FROM flaky_signals")
        row = await cursor.fetchone()
        await cursor.close()
        return row[0] if row else 0

    async def recent(self, limit: int = 20) -> list[RecordedSignal]:
        """Most recent signals, newest first."""
        self._check_connected()

        cursor = await self._connection.execute(
            """
            SELECT id, attempt_id, name, attempts_used, emitted_at
            FROM flaky_signals
            ORDER BY emitted_at DESC, id DESC
            LIMIT ?
        """,
            (limit,),
        )
        rows = await cursor.fetchall()
        await cursor.close()

        signals = []
        for row in rows:
            signals.append(
                RecordedSignal(
                    attempt_id=row[1],
                    name=row[2],
                    attempts_used=row[3],
                    emitted_at=_from_millis(row[4]),
                    failures=await self._failure_summaries(row[0]),
                )
            )
        return signals

    async def top_fingerprints(self, limit: int = 10) -> list[FingerprintCount]:
        """Failure fingerprints that most often preceded an eventual success."""
        self._check_connected()

        cursor = await self._connection.execute(
            """
            SELECT fingerprint, error_type, message, COUNT(*) AS occurrences
            FROM flaky_failures
            GROUP BY fingerprint
            ORDER BY occurrences DESC, fingerprint
            LIMIT ?
        """,
            (limit,),
        )
        rows = await cursor.fetchall()
        await cursor.close()

        return [
            FingerprintCount(
                fingerprint=row[0], error_type=row[1], message=row[2], occurrences=row[3]
            )
            for row in rows
        ]

    async def reset(self) -> None:
        """Clear all data (for testing/demos).

        After reset, the ledger is empty but functional.
        """
        async with self._lock:
            self._check_connected()
            await self._connection.execute("DELETE FROM flaky_failures")
            await self._connection.execute("DELETE FROM flaky_signals")

    async def close(self) -> None:
        """Close the connection.

        Explicit resource cleanup, not relying on GC. Waits for an
        in-flight emit() or reset() to finish first.
        """
        async with self._lock:
            if self._connection is not None:
                await self._connection.close()
                self._connection = None

    async def _failure_summaries(self, signal_id: int) -> tuple[str, ...]:
        cursor = await self._connection.execute(
            """
            SELECT attempt_number, phase, classification, error_type, message
            FROM flaky_failures
            WHERE signal_id = ?
            ORDER BY attempt_number
        """,
            (signal_id,),
        )
        rows = await cursor.fetchall()
        await cursor.close()
        return tuple(
            f"#{row[0]} {row[1].lower()} {row[2]}: {row[3]}: {row[4]}" for row in rows
        )

    def _check_connected(self) -> None:
        """Guard clause: Ensure connection is open."""
        if self._connection is None:
            raise SinkError("Not connected. Call connect() first.")


def _to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _from_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=UTC)
