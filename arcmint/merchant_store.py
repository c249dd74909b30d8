"""Merchant persistence: accepted payments and pending spend challenges."""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

PENDING_TTL_SECS = 300
_I64_MAX = (1 << 63) - 1

_SCHEMA = (
    """CREATE TABLE IF NOT EXISTS accepted_payments (
         serial TEXT PRIMARY KEY,
         denomination INTEGER NOT NULL,
         accepted_at INTEGER NOT NULL
       )""",
    """CREATE TABLE IF NOT EXISTS pending_spends (
         serial TEXT PRIMARY KEY,
         challenge_bits TEXT NOT NULL,
         note_json TEXT NOT NULL,
         expires_at INTEGER NOT NULL
       )""",
)


def current_timestamp() -> int:
    """Seconds since the Unix epoch."""
    return int(time.time())


@dataclass(frozen=True)
class PendingSpend:
    """A challenge issued to a payer that awaits its spend proof."""

    serial: str
    challenge_bits: bytes
    note_json: str
    expires_at: int

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at


class MerchantStore:
    """SQLite-backed store of pending spends and accepted payments."""

    def __init__(self, database: str | Path = ":memory:") -> None:
        self.connection = sqlite3.connect(str(database))
        with self.connection:
            for statement in _SCHEMA:
                self.connection.execute(statement)

    def __enter__(self) -> MerchantStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.connection.close()

    def is_accepted(self, serial_hex: str) -> bool:
        row = self.connection.execute(
            "SELECT 1 FROM accepted_payments WHERE serial = ?1 LIMIT 1", (serial_hex,)
        ).fetchone()
        return row is not None

    def put_pending(
        self,
        serial_hex: str,
        challenge_bits: Iterable[int],
        note_json: str,
        now: int,
    ) -> PendingSpend:
        """Store (or replace) the challenge for a serial; it expires after the TTL."""
        bits = bytes(challenge_bits)
        expires_at = min(now + PENDING_TTL_SECS, _I64_MAX)
        with self.connection:
            self.connection.execute(
                "INSERT OR REPLACE INTO pending_spends "
                "(serial, challenge_bits, note_json, expires_at) VALUES (?1, ?2, ?3, ?4)",
                (serial_hex, bits.hex(), note_json, expires_at),
            )
        return PendingSpend(serial_hex, bits, note_json, expires_at)

    def get_pending(self, serial_hex: str) -> PendingSpend | None:
        """The pending spend for a serial, or None if there is none."""
        row = self.connection.execute(
            "SELECT challenge_bits, note_json, expires_at FROM pending_spends WHERE serial = ?1",
            (serial_hex,),
        ).fetchone()
        if row is None:
            return None
        challenge_hex, note_json, expires_at = row
        return PendingSpend(serial_hex, bytes.fromhex(challenge_hex), note_json, expires_at)

    def delete_pending(self, serial_hex: str) -> int:
        """Remove the pending spend for a serial; return the number of rows removed."""
        with self.connection:
            cursor = self.connection.execute(
                "DELETE FROM pending_spends WHERE serial = ?1", (serial_hex,)
            )
        return cursor.rowcount

    def record_accepted(self, serial_hex: str, denomination: int, accepted_at: int) -> bool:
        """Record an accepted payment; return False if the serial was already recorded."""
        with self.connection:
            cursor = self.connection.execute(
                "INSERT OR IGNORE INTO accepted_payments (serial, denomination, accepted_at) "
                "VALUES (?1, ?2, ?3)",
                (serial_hex, denomination, accepted_at),
            )
        return cursor.rowcount > 0

    def pending_count(self) -> int:
        (count,) = self.connection.execute("SELECT COUNT(*) FROM pending_spends").fetchone()
        return count