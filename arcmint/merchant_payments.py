"""Merchant payment listing, pending-spend cleanup and spend challenges."""

from __future__ import annotations

import secrets
from dataclasses import asdict, dataclass
from typing import Any

from arcmint.merchant_store import MerchantStore

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100
_I64_MAX = (1 << 63) - 1


@dataclass(frozen=True)
class PaymentRow:
    """One accepted payment as reported to the merchant."""

    serial: str
    denomination: int
    accepted_at: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _non_negative(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def list_payments(
    store: MerchantStore, page: int | None = None, limit: int | None = None
) -> list[PaymentRow]:
    """Accepted payments, newest first, one page at a time (at most 100 per page)."""
    page = 0 if page is None else _non_negative("page", page)
    limit = DEFAULT_PAGE_LIMIT if limit is None else _non_negative("limit", limit)
    limit = min(limit, MAX_PAGE_LIMIT)
    offset = min(page * limit, _I64_MAX)
    rows = store.connection.execute(
        "SELECT serial, denomination, accepted_at FROM accepted_payments "
        "ORDER BY accepted_at DESC LIMIT ?1 OFFSET ?2",
        (limit, offset),
    ).fetchall()
    return [
        PaymentRow(serial=serial, denomination=max(denomination, 0), accepted_at=accepted_at)
        for serial, denomination, accepted_at in rows
    ]


def purge_expired(store: MerchantStore, now: int) -> int:
    """Delete pending spends that expired before now; return how many were removed."""
    with store.connection:
        cursor = store.connection.execute(
            "DELETE FROM pending_spends WHERE expires_at < ?1", (now,)
        )
    return cursor.rowcount


def generate_challenge_bits(k: int) -> list[int]:
    """k random challenge bits, each 0 or 1."""
    _non_negative("k", k)
    return [secrets.randbelow(2) for _ in range(k)]


def database_url(db_path: str) -> str:
    """The SQLite URL for a database path, leaving full URLs untouched."""
    if db_path.startswith("sqlite:"):
        return db_path
    return f"sqlite://{db_path}"