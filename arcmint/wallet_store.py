"""Wallet file storage: notes, their spend status and where the wallet lives."""

from __future__ import annotations

import json
import os
import stat
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

WALLET_FILE_NAME = "wallet.json"
_WALLET_DIR_NAME = ".arcmint"
_U64_LIMIT = 1 << 64


class WalletError(Exception):
    """Raised when the wallet cannot be used as asked."""


class NoteStatus(str, Enum):
    """Where a stored note is in its spending life cycle."""

    UNSPENT = "Unspent"
    PENDING_SPEND = "PendingSpend"
    SPENT = "Spent"


def _require(data: Any, key: str) -> Any:
    if not isinstance(data, dict):
        raise WalletError(f"expected an object, got {type(data).__name__}")
    try:
        return data[key]
    except KeyError:
        raise WalletError(f"missing field `{key}`") from None


def _string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise WalletError(f"{name}: expected a string, got {value!r}")
    return value


def _bits(name: str, value: Any) -> list[int]:
    if not isinstance(value, list):
        raise WalletError(f"{name}: expected a list, got {value!r}")
    for bit in value:
        if isinstance(bit, bool) or not isinstance(bit, int) or not 0 <= bit <= 255:
            raise WalletError(f"{name}: invalid byte {bit!r}")
    return list(value)


def _pairs(value: Any) -> list[tuple[str, str]]:
    if not isinstance(value, list):
        raise WalletError(f"pair_randomness: expected a list, got {value!r}")
    pairs = []
    for pair in value:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise WalletError(f"pair_randomness: expected a pair, got {pair!r}")
        ra, rb = pair
        pairs.append((_string("pair_randomness", ra), _string("pair_randomness", rb)))
    return pairs


@dataclass
class StoredNote:
    """A signed note held by the wallet together with its private openings."""

    serial: str
    denomination: int
    signed_note: Any
    a_bits: list[int] = field(default_factory=list)
    b_bits: list[int] = field(default_factory=list)
    pair_randomness: list[tuple[str, str]] = field(default_factory=list)
    status: NoteStatus = NoteStatus.UNSPENT

    def to_dict(self) -> dict[str, Any]:
        return {
            "serial": self.serial,
            "denomination": self.denomination,
            "signed_note": self.signed_note,
            "a_bits": list(self.a_bits),
            "b_bits": list(self.b_bits),
            "pair_randomness": [[ra, rb] for ra, rb in self.pair_randomness],
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoredNote:
        denomination = _require(data, "denomination")
        if (
            isinstance(denomination, bool)
            or not isinstance(denomination, int)
            or not 0 <= denomination < _U64_LIMIT
        ):
            raise WalletError(f"denomination: invalid value {denomination!r}")
        raw_status = _string("status", _require(data, "status"))
        try:
            status = NoteStatus(raw_status)
        except ValueError:
            raise WalletError(f"status: unknown note status {raw_status!r}") from None
        return cls(
            serial=_string("serial", _require(data, "serial")),
            denomination=denomination,
            signed_note=_require(data, "signed_note"),
            a_bits=_bits("a_bits", _require(data, "a_bits")),
            b_bits=_bits("b_bits", _require(data, "b_bits")),
            pair_randomness=_pairs(_require(data, "pair_randomness")),
            status=status,
        )

    def summary(self) -> str:
        """One line describing the note, as shown when listing the wallet."""
        return f"serial={self.serial} denom={self.denomination} status={self.status.value}"


@dataclass
class WalletFile:
    """Contents of a wallet file: registration secrets and held notes."""

    theta_u: str
    r_u_bytes: str
    gateway_token: str
    notes: list[StoredNote] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "theta_u": self.theta_u,
            "r_u_bytes": self.r_u_bytes,
            "gateway_token": self.gateway_token,
            "notes": [note.to_dict() for note in self.notes],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WalletFile:
        notes = _require(data, "notes")
        if not isinstance(notes, list):
            raise WalletError(f"notes: expected a list, got {notes!r}")
        return cls(
            theta_u=_string("theta_u", _require(data, "theta_u")),
            r_u_bytes=_string("r_u_bytes", _require(data, "r_u_bytes")),
            gateway_token=_string("gateway_token", _require(data, "gateway_token")),
            notes=[StoredNote.from_dict(note) for note in notes],
        )

    def find_spendable(self, serial: str) -> StoredNote:
        """Return the note with this serial (any case) if it may still be spent."""
        wanted = serial.lower()
        note = next((n for n in self.notes if n.serial.lower() == wanted), None)
        if note is None:
            raise WalletError(f"note with serial {serial} not found")
        if note.status is NoteStatus.SPENT:
            raise WalletError("note already marked as spent")
        if note.status is NoteStatus.PENDING_SPEND:
            raise WalletError(
                "note is in PendingSpend state — it may have already been revealed "
                "to a merchant; treat as potentially spent"
            )
        return note


def wallet_file_path(directory: str | Path) -> Path:
    return Path(directory) / WALLET_FILE_NAME


def default_wallet_dir() -> str:
    """The wallet directory under the user's home, or a relative one."""
    for var in ("HOME", "USERPROFILE"):
        home = os.environ.get(var)
        if home is not None:
            return str(Path(home) / _WALLET_DIR_NAME)
    return _WALLET_DIR_NAME


def save_wallet(path: str | Path, wallet: WalletFile) -> None:
    """Write the wallet atomically, readable by its owner only."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(wallet.to_dict(), indent=2).encode("utf-8")
    tmp_path = path.with_name(f"{path.stem}.json.tmp")
    with open(tmp_path, "wb") as fh:
        fh.write(payload)
        fh.flush()
        os.fsync(fh.fileno())
    if os.name == "posix":
        os.chmod(tmp_path, 0o600)
    os.replace(tmp_path, path)


def load_wallet(path: str | Path) -> WalletFile:
    """Read a wallet file, warning on stderr if others may read it."""
    path = Path(path)
    data = path.read_bytes()
    if os.name == "posix":
        mode = stat.S_IMODE(path.stat().st_mode)
        if mode != 0o600:
            print(
                f"warning: wallet file permissions are {mode:o}, expected 0600",
                file=sys.stderr,
            )
    try:
        parsed = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise WalletError(f"invalid wallet file {path}: {err}") from err
    return WalletFile.from_dict(parsed)


def list_notes(path: str | Path) -> list[str]:
    """Summary lines for every note in the wallet at path, in stored order."""
    return [note.summary() for note in load_wallet(path).notes]


def _resolve_url(flag: str | None, env_var: str, flag_name: str) -> str:
    if flag is not None:
        return flag
    from_env = os.environ.get(env_var)
    if from_env is not None:
        return from_env
    raise WalletError(f"{flag_name} flag or {env_var} env var is required")


def resolve_coordinator_url(flag: str | None) -> str:
    return _resolve_url(flag, "COORDINATOR_URL", "--coordinator-url")


def resolve_gateway_url(flag: str | None) -> str:
    return _resolve_url(flag, "GATEWAY_URL", "--gateway-url")