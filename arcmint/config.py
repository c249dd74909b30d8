"""Load-test configuration: defaults, TOML loading and validation."""

from __future__ import annotations

import dataclasses
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class ConfigError(ValueError):
    """Raised when a load-test configuration cannot be read or is invalid."""


_UNSIGNED_BITS = {
    "concurrency": 64,
    "duration_secs": 64,
    "ramp_up_secs": 64,
    "full_pipeline_weight": 8,
    "issuance_burst_weight": 8,
    "double_spend_weight": 8,
    "denomination_msat": 64,
    "k": 64,
    "issuance_p99_max_ms": 64,
    "spend_p99_max_ms": 64,
    "signer_rpc_p99_max_ms": 64,
    "lightning_settlement_p99_max_ms": 64,
    "spend_false_negatives_allowed": 64,
}
_FLOATS = ("signing_failure_rate_max", "lightning_failure_rate_max")
_STRINGS = ("coordinator_url", "gateway_url", "merchant_url")


def _unsigned(name: str, value: Any, bits: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name}: expected an unsigned integer, got {value!r}")
    if not 0 <= value < (1 << bits):
        raise ConfigError(f"{name}: value {value} out of range for u{bits}")
    return value


def _float(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name}: expected a number, got {value!r}")
    return float(value)


def _string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{name}: expected a string, got {value!r}")
    return value


@dataclass
class LoadTestConfig:
    """Parameters and service-level objectives of a load-test run."""

    concurrency: int = 10
    duration_secs: int = 60
    ramp_up_secs: int = 5
    full_pipeline_weight: int = 70
    issuance_burst_weight: int = 20
    double_spend_weight: int = 10
    denomination_msat: int = 100_000
    k: int = 32
    issuance_p99_max_ms: int = 2_000
    spend_p99_max_ms: int = 1_000
    signer_rpc_p99_max_ms: int = 500
    lightning_settlement_p99_max_ms: int = 5_000
    signing_failure_rate_max: float = 0.001
    lightning_failure_rate_max: float = 0.01
    spend_false_negatives_allowed: int = 0
    coordinator_url: str = ""
    gateway_url: str = ""
    merchant_url: str = ""
    signer_urls: list[str] = field(default_factory=list)
    ca_cert_path: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoadTestConfig:
        """Build a config from a mapping; every field except ca_cert_path is required."""
        values: dict[str, Any] = {}
        missing = [
            f.name
            for f in dataclasses.fields(cls)
            if f.name != "ca_cert_path" and f.name not in data
        ]
        if missing:
            raise ConfigError(f"missing field `{missing[0]}`")
        for name, bits in _UNSIGNED_BITS.items():
            values[name] = _unsigned(name, data[name], bits)
        for name in _FLOATS:
            values[name] = _float(name, data[name])
        for name in _STRINGS:
            values[name] = _string(name, data[name])
        signer_urls = data["signer_urls"]
        if not isinstance(signer_urls, list):
            raise ConfigError(f"signer_urls: expected a list, got {signer_urls!r}")
        values["signer_urls"] = [_string("signer_urls", url) for url in signer_urls]
        ca_cert_path = data.get("ca_cert_path")
        values["ca_cert_path"] = (
            None if ca_cert_path is None else _string("ca_cert_path", ca_cert_path)
        )
        return cls(**values)

    @classmethod
    def from_file(cls, path: str | Path) -> LoadTestConfig:
        """Read, parse and validate a TOML config file."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as err:
            raise ConfigError(f"failed to read config file {path}: {err}") from err
        try:
            config = cls.from_dict(tomllib.loads(text))
        except (tomllib.TOMLDecodeError, ConfigError) as err:
            raise ConfigError(f"failed to parse config file {path}: {err}") from err
        config.validate()
        return config

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    def validate(self) -> None:
        """Raise ConfigError unless the config describes a runnable test."""
        if self.concurrency == 0:
            raise ConfigError("concurrency must be > 0")
        if self.duration_secs == 0:
            raise ConfigError("duration_secs must be > 0")
        total_weight = (
            self.full_pipeline_weight
            + self.issuance_burst_weight
            + self.double_spend_weight
        )
        if total_weight != 100:
            raise ConfigError(f"scenario weights must sum to 100, got {total_weight}")