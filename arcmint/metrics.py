"""Latency histograms and counters collected during a load test."""

from __future__ import annotations

import dataclasses
import math
import threading
from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

# 2048 sub-buckets per power of two keep three significant decimal digits.
_SUB_BUCKET_BITS = 11
# The 1 ms .. 60 s range, rounded up to the last bucket that covers it.
_TRACKABLE_MAX = 65_535


def _lowest_equivalent(value: int) -> int:
    shift = max(0, value.bit_length() - _SUB_BUCKET_BITS)
    return (value >> shift) << shift


def _highest_equivalent(value: int) -> int:
    shift = max(0, value.bit_length() - _SUB_BUCKET_BITS)
    return _lowest_equivalent(value) + (1 << shift) - 1


class LatencyRecorder:
    """High-dynamic-range histogram of latencies in milliseconds."""

    def __init__(self) -> None:
        self._counts: Counter[int] = Counter()
        self._total = 0

    def record(self, ms: int) -> bool:
        """Record one sample; values outside the tracked range are dropped."""
        if isinstance(ms, bool) or not isinstance(ms, int) or not 0 <= ms <= _TRACKABLE_MAX:
            return False
        self._counts[_lowest_equivalent(ms)] += 1
        self._total += 1
        return True

    def value_at_quantile(self, quantile: float) -> int:
        if self._total == 0:
            return 0
        target = max(1, math.ceil(min(quantile, 1.0) * self._total))
        seen = 0
        for value in sorted(self._counts):
            seen += self._counts[value]
            if seen >= target:
                return _highest_equivalent(value)
        return self.max()

    def p50(self) -> int:
        return self.value_at_quantile(0.5)

    def p95(self) -> int:
        return self.value_at_quantile(0.95)

    def p99(self) -> int:
        return self.value_at_quantile(0.99)

    def max(self) -> int:
        if not self._counts:
            return 0
        return _highest_equivalent(max(self._counts))

    def count(self) -> int:
        return self._total


@dataclass(frozen=True)
class LatencyStats:
    p50_ms: int = 0
    p95_ms: int = 0
    p99_ms: int = 0
    max_ms: int = 0
    count: int = 0

    @classmethod
    def from_recorder(cls, recorder: LatencyRecorder) -> LatencyStats:
        return cls(
            p50_ms=recorder.p50(),
            p95_ms=recorder.p95(),
            p99_ms=recorder.p99(),
            max_ms=recorder.max(),
            count=recorder.count(),
        )

    def to_dict(self) -> dict[str, int]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class MetricsSnapshot:
    issuance_latency: LatencyStats = LatencyStats()
    spend_latency: LatencyStats = LatencyStats()
    signer_rpc_latency: LatencyStats = LatencyStats()
    lightning_latency: LatencyStats = LatencyStats()
    issuance_success: int = 0
    issuance_failure: int = 0
    spend_success: int = 0
    spend_failure: int = 0
    double_spend_attempts: int = 0
    double_spend_false_negatives: int = 0
    lightning_success: int = 0
    lightning_failure: int = 0
    panics: int = 0
    registry_divergence_detected: bool = False

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class _MetricsState:
    issuance_latency: LatencyRecorder = field(default_factory=LatencyRecorder)
    spend_latency: LatencyRecorder = field(default_factory=LatencyRecorder)
    signer_rpc_latency: LatencyRecorder = field(default_factory=LatencyRecorder)
    lightning_latency: LatencyRecorder = field(default_factory=LatencyRecorder)
    issuance_success: int = 0
    issuance_failure: int = 0
    spend_success: int = 0
    spend_failure: int = 0
    double_spend_attempts: int = 0
    double_spend_false_negatives: int = 0
    lightning_success: int = 0
    lightning_failure: int = 0
    panics: int = 0
    registry_divergence_detected: bool = False


class LoadTestMetrics:
    """Thread-safe collection of load-test metrics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = _MetricsState()

    @contextmanager
    def locked(self) -> Iterator[_MetricsState]:
        """Hold the lock and give access to the mutable metrics."""
        with self._lock:
            yield self._state

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            s = self._state
            return MetricsSnapshot(
                issuance_latency=LatencyStats.from_recorder(s.issuance_latency),
                spend_latency=LatencyStats.from_recorder(s.spend_latency),
                signer_rpc_latency=LatencyStats.from_recorder(s.signer_rpc_latency),
                lightning_latency=LatencyStats.from_recorder(s.lightning_latency),
                issuance_success=s.issuance_success,
                issuance_failure=s.issuance_failure,
                spend_success=s.spend_success,
                spend_failure=s.spend_failure,
                double_spend_attempts=s.double_spend_attempts,
                double_spend_false_negatives=s.double_spend_false_negatives,
                lightning_success=s.lightning_success,
                lightning_failure=s.lightning_failure,
                panics=s.panics,
                registry_divergence_detected=s.registry_divergence_detected,
            )