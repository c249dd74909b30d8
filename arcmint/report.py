"""Service-level objective evaluation and load-test reports."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

from arcmint.config import LoadTestConfig
from arcmint.metrics import LatencyStats, MetricsSnapshot

_GREEN = "\x1b[32m"
_RED = "\x1b[31m"
_RESET = "\x1b[0m"
_ROW = "{:<32} {:<20} {:<20} {:<8}"


@dataclass(frozen=True)
class SloResult:
    """Outcome of one objective; a failure carries metric, threshold and actual."""

    metric: str | None = None
    threshold: str | None = None
    actual: str | None = None

    @classmethod
    def passed(cls) -> SloResult:
        return cls()

    @classmethod
    def failed(cls, metric: str, threshold: str, actual: str) -> SloResult:
        return cls(metric=metric, threshold=threshold, actual=actual)

    @property
    def is_pass(self) -> bool:
        return self.metric is None

    def to_json(self) -> Any:
        if self.is_pass:
            return "Pass"
        return {
            "Fail": {
                "metric": self.metric,
                "threshold": self.threshold,
                "actual": self.actual,
            }
        }


@dataclass
class LoadTestReport:
    run_id: str
    config: LoadTestConfig
    started_at: str
    completed_at: str
    duration_secs: int
    metrics: MetricsSnapshot
    slo_results: list[SloResult] = field(default_factory=list)
    overall_pass: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "config": self.config.to_dict(),
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "duration_secs": self.duration_secs,
            "metrics": self.metrics.to_dict(),
            "slo_results": [slo.to_json() for slo in self.slo_results],
            "overall_pass": self.overall_pass,
        }


def _latency_slo(name: str, stats: LatencyStats, max_ms: int) -> SloResult:
    if stats.p99_ms <= max_ms:
        return SloResult.passed()
    return SloResult.failed(name, f"p99 <= {max_ms}ms", f"p99 = {stats.p99_ms}ms")


def _rate_slo(name: str, failures: int, successes: int, max_rate: float) -> SloResult:
    total = failures + successes
    if total == 0:
        return SloResult.passed()
    rate = failures / total
    if rate <= max_rate:
        return SloResult.passed()
    return SloResult.failed(name, f"rate <= {max_rate:.4f}", f"rate = {rate:.4f}")


def evaluate_slos(config: LoadTestConfig, metrics: MetricsSnapshot) -> list[SloResult]:
    """Check every objective of the config against a metrics snapshot."""
    results = [
        _latency_slo("issuance_latency_p99_ms", metrics.issuance_latency, config.issuance_p99_max_ms),
        _latency_slo("spend_latency_p99_ms", metrics.spend_latency, config.spend_p99_max_ms),
        _latency_slo(
            "signer_rpc_latency_p99_ms", metrics.signer_rpc_latency, config.signer_rpc_p99_max_ms
        ),
        _latency_slo(
            "lightning_latency_p99_ms",
            metrics.lightning_latency,
            config.lightning_settlement_p99_max_ms,
        ),
        _rate_slo(
            "signing_failure_rate",
            metrics.issuance_failure,
            metrics.issuance_success,
            config.signing_failure_rate_max,
        ),
        _rate_slo(
            "lightning_failure_rate",
            metrics.lightning_failure,
            metrics.lightning_success,
            config.lightning_failure_rate_max,
        ),
    ]
    if metrics.double_spend_false_negatives <= config.spend_false_negatives_allowed:
        results.append(SloResult.passed())
    else:
        results.append(
            SloResult.failed(
                "double_spend_false_negatives",
                f"<= {config.spend_false_negatives_allowed}",
                str(metrics.double_spend_false_negatives),
            )
        )
    if metrics.registry_divergence_detected:
        results.append(SloResult.failed("registry_divergence_detected", "false", "true"))
    else:
        results.append(SloResult.passed())
    return results


def print_summary(report: LoadTestReport, file: TextIO | None = None) -> None:
    """Print a coloured table of the objectives and the overall verdict."""
    out = sys.stdout if file is None else file
    now = datetime.now(timezone.utc).isoformat()
    print(f"ArcMint load test report {now}", file=out)
    print(f"Run ID: {report.run_id}", file=out)
    print(f"Duration: {report.duration_secs}s", file=out)
    print(file=out)
    print(_ROW.format("Metric", "Threshold", "Actual", "Result"), file=out)
    for slo in report.slo_results:
        if slo.is_pass:
            print(_ROW.format("", "", "", f"{_GREEN}PASS{_RESET}"), file=out)
        else:
            print(
                _ROW.format(slo.metric, slo.threshold, slo.actual, f"{_RED}FAIL{_RESET}"),
                file=out,
            )
    if report.overall_pass:
        print(f"{_GREEN}OVERALL PASS{_RESET}", file=out)
    else:
        print(f"{_RED}OVERALL FAIL{_RESET}", file=out)


def save_report(report: LoadTestReport, path: str | Path) -> None:
    """Write the report as pretty-printed JSON."""
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(report.to_dict(), fh, indent=2)