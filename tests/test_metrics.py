import threading

from arcmint.metrics import LatencyRecorder, LatencyStats, LoadTestMetrics


def test_empty_recorder_reports_zero():
    rec = LatencyRecorder()
    assert rec.count() == 0
    assert rec.p50() == 0
    assert rec.p99() == 0
    assert rec.max() == 0


def test_single_value_is_every_quantile():
    rec = LatencyRecorder()
    rec.record(42)
    assert rec.p50() == 42
    assert rec.p95() == 42
    assert rec.p99() == 42
    assert rec.max() == 42
    assert rec.count() == 1


def test_quantiles_are_ordered_and_consistent():
    rec = LatencyRecorder()
    values = list(range(1, 101))
    for v in values:
        rec.record(v)
    assert rec.count() == len(values)
    assert rec.p50() <= rec.p95() <= rec.p99() <= rec.max()
    assert rec.max() == max(values)
    p50 = rec.p50()
    assert sum(1 for v in values if v <= p50) >= len(values) / 2
    assert sum(1 for v in values if v < p50) < len(values) / 2


def test_large_values_keep_three_significant_digits():
    rec = LatencyRecorder()
    rec.record(60_000)
    assert 60_000 <= rec.max() < 60_000 * 1.001


def test_out_of_range_values_are_dropped():
    rec = LatencyRecorder()
    assert rec.record(-5) is False
    assert rec.record(10_000_000) is False
    assert rec.count() == 0


def test_stats_from_recorder():
    rec = LatencyRecorder()
    for v in (10, 20, 30):
        rec.record(v)
    stats = LatencyStats.from_recorder(rec)
    assert stats.count == 3
    assert stats.max_ms == 30
    assert stats.to_dict()["p99_ms"] == stats.p99_ms


def test_locked_updates_show_in_snapshot():
    metrics = LoadTestMetrics()
    with metrics.locked() as m:
        m.issuance_success += 2
        m.spend_failure += 1
        m.registry_divergence_detected = True
        m.spend_latency.record(15)
    snap = metrics.snapshot()
    assert snap.issuance_success == 2
    assert snap.spend_failure == 1
    assert snap.registry_divergence_detected is True
    assert snap.spend_latency.count == 1
    assert snap.spend_latency.max_ms == 15
    assert snap.issuance_latency.count == 0


def test_concurrent_updates_are_not_lost():
    metrics = LoadTestMetrics()

    def work():
        for _ in range(200):
            with metrics.locked() as m:
                m.panics += 1

    threads = [threading.Thread(target=work) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert metrics.snapshot().panics == 4 * 200


def test_snapshot_to_dict_nests_latency():
    metrics = LoadTestMetrics()
    with metrics.locked() as m:
        m.lightning_latency.record(7)
    data = metrics.snapshot().to_dict()
    assert data["lightning_latency"]["max_ms"] == 7
    assert data["registry_divergence_detected"] is False