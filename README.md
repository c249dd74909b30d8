# arcmint

This is a supporting library for running and checking an e-cash mint deployment.
It is made up of these modules:

- `arcmint.config` defines `LoadTestConfig`. It reads a TOML load-test configuration and validates it.
- `arcmint.metrics` gathers latency and counter metrics:
  - `LatencyRecorder` is a latency histogram. It keeps three significant digits for values from 0 to 65535 ms and drops any value outside that range.
  - `LoadTestMetrics` is a thread-safe holder of histograms and success and failure counters. Its `snapshot()` method returns an immutable `MetricsSnapshot`.
- `arcmint.report` produces results from a snapshot:
  - `evaluate_slos` turns a snapshot into a list of `SloResult` values.
  - `print_summary` prints a coloured table.
  - `save_report` writes a `LoadTestReport` as pretty-printed JSON.
- `arcmint.lnd_client` defines `LndTestClient`, a small client for a Lightning node's REST interface. It offers `get_info`, `create_invoice` and `pay_invoice`, and authenticates with a macaroon header.
- `arcmint.wallet_store` describes the on-disk wallet:
  - `WalletFile`, `StoredNote` and `NoteStatus` describe its contents.
  - `save_wallet` writes the wallet atomically. On POSIX systems the file is made readable by its owner only.
  - `load_wallet` reads the wallet back and warns on stderr if its permissions are not 0600.
  - Helpers: `list_notes`, `wallet_file_path`, `default_wallet_dir`, `resolve_coordinator_url` and `resolve_gateway_url`.
- `arcmint.merchant_store` defines `MerchantStore`, a SQLite store of pending spend challenges and accepted payments. A pending challenge expires 300 seconds after it is stored.
- `arcmint.merchant_payments` holds the merchant's payment helpers:
  - `list_payments` pages through accepted payments, newest first. The default page size is 20 and the largest is 100.
  - `purge_expired` removes stale challenges.
  - `generate_challenge_bits` produces random 0/1 challenges.
  - `database_url` builds a SQLite URL.

## Installation

```
pip install arcmint
```

To install the test dependencies (pytest, responses), use the `test` extra:

```
pip install "arcmint[test]"
```

## Load-test configuration

`LoadTestConfig.from_file` needs every field. The only exception is `ca_cert_path`, which is optional:

```toml
concurrency = 10
duration_secs = 60
ramp_up_secs = 5
full_pipeline_weight = 70
issuance_burst_weight = 20
double_spend_weight = 10
denomination_msat = 100000
k = 32
issuance_p99_max_ms = 2000
spend_p99_max_ms = 1000
signer_rpc_p99_max_ms = 500
lightning_settlement_p99_max_ms = 5000
signing_failure_rate_max = 0.001
lightning_failure_rate_max = 0.01
spend_false_negatives_allowed = 0
coordinator_url = "https://localhost:7000"
gateway_url = "https://localhost:7002"
merchant_url = "https://localhost:7003"
signer_urls = []
```

`ConfigError` is raised in any of these cases:

- the file cannot be read or parsed;
- a field is missing or has the wrong type;
- `concurrency` is 0;
- `duration_secs` is 0;
- the three scenario weights do not sum to 100.

## Example

```python
from arcmint.config import LoadTestConfig
from arcmint.metrics import LoadTestMetrics
from arcmint.report import LoadTestReport, evaluate_slos, print_summary, save_report

config = LoadTestConfig.from_file("loadtest.toml")
metrics = LoadTestMetrics()

with metrics.locked() as m:
    m.issuance_latency.record(120)
    m.issuance_success += 1

snapshot = metrics.snapshot()
results = evaluate_slos(config, snapshot)
report = LoadTestReport(
    run_id="run-1",
    config=config,
    started_at="2024-01-01T00:00:00Z",
    completed_at="2024-01-01T00:01:00Z",
    duration_secs=60,
    metrics=snapshot,
    slo_results=results,
    overall_pass=all(r.is_pass for r in results),
)
print_summary(report)
save_report(report, "report.json")
```

`evaluate_slos` checks the following, in this order:

1. p99 latency of issuance, spend, signer RPC and lightning settlement;
2. signing and lightning failure rates;
3. double-spend false negatives;
4. registry divergence.

## Merchant bookkeeping

```python
from arcmint.merchant_store import MerchantStore, current_timestamp
from arcmint.merchant_payments import generate_challenge_bits, list_payments, purge_expired

with MerchantStore("merchant.db") as store:
    now = current_timestamp()
    store.put_pending("ab" * 32, generate_challenge_bits(32), "{}", now)
    store.record_accepted("cd" * 32, 100_000, now)
    print(list_payments(store))
    purge_expired(store, now)
```

## What this package does not do

The package has no command-line programs and no servers. In particular:

- It has no wallet commands for registering, generating notes or spending. The wallet module only stores and reads notes.
- It has no merchant HTTP service. `MerchantStore` and the payment helpers do not verify signatures or spend proofs, and they do not contact a coordinator.
- It has no load-test driver that produces traffic.
- It has no gRPC Lightning backend.
- It has no note cryptography.