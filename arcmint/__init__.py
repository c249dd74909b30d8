"""Load-test config, metrics and SLO reports, a Lightning REST test client, wallet storage and merchant bookkeeping."""

__version__ = "0.1.0"