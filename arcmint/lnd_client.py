"""Minimal REST client for a Lightning node used by the load tests."""

from __future__ import annotations

import base64
import os
from pathlib import Path
from typing import Any

import requests

_MACAROON_HEADER = "Grpc-Metadata-macaroon"


def _require_env(name: str) -> str:
    try:
        return os.environ[name]
    except KeyError:
        raise LookupError(f"environment variable {name} is not set") from None


def _port_from_env(name: str) -> int:
    raw = os.environ.get(name)
    if raw is not None:
        try:
            port = int(raw)
        except ValueError:
            return 8080
        if 0 <= port <= 65535 and raw.strip() == raw:
            return port
    return 8080


class LndTestClient:
    """Talks to a node's REST interface with macaroon authentication."""

    def __init__(
        self,
        base_url: str,
        macaroon_hex: str,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.macaroon_hex = macaroon_hex
        self.session = session or requests.Session()
        self.session.headers[_MACAROON_HEADER] = macaroon_hex

    @classmethod
    def from_env(
        cls, host_env: str, port_env: str, macaroon_env: str, tls_env: str
    ) -> LndTestClient:
        """Build a client from the named environment variables."""
        host = os.environ.get(host_env, "localhost")
        port = _port_from_env(port_env)

        tls_bytes = Path(_require_env(tls_env)).read_bytes()
        if b"-----BEGIN" not in tls_bytes:
            raise ValueError("TLS certificate is not PEM encoded")

        macaroon = _require_env(macaroon_env)
        macaroon_path = Path(macaroon)
        macaroon_hex = macaroon_path.read_bytes().hex() if macaroon_path.exists() else macaroon

        session = requests.Session()
        # Test nodes use self-signed certificates.
        session.verify = False
        return cls(f"https://{host}:{port}", macaroon_hex, session)

    def _post(self, path: str, body: dict[str, Any]) -> Any:
        resp = self.session.post(f"{self.base_url}{path}", json=body)
        resp.raise_for_status()
        return resp.json()

    def get_info(self) -> Any:
        resp = self.session.get(f"{self.base_url}/v1/getinfo")
        resp.raise_for_status()
        return resp.json()

    def create_invoice(self, amount_msat: int, memo: str) -> tuple[str, str]:
        """Create an invoice; return its payment request and hex payment hash."""
        value = self._post("/v1/invoices", {"value_msat": str(amount_msat), "memo": memo})
        payment_request = value.get("payment_request")
        if not isinstance(payment_request, str):
            payment_request = ""
        r_hash = value.get("r_hash")
        if not isinstance(r_hash, str):
            r_hash = ""
        payment_hash = base64.b64decode(r_hash, validate=True)
        return payment_request, payment_hash.hex()

    def pay_invoice(self, payment_request: str) -> Any:
        return self._post("/v1/channels/transactions", {"payment_request": payment_request})