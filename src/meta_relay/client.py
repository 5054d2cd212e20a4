"""
RelayClient: REST client for a meta-relay HTTP service.

Relayers and signers use it to fetch the hash to sign and to submit signed
intents without embedding an executor in-process.
"""

from __future__ import annotations

from typing import Any

import httpx

from meta_relay.core.models import TransferIntent
from meta_relay.crypto.encoding import hash_to_hex, hex_to_hash

DEFAULT_RELAY_URL = "http://127.0.0.1:8000"


class RelayClientError(Exception):
    """Raised when the relay service returns an HTTP error."""
    pass


class RelayClient:
    """
    Synchronous client for the relay API.

    Usage:
        client = RelayClient()  # local relay
        client = RelayClient("https://relay.example.org")
        digest = client.get_hash(intent)
        result = client.submit(intent, wallet.sign_hash(digest))
    """

    def __init__(
        self,
        base_url: str = DEFAULT_RELAY_URL,
        timeout: float = 15.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Relay
    # ------------------------------------------------------------------

    def get_hash(self, intent: TransferIntent) -> bytes:
        """Return the authorization hash the relay expects to be signed."""
        data = self._post("/relay/hash", {"intent": intent.model_dump()})
        return hex_to_hash(data["hash"])

    def submit(self, intent: TransferIntent, signature: bytes | str) -> dict[str, Any]:
        """
        Submit a signed intent.

        Returns:
            dict: the relay's response; ``status`` is "executed" or "rejected"
        """
        sig_hex = signature if isinstance(signature, str) else "0x" + bytes(signature).hex()
        return self._post("/relay/submit", {"intent": intent.model_dump(), "signature": sig_hex})

    def is_consumed(self, digest: bytes) -> bool:
        data = self._get(f"/relay/consumed/{hash_to_hex(digest)}")
        return bool(data["consumed"])

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def balance_of(self, token_address: str, account: str) -> int:
        data = self._get(f"/tokens/{token_address}/balances/{account}")
        return int(data["balance"])

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _get(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        response = self._client.get(url)
        if response.status_code != 200:
            raise RelayClientError(f"API error {response.status_code} for {url}: {response.text}")
        return response.json()

    def _post(self, path: str, payload: dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        response = self._client.post(url, json=payload)
        if response.status_code != 200:
            raise RelayClientError(f"API error {response.status_code} for {url}: {response.text}")
        return response.json()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> RelayClient:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
