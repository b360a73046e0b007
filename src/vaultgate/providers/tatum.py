"""Tatum Key Service and Notification Service client.

Docs: https://docs.tatum.io/

v3 endpoints generate wallets and derive addresses per addressing scheme
(the path segment, e.g. /v3/bitcoin/...). v4 subscriptions register
ADDRESS_EVENT webhooks per notification chain id.
"""

import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from vaultgate.errors import ExternalServiceError
from vaultgate.providers.base import GeneratedWallet, KeyService, NotificationService

logger = logging.getLogger(__name__)

# Response keys that may carry the wallet secret, in order of preference
SECRET_KEYS = ("mnemonic", "secret", "privateKey")


class TatumClient(KeyService, NotificationService):
    """Tatum REST client implementing both external service interfaces."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.tatum.io",
        net_type: str = "mainnet",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Tatum client.

        Args:
            api_key: Tatum API key sent as x-api-key
            base_url: API base URL
            net_type: mainnet or testnet, used for v4 subscriptions
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport override
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.net_type = net_type
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "tatum"

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Perform a request and return decoded JSON (or text for non-JSON bodies)."""
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers={"x-api-key": self.api_key},
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"[tatum] {method} {path} failed: {e}") from e

        if not response.is_success:
            raise ExternalServiceError(
                f"[tatum] {response.status_code} {response.reason_phrase} for {path}: "
                f"{response.text[:500]}",
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return response.text

        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(f"[tatum] invalid JSON for {path}") from e

    @staticmethod
    def _require_object(data: Any, path: str) -> dict:
        if not isinstance(data, dict):
            raise ExternalServiceError(f"[tatum] unexpected payload for {path}")
        return data

    async def generate_wallet(self, addressing_scheme: str) -> GeneratedWallet:
        """Generate a wallet via GET /v3/{scheme}/wallet."""
        path = f"/v3/{addressing_scheme}/wallet"
        data = self._require_object(await self._request("GET", path), path)

        secret = next((data[k] for k in SECRET_KEYS if data.get(k)), None)
        wallet = GeneratedWallet(
            extended_public_key=data.get("xpub") or None,
            secret=secret,
            address=data.get("address") or None,
        )
        if not wallet.extended_public_key and not wallet.address:
            raise ExternalServiceError(
                f"[tatum] wallet for '{addressing_scheme}' has neither xpub nor address"
            )

        logger.info(f"Generated {addressing_scheme} wallet via Tatum")
        return wallet

    async def derive_address(
        self, addressing_scheme: str, extended_public_key: str, index: int
    ) -> str:
        """Derive an address via GET /v3/{scheme}/address/{xpub}/{index}."""
        path = f"/v3/{addressing_scheme}/address/{quote(extended_public_key, safe='')}/{index}"
        data = self._require_object(await self._request("GET", path), path)

        address = data.get("address")
        if not address:
            raise ExternalServiceError(
                f"[tatum] no address derived for '{addressing_scheme}' index {index}"
            )
        return address

    async def get_balance(self, addressing_scheme: str, address: str) -> str:
        """Fetch balance via GET /v3/{scheme}/account/balance/{address}."""
        path = f"/v3/{addressing_scheme}/account/balance/{quote(address, safe='')}"
        data = await self._request("GET", path)

        if isinstance(data, dict):
            if "balance" in data:
                return str(data["balance"])
            return json.dumps(data)
        return str(data)

    async def subscribe(self, chain_id: str, address: str, callback_url: str) -> str:
        """Create an ADDRESS_EVENT subscription via POST /v4/subscription."""
        body = {
            "type": "ADDRESS_EVENT",
            "attr": {"address": address, "chain": chain_id, "url": callback_url},
        }
        path = "/v4/subscription"
        data = self._require_object(
            await self._request("POST", path, params={"type": self.net_type}, json=body),
            path,
        )

        nested = data.get("data") if isinstance(data.get("data"), dict) else {}
        subscription_id = nested.get("id") or data.get("id")
        if not subscription_id:
            raise ExternalServiceError(
                f"[tatum] subscription for {chain_id} returned no id"
            )

        logger.info(f"Subscribed {chain_id} address {address}: {subscription_id}")
        return str(subscription_id)
