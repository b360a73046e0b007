"""Optional address subscription after allocation."""

import logging
from typing import Optional

from vaultgate.errors import ConfigurationError
from vaultgate.providers.base import NotificationService

logger = logging.getLogger(__name__)

# Chain ids accepted by the Notification Service for ADDRESS_EVENT subscriptions
SUPPORTED_NOTIFICATION_CHAINS = frozenset(
    {
        "algorand-mainnet",
        "arb-one-mainnet",
        "avalanche-mainnet",
        "base-mainnet",
        "bch-mainnet",
        "bitcoin-mainnet",
        "bitcoin-testnet",
        "bsc-mainnet",
        "celo-mainnet",
        "cardano-mainnet",
        "chiliz-mainnet",
        "dogecoin-mainnet",
        "ethereum-mainnet",
        "ethereum-sepolia",
        "fantom-mainnet",
        "flare-mainnet",
        "kaia-mainnet",
        "litecoin-mainnet",
        "optimism-mainnet",
        "polygon-mainnet",
        "ripple-mainnet",
        "solana-mainnet",
        "stellar-mainnet",
        "tezos-mainnet",
        "tron-mainnet",
        "zcash-mainnet",
    }
)


class NotificationGate:
    """Subscribes allocated addresses to deposit webhooks when supported."""

    def __init__(
        self,
        service: NotificationService,
        allowed_chains: frozenset[str] = SUPPORTED_NOTIFICATION_CHAINS,
    ):
        self.service = service
        self.allowed_chains = allowed_chains

    async def maybe_subscribe(
        self, chain_id: Optional[str], address: str, callback_url: str
    ) -> Optional[str]:
        """Subscribe an address if its chain is supported.

        Args:
            chain_id: Notification chain id of the network, if any
            address: Deposit address to watch
            callback_url: Webhook URL to notify

        Returns:
            Subscription ID, or None when the chain is absent or unsupported

        Raises:
            ConfigurationError: If a subscription is due but no callback URL is set
            ExternalServiceError: If the Notification Service call fails
        """
        if not chain_id:
            logger.debug(f"No notification chain for {address} - skipping subscription")
            return None

        if chain_id not in self.allowed_chains:
            logger.debug(f"Chain {chain_id} not supported for notifications - skipping")
            return None

        if not callback_url:
            raise ConfigurationError("WEBHOOK_URL is required to subscribe addresses")

        subscription_id = await self.service.subscribe(chain_id, address, callback_url)
        logger.info(f"Subscription {subscription_id} created for {chain_id} {address}")
        return subscription_id
