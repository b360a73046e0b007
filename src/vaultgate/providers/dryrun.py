"""Dry-run services for development and testing (no real keys)."""

import hashlib
import secrets

from vaultgate.providers.base import GeneratedWallet, KeyService, NotificationService

# Schemes whose wallets are a single address plus secret rather than an xpub
FLAT_SCHEMES = frozenset(
    {"xrp", "stellar", "solana", "algorand", "eos", "tezos", "ton", "ada"}
)


def _fingerprint(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()[:12]


class DryRunKeyService(KeyService):
    """Simulated Key Service that generates random fake wallets.

    Derivation is deterministic: the same xpub and index always give the
    same address, and different indexes give different addresses.
    """

    @property
    def name(self) -> str:
        return "dryrun"

    async def generate_wallet(self, addressing_scheme: str) -> GeneratedWallet:
        seed = secrets.token_hex(16)
        if addressing_scheme.lower() in FLAT_SCHEMES:
            return GeneratedWallet(
                address=f"sim:{addressing_scheme}:{_fingerprint(seed)}",
                secret=f"sim-secret-{seed}",
            )
        return GeneratedWallet(
            extended_public_key=f"simxpub{seed}",
            secret=f"sim mnemonic {seed}",
        )

    async def derive_address(
        self, addressing_scheme: str, extended_public_key: str, index: int
    ) -> str:
        return f"sim:{addressing_scheme}:{_fingerprint(extended_public_key)}:{index:06d}"

    async def get_balance(self, addressing_scheme: str, address: str) -> str:
        return "0"


class DryRunNotificationService(NotificationService):
    """Simulated Notification Service returning deterministic subscription IDs."""

    @property
    def name(self) -> str:
        return "dryrun"

    async def subscribe(self, chain_id: str, address: str, callback_url: str) -> str:
        return f"sim-sub-{_fingerprint(f'{chain_id}:{address}:{callback_url}')}"
