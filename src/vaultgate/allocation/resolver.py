"""Get-or-create of the master wallet record for a network.

Key material is written with a fill-empty merge: a field that already holds
a value is never replaced, so concurrent first callers converge on whatever
the first writer stored and existing keys are never silently rotated.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from vaultgate.crypto import SecretEnvelope
from vaultgate.errors import ConfigurationError, ExternalServiceError, NotFoundError
from vaultgate.ledger.repository import WalletRepository
from vaultgate.ledger.snapshot import WalletSnapshot
from vaultgate.providers.base import GeneratedWallet, KeyService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HdMaster:
    """Extended public key and its encrypted mnemonic."""

    extended_public_key: str
    encrypted_secret: str


@dataclass(frozen=True)
class SingleAddress:
    """Flat address reused for every deposit on a network."""

    address: str


class MasterWalletResolver:
    """Resolves the persistent master wallet of a network."""

    def __init__(self, session: AsyncSession, key_service: KeyService, envelope: SecretEnvelope):
        self.session = session
        self.repo = WalletRepository(session)
        self.key_service = key_service
        self.envelope = envelope

    async def ensure_record(self, network_id: int) -> WalletSnapshot:
        """Create an empty master wallet record if none exists.

        Idempotent and safe under concurrent first callers: the losing insert
        is a no-op and everyone reads back the single row.

        Raises:
            NotFoundError: If no network row has this ID
        """
        if await self.repo.get_network(network_id) is None:
            raise NotFoundError(f"Network {network_id} not found")

        created = await self.repo.create_wallet_if_absent(network_id)
        await self.session.commit()

        snapshot = await self.repo.get_wallet(network_id)
        if snapshot is None:
            raise NotFoundError(f"Master wallet for network {network_id} could not be created")

        if created:
            logger.info(f"Created master wallet record for network {network_id}")
        return snapshot

    async def _active_record(self, network_id: int) -> WalletSnapshot:
        snapshot = await self.ensure_record(network_id)
        if not snapshot.is_active:
            raise ConfigurationError(f"Master wallet for network {network_id} is not active")
        return snapshot

    async def _persist(self, network_id: int, patch: dict) -> WalletSnapshot:
        snapshot = await self.repo.fill_empty_fields(network_id, patch)
        await self.session.commit()
        return snapshot

    async def address_from_wallet(self, addressing_scheme: str, wallet: GeneratedWallet) -> str:
        """Address of a freshly generated wallet.

        Flat-key schemes return the address directly; HD schemes only return
        an extended key, so the address at index 0 is derived from it.

        Raises:
            ExternalServiceError: If the wallet has neither an address nor an xpub
        """
        if wallet.address:
            return wallet.address
        if wallet.extended_public_key:
            return await self.key_service.derive_address(
                addressing_scheme, wallet.extended_public_key, 0
            )
        raise ExternalServiceError(
            f"Key Service returned neither address nor extended key for '{addressing_scheme}'"
        )

    async def resolve_hd_master(self, network_id: int, addressing_scheme: str) -> HdMaster:
        """Get or create the extended key and encrypted mnemonic of a network.

        Returns the stored pair unchanged when both are present. Otherwise a
        new wallet is generated and only the empty fields are filled.

        Raises:
            ExternalServiceError: If the generated wallet lacks an xpub or secret
        """
        snapshot = await self._active_record(network_id)
        if snapshot.has_hd_master:
            return HdMaster(snapshot.extended_public_key, snapshot.encrypted_secret)

        wallet = await self.key_service.generate_wallet(addressing_scheme)
        if not wallet.extended_public_key:
            raise ExternalServiceError(
                f"Key Service returned no extended public key for '{addressing_scheme}'"
            )
        if not wallet.secret:
            raise ExternalServiceError(
                f"Key Service returned no secret for '{addressing_scheme}'"
            )

        if snapshot.extended_public_key or snapshot.encrypted_secret:
            logger.warning(
                f"Network {network_id}: master wallet was partially filled; "
                f"completing it with newly generated material"
            )

        snapshot = await self._persist(
            network_id,
            {
                "extended_public_key": wallet.extended_public_key,
                "encrypted_secret": self.envelope.encrypt(wallet.secret),
            },
        )
        logger.info(f"Network {network_id}: HD master wallet ready")
        return HdMaster(snapshot.extended_public_key, snapshot.encrypted_secret)

    async def resolve_single_address(self, network_id: int, addressing_scheme: str) -> SingleAddress:
        """Get or create the one flat address of a network.

        When the record already holds an extended key, index 0 is derived
        from it; otherwise a wallet is generated and its address (direct or
        derived at index 0), extended key and encrypted secret are stored
        with the same fill-empty rule.

        Raises:
            ExternalServiceError: If no address can be produced
        """
        snapshot = await self._active_record(network_id)
        if snapshot.single_address:
            return SingleAddress(snapshot.single_address)

        if snapshot.extended_public_key:
            address = await self.key_service.derive_address(
                addressing_scheme, snapshot.extended_public_key, 0
            )
            patch = {"single_address": address}
        else:
            wallet = await self.key_service.generate_wallet(addressing_scheme)
            address = await self.address_from_wallet(addressing_scheme, wallet)
            patch = {
                "single_address": address,
                "extended_public_key": wallet.extended_public_key,
                "encrypted_secret": self.envelope.encrypt(wallet.secret) if wallet.secret else None,
            }

        snapshot = await self._persist(network_id, patch)
        logger.info(f"Network {network_id}: single deposit address ready")
        return SingleAddress(snapshot.single_address)
