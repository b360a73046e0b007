"""Deposit address allocation engine.

Dispatches on a network's strategy to produce a DepositTarget:

    HD_XPUB               resolve HD master, allocate derivation index, derive
    WALLET_SINGLE_ADDR    resolve the network's single address
    WALLET_PER_DEPOSIT    generate a brand-new wallet on every call
    SHARED_ADDR_WITH_TAG  resolve the single address, allocate a deposit tag

Counters are only consumed after the Key Service work of the branch has
succeeded, with one exception: HD_XPUB allocates the index before deriving,
so a failed derivation burns that index. Gaps are harmless; reusing an
index would hand two users the same address.
"""

import logging
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from vaultgate.allocation.counters import CounterAllocator
from vaultgate.allocation.resolver import MasterWalletResolver
from vaultgate.allocation.strategies import (
    DepositStrategy,
    DepositTarget,
    NetworkConfig,
    parse_strategy,
)
from vaultgate.crypto import SecretEnvelope
from vaultgate.errors import ConfigurationError, NotFoundError
from vaultgate.ledger.repository import WalletCounter, WalletRepository
from vaultgate.providers.base import KeyService

logger = logging.getLogger(__name__)

Handler = Callable[[NetworkConfig, str], Awaitable[DepositTarget]]


class AllocationEngine:
    """Allocates deposit targets for networks.

    One engine per session; the session should not be shared between
    concurrent requests.
    """

    def __init__(self, session: AsyncSession, key_service: KeyService, envelope: SecretEnvelope):
        self.session = session
        self.repo = WalletRepository(session)
        self.key_service = key_service
        self.envelope = envelope
        self.resolver = MasterWalletResolver(session, key_service, envelope)
        self.counters = CounterAllocator(session)

        self._handlers: dict[DepositStrategy, Handler] = {
            DepositStrategy.HD_XPUB: self._allocate_hd_xpub,
            DepositStrategy.WALLET_SINGLE_ADDR: self._allocate_single_address,
            DepositStrategy.WALLET_PER_DEPOSIT: self._allocate_per_deposit,
            DepositStrategy.SHARED_ADDR_WITH_TAG: self._allocate_shared_with_tag,
        }
        missing = set(DepositStrategy) - set(self._handlers)
        if missing:
            raise ConfigurationError(
                f"No allocation handler for: {', '.join(sorted(s.value for s in missing))}"
            )

    async def load_network(self, code: str) -> NetworkConfig:
        """Load an active network by code.

        Raises:
            NotFoundError: If no network has this code
            ConfigurationError: If the network is disabled
        """
        network = await self.repo.get_network_by_code(code)
        if network is None:
            raise NotFoundError(f'Network not found by code="{code}"')
        if not network.is_active:
            raise ConfigurationError(f'Network "{code}" is not active')
        return NetworkConfig.from_model(network)

    async def allocate_for_code(self, code: str) -> DepositTarget:
        """Load a network by code and allocate a deposit target for it."""
        return await self.allocate(await self.load_network(code))

    async def allocate(self, network: NetworkConfig) -> DepositTarget:
        """Allocate a deposit target according to the network's strategy.

        Args:
            network: Network configuration

        Returns:
            DepositTarget for the user to deposit to

        Raises:
            ConfigurationError: If the network has no addressing scheme
            UnsupportedStrategyError: If the strategy value is unknown
            ExternalServiceError: If the Key Service fails or returns bad data
            NotFoundError, AllocationError: On counter allocation failures
        """
        scheme = (network.addressing_scheme or "").strip()
        if not scheme:
            raise ConfigurationError(f'Network "{network.code}" has no addressing scheme')

        strategy = parse_strategy(network.strategy, network.code)
        if network.requires_memo and strategy is not DepositStrategy.SHARED_ADDR_WITH_TAG:
            logger.warning(
                f'Network "{network.code}" requires a memo but uses {strategy.value}'
            )

        target = await self._handlers[strategy](network, scheme)
        logger.info(
            f"[{network.code}] {strategy.value} -> {target.address}"
            + (f" extra={target.address_extra}" if target.address_extra else "")
            + (f" index={target.derivation_index}" if target.derivation_index is not None else "")
        )
        return target

    async def _allocate_hd_xpub(self, network: NetworkConfig, scheme: str) -> DepositTarget:
        master = await self.resolver.resolve_hd_master(network.id, scheme)

        # Index is taken before derivation; a failed derivation leaves a gap
        index = await self.counters.allocate(network.id, WalletCounter.DERIVATION_INDEX)
        address = await self.key_service.derive_address(scheme, master.extended_public_key, index)

        return DepositTarget(
            address=address,
            strategy=DepositStrategy.HD_XPUB,
            derivation_index=index,
        )

    async def _allocate_single_address(self, network: NetworkConfig, scheme: str) -> DepositTarget:
        single = await self.resolver.resolve_single_address(network.id, scheme)
        return DepositTarget(address=single.address, strategy=DepositStrategy.WALLET_SINGLE_ADDR)

    async def _allocate_per_deposit(self, network: NetworkConfig, scheme: str) -> DepositTarget:
        wallet = await self.key_service.generate_wallet(scheme)
        address = await self.resolver.address_from_wallet(scheme, wallet)

        # Not persisted here; the caller stores the envelope with the deposit
        encrypted = self.envelope.encrypt(wallet.secret) if wallet.secret else None
        if encrypted is None:
            logger.warning(f'[{network.code}] per-deposit wallet returned without a secret')

        return DepositTarget(
            address=address,
            strategy=DepositStrategy.WALLET_PER_DEPOSIT,
            encrypted_secret=encrypted,
        )

    async def _allocate_shared_with_tag(self, network: NetworkConfig, scheme: str) -> DepositTarget:
        single = await self.resolver.resolve_single_address(network.id, scheme)
        tag = await self.counters.allocate(network.id, WalletCounter.DEPOSIT_TAG)
        return DepositTarget(
            address=single.address,
            strategy=DepositStrategy.SHARED_ADDR_WITH_TAG,
            address_extra=str(tag),
        )
