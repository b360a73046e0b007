"""Atomic per-network counter allocation."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from vaultgate.errors import AllocationError, NotFoundError
from vaultgate.ledger.repository import WalletCounter, WalletRepository

logger = logging.getLogger(__name__)


class CounterAllocator:
    """Hands out derivation indexes and deposit tags.

    Each allocation is a single UPDATE ... RETURNING committed on its own,
    so N concurrent callers for the same counter receive N distinct,
    contiguous values.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = WalletRepository(session)

    async def allocate(self, network_id: int, counter: WalletCounter) -> int:
        """Advance a counter and return the value it held before.

        Args:
            network_id: Network whose master wallet holds the counter
            counter: DERIVATION_INDEX (starts at 0) or DEPOSIT_TAG (starts at 1)

        Returns:
            The pre-increment value

        Raises:
            NotFoundError: If the network has no master wallet record
            AllocationError: If the record exists but the update touched no row
        """
        counter = WalletCounter(counter)
        previous = await self.repo.increment_counter(network_id, counter)

        if previous is None:
            await self.session.rollback()
            if await self.repo.get_wallet(network_id) is None:
                raise NotFoundError(
                    f"No master wallet for network {network_id}; ensure the record first"
                )
            raise AllocationError(
                f"Failed to allocate {counter.value} for network {network_id}"
            )

        await self.session.commit()
        logger.debug(f"Network {network_id}: allocated {counter.value}={previous}")
        return previous
