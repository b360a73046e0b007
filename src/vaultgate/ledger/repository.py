"""Repository for network and master wallet persistence."""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vaultgate.errors import NotFoundError
from vaultgate.ledger.models import MasterWallet, Network
from vaultgate.ledger.snapshot import WalletSnapshot, merge_empty_fields

logger = logging.getLogger(__name__)


class WalletCounter(str, Enum):
    """Per-network counters held on the master wallet row."""

    DERIVATION_INDEX = "derivation_index"
    DEPOSIT_TAG = "deposit_tag"


COUNTER_COLUMNS = {
    WalletCounter.DERIVATION_INDEX: MasterWallet.next_derivation_index,
    WalletCounter.DEPOSIT_TAG: MasterWallet.next_deposit_tag,
}

_SNAPSHOT_COLUMNS = (
    MasterWallet.network_id,
    MasterWallet.extended_public_key,
    MasterWallet.single_address,
    MasterWallet.encrypted_secret,
    MasterWallet.next_derivation_index,
    MasterWallet.next_deposit_tag,
    MasterWallet.is_active,
)


class WalletRepository:
    """Repository for all master wallet database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _dialect(self) -> str:
        return self.session.bind.dialect.name if self.session.bind else "sqlite"

    # Network operations
    async def get_network_by_code(self, code: str) -> Optional[Network]:
        """Get network by its unique code."""
        stmt = select(Network).where(Network.code == code)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_network(self, network_id: int) -> Optional[Network]:
        """Get network by ID."""
        stmt = select(Network).where(Network.id == network_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # Master wallet operations
    async def get_wallet(self, network_id: int) -> Optional[WalletSnapshot]:
        """Read the current state of a network's master wallet."""
        stmt = select(*_SNAPSHOT_COLUMNS).where(MasterWallet.network_id == network_id)
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        return WalletSnapshot.from_row(row) if row is not None else None

    async def create_wallet_if_absent(self, network_id: int) -> bool:
        """Insert an empty master wallet row unless one exists.

        Uses INSERT ... ON CONFLICT DO NOTHING where the dialect supports it,
        so a concurrent duplicate create resolves to the existing row.

        Returns:
            True if this call inserted the row
        """
        values = {
            "network_id": network_id,
            "next_derivation_index": 0,
            "next_deposit_tag": 1,
            "is_active": True,
        }
        dialect = self._dialect()

        if dialect in ("postgresql", "sqlite"):
            if dialect == "postgresql":
                from sqlalchemy.dialects.postgresql import insert
            else:
                from sqlalchemy.dialects.sqlite import insert

            stmt = (
                insert(MasterWallet)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["network_id"])
                .returning(MasterWallet.id)
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none() is not None

        # Other dialects: rely on the unique constraint inside a savepoint
        try:
            async with self.session.begin_nested():
                self.session.add(MasterWallet(**values))
            return True
        except IntegrityError:
            logger.debug(f"Master wallet for network {network_id} created concurrently")
            return False

    async def fill_empty_fields(
        self, network_id: int, patch: dict[str, Optional[str]]
    ) -> WalletSnapshot:
        """Write key material into fields that are still empty.

        The merge is enforced by the UPDATE itself with
        COALESCE(NULLIF(col, ''), :value), so a value written by a concurrent
        caller is kept and ours is discarded.

        Args:
            network_id: Network whose master wallet is patched
            patch: Candidate values keyed by key material column name

        Returns:
            Snapshot of the row after the update

        Raises:
            NotFoundError: If the network has no master wallet row
        """
        current = await self.get_wallet(network_id)
        if current is None:
            raise NotFoundError(f"No master wallet for network {network_id}")

        writable = merge_empty_fields(current, patch)
        if not writable:
            return current

        assignments = {
            name: func.coalesce(func.nullif(getattr(MasterWallet, name), ""), value)
            for name, value in writable.items()
        }
        stmt = (
            update(MasterWallet)
            .where(MasterWallet.network_id == network_id)
            .values(**assignments)
            .returning(*_SNAPSHOT_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(f"No master wallet for network {network_id}")

        updated = WalletSnapshot.from_row(row)
        lost = [name for name, value in writable.items() if getattr(updated, name) != value]
        if lost:
            logger.info(
                f"Network {network_id}: kept concurrently written {', '.join(lost)}"
            )
        return updated

    async def increment_counter(self, network_id: int, counter: WalletCounter) -> Optional[int]:
        """Atomically advance a counter and return its previous value.

        Single UPDATE ... RETURNING statement; the value is never read and
        written in separate steps.

        Returns:
            Value before the increment, or None if no row was updated
        """
        column = COUNTER_COLUMNS[counter]
        stmt = (
            update(MasterWallet)
            .where(MasterWallet.network_id == network_id)
            .values(**{column.key: column + 1})
            .returning((column - 1).label("previous"))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
