"""Tests for atomic counter allocation."""

import asyncio

import pytest

from vaultgate.allocation.counters import CounterAllocator
from vaultgate.allocation.resolver import MasterWalletResolver
from vaultgate.errors import NotFoundError
from vaultgate.ledger.repository import WalletCounter, WalletRepository


class TestCounterAllocator:
    """Tests for counter values and error conditions."""

    @pytest.mark.asyncio
    async def test_fresh_counters_start_at_defaults(
        self, db_session, make_network, key_service, envelope
    ):
        """Derivation index starts at 0, deposit tag at 1."""
        network = await make_network("bitcoin")
        await MasterWalletResolver(db_session, key_service, envelope).ensure_record(network.id)
        allocator = CounterAllocator(db_session)

        assert await allocator.allocate(network.id, WalletCounter.DERIVATION_INDEX) == 0
        assert await allocator.allocate(network.id, WalletCounter.DEPOSIT_TAG) == 1

    @pytest.mark.asyncio
    async def test_sequence_is_contiguous(self, db_session, make_network, key_service, envelope):
        network = await make_network("ethereum", scheme="ethereum")
        await MasterWalletResolver(db_session, key_service, envelope).ensure_record(network.id)
        allocator = CounterAllocator(db_session)

        values = [
            await allocator.allocate(network.id, WalletCounter.DERIVATION_INDEX)
            for _ in range(5)
        ]

        assert values == [0, 1, 2, 3, 4]
        wallet = await WalletRepository(db_session).get_wallet(network.id)
        assert wallet.next_derivation_index == 5

    @pytest.mark.asyncio
    async def test_counters_are_independent(self, db_session, make_network, key_service, envelope):
        """Derivation index and deposit tag never interact."""
        network = await make_network("ripple", scheme="xrp")
        await MasterWalletResolver(db_session, key_service, envelope).ensure_record(network.id)
        allocator = CounterAllocator(db_session)

        for _ in range(3):
            await allocator.allocate(network.id, WalletCounter.DEPOSIT_TAG)

        assert await allocator.allocate(network.id, WalletCounter.DERIVATION_INDEX) == 0
        assert await allocator.allocate(network.id, WalletCounter.DEPOSIT_TAG) == 4

    @pytest.mark.asyncio
    async def test_networks_are_independent(self, db_session, make_network, key_service, envelope):
        resolver = MasterWalletResolver(db_session, key_service, envelope)
        allocator = CounterAllocator(db_session)
        a = await make_network("ripple", scheme="xrp")
        b = await make_network("stellar", scheme="stellar")
        await resolver.ensure_record(a.id)
        await resolver.ensure_record(b.id)

        tags_a = [await allocator.allocate(a.id, WalletCounter.DEPOSIT_TAG) for _ in range(3)]
        tags_b = [await allocator.allocate(b.id, WalletCounter.DEPOSIT_TAG) for _ in range(2)]

        assert tags_a == [1, 2, 3]
        assert tags_b == [1, 2]

    @pytest.mark.asyncio
    async def test_missing_record_raises_not_found(self, db_session, make_network):
        network = await make_network("litecoin", scheme="litecoin")

        with pytest.raises(NotFoundError):
            await CounterAllocator(db_session).allocate(
                network.id, WalletCounter.DERIVATION_INDEX
            )

    @pytest.mark.asyncio
    async def test_counter_given_as_string(self, db_session, make_network, key_service, envelope):
        network = await make_network("dogecoin", scheme="dogecoin")
        await MasterWalletResolver(db_session, key_service, envelope).ensure_record(network.id)

        assert await CounterAllocator(db_session).allocate(network.id, "deposit_tag") == 1


class TestConcurrentAllocation:
    """Concurrent callers on separate connections."""

    @pytest.mark.asyncio
    async def test_concurrent_allocations_are_distinct(
        self, file_session_factory, make_file_network, key_service, envelope
    ):
        network = await make_file_network("bitcoin")
        async with file_session_factory() as session:
            await MasterWalletResolver(session, key_service, envelope).ensure_record(network.id)

        async def allocate_one() -> int:
            async with file_session_factory() as session:
                return await CounterAllocator(session).allocate(
                    network.id, WalletCounter.DERIVATION_INDEX
                )

        values = await asyncio.gather(*(allocate_one() for _ in range(10)))

        assert sorted(values) == list(range(10))

    @pytest.mark.asyncio
    async def test_counter_survives_restart(
        self, db_path, file_engine, file_session_factory, make_file_network, key_service, envelope
    ):
        from vaultgate.ledger.database import build_engine, build_session_factory

        network = await make_file_network("bitcoin")
        async with file_session_factory() as session:
            await MasterWalletResolver(session, key_service, envelope).ensure_record(network.id)
            allocator = CounterAllocator(session)
            first = [
                await allocator.allocate(network.id, WalletCounter.DERIVATION_INDEX)
                for _ in range(3)
            ]
        await file_engine.dispose()

        # Fresh engine over the same database file
        engine = build_engine(f"sqlite+aiosqlite:///{db_path}")
        try:
            async with build_session_factory(engine)() as session:
                nxt = await CounterAllocator(session).allocate(
                    network.id, WalletCounter.DERIVATION_INDEX
                )
        finally:
            await engine.dispose()

        assert first == [0, 1, 2]
        assert nxt == 3
