"""Pytest configuration and fixtures."""

import base64
import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

TEST_ENCRYPTION_KEY = base64.b64encode(bytes(range(32))).decode()

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "false"
os.environ["KEY_SERVICE"] = "dryrun"
os.environ["MNEMONIC_ENC_KEY"] = TEST_ENCRYPTION_KEY
os.environ["WEBHOOK_URL"] = ""

from vaultgate.allocation.strategies import DepositStrategy, NetworkConfig
from vaultgate.crypto import SecretEnvelope
from vaultgate.ledger.database import build_engine, build_session_factory
from vaultgate.ledger.models import Base, Network
from vaultgate.providers.dryrun import DryRunKeyService


@pytest_asyncio.fixture
async def db_engine():
    """Create in-memory database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
def db_path(tmp_path):
    """Path of a file-backed SQLite database shared by several connections."""
    return tmp_path / "vaultgate.db"


@pytest_asyncio.fixture
async def file_engine(db_path):
    """File-backed engine so concurrent sessions use separate connections."""
    engine = build_engine(f"sqlite+aiosqlite:///{db_path}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def file_session_factory(file_engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(file_engine)


@pytest.fixture
def envelope() -> SecretEnvelope:
    return SecretEnvelope(TEST_ENCRYPTION_KEY)


@pytest.fixture
def key_service() -> DryRunKeyService:
    return DryRunKeyService()


async def _add_network(
    session: AsyncSession,
    code: str,
    strategy=DepositStrategy.HD_XPUB,
    scheme: str | None = "bitcoin",
    chain: str | None = None,
    requires_memo: bool = False,
    is_active: bool = True,
) -> NetworkConfig:
    network = Network(
        code=code,
        name=code.title(),
        addressing_scheme=scheme,
        notification_chain_id=chain,
        strategy=strategy.value if isinstance(strategy, DepositStrategy) else strategy,
        requires_memo=requires_memo,
        is_active=is_active,
    )
    session.add(network)
    await session.commit()
    return NetworkConfig.from_model(network)


@pytest.fixture
def make_network(db_session):
    """Factory inserting a network into the in-memory database."""

    async def factory(code: str, **kwargs) -> NetworkConfig:
        return await _add_network(db_session, code, **kwargs)

    return factory


@pytest.fixture
def make_file_network(file_session_factory):
    """Factory inserting a network into the file-backed database."""

    async def factory(code: str, **kwargs) -> NetworkConfig:
        async with file_session_factory() as session:
            return await _add_network(session, code, **kwargs)

    return factory
