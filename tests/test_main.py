"""Tests for the one-shot allocation entry point."""

import base64
import logging

import pytest

from vaultgate.config import get_settings
from vaultgate.errors import ConfigurationError, NotFoundError
from vaultgate.ledger.database import close_db, get_db, init_db
from vaultgate.ledger.models import Network
from vaultgate.main import run_allocation


@pytest.mark.asyncio
async def test_run_allocation_reports_address(caplog):
    await init_db()
    async with get_db() as session:
        session.add(
            Network(code="bitcoin", name="Bitcoin", addressing_scheme="bitcoin",
                    notification_chain_id="bitcoin-mainnet", strategy="HD_XPUB")
        )

    with caplog.at_level(logging.INFO, logger="vaultgate.main"):
        await run_allocation("bitcoin")

    messages = [r.getMessage() for r in caplog.records]
    assert "[deposit.index] 0" in messages
    assert any(m.startswith("[deposit.address] sim:bitcoin:") for m in messages)
    assert "[deposit.balance] 0" in messages


@pytest.mark.asyncio
async def test_run_allocation_unknown_network():
    with pytest.raises(NotFoundError):
        await run_allocation("nowhere")


@pytest.mark.asyncio
async def test_bad_key_fails_before_allocation(monkeypatch):
    monkeypatch.setattr(
        get_settings(), "mnemonic_enc_key", base64.b64encode(bytes(31)).decode()
    )

    with pytest.raises(ConfigurationError):
        await run_allocation("bitcoin")

    await close_db()
