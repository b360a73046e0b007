"""Deposit address allocation."""

from vaultgate.allocation.counters import CounterAllocator
from vaultgate.allocation.engine import AllocationEngine
from vaultgate.allocation.resolver import HdMaster, MasterWalletResolver, SingleAddress
from vaultgate.allocation.strategies import (
    DepositStrategy,
    DepositTarget,
    NetworkConfig,
    parse_strategy,
)

__all__ = [
    "AllocationEngine",
    "CounterAllocator",
    "MasterWalletResolver",
    "HdMaster",
    "SingleAddress",
    "DepositStrategy",
    "DepositTarget",
    "NetworkConfig",
    "parse_strategy",
]
