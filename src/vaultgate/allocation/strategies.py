"""Allocation strategies and the values passed in and out of the engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from vaultgate.errors import UnsupportedStrategyError


class DepositStrategy(str, Enum):
    """How a network issues deposit addresses."""

    HD_XPUB = "HD_XPUB"                            # new child address per deposit
    WALLET_SINGLE_ADDR = "WALLET_SINGLE_ADDR"      # one address forever
    WALLET_PER_DEPOSIT = "WALLET_PER_DEPOSIT"      # new wallet per deposit
    SHARED_ADDR_WITH_TAG = "SHARED_ADDR_WITH_TAG"  # one address plus memo/tag


def parse_strategy(value: object, network_code: str = "") -> DepositStrategy:
    """Coerce a stored strategy value into DepositStrategy.

    Raises:
        UnsupportedStrategyError: If the value is not a known strategy
    """
    if isinstance(value, DepositStrategy):
        return value
    try:
        return DepositStrategy(value)
    except ValueError:
        raise UnsupportedStrategyError(value, network_code) from None


@dataclass(frozen=True)
class NetworkConfig:
    """Read-only network settings relevant to allocation.

    strategy is kept as stored so that a corrupt value surfaces as an
    UnsupportedStrategyError at dispatch time.
    """

    id: int
    code: str
    addressing_scheme: Optional[str]
    strategy: object
    notification_chain_id: Optional[str] = None
    requires_memo: bool = False
    is_active: bool = True

    @classmethod
    def from_model(cls, network) -> "NetworkConfig":
        return cls(
            id=network.id,
            code=network.code,
            addressing_scheme=network.addressing_scheme,
            strategy=network.strategy,
            notification_chain_id=network.notification_chain_id,
            requires_memo=bool(network.requires_memo),
            is_active=bool(network.is_active),
        )


@dataclass(frozen=True)
class DepositTarget:
    """Where a user should send a deposit.

    encrypted_secret is only set for WALLET_PER_DEPOSIT; the caller stores
    it with the ledger entry that owns the address.
    """

    address: str
    strategy: DepositStrategy
    address_extra: Optional[str] = None
    derivation_index: Optional[int] = None
    encrypted_secret: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "address_extra": self.address_extra,
            "derivation_index": self.derivation_index,
            "strategy": self.strategy.value,
        }
