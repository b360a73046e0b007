"""Key Service and Notification Service base interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class GeneratedWallet:
    """Wallet material returned by a Key Service.

    HD schemes return an extended public key plus a mnemonic; flat-key
    schemes return an address plus a private key or secret.
    """

    extended_public_key: Optional[str] = None
    secret: Optional[str] = None
    address: Optional[str] = None

    def __repr__(self) -> str:
        # Never render the secret
        return (
            f"GeneratedWallet(extended_public_key={self.extended_public_key!r}, "
            f"address={self.address!r}, secret={'***' if self.secret else None})"
        )


class KeyService(ABC):
    """Abstract base class for remote key generation and address derivation."""

    @abstractmethod
    async def generate_wallet(self, addressing_scheme: str) -> GeneratedWallet:
        """Generate a new wallet for an addressing scheme.

        Args:
            addressing_scheme: Key Service routine, e.g. "bitcoin", "xrp"

        Returns:
            GeneratedWallet with whichever fields the scheme provides
        """
        raise NotImplementedError()

    @abstractmethod
    async def derive_address(
        self, addressing_scheme: str, extended_public_key: str, index: int
    ) -> str:
        """Derive the address at a child index of an extended public key."""
        raise NotImplementedError()

    @abstractmethod
    async def get_balance(self, addressing_scheme: str, address: str) -> str:
        """Best-effort balance lookup; the format is service-defined."""
        raise NotImplementedError()

    @property
    @abstractmethod
    def name(self) -> str:
        """Service name."""
        raise NotImplementedError()


class NotificationService(ABC):
    """Abstract base class for address event subscriptions."""

    @abstractmethod
    async def subscribe(self, chain_id: str, address: str, callback_url: str) -> str:
        """Subscribe to incoming transactions on an address.

        Returns:
            Subscription ID assigned by the service
        """
        raise NotImplementedError()

    @property
    @abstractmethod
    def name(self) -> str:
        """Service name."""
        raise NotImplementedError()
