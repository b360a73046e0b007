"""Persistence for networks and per-network master wallets."""

from vaultgate.ledger.database import close_db, get_db, init_db
from vaultgate.ledger.models import Base, MasterWallet, Network
from vaultgate.ledger.repository import WalletCounter, WalletRepository
from vaultgate.ledger.snapshot import WalletSnapshot, merge_empty_fields

__all__ = [
    # Models
    "Base",
    "MasterWallet",
    "Network",
    # Snapshots
    "WalletSnapshot",
    "merge_empty_fields",
    # Database
    "get_db",
    "init_db",
    "close_db",
    "WalletCounter",
    "WalletRepository",
]
