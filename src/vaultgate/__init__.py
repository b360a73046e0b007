"""Deposit address allocation for a custodial multi-chain ledger."""

__version__ = "0.1.0"
