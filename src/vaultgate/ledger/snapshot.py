"""Immutable view of a master wallet row and the fill-empty merge."""

from dataclasses import dataclass, fields
from typing import Optional

# Key material columns; once non-empty they are never replaced
KEY_FIELDS = ("extended_public_key", "single_address", "encrypted_secret")


@dataclass(frozen=True)
class WalletSnapshot:
    """Point-in-time copy of a MasterWallet row."""

    network_id: int
    extended_public_key: Optional[str] = None
    single_address: Optional[str] = None
    encrypted_secret: Optional[str] = None
    next_derivation_index: int = 0
    next_deposit_tag: int = 1
    is_active: bool = True

    @classmethod
    def from_row(cls, row) -> "WalletSnapshot":
        """Build from an ORM object or a RETURNING/SELECT row with matching names."""
        return cls(**{f.name: getattr(row, f.name) for f in fields(cls)})

    @property
    def has_hd_master(self) -> bool:
        return bool(self.extended_public_key) and bool(self.encrypted_secret)


def merge_empty_fields(snapshot: WalletSnapshot, patch: dict[str, Optional[str]]) -> dict[str, str]:
    """Restrict a patch to key fields that are still empty in the snapshot.

    Args:
        snapshot: Current state of the wallet row
        patch: Candidate values keyed by KEY_FIELDS name

    Returns:
        The subset of the patch that may be written. Fields already holding a
        value, and empty candidate values, are dropped.

    Raises:
        ValueError: If the patch names a column that is not key material
    """
    unknown = set(patch) - set(KEY_FIELDS)
    if unknown:
        raise ValueError(f"Not a key material field: {', '.join(sorted(unknown))}")

    return {
        name: value
        for name, value in patch.items()
        if value and not getattr(snapshot, name)
    }
