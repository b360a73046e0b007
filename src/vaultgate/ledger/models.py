"""SQLAlchemy models for networks and master wallets."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Network(Base):
    """Supported blockchain network.

    Maintained by the network catalog; read-only for allocation.
    """

    __tablename__ = "networks"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Key Service routing, e.g. "bitcoin", "ethereum", "xrp"
    addressing_scheme: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    # Notification Service chain id, e.g. "bitcoin-mainnet"
    notification_chain_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    requires_memo: Mapped[bool] = mapped_column(Boolean, default=False)
    strategy: Mapped[str] = mapped_column(String(32), nullable=False, default="HD_XPUB")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    master_wallet: Mapped[Optional["MasterWallet"]] = relationship(
        back_populates="network", uselist=False
    )


class MasterWallet(Base):
    """The one master wallet record per network.

    Key fields are filled once and never overwritten. Counters are only
    ever advanced by an atomic UPDATE ... RETURNING.
    """

    __tablename__ = "master_wallets"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    network_id: Mapped[int] = mapped_column(
        ForeignKey("networks.id"), unique=True, nullable=False, index=True
    )

    extended_public_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    single_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    encrypted_secret: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # envelope

    next_derivation_index: Mapped[int] = mapped_column(default=0, nullable=False)
    next_deposit_tag: Mapped[int] = mapped_column(default=1, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    network: Mapped["Network"] = relationship(back_populates="master_wallet")
