"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from walletbot.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Party(Base):
    __tablename__ = "parties"

    conversation_id = Column(String(64), primary_key=True)
    handle = Column(String(64))
    phone_number = Column(String(20), unique=True, index=True)
    balance_cents = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    transactions = relationship(
        "LedgerTransaction",
        back_populates="party",
        foreign_keys="LedgerTransaction.conversation_id",
    )


class LedgerTransaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    reference = Column(String(100), unique=True, nullable=False, index=True)
    conversation_id = Column(String(64), ForeignKey("parties.conversation_id"), nullable=False, index=True)
    counterparty_id = Column(String(64), ForeignKey("parties.conversation_id"), nullable=True)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(10), nullable=False, default="ETB")
    status = Column(String(20), nullable=False, default="pending")  # pending, success, failed, completed
    kind = Column(String(20), nullable=False)  # deposit, withdrawal, transfer
    details = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    party = relationship("Party", back_populates="transactions", foreign_keys=[conversation_id])


class DepositOrder(Base):
    __tablename__ = "deposit_orders"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    reference = Column(String(100), unique=True, nullable=False, index=True)
    conversation_id = Column(String(64), ForeignKey("parties.conversation_id"), nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(10), nullable=False, default="ETB")
    status = Column(String(20), nullable=False, default="pending")  # pending, success, failed
    checkout_url = Column(String(500))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    confirmed_at = Column(DateTime(timezone=True))

    party = relationship("Party")
