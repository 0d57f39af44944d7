import enum
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Enum, Boolean, Index
from sqlalchemy.orm import relationship
from portal.core.database import Base
from portal.models.base import TimestampMixin


class TransactionType(str, enum.Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class Transaction(Base, TimestampMixin):
    """Append-only ledger row. Never updated or deleted once committed."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    reference = Column(String(64), unique=True, nullable=False, index=True)
    tx_type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String(255), nullable=False)
    # False for debit-mode purchases: recorded for accounting, balance untouched.
    affects_balance = Column(Boolean, nullable=False, default=True)

    user = relationship("User", back_populates="transactions")
    client_product = relationship("ClientProduct", back_populates="transaction", uselist=False)


Index("ix_transactions_user_type", Transaction.user_id, Transaction.tx_type)
