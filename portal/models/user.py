import enum
from sqlalchemy import Column, Integer, String, Boolean, Enum, Index, Numeric, JSON
from sqlalchemy.orm import relationship
from portal.core.database import Base
from portal.models.base import TimestampMixin


class UserRole(str, enum.Enum):
    RESELLER = "reseller"
    ADMIN = "admin"


class PaymentMode(str, enum.Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.RESELLER)
    is_active = Column(Boolean, default=True, nullable=False)

    payment_mode = Column(Enum(PaymentMode), nullable=False, default=PaymentMode.CREDIT)
    # credit_balance is denormalized: opening_balance + replayed balance-affecting transactions.
    opening_balance = Column(Numeric(12, 2), nullable=False, default=0)
    credit_balance = Column(Numeric(12, 2), nullable=False, default=0)
    reseller_group = Column(Integer, nullable=False, default=1)

    # Owned by the dashboard designer UI; stored verbatim.
    dashboard_config = Column(JSON, nullable=True)

    transactions = relationship("Transaction", back_populates="user")
    clients = relationship("Client", back_populates="reseller")
    orders = relationship("ProductOrder", back_populates="reseller", foreign_keys="ProductOrder.reseller_id")
    user_products = relationship("UserProduct", back_populates="user")
    api_logs = relationship("ApiLog", back_populates="user")


Index("ix_users_role_active", User.role, User.is_active)
