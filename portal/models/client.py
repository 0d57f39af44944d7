import enum
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Enum, DateTime, Index
from sqlalchemy.orm import relationship
from portal.core.database import Base
from portal.models.base import TimestampMixin


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class Client(Base, TimestampMixin):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    address = Column(String(500), nullable=True)
    reseller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    reseller = relationship("User", back_populates="clients")
    products = relationship("ClientProduct", back_populates="client")


class ClientProduct(Base, TimestampMixin):
    __tablename__ = "client_products"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True, unique=True)
    status = Column(Enum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.ACTIVE)
    charged_amount = Column(Numeric(12, 2), nullable=False, default=0)
    last_billed_date = Column(DateTime(timezone=True), nullable=True)
    next_billing_date = Column(DateTime(timezone=True), nullable=True)

    client = relationship("Client", back_populates="products")
    product = relationship("Product")
    transaction = relationship("Transaction", back_populates="client_product")


Index("ix_client_products_client_status", ClientProduct.client_id, ClientProduct.status)
