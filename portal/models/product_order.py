import enum
from sqlalchemy import Column, Integer, String, ForeignKey, Enum, DateTime, Index
from sqlalchemy.orm import relationship
from portal.core.database import Base
from portal.models.base import TimestampMixin


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"


class ProvisionMethod(str, enum.Enum):
    COURIER = "courier"
    SELF = "self"


class ProductOrder(Base, TimestampMixin):
    __tablename__ = "product_orders"

    id = Column(Integer, primary_key=True, index=True)
    reseller_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING)
    provision_method = Column(Enum(ProvisionMethod), nullable=False)

    # self
    sim_number = Column(String(64), nullable=True)
    # courier
    address = Column(String(500), nullable=True)
    contact_name = Column(String(255), nullable=True)
    contact_phone = Column(String(32), nullable=True)
    country = Column(String(64), nullable=True)

    rejection_reason = Column(String(1000), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    decided_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    reseller = relationship("User", back_populates="orders", foreign_keys=[reseller_id])
    decided_by = relationship("User", foreign_keys=[decided_by_id])
    client = relationship("Client")
    product = relationship("Product")


Index("ix_product_orders_reseller_status", ProductOrder.reseller_id, ProductOrder.status)
Index("ix_product_orders_status", ProductOrder.status)
