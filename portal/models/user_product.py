from sqlalchemy import Column, Integer, String, ForeignKey, Enum, JSON, Index
from sqlalchemy.orm import relationship
from portal.core.database import Base
from portal.models.base import TimestampMixin
from portal.models.client import SubscriptionStatus


class UserProduct(Base, TimestampMixin):
    __tablename__ = "user_products"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    order_id = Column(Integer, ForeignKey("product_orders.id"), nullable=True, unique=True)
    status = Column(Enum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.ACTIVE)

    # Provider account details, passed through to the provisioning API.
    username = Column(String(128), nullable=True)
    password = Column(String(255), nullable=True)
    sim_iccid = Column(String(64), nullable=True)
    msisdn = Column(String(64), nullable=True)

    user = relationship("User", back_populates="user_products")
    product = relationship("Product")
    endpoints = relationship("UserProductEndpoint", back_populates="user_product", cascade="all, delete-orphan")


class UserProductEndpoint(Base, TimestampMixin):
    __tablename__ = "user_product_endpoints"

    id = Column(Integer, primary_key=True, index=True)
    user_product_id = Column(Integer, ForeignKey("user_products.id"), nullable=False)
    api_setting_id = Column(Integer, ForeignKey("api_settings.id"), nullable=False)
    username = Column(String(128), nullable=True)
    password = Column(String(255), nullable=True)
    custom_parameters = Column(JSON, nullable=True)
    headers = Column(JSON, nullable=True)

    user_product = relationship("UserProduct", back_populates="endpoints")
    api_setting = relationship("ApiSetting")


Index("ix_user_products_user_status", UserProduct.user_id, UserProduct.status)
