import enum
from sqlalchemy import Column, Integer, String, Boolean, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship
from portal.core.database import Base
from portal.models.base import TimestampMixin


class MasterCategory(str, enum.Enum):
    MTN_FIXED = "MTN Fixed"
    MTN_GSM = "MTN GSM"


class ProductCategory(Base, TimestampMixin):
    __tablename__ = "product_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False)
    master_category = Column(
        Enum(MasterCategory, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MasterCategory.MTN_FIXED,
    )
    description = Column(String(255), nullable=False, default="")
    parent_id = Column(Integer, ForeignKey("product_categories.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    parent = relationship("ProductCategory", remote_side=[id], back_populates="children")
    children = relationship("ProductCategory", back_populates="parent")
    products = relationship("Product", back_populates="category")


Index("ix_product_categories_master_parent", ProductCategory.master_category, ProductCategory.parent_id)
