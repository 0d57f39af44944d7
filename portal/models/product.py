import enum
from sqlalchemy import Column, Integer, String, Numeric, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship
from portal.core.database import Base
from portal.models.base import TimestampMixin


class ProductStatus(str, enum.Enum):
    ACTIVE = "active"
    LIMITED = "limited"
    OUT_OF_STOCK = "outofstock"


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    base_price = Column(Numeric(12, 2), nullable=False, default=0)
    group1_price = Column(Numeric(12, 2), nullable=False, default=0)
    group2_price = Column(Numeric(12, 2), nullable=False, default=0)
    category_id = Column(Integer, ForeignKey("product_categories.id"), nullable=True)
    status = Column(Enum(ProductStatus), nullable=False, default=ProductStatus.ACTIVE)
    api_endpoint = Column(String(255), nullable=False, default="")
    api_identifier = Column(String(128), nullable=False, default="")

    category = relationship("ProductCategory", back_populates="products")


Index("ix_products_category_status", Product.category_id, Product.status)
