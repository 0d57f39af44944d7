from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from portal.models.product import ProductStatus
from portal.models.product_category import MasterCategory


class CategoryCreate(BaseModel):
    name: str
    master_category: str = MasterCategory.MTN_FIXED.value
    description: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    master_category: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryOut(BaseModel):
    id: int
    name: str
    master_category: MasterCategory
    description: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CategoryTreeOut(CategoryOut):
    children: list[CategoryOut] = []


class ProductCreate(BaseModel):
    name: str
    description: Optional[str] = None
    base_price: Decimal
    group1_price: Decimal
    group2_price: Decimal
    category_id: Optional[int] = None
    status: str = ProductStatus.ACTIVE.value
    api_endpoint: Optional[str] = None
    api_identifier: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[Decimal] = None
    group1_price: Optional[Decimal] = None
    group2_price: Optional[Decimal] = None
    category_id: Optional[int] = None
    status: Optional[str] = None
    api_endpoint: Optional[str] = None
    api_identifier: Optional[str] = None


class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    base_price: Decimal
    group1_price: Decimal
    group2_price: Decimal
    category_id: Optional[int] = None
    status: ProductStatus
    api_endpoint: Optional[str] = None
    api_identifier: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class QuoteOut(BaseModel):
    product_id: int
    reference_date: date
    group_price: Decimal
    final_price: Decimal
    days_remaining: int
    total_days_in_month: int


class PricedProductOut(BaseModel):
    id: int
    name: str
    category_id: Optional[int] = None
    status: ProductStatus
    group_price: Decimal
    prorated_price: Decimal
    days_remaining: int
    total_days_in_month: int
