from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from portal.models.product_order import OrderStatus, ProvisionMethod


class OrderCreate(BaseModel):
    client_id: int
    product_id: int
    provision_method: str
    sim_number: Optional[str] = None
    address: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    country: Optional[str] = None


class OrderDecision(BaseModel):
    decision: str
    rejection_reason: Optional[str] = None


class OrderOut(BaseModel):
    id: int
    reseller_id: int
    client_id: int
    product_id: int
    status: OrderStatus
    provision_method: ProvisionMethod
    sim_number: Optional[str] = None
    address: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    country: Optional[str] = None
    rejection_reason: Optional[str] = None
    decided_at: Optional[datetime] = None
    decided_by_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
