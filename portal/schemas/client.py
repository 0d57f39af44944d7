from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from portal.models.client import SubscriptionStatus


class ClientCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    reseller_id: Optional[int] = None


class ClientOut(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    reseller_id: int

    model_config = ConfigDict(from_attributes=True)


class PurchaseRequest(BaseModel):
    product_id: int
    reference_date: Optional[date] = None
    idempotency_key: Optional[str] = Field(default=None, max_length=64)


class ClientProductStatusUpdate(BaseModel):
    status: str


class ClientProductOut(BaseModel):
    id: int
    client_id: int
    product_id: int
    transaction_id: Optional[int] = None
    status: SubscriptionStatus
    charged_amount: Decimal
    last_billed_date: Optional[datetime] = None
    next_billing_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
