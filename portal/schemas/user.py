from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from portal.models.user import PaymentMode, UserRole
from portal.schemas.auth import _validate_password_length


class UserOut(BaseModel):
    id: int
    username: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    payment_mode: PaymentMode
    credit_balance: Decimal
    reseller_group: int

    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=8)
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.RESELLER
    payment_mode: PaymentMode = PaymentMode.CREDIT
    reseller_group: int = Field(default=1, ge=1)
    opening_balance: Decimal = Decimal("0")

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        return _validate_password_length(value)


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
    payment_mode: Optional[PaymentMode] = None
    reseller_group: Optional[int] = Field(default=None, ge=1)


class CreditAdjustRequest(BaseModel):
    amount: Decimal
    direction: str
    description: Optional[str] = None


class BalanceCheckOut(BaseModel):
    user_id: int
    stored: Decimal
    derived: Decimal
    consistent: bool


class DashboardConfig(BaseModel):
    config: dict[str, Any]
