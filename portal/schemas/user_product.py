from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from portal.models.client import SubscriptionStatus
from portal.models.product_category import MasterCategory


class UserProductCreate(BaseModel):
    user_id: int
    product_id: int
    username: Optional[str] = None
    password: Optional[str] = None
    sim_iccid: Optional[str] = None
    msisdn: Optional[str] = None


class UserProductUpdate(BaseModel):
    status: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    sim_iccid: Optional[str] = None
    msisdn: Optional[str] = None


class EndpointOut(BaseModel):
    id: int
    user_product_id: int
    api_setting_id: int
    username: Optional[str] = None
    custom_parameters: Optional[dict[str, Any]] = None
    headers: Optional[dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)


class UserProductOut(BaseModel):
    id: int
    user_id: int
    product_id: int
    order_id: Optional[int] = None
    status: SubscriptionStatus
    username: Optional[str] = None
    sim_iccid: Optional[str] = None
    msisdn: Optional[str] = None
    endpoints: list[EndpointOut] = []

    model_config = ConfigDict(from_attributes=True)


class EndpointCreate(BaseModel):
    api_setting_id: int
    username: Optional[str] = None
    password: Optional[str] = None
    custom_parameters: Optional[dict[str, Any]] = None
    headers: Optional[dict[str, Any]] = None


class EndpointRunRequest(BaseModel):
    params: dict[str, Any] = {}


class ApiSettingIn(BaseModel):
    name: str
    endpoint: str
    master_category: str
    is_enabled: bool = True


class ApiSettingOut(BaseModel):
    id: int
    name: str
    endpoint: str
    master_category: MasterCategory
    is_enabled: bool

    model_config = ConfigDict(from_attributes=True)
