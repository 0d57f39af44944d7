from decimal import Decimal

from pydantic import BaseModel


class AdminStats(BaseModel):
    total_resellers: int
    active_resellers: int
    total_clients: int
    pending_orders: int
    active_subscriptions: int
    total_credit_outstanding: Decimal


class ActivityItem(BaseModel):
    kind: str
    id: int
    user_id: int
    summary: str
    created_at: str | None = None
