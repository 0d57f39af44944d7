from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from portal.models.transaction import TransactionType


class TransactionOut(BaseModel):
    id: int
    user_id: int
    reference: str
    tx_type: TransactionType
    amount: Decimal
    description: str
    affects_balance: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
