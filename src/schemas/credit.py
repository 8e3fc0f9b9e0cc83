from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.utils.constants import CreditTransactionType


class CreditBalanceOut(BaseModel):
    user_id: str
    balance: int = 0
    total_purchased: int = 0
    total_used: int = 0

    model_config = ConfigDict(from_attributes=True)


class CreditTransactionOut(BaseModel):
    id: int
    user_id: str
    amount: int
    type: CreditTransactionType
    description: Optional[str] = None
    reference_id: Optional[str] = None
    balance_after: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CreditAdjustRequest(BaseModel):
    user_id: str
    amount: int
    reason: str = Field(..., min_length=1, max_length=500)
    confirmation: str


class CreditAdjustResult(BaseModel):
    user_id: str
    amount: int
    previous_balance: int
    new_balance: int
