"""Bill schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel


class BillResponse(BaseModel):
    id: int
    reservation_id: int
    amount_before_discount: Decimal
    final_amount: Decimal
    paid: bool
    paid_at: Optional[datetime]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
