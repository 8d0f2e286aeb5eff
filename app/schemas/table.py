"""Restaurant table schemas"""

from typing import Optional
from pydantic import BaseModel


class TableCreate(BaseModel):
    capacity: Optional[int] = None


class TableUpdate(BaseModel):
    capacity: Optional[int] = None


class TableResponse(BaseModel):
    id: int
    capacity: int

    class Config:
        from_attributes = True
