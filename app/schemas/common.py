"""Shared response schemas"""

from typing import Any, Dict
from pydantic import BaseModel


class OperationResponse(BaseModel):
    """Outcome of an engine operation; business rejections have success=false"""
    success: bool
    message: str
    data: Dict[str, Any] = {}
