"""Response envelope shared by every API endpoint"""
from pydantic import BaseModel
from typing import Any, Dict, Optional


class BaseResponse(BaseModel):
    success: bool = True
    data: Optional[Any] = None
    metadata: Optional[Dict[str, Any]] = None
