"""
Common Pydantic schemas
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard success envelope"""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class ErrorResponse(BaseModel):
    """Error envelope"""

    success: bool = False
    error: str
    remaining: Optional[int] = None
    details: Optional[Any] = None
