
from typing import Optional, List, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


# Limit/offset page wrapper used by list endpoints
class Page(BaseModel, Generic[T]):
    listings: List[T]
    total: int
    limit: int
    offset: int


# Error responses
class ErrorResponse(BaseModel):
    error: str
    message: str
    detail: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool = True
