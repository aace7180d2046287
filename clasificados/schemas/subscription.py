from typing import Optional
from pydantic import BaseModel


class SubscriptionCheck(BaseModel):
    userId: Optional[int] = None


class SubscriptionStatus(BaseModel):
    subscribed: bool
    channel: str
    warning: Optional[str] = None
