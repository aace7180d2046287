
from typing import Optional
from pydantic import BaseModel


# Verified caller, as carried by Telegram initData
class TelegramIdentity(BaseModel):
    external_id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AdminCheck(BaseModel):
    isAdmin: bool
