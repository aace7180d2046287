import logging
import time
from typing import Optional

from aiogram.utils.web_app import WebAppInitData, safe_parse_webapp_init_data

from clasificados.schemas.user import TelegramIdentity

logger = logging.getLogger(__name__)


def parse_init_data(init_data: str, bot_token: str, max_age_seconds: int = 0) -> WebAppInitData:
    """
    Checks the Mini App initData signature against the bot token and parses it.
    With `max_age_seconds` set, an older `auth_date` is rejected too.
    Raises ValueError on any failure.
    """
    if not init_data or not bot_token:
        raise ValueError("Missing init data or bot token")
    data = safe_parse_webapp_init_data(token=bot_token, init_data=init_data)
    if max_age_seconds and time.time() - data.auth_date.timestamp() > max_age_seconds:
        raise ValueError("Init data is too old")
    return data


def verify_init_data(init_data: str, bot_token: str, max_age_seconds: int = 0) -> bool:
    try:
        parse_init_data(init_data, bot_token, max_age_seconds)
    except ValueError:
        return False
    return True


def identity_from_init_data(data: WebAppInitData) -> Optional[TelegramIdentity]:
    if data.user is None:
        return None
    return TelegramIdentity(
        external_id=data.user.id,
        username=data.user.username,
        first_name=data.user.first_name,
        last_name=data.user.last_name,
    )


def authenticate_init_data(
    init_data: Optional[str], bot_token: str, max_age_seconds: int = 0
) -> Optional[TelegramIdentity]:
    if not init_data:
        return None
    try:
        data = parse_init_data(init_data, bot_token, max_age_seconds)
    except ValueError as e:
        logger.warning("Invalid Telegram initData: %s", e)
        return None
    return identity_from_init_data(data)
