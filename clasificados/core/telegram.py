
import asyncio
import logging
from typing import Protocol, Union, Optional

from aiogram import Bot
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.client.telegram import TelegramAPIServer
from aiogram.enums import ChatMemberStatus
from aiogram.exceptions import TelegramAPIError

from clasificados.core.config import Settings

logger = logging.getLogger(__name__)

SUBSCRIBED_STATUSES = {
    ChatMemberStatus.MEMBER,
    ChatMemberStatus.ADMINISTRATOR,
    ChatMemberStatus.CREATOR,
}

ChatId = Union[int, str]


class TelegramBotAPI:
    """
    Blocking facade over aiogram's Bot for code served from the request
    threadpool. Each call runs on its own event loop with a fresh session.
    """

    def __init__(self, token: str, base_url: str = "https://api.telegram.org", timeout: float = 10.0):
        self.token = token
        self.server = TelegramAPIServer.from_base(base_url.rstrip("/"))
        self.timeout = timeout

    async def _call(self, method: str, **kwargs):
        bot = Bot(self.token, session=AiohttpSession(api=self.server, timeout=self.timeout))
        try:
            return await getattr(bot, method)(**kwargs)
        finally:
            await bot.session.close()

    def send_message(self, chat_id: ChatId, text: str):
        return asyncio.run(self._call("send_message", chat_id=chat_id, text=text))

    def get_chat_member(self, chat_id: ChatId, user_id: int):
        return asyncio.run(self._call("get_chat_member", chat_id=chat_id, user_id=user_id))


def channel_chat_id(channel: str) -> str:
    return channel if channel.startswith("@") else f"@{channel}"


def is_subscribed(api: TelegramBotAPI, channel: str, user_id: int) -> bool:
    member = api.get_chat_member(channel_chat_id(channel), user_id)
    return member.status in SUBSCRIBED_STATUSES


# ---------------------------------------------------------------------------
# Notifiers
# ---------------------------------------------------------------------------


class Notifier(Protocol):
    def notify(self, chat_id: ChatId, message: str) -> None: ...


class NullNotifier:
    def notify(self, chat_id: ChatId, message: str) -> None:
        logger.info("Notifications disabled, dropping message for %s", chat_id)


class TelegramNotifier:
    """Fire-and-forget: delivery failures are logged, never raised."""

    def __init__(self, api: TelegramBotAPI):
        self.api = api

    def notify(self, chat_id: ChatId, message: str) -> None:
        try:
            self.api.send_message(chat_id, message)
            logger.info("Notification sent to %s", chat_id)
        except TelegramAPIError as e:
            logger.error("Error sending notification to %s: %s", chat_id, e)


def build_bot_api(settings: Settings) -> Optional[TelegramBotAPI]:
    if not settings.TELEGRAM_BOT_TOKEN:
        return None
    return TelegramBotAPI(
        settings.TELEGRAM_BOT_TOKEN,
        base_url=settings.TELEGRAM_API_URL,
        timeout=settings.TELEGRAM_TIMEOUT_SECONDS,
    )


def build_notifier(settings: Settings) -> Notifier:
    api = build_bot_api(settings)
    if api is None:
        logger.warning("TELEGRAM_BOT_TOKEN not set, admin notifications disabled")
        return NullNotifier()
    return TelegramNotifier(api)
