from types import SimpleNamespace

from aiogram.enums import ChatMemberStatus
from aiogram.exceptions import TelegramBadRequest
from aiogram.methods import SendMessage

from clasificados.core import telegram
from clasificados.core.config import Settings
from clasificados.core.telegram import (
    NullNotifier, TelegramBotAPI, TelegramNotifier, build_notifier, channel_chat_id, is_subscribed,
)


class FakeBot:
    instances = []

    def __init__(self, token, session=None):
        self.token = token
        self.session = SimpleNamespace(closed=False, close=self._close)
        FakeBot.instances.append(self)

    async def _close(self):
        self.session.closed = True

    async def get_chat_member(self, chat_id, user_id):
        return SimpleNamespace(status=ChatMemberStatus.ADMINISTRATOR, chat_id=chat_id, user_id=user_id)


class FailingAPI:
    def send_message(self, chat_id, text):
        raise TelegramBadRequest(method=SendMessage(chat_id=chat_id, text=text), message="Bad Request: chat not found")


def test_calls_go_through_a_bot_that_is_closed_afterwards(monkeypatch):
    FakeBot.instances = []
    monkeypatch.setattr(telegram, "Bot", FakeBot)
    api = TelegramBotAPI("123456:test-token", base_url="http://bot-api.local/")

    member = api.get_chat_member("@CubaClasificados", 111)

    assert member.user_id == 111
    bot, = FakeBot.instances
    assert bot.token == "123456:test-token"
    assert bot.session.closed


def test_subscription_statuses():
    class API:
        def __init__(self, status):
            self.status = status

        def get_chat_member(self, chat_id, user_id):
            return SimpleNamespace(status=self.status)

    assert is_subscribed(API(ChatMemberStatus.MEMBER), "CubaClasificados", 1)
    assert not is_subscribed(API(ChatMemberStatus.KICKED), "CubaClasificados", 1)
    assert not is_subscribed(API(ChatMemberStatus.RESTRICTED), "CubaClasificados", 1)


def test_channel_chat_id():
    assert channel_chat_id("CubaClasificados") == "@CubaClasificados"
    assert channel_chat_id("@CubaClasificados") == "@CubaClasificados"


def test_notifier_logs_delivery_failures(caplog):
    TelegramNotifier(FailingAPI()).notify(999, "New listing")
    assert "Error sending notification to 999" in caplog.text


def test_build_notifier_without_token():
    assert isinstance(build_notifier(Settings(TELEGRAM_BOT_TOKEN="")), NullNotifier)
    assert isinstance(build_notifier(Settings(TELEGRAM_BOT_TOKEN="123456:test-token")), TelegramNotifier)
