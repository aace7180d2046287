import pytest

from clasificados.core.errors import InvalidIdentity
from clasificados.models.user import User
from clasificados.services.users import UserDirectory, parse_external_id


def test_first_sight_creates_user_and_notifies_admin(db, notifier):
    directory = UserDirectory(db, notifier, admin_chat_id="999")
    user_id = directory.resolve_or_create(111, "seller", "Ana", "Lopez")

    user = db.get(User, user_id)
    assert user.telegram_id == 111
    assert user.username == "seller"
    assert len(notifier.messages) == 1
    chat_id, message = notifier.messages[0]
    assert chat_id == "999"
    assert "ID: 111" in message
    assert "@seller" in message


def test_known_user_is_reused_without_notification(db, notifier):
    directory = UserDirectory(db, notifier, admin_chat_id="999")
    first = directory.resolve_or_create(111, "seller")
    second = directory.resolve_or_create("111", "renamed")

    assert first == second
    assert db.query(User).count() == 1
    assert len(notifier.messages) == 1


def test_no_admin_chat_skips_notification(db, notifier):
    UserDirectory(db, notifier, admin_chat_id=None).resolve_or_create(5)
    assert notifier.messages == []


@pytest.mark.parametrize("bad", ["abc", "", None, True, 2 ** 63, "1.5"])
def test_malformed_external_id_is_rejected(bad):
    with pytest.raises(InvalidIdentity):
        parse_external_id(bad)


def test_external_id_accepts_numeric_strings():
    assert parse_external_id(" 123 ") == 123
    assert parse_external_id(-1001234567890) == -1001234567890
