
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clasificados.core.errors import InvalidIdentity
from clasificados.core.telegram import Notifier
from clasificados.models.user import User

logger = logging.getLogger(__name__)

BIGINT_MIN = -(2 ** 63)
BIGINT_MAX = 2 ** 63 - 1


def parse_external_id(external_id: Union[int, str, None]) -> int:
    if isinstance(external_id, bool):
        raise InvalidIdentity("Invalid Telegram user id")
    try:
        value = int(external_id)
    except (TypeError, ValueError):
        raise InvalidIdentity("Invalid Telegram user id")
    if not BIGINT_MIN <= value <= BIGINT_MAX:
        raise InvalidIdentity("Invalid Telegram user id")
    return value


class UserDirectory:
    """Maps Telegram ids to internal users, creating them on first sight."""

    def __init__(self, db: Session, notifier: Notifier, admin_chat_id: Optional[str] = None):
        self.db = db
        self.notifier = notifier
        self.admin_chat_id = admin_chat_id

    def get_by_external_id(self, telegram_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.telegram_id == telegram_id).first()

    def resolve_or_create(
        self,
        external_id: Union[int, str],
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> int:
        telegram_id = parse_external_id(external_id)

        user = self.get_by_external_id(telegram_id)
        if user:
            logger.debug("Found existing user telegram_id=%s user_id=%s", telegram_id, user.id)
            return user.id

        user = User(
            telegram_id=telegram_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a first-sight race: the unique constraint says the row exists now
            self.db.rollback()
            existing = self.get_by_external_id(telegram_id)
            if existing is None:
                raise
            return existing.id

        logger.info("Created new user telegram_id=%s username=%s", telegram_id, username)
        self._notify_new_user(telegram_id, username, first_name, last_name)
        return user.id

    def _notify_new_user(self, telegram_id, username, first_name, last_name) -> None:
        if not self.admin_chat_id:
            logger.info("TELEGRAM_ADMIN_ID not set, skipping new user notification")
            return
        message = "\n".join([
            "New user started using the app!",
            "",
            f"ID: {telegram_id}",
            f"Name: {first_name or 'not set'} {last_name or ''}".rstrip(),
            f"Username: @{username or 'not set'}",
            f"Time: {datetime.now(timezone.utc):%Y-%m-%d %H:%M:%S} UTC",
        ])
        self.notifier.notify(self.admin_chat_id, message)
