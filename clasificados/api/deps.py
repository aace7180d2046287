from typing import Optional

from fastapi import Depends, Header, Query, Request
from sqlalchemy.orm import Session

from clasificados.core.config import Settings
from clasificados.core.errors import Unauthenticated
from clasificados.core.security import authenticate_init_data
from clasificados.db.session import get_db
from clasificados.schemas.user import TelegramIdentity
from clasificados.services.listings import ListingService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_optional_identity(
    settings: Settings = Depends(get_settings),
    init_data_header: Optional[str] = Header(None, alias="X-Telegram-Init-Data"),
    init_data_query: Optional[str] = Query(None, alias="initData"),
) -> Optional[TelegramIdentity]:
    """Caller identity from Telegram initData (header first, then query), if valid."""
    return authenticate_init_data(
        init_data_header or init_data_query,
        settings.TELEGRAM_BOT_TOKEN,
        settings.INIT_DATA_MAX_AGE_SECONDS,
    )


def get_current_identity(
    identity: Optional[TelegramIdentity] = Depends(get_optional_identity),
) -> TelegramIdentity:
    if identity is None:
        raise Unauthenticated("Telegram authentication required")
    return identity


def get_listing_service(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ListingService:
    state = request.app.state
    return ListingService(
        db,
        photo_store=state.photo_store,
        admin_policy=state.admin_policy,
        notifier=state.notifier,
        settings=settings,
    )
