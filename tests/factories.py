import hashlib
import hmac
import json
import time
from urllib.parse import urlencode

from clasificados.schemas.listing import ListingCreate
from clasificados.schemas.user import TelegramIdentity
from clasificados.utils.photo_store import PhotoUpload

BOT_TOKEN = "123456:test-token"
ADMIN_ID = 999
OWNER_ID = 111
OTHER_ID = 222


def identity(external_id=OWNER_ID, username="seller", first_name="Ana", last_name=None):
    return TelegramIdentity(
        external_id=external_id, username=username, first_name=first_name, last_name=last_name
    )


def photo(content=b"photo-1", filename="photo.jpg"):
    return PhotoUpload(filename=filename, content=content, content_type="image/jpeg")


def rent_fields(**overrides):
    data = {
        "category": "rent",
        "scope": "NEIGHBORHOOD",
        "city": "La Habana",
        "neighborhood": "Vedado",
        "title": "Room in Vedado",
        "description": "Bright room close to the Malecon",
        "price": "150",
        "currency": "USD",
        "rent_type": "room",
        "rent_period": "monthly",
    }
    data.update(overrides)
    return ListingCreate(**data)


def item_fields(**overrides):
    data = {
        "category": "items",
        "scope": "CITY",
        "city": "La Habana",
        "title": "Used bicycle",
        "description": "Works fine, new tires",
        "price": "80",
        "item_subcategory": "other",
        "item_condition": "used",
    }
    data.update(overrides)
    return ListingCreate(**data)


def sign_init_data(fields, bot_token=BOT_TOKEN):
    """Signs initData fields the way Telegram does for a Mini App launch."""
    secret = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    check_string = "\n".join(f"{key}={fields[key]}" for key in sorted(fields) if key != "hash")
    return hmac.new(secret, check_string.encode(), hashlib.sha256).hexdigest()


def make_init_data(user_id=OWNER_ID, username="seller", bot_token=BOT_TOKEN, auth_date=None, **user_extra):
    user = {"id": user_id, "first_name": "Ana", "username": username}
    user.update(user_extra)
    fields = {
        "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
        "user": json.dumps(user, separators=(",", ":")),
        "auth_date": str(auth_date if auth_date is not None else int(time.time())),
    }
    fields["hash"] = sign_init_data(fields, bot_token)
    return urlencode(fields)


def auth_headers(user_id=OWNER_ID, username="seller"):
    return {"X-Telegram-Init-Data": make_init_data(user_id, username)}
