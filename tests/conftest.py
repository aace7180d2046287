import pytest
from fastapi.testclient import TestClient

from clasificados.core.config import Settings
from clasificados.core.permissions import AdminPolicy
from clasificados.db.init_db import init_db
from clasificados.db.session import make_engine, make_session_factory
from clasificados.main import create_app
from clasificados.services.listings import ListingService
from clasificados.utils.photo_store import PhotoStore

from factories import ADMIN_ID, BOT_TOKEN


class StubNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, chat_id, message):
        self.messages.append((str(chat_id), message))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        ENVIRONMENT="development",
        DATABASE_URL=f"sqlite:///{tmp_path / 'clasificados.db'}",
        TELEGRAM_BOT_TOKEN=BOT_TOKEN,
        TELEGRAM_ADMIN_ID=str(ADMIN_ID),
        TELEGRAM_ADMIN_IDS="777, 888",
        UPLOAD_DIR=str(tmp_path / "uploads"),
    )


@pytest.fixture
def engine(settings):
    engine = make_engine(settings)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = make_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return StubNotifier()


@pytest.fixture
def photo_store(settings):
    store = PhotoStore(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
    store.ensure_root()
    return store


@pytest.fixture
def service(db, photo_store, notifier, settings):
    return ListingService(
        db,
        photo_store=photo_store,
        admin_policy=AdminPolicy.from_settings(settings),
        notifier=notifier,
        settings=settings,
    )


@pytest.fixture
def app(settings, notifier):
    app = create_app(settings)
    app.state.notifier = notifier
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
