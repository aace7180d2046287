import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from clasificados.api.v1.router import api_router
from clasificados.core.config import Settings, get_settings
from clasificados.core.errors import ClasificadosError, clasificados_error_handler
from clasificados.core.log import configure_logging
from clasificados.core.permissions import AdminPolicy
from clasificados.core.telegram import build_bot_api, build_notifier
from clasificados.db.init_db import create_database, init_db
from clasificados.db.session import make_engine, make_session_factory
from clasificados.utils.photo_store import PhotoStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database(app.state.settings)
    init_db(app.state.engine)
    app.state.photo_store.ensure_root()
    logger.info("%s started (%s)", app.state.settings.PROJECT_NAME, app.state.settings.ENVIRONMENT)
    yield

    # Shutdown: release pooled connections
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

    engine = make_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.photo_store = PhotoStore(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
    app.state.admin_policy = AdminPolicy.from_settings(settings)
    app.state.bot_api = build_bot_api(settings)
    app.state.notifier = build_notifier(settings)

    # Set all CORS enabled origins
    origins = [origin.strip() for origin in settings.FRONTEND_URL.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ClasificadosError, clasificados_error_handler)
    app.include_router(api_router, prefix=settings.API_V1_STR)
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )

    @app.get("/")
    def read_root():
        return {"Hello": settings.PROJECT_NAME}

    return app


app = create_app()
