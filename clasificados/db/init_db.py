
import logging

import psycopg2
from psycopg2 import sql
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from sqlalchemy.engine import Engine, make_url

from clasificados.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def create_database(settings: Settings) -> None:
    """Create the target PostgreSQL database if it doesn't exist."""
    url = make_url(settings.DATABASE_URL or settings.assemble_db_url())
    if not url.drivername.startswith("postgresql"):
        return

    try:
        # Connect to default 'postgres' database to check/create target DB
        con = psycopg2.connect(
            user=url.username,
            password=url.password,
            host=url.host,
            port=url.port or 5432,
            dbname="postgres",
            connect_timeout=settings.DB_CONNECT_TIMEOUT,
        )
        con.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
        cur = con.cursor()

        cur.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (url.database,))
        exists = cur.fetchone()

        if not exists:
            logger.info("Database %s does not exist. Creating...", url.database)
            cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(url.database)))
            logger.info("Database %s created successfully.", url.database)
        else:
            logger.info("Database %s already exists.", url.database)

        cur.close()
        con.close()
    except psycopg2.Error as e:
        logger.error("Error creating database: %s", e)
        # Proceeding anyway, maybe it exists or connection params are for the target DB directly


def init_db(engine: Engine) -> None:
    from clasificados.db.base import Base

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables verified")


if __name__ == "__main__":
    create_database(get_settings())
