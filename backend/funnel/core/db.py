import logging

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

# Register every table on SQLModel.metadata before create_all runs.
from funnel import models  # noqa: F401

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str) -> Engine:
    connect_args: dict = {}
    if database_url.startswith("sqlite"):
        # Request handlers run in a threadpool; SQLite must allow cross-thread use.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    # Tables are created directly from the models; there is no migration history.
    SQLModel.metadata.create_all(engine)
    logger.info("Database schema ready on %s", engine.url.render_as_string(hide_password=True))
