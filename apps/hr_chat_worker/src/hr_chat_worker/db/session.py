"""Engine and per-request session wiring for the worker store."""

from collections.abc import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from hr_chat_worker.core.settings import get_settings


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Build the session factory; committed rows stay loaded."""

    return sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        expire_on_commit=False,
    )


engine = create_engine(get_settings().database_url, pool_pre_ping=True)

SessionFactory = create_session_factory(engine)


def get_db_session() -> Generator[Session, None, None]:
    """Yield one session per push delivery or API request."""

    with SessionFactory() as session:
        yield session
