import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from credittalk_auth.config import settings
from credittalk_auth.errors import StorageError

LOGGER = logging.getLogger(__name__)


def _build_database_url(raw_url: str) -> str:
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return raw_url


def build_engine(raw_url: str, **kwargs):
    url = _build_database_url(raw_url)
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, echo=settings.database_echo, **kwargs)


def build_session_factory(bind) -> sessionmaker:
    return sessionmaker(
        bind=bind, autoflush=False, autocommit=False, expire_on_commit=False
    )


engine = build_engine(settings.database_url)
SessionLocal = build_session_factory(engine)
Base = declarative_base()


def init_db(bind=None) -> None:
    from credittalk_auth.models import identity as _identity  # noqa: F401
    from credittalk_auth.models import profile as _profile  # noqa: F401
    from credittalk_auth.models import verification as _verification  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def session_scope(factory: sessionmaker = SessionLocal):
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def storage_scope(factory: sessionmaker, action: str):
    """Like session_scope, but database failures surface as StorageError."""
    try:
        with session_scope(factory) as session:
            yield session
    except SQLAlchemyError as exc:
        LOGGER.error("Database error while trying to %s: %s", action, exc)
        raise StorageError(f"Failed to {action}") from exc
