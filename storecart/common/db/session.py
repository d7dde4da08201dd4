from contextlib import contextmanager
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.base import Base
from ..models import cart_snapshot  # noqa: F401  registers the table on Base.metadata


def _sqlite_file(database_url: str):
    if not database_url.startswith("sqlite:///") or ":memory:" in database_url:
        return None
    return Path(database_url[len("sqlite:///"):]).expanduser()


def create_session_factory(database_url: str):
    """Return a context manager factory yielding sessions bound to `database_url`.

    Each session commits on success and rolls back on error. Tables are
    created up front. In-memory sqlite shares one connection so every session
    sees the same database.
    """
    db_file = _sqlite_file(database_url)
    if db_file is not None:
        # sqlite will not create missing directories
        db_file.resolve().parent.mkdir(parents=True, exist_ok=True)
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        engine = create_engine(
            database_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_url, future=True)
    Base.metadata.create_all(engine)
    session_local = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)

    @contextmanager
    def get_session():
        session = session_local()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return get_session
