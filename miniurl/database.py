from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


class Database:
    """Owns the engine and session factory for one application instance.

    Opened by the app lifespan at startup and disposed at shutdown.
    """

    def __init__(self, url: str):
        self.url = url
        self.engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    def open(self) -> None:
        if self.url.startswith("sqlite"):
            self.engine = create_engine(
                self.url,
                connect_args={"check_same_thread": False},  # needed for SQLite + FastAPI
            )
        else:
            self.engine = create_engine(
                self.url,
                pool_pre_ping=True,
                pool_size=5,
                max_overflow=10,
                pool_timeout=30,
                pool_recycle=1800,
            )
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        # Tables must be registered on Base before create_all
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Iterator[Session]:
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            self._session_factory = None


def get_db(request: Request) -> Iterator[Session]:
    yield from request.app.state.db.session()
