from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from inventory_health.config import settings


def build_engine(url: str, **kwargs) -> Engine:
    engine = create_engine(url, pool_pre_ping=not url.startswith('sqlite'), **kwargs)
    if engine.dialect.name == 'sqlite':
        # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
        @event.listens_for(engine, 'connect')
        def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

    return engine


engine = build_engine(settings.database_url_normalized)
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def get_db() -> Iterator[Session]:
    with SessionLocal() as db:
        yield db


def init_db(bind: Engine | None = None) -> None:
    from inventory_health.models import Base

    Base.metadata.create_all(bind or engine)
