from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from marcfix.models.base import Base


def build_engine(database_url: str) -> Engine:
    engine = create_engine(database_url, pool_pre_ping=True, future=True)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _) -> None:  # type: ignore[no-untyped-def]
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db(engine: Engine) -> None:
    # Table registration happens on import of the model modules.
    import marcfix.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
