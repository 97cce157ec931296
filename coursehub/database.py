from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from coursehub.core import config


engine = create_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def enable_sqlite_foreign_keys(target_engine) -> None:
    """SQLite ignores ON DELETE clauses unless the pragma is set per connection."""
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def _set_pragma(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)


def init_db() -> None:
    import coursehub.models  # noqa: F401  registers every table on Base.metadata

    Base.metadata.create_all(bind=engine)
