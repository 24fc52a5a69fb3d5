from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.settings import settings


DATABASE_URL = settings.database_url


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    kwargs = {"pool_pre_ping": True, "pool_timeout": settings.db_pool_timeout_sec}
    if url.startswith("postgresql"):
        kwargs["connect_args"] = {"options": f"-c statement_timeout={settings.db_statement_timeout_ms}"}
    return kwargs


engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
