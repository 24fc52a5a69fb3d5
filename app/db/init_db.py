from db.base import Base
from db.session import SessionLocal, engine
from core.logging import get_logger
import models  # noqa: F401  registers every table on Base.metadata
from services.plan_service import seed_default_plans

log = get_logger("db")


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_default_plans(db)
    finally:
        db.close()
    log.info("db_initialized")
