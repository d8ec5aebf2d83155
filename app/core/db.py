# app/core/db.py

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)


def build_engine(url: str):
    """
    Engine for the lease store; SQLite connections are shared across threads
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, pool_recycle=3600)


engine = build_engine(settings.db_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    Request scoped session: one transaction per request, committed when the
    endpoint returns and rolled back when it raises
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
        logger.debug("Request transaction committed")
    except Exception as e:
        db.rollback()
        logger.error("Request transaction rolled back", error_message=str(e))
        raise
    finally:
        db.close()


def create_tables() -> None:
    """
    Create every table registered on Base that does not exist yet
    """
    # Model modules register their tables on import
    from app.properties import models as property_models  # noqa: F401
    from app.leases import models as lease_models  # noqa: F401

    logger.info("Creating database tables", url=engine.url.render_as_string(hide_password=True))
    Base.metadata.create_all(bind=engine)
