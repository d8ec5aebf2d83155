import os

# Point the application at SQLite before anything imports the settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from dotenv import find_dotenv, load_dotenv
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.db import Base, get_db
from app.leases.repository import LeaseRepository
from app.leases.services import LeaseService
from app.main import lease_app as fast_api_app
from app.properties.repository import PropertyRepository
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Load environment variables
env_file = find_dotenv(f".env{os.getenv('ENV', '')}")
load_dotenv(env_file)


# Database engine and session setup
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session():
    """
    Fresh schema for every test, dropped afterwards.
    """
    Base.metadata.create_all(bind=engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def lease_service(db_session):
    """LeaseService wired to the test session."""
    return LeaseService(
        repo=LeaseRepository(db_session),
        property_repo=PropertyRepository(db_session),
    )


@pytest.fixture()
def client(db_session):
    """Fixture for setting up TestClient with overridden dependencies."""
    def override_get_db():
        yield db_session

    fast_api_app.dependency_overrides[get_db] = override_get_db

    client = TestClient(fast_api_app)
    yield client

    fast_api_app.dependency_overrides.clear()
