import os

import pytest

from tests import (
    TEST_DATABASE_URL,
    TEST_JWT_REFRESH_SECRET,
    TEST_JWT_SECRET,
    FixedClock,
    RecordingDelivery,
)

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("JWT_SECRET_KEY", TEST_JWT_SECRET)
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", TEST_JWT_REFRESH_SECRET)
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("PENDING_STORE_BACKEND", "memory")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from otpauth.auth import dependencies
from otpauth.auth.jwt_handler import JWTHandler
from otpauth.auth.pending_store import InMemoryPendingStore
from otpauth.auth.registration import RegistrationService
from otpauth.auth.sessions import SessionService
from otpauth.database import Base, get_db
from otpauth.main import create_app

@pytest.fixture
def clock():
    return FixedClock()

@pytest.fixture
def db_engine():
    """In-memory database shared by every session of one test"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def pending_store():
    return InMemoryPendingStore()

@pytest.fixture
def delivery():
    return RecordingDelivery()

@pytest.fixture
def registration_service(pending_store, delivery, clock):
    return RegistrationService(pending_store, delivery=delivery, clock=clock)

@pytest.fixture
def token_handler():
    return JWTHandler(
        secret_key=TEST_JWT_SECRET,
        refresh_secret_key=TEST_JWT_REFRESH_SECRET,
        access_token_expire_minutes=15,
        refresh_token_expire_days=7
    )

@pytest.fixture
def session_service(token_handler):
    return SessionService(token_handler)

@pytest.fixture
def app(session_factory, registration_service, session_service, token_handler):
    """Application wired to the per-test database and services"""
    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.get_registration_service] = lambda: registration_service
    app.dependency_overrides[dependencies.get_session_service] = lambda: session_service
    app.dependency_overrides[dependencies.get_jwt_handler] = lambda: token_handler
    yield app
    app.dependency_overrides.clear()

@pytest.fixture
def client(app):
    return TestClient(app)
