import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# 应用在导入时读取配置，测试期间不落盘
os.environ.setdefault("BIOLAB_DATABASE_URL", "sqlite:///:memory:")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from bioplastic_lab.db import Base, get_db
from bioplastic_lab.main import app
from bioplastic_lab.models.enums import UserRole
from bioplastic_lab.schemas.records import SessionUser
from bioplastic_lab.services.store import MemoryStore
from bioplastic_lab.services.users import SessionContext, UserDirectory

# Use in-memory SQLite for testing to ensure isolation
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2025, 3, 7, 10, 30, tzinfo=timezone(timedelta(hours=-5)))


@pytest.fixture(scope="function")
def session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(session):
    """
    Create a TestClient that uses the override_get_db dependency.
    """
    def override_get_db():
        try:
            yield session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def directory(store, clock) -> UserDirectory:
    return UserDirectory(store, clock)


def _context_for(directory: UserDirectory, name: str, role: UserRole) -> SessionContext:
    user = directory.add_user(name=name, email=f"{name}@lab.test", password="pw", role=role)
    return SessionContext(
        user=SessionUser(id=user.id, name=user.name, email=user.email, role=user.role)
    )


@pytest.fixture
def contexts(directory):
    """One session context per role, plus a second student."""
    return {
        "admin": _context_for(directory, "admin", UserRole.ADMIN),
        "instructor": _context_for(directory, "instructor", UserRole.INSTRUCTOR),
        "alice": _context_for(directory, "alice", UserRole.STUDENT),
        "bob": _context_for(directory, "bob", UserRole.STUDENT),
    }
