import os
import tempfile

# Settings are read once; point them at throwaway locations before the package loads
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="timetrack-logs-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from timetrack.database import Base, build_engine, get_db
from timetrack.entities import Employee, Role
from timetrack.models import employee as _employee_tables  # noqa: F401
from timetrack.models import timesheet as _timesheet_tables  # noqa: F401
from timetrack.routers.dependencies import get_token_store
from timetrack.services.employee_service import EmployeeService
from timetrack.services.token_store import TokenStore


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    EmployeeService.ensure_admin_exists(session)
    yield session
    session.close()


@pytest.fixture
def admin(db):
    return EmployeeService.find_by_user_name(db, "admin")


@pytest.fixture
def alice(db):
    return EmployeeService.insert(db, Employee(emp_number=1, user_name="alice", name="Alice Doe"), "alicepw")


@pytest.fixture
def bob(db):
    return EmployeeService.insert(db, Employee(emp_number=2, user_name="bob", name="Bob Roe", role=Role.USER), "bobpw")


@pytest.fixture
def token_store():
    return TokenStore()


@pytest.fixture
def client(db, session_factory, token_store):
    from timetrack.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_store] = lambda: token_store
    yield TestClient(app)
    app.dependency_overrides.clear()
