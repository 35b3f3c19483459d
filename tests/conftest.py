# tests/conftest.py

import os
import tempfile
from datetime import date

# The engine is bound to DATABASE_URL when student_roster.database is imported,
# and app startup creates its table there; use a throwaway database.
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite:///" + os.path.join(tempfile.mkdtemp(), "student_roster_test.db"),
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from student_roster.database import build_engine, create_tables
from student_roster.services.controller import RecordController, TimeBasedIdFactory
from student_roster.services.persistence import MemoryBackend, SqlKeyValueBackend
from student_roster.services.record_store import RecordStore

TODAY = date(2025, 6, 1)


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def store(memory_backend):
    record_store = RecordStore(memory_backend)
    record_store.load()
    return record_store


@pytest.fixture
def id_factory():
    return TimeBasedIdFactory(clock=lambda: 1_700_000_000.0)


@pytest.fixture
def controller(store, id_factory):
    return RecordController(store, today=lambda: TODAY, id_factory=id_factory)


@pytest.fixture
def sql_backend(tmp_path):
    engine = build_engine("sqlite:///{}".format(tmp_path / "roster.db"))
    create_tables(bind=engine)
    yield SqlKeyValueBackend(sessionmaker(bind=engine))
    engine.dispose()


@pytest.fixture
def sample_fields():
    return {
        "firstName": "Ana",
        "lastName": "Lee",
        "dob": "2010-05-01",
        "gender": "F",
        "grade": "5",
        "address": "1 Elm St",
        "parentName": "Ray Lee",
        "parentContact": "555-0100",
    }


@pytest.fixture
def other_fields():
    return {
        "firstName": "Omar",
        "lastName": "Haddad",
        "dob": "2012-11-23",
        "gender": "M",
        "grade": "3",
        "section": "B",
        "address": "22 Oak Ave",
        "parentName": "Lina Haddad",
        "parentContact": "555-0199",
        "email": "lina@example.com",
        "medicalInfo": "Peanut allergy",
    }


@pytest.fixture
def client(controller):
    from student_roster.main import app
    from student_roster.routes.students import get_controller

    app.dependency_overrides[get_controller] = lambda: controller
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
