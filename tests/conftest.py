import mongomock
import pytest
from fastapi.testclient import TestClient

from database import get_database
from main import app
from repositories import BedRepository, WardRepository
from schemas import Bed, Ward
from services import WardService


@pytest.fixture
def db():
    database = mongomock.MongoClient()["wards_test"]
    BedRepository(database).ensure_indexes()
    return database


@pytest.fixture
def service(db):
    return WardService(WardRepository(db), BedRepository(db), retries=3)


@pytest.fixture
def ward(service):
    return service.create_ward(Ward(name="General Ward A", type="general", capacity=10))


@pytest.fixture
def beds(service, ward):
    """Ten available beds, B1..B10, in ``ward``."""
    return [
        service.create_bed(Bed(bed_number=f"B{n}", ward_id=ward.id, bed_type="general"))
        for n in range(1, 11)
    ]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_database] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
