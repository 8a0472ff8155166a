import pytest
from faker import Faker

from services.directory_service.app.models.database import DatabaseStore
from services.directory_service.app.services.member import MemberService

fake = Faker()

CITIES = ["Skardu", "Gilgit", "Hunza", "Shigar", "Khaplu", "Astore"]
DEGREES = ["BS", "MS", "PhD"]


@pytest.fixture
def store():
    """
    In-memory SQLite store with the schema created; discarded after each test.
    """
    store = DatabaseStore("sqlite://")
    store.create_all()
    yield store
    store.dispose()


@pytest.fixture
def db_session(store):
    session = store.session()
    yield session
    session.close()


@pytest.fixture
def member_service(db_session):
    return MemberService(db_session)


@pytest.fixture
def member_payload():
    """
    Factory for valid camelCase member payloads, as a remote caller sends them.
    """
    def _build(**overrides):
        year = overrides.pop("yearOfAdmission", fake.random_int(min=2015, max=2023))
        data = {
            "name": fake.name(),
            "email": fake.free_email(),
            "phone": "+92 300 1234567",
            "yearOfAdmission": year,
            "degreeProgram": fake.random_element(DEGREES),
            "rollNumber": f"{year % 100:02d}-CS-{fake.unique.random_int(min=1, max=999999):06d}",
            "department": "Computer Science",
            "city": fake.random_element(CITIES),
            "permanentAddress": f"{fake.street_address()}, Gilgit-Baltistan",
            "photoUrl": fake.image_url(),
            "bio": fake.sentence(),
        }
        data.update(overrides)
        return data
    return _build
