import itertools
import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_booking_admission.db")
os.environ.setdefault("WARM_INDEX_ON_STARTUP", "true")
os.environ.setdefault("LOCK_TIMEOUT_SECONDS", "2")

from booking_admission.core.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

import booking_admission.models  # noqa: E402,F401
from booking_admission.db.base import Base  # noqa: E402
from booking_admission.db.session import SessionLocal, engine as db_engine  # noqa: E402
from booking_admission.repositories.memory import (  # noqa: E402
    InMemoryReservationRepository,
    InMemoryResourceRepository,
    InMemoryRuleRepository,
)
from booking_admission.services.admission_service import AdmissionEngine, AdmissionPolicy  # noqa: E402
from booking_admission.services.records import Granularity, Level, Resource  # noqa: E402


def sample_resources():
    return [
        Resource("PROP001", Level.PROPERTY, None, Granularity.SUBDIVIDED, name="Mountain Retreat Center", timezone="America/New_York"),
        Resource("BLDG001", Level.BUILDING, "PROP001", Granularity.WHOLE, capacity=100, name="The Barn"),
        Resource("BLDG002", Level.BUILDING, "PROP001", Granularity.SUBDIVIDED, capacity=200, name="Community Center"),
        Resource("ROOM001", Level.ROOM, "BLDG002", Granularity.WHOLE, capacity=8, name="Room A"),
        Resource("ROOM002", Level.ROOM, "BLDG002", Granularity.WHOLE, capacity=15, name="Room B"),
    ]


@pytest.fixture()
def resources() -> InMemoryResourceRepository:
    return InMemoryResourceRepository(sample_resources())


@pytest.fixture()
def rules() -> InMemoryRuleRepository:
    return InMemoryRuleRepository()


@pytest.fixture()
def reservations() -> InMemoryReservationRepository:
    return InMemoryReservationRepository()


@pytest.fixture()
def id_factory():
    counter = itertools.count(1)
    return lambda: f"BK{next(counter):04d}"


@pytest.fixture()
def engine(resources, rules, reservations, id_factory) -> AdmissionEngine:
    return AdmissionEngine(resources, rules, reservations, policy=AdmissionPolicy(), id_factory=id_factory)


@pytest.fixture()
def database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)
    yield
    Base.metadata.drop_all(bind=db_engine)


@pytest.fixture()
def db_session(database) -> Generator:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(database) -> Generator[TestClient, None, None]:
    from booking_admission.main import create_app

    with TestClient(create_app()) as c:
        yield c
