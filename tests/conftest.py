from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from database import create_engine, create_session_factory, init_db
from main import create_app
from service import ReservationService
from stores import InMemoryBookingStore, InMemoryRoomStore, SqlBookingStore, SqlRoomStore

JAN_1 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0) -> datetime:
    """A UTC instant on 2024-01-01."""
    return JAN_1.replace(hour=hour, minute=minute)


def sqlite_memory_engine():
    # One shared connection keeps the in-memory database alive across sessions
    return create_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
async def sql_engine():
    engine = sqlite_memory_engine()
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def memory_service() -> ReservationService:
    return ReservationService(InMemoryRoomStore(), InMemoryBookingStore())


@pytest.fixture(params=["memory", "sql"])
async def service(request):
    """The service over each store backend."""
    if request.param == "memory":
        yield ReservationService(InMemoryRoomStore(), InMemoryBookingStore())
        return
    engine = sqlite_memory_engine()
    await init_db(engine)
    session_factory = create_session_factory(engine)
    yield ReservationService(SqlRoomStore(session_factory), SqlBookingStore(session_factory))
    await engine.dispose()


@pytest.fixture
def client(memory_service):
    with TestClient(create_app(memory_service)) as test_client:
        yield test_client


@pytest.fixture
def hall_a():
    return {
        "name": "Hall A",
        "seats": 10,
        "amenities": ["Projector"],
        "pricePerHour": 20,
    }
