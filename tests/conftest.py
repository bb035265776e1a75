import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_meeting_booking.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-meeting-booking")
os.environ.setdefault("APP_TIMEZONE", "UTC")

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from meeting_booking.database import Base, get_db  # noqa: E402
from meeting_booking.main import app  # noqa: E402
from meeting_booking.models import Booking, BookingStatus, Room  # noqa: E402
from meeting_booking.schemas.identity import Identity  # noqa: E402
from meeting_booking.utils.normalize import time_to_minutes  # noqa: E402
from meeting_booking.utils.security import create_access_token  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)

ALICE = Identity(id=101, login_id="alice")
BOB   = Identity(id=102, login_id="bob")
ADMIN = Identity(id=900, login_id="admin", is_admin=True)


@pytest.fixture
def test_db():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def rooms(test_db):
    board = Room(id=1, name="Board Room", location="Floor 3", capacity=12)
    huddle = Room(id=2, name="Huddle Room", location="Floor 2", capacity=4)
    test_db.add_all([board, huddle])
    test_db.commit()
    return board, huddle


@pytest.fixture
def client(test_db):
    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(identity: Identity) -> dict:
    token = create_access_token(identity.id, identity.login_id, identity.is_admin)
    return {"Authorization": f"Bearer {token}"}


def add_booking(
    db,
    room_id: int = 1,
    day: str = "2099-07-01",
    start: str | None = "09:00",
    end: str | None = "10:00",
    status: BookingStatus = BookingStatus.APPROVED,
    requester_id: int = ALICE.id,
    all_day: bool = False,
    end_day: str | None = None,
    purpose: str = "Meeting",
) -> Booking:
    """Insert a booking directly, bypassing the lifecycle rules."""
    b = Booking(
        room_id=room_id,
        requester_id=requester_id,
        date=date.fromisoformat(day),
        is_multi_day=end_day is not None,
        end_date=date.fromisoformat(end_day) if end_day else None,
        all_day=all_day,
        start_time=None if all_day else time_to_minutes(start),
        end_time=None if all_day else time_to_minutes(end),
        purpose=purpose,
        description="",
        status=status,
    )
    db.add(b)
    db.commit()
    db.refresh(b)
    return b


def fail_booking_reads(db, monkeypatch, after: int = 0) -> None:
    """Let ``after`` Booking queries through, then fail the rest as a dropped connection would."""
    real_query = db.query
    seen = {"bookings": 0}

    def query(*entities, **kwargs):
        if entities and entities[0] is Booking:
            seen["bookings"] += 1
            if seen["bookings"] > after:
                raise OperationalError("SELECT bookings", {}, Exception("connection reset by peer"))
        return real_query(*entities, **kwargs)

    monkeypatch.setattr(db, "query", query)
