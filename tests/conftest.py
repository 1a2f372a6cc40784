"""
Shared fixtures: an in-memory SQLite database per test, a recording
notifier and small factories for users, listings and inventory days.
"""

import os
import sys
import uuid
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Must be set before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EMAIL_ENABLED", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.models import User, EmailAddress, Listing, InventoryDay


class RecordingNotifier:
    """Notifier double that records calls and can be told to fail"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def _record(self, kind, **kwargs):
        self.calls.append((kind, kwargs))
        if self.fail:
            raise RuntimeError("smtp down")

    def send_booking_request_created(self, **kwargs):
        self._record("created", **kwargs)

    def send_booking_request_decision(self, **kwargs):
        self._record("decision", **kwargs)

    def send_booking_alteration(self, **kwargs):
        self._record("alteration", **kwargs)

    def kinds(self):
        return [kind for kind, _ in self.calls]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_user(db):
    def _make(first_name="Test", last_name="User", email="auto"):
        user = User(id=str(uuid.uuid4()), first_name=first_name, last_name=last_name)
        db.add(user)
        if email == "auto":
            email = f"{user.id[:8]}@example.com"
        if email:
            db.add(EmailAddress(user_id=user.id, email_address=email, is_primary=True))
        db.commit()
        return user
    return _make


@pytest.fixture
def host(make_user):
    return make_user(first_name="Hana", last_name="Host")


@pytest.fixture
def guest(make_user):
    return make_user(first_name="Gus", last_name="Guest")


@pytest.fixture
def make_listing(db, host):
    def _make(owner=None, price_per_night="100.00", published=True, time_zone="UTC", title="Seaside Cabin"):
        listing = Listing(
            id=str(uuid.uuid4()),
            owner_id=(owner or host).id,
            title=title,
            price_per_night=Decimal(price_per_night),
            currency="USD",
            time_zone=time_zone,
            published=published,
        )
        db.add(listing)
        db.commit()
        return listing
    return _make


@pytest.fixture
def listing(make_listing):
    return make_listing()


@pytest.fixture
def add_days(db):
    """add_days(listing, {date: price}, unavailable=[dates])"""
    def _add(listing, prices, unavailable=()):
        for d, price in prices.items():
            db.add(InventoryDay(
                listing_id=listing.id,
                date=d,
                price=Decimal(str(price)),
                is_available=d not in unavailable,
            ))
        db.commit()
    return _add


@pytest.fixture
def calendar_rows(db):
    """Snapshot of a listing's inventory as comparable tuples"""
    def _rows(listing):
        db.expire_all()
        rows = db.query(InventoryDay).filter(
            InventoryDay.listing_id == listing.id
        ).order_by(InventoryDay.date).all()
        return [(r.date, r.is_available, Decimal(str(r.price)), r.booking_id) for r in rows]
    return _rows

