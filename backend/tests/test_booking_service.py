"""
Tests for the live-data booking flow with the Booking collection replaced
by an in-memory stand-in.
"""
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from beanie import PydanticObjectId as OID
from fastapi import HTTPException

from app.constants import BOOKING_CANCELLED, BOOKING_CONFIRMED, Permission, Role
from app.schemas import ActivityRules, BookingRequest, CurrentUser
from app.services import booking_service
from app.services.access_control import AccessDecisionEngine
from app.services.booking_validation import park_today
from app.services.permission_catalog import default_catalog

TOURIST = CurrentUser(id="u1", role=Role.TOURIST, raw_role="tourist")
OTHER_TOURIST = CurrentUser(id="u2", role=Role.TOURIST, raw_role="tourist")
ADMIN = CurrentUser(id="a1", role=Role.ADMIN, raw_role="admin")
OFFICER = CurrentUser(id="w1", role=Role.WILDLIFE_OFFICER, raw_role="wildlifeOfficer")


class _Field:
    """Class-level field that turns ``Booking.x == value`` into a filter."""

    def __init__(self, name):
        self.name = name

    def __eq__(self, value):
        return lambda doc: getattr(doc, self.name) == value


class _Query:
    def __init__(self, docs):
        self.docs = docs

    async def to_list(self):
        return list(self.docs)

    async def count(self):
        return len(self.docs)


class FakeBooking:
    """Just enough of the Booking document API for booking_service."""

    store = []
    tourist_id = _Field("tourist_id")
    activity_id = _Field("activity_id")
    preferred_date = _Field("preferred_date")
    status = _Field("status")

    def __init__(self, **fields):
        self.id = None
        self.status = BOOKING_CONFIRMED
        self.request_tour_guide = False
        self.created_at = None
        self.updated_at = None
        self.saved = False
        self.__dict__.update(fields)

    async def insert(self):
        self.id = OID()
        FakeBooking.store.append(self)
        return self

    async def save(self):
        self.saved = True
        return self

    @classmethod
    def find(cls, *conditions):
        return _Query([d for d in cls.store if all(c(d) for c in conditions)])

    @classmethod
    async def get(cls, oid):
        return next((d for d in cls.store if d.id == oid), None)


def _stored(activity_id, day, participants, tourist_id="u9", status=BOOKING_CONFIRMED):
    booking = FakeBooking(
        id=OID(),
        tourist_id=tourist_id,
        activity_id=activity_id,
        preferred_date=booking_service._day_start(day),
        number_of_participants=participants,
        status=status,
    )
    FakeBooking.store.append(booking)
    return booking


def _activity(**rules):
    rules.setdefault("status", "Active")
    return SimpleNamespace(id=OID(), to_rules=lambda: ActivityRules(**rules))


@pytest.fixture
def bookings(monkeypatch):
    monkeypatch.setattr(FakeBooking, "store", [])
    monkeypatch.setattr(booking_service, "Booking", FakeBooking)
    return FakeBooking.store


@pytest.fixture
def engine():
    return AccessDecisionEngine(default_catalog())


@pytest.fixture
def day():
    return park_today() + timedelta(days=2)


class TestCurrentBookings:
    """Participant totals read from the collection."""

    @pytest.mark.asyncio
    async def test_sums_confirmed_bookings_for_the_day(self, bookings, day):
        activity_id = OID()
        _stored(activity_id, day, 3)
        _stored(activity_id, day, 2)
        _stored(activity_id, day, 4, status=BOOKING_CANCELLED)
        _stored(activity_id, day + timedelta(days=1), 5)
        _stored(OID(), day, 6)

        assert await booking_service.current_bookings_for(activity_id, day) == 5

    @pytest.mark.asyncio
    async def test_empty_day(self, bookings, day):
        assert await booking_service.current_bookings_for(OID(), day) == 0

    @pytest.mark.asyncio
    async def test_user_booking_count(self, bookings, day):
        activity_id = OID()
        _stored(activity_id, day, 1, tourist_id="u1")
        _stored(activity_id, day + timedelta(days=1), 1, tourist_id="u1")
        _stored(activity_id, day, 1, tourist_id="u1", status=BOOKING_CANCELLED)
        _stored(activity_id, day, 1, tourist_id="u2")

        assert await booking_service.user_booking_count(activity_id, "u1") == 2


class TestCreateBooking:
    """Validation against live data, then insert."""

    @pytest.mark.asyncio
    async def test_success_inserts(self, bookings, day):
        activity = _activity(capacity=10)
        payload = BookingRequest(participants=2, preferred_date=day)

        with patch.object(booking_service, "get_activity_or_404", AsyncMock(return_value=activity)):
            booking = await booking_service.create_booking(str(activity.id), payload, TOURIST)

        assert booking.id is not None
        assert bookings == [booking]
        assert booking.tourist_id == "u1"
        assert booking.number_of_participants == 2
        assert booking.preferred_date == booking_service._day_start(day)

    @pytest.mark.asyncio
    async def test_failed_rules_return_422_without_insert(self, bookings, day):
        activity = _activity(capacity=4, tour_guide_available=False)
        _stored(activity.id, day, 3)
        payload = BookingRequest(participants=2, preferred_date=day, request_tour_guide=True)

        with patch.object(booking_service, "get_activity_or_404", AsyncMock(return_value=activity)):
            with pytest.raises(HTTPException) as exc_info:
                await booking_service.create_booking(str(activity.id), payload, TOURIST)

        assert exc_info.value.status_code == 422
        detail = exc_info.value.detail
        assert detail["message"] == (
            "Only 1 slots available. Please reduce participants or choose another date.. "
            "Tour guide is not available for this activity"
        )
        assert [e["rule"] for e in detail["errors"]] == ["capacity", "tourGuide"]
        assert len(bookings) == 1

    @pytest.mark.asyncio
    async def test_booking_limit_uses_live_count(self, bookings, day):
        activity = _activity(max_bookings_per_user=1)
        _stored(activity.id, day + timedelta(days=3), 1, tourist_id="u1")
        payload = BookingRequest(participants=1, preferred_date=day)

        with patch.object(booking_service, "get_activity_or_404", AsyncMock(return_value=activity)):
            with pytest.raises(HTTPException) as exc_info:
                await booking_service.create_booking(str(activity.id), payload, TOURIST)

        assert exc_info.value.status_code == 422
        assert exc_info.value.detail["errors"][0]["reason"] == "limitReached"

    @pytest.mark.asyncio
    async def test_missing_user_returns_401(self, bookings, day):
        activity = _activity()
        payload = BookingRequest(participants=1, preferred_date=day)

        with patch.object(booking_service, "get_activity_or_404", AsyncMock(return_value=activity)):
            with pytest.raises(HTTPException) as exc_info:
                await booking_service.create_booking(str(activity.id), payload, None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["message"] == "You must be logged in to make a booking"
        assert bookings == []


class TestCancelBooking:
    """Owner, Admin or cancel_booking holders may cancel."""

    @pytest.mark.asyncio
    async def test_owner(self, bookings, engine, day):
        booking = _stored(OID(), day, 2, tourist_id="u1")

        result = await booking_service.cancel_booking(str(booking.id), TOURIST, engine)

        assert result.status == BOOKING_CANCELLED
        assert result.saved

    @pytest.mark.asyncio
    async def test_admin(self, bookings, engine, day):
        booking = _stored(OID(), day, 2, tourist_id="u1")

        result = await booking_service.cancel_booking(str(booking.id), ADMIN, engine)

        assert result.status == BOOKING_CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_permission_holder(self, bookings, day):
        catalog = default_catalog().extend([], grants={Role.WILDLIFE_OFFICER: [Permission.CANCEL_BOOKING]})
        booking = _stored(OID(), day, 2, tourist_id="u1")

        result = await booking_service.cancel_booking(
            str(booking.id), OFFICER, AccessDecisionEngine(catalog)
        )

        assert result.status == BOOKING_CANCELLED

    @pytest.mark.asyncio
    async def test_other_user_is_forbidden(self, bookings, engine, day):
        booking = _stored(OID(), day, 2, tourist_id="u1")

        with pytest.raises(HTTPException) as exc_info:
            await booking_service.cancel_booking(str(booking.id), OTHER_TOURIST, engine)

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["code"] == "OWNER_ACCESS_REQUIRED"
        assert booking.status == BOOKING_CONFIRMED
        assert not booking.saved

    @pytest.mark.asyncio
    async def test_already_cancelled(self, bookings, engine, day):
        booking = _stored(OID(), day, 2, tourist_id="u1", status=BOOKING_CANCELLED)

        with pytest.raises(HTTPException) as exc_info:
            await booking_service.cancel_booking(str(booking.id), TOURIST, engine)

        assert exc_info.value.status_code == 400
        assert not booking.saved

    @pytest.mark.asyncio
    async def test_missing_booking(self, bookings, engine):
        with pytest.raises(HTTPException) as exc_info:
            await booking_service.cancel_booking(str(OID()), TOURIST, engine)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_malformed_id(self, bookings, engine):
        with pytest.raises(HTTPException) as exc_info:
            await booking_service.cancel_booking("not-an-id", TOURIST, engine)
        assert exc_info.value.status_code == 400


class TestActivityCapacity:
    """Capacity endpoint payload."""

    @pytest.mark.asyncio
    async def test_available_slots_never_negative(self, bookings, day):
        activity = _activity(capacity=5)
        _stored(activity.id, day, 4)
        _stored(activity.id, day, 3)

        with patch.object(booking_service, "get_activity_or_404", AsyncMock(return_value=activity)):
            result = await booking_service.activity_capacity(str(activity.id), day)

        assert result.booked == 7
        assert result.available_slots == 0
        assert result.capacity == 5
        assert result.status == "critical"

    @pytest.mark.asyncio
    async def test_default_capacity(self, bookings, day):
        activity = _activity()
        _stored(activity.id, day, 10)

        with patch.object(booking_service, "get_activity_or_404", AsyncMock(return_value=activity)):
            result = await booking_service.activity_capacity(str(activity.id), day)

        assert result.capacity == 50
        assert result.available_slots == 40
        assert result.status == "good"
