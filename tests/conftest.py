"""Shared fixtures: in-memory storage, deterministic identifiers, zero-delay services."""

import random

import pytest

from railbook.booking_flow import BookingFlow
from railbook.booking_service import BookingService
from railbook.identifiers import RandomIdentifierGenerator
from railbook.session_service import SessionService
from railbook.station_service import StationService
from railbook.storage import MemoryStore

FIXED_CLOCK_MS = 1767225600000


class SleepRecorder:
    """Stands in for time.sleep and records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def identifiers():
    return RandomIdentifierGenerator(rng=random.Random(1234), clock_ms=lambda: FIXED_CLOCK_MS)


@pytest.fixture
def bookings(store, identifiers):
    return BookingService(store, identifiers=identifiers)


@pytest.fixture
def session(store, sleep):
    return SessionService(store, delay_seconds=1.0, sleep=sleep, clock_ms=lambda: FIXED_CLOCK_MS)


@pytest.fixture
def stations():
    return StationService()


@pytest.fixture
def flow(bookings, stations, sleep):
    return BookingFlow(bookings, stations, search_delay_seconds=1.5, sleep=sleep)


@pytest.fixture
def ilkal_express(stations):
    return stations.get_train("1")


@pytest.fixture
def sold_out_train(ilkal_express):
    """The Ilkal Express with no Second AC seats left."""
    classes = [
        c.model_copy(update={"available_seats": 0}) if c.code == "2A" else c
        for c in ilkal_express.classes
    ]
    return ilkal_express.model_copy(update={"classes": classes})
