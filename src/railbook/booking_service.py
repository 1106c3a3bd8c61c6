"""
Booking store.

Owns the list of bookings (most recent first) and the single in-progress
draft. The list is persisted whole to one blob after every mutation; the
draft lives in memory only.

A booking is created in one step by ``add_booking`` and can afterwards only
move to ``cancelled``. Bookings are never deleted. ``add_booking`` performs
no capacity or duplicate checks: displayed seat availability is never
decremented and generated identifiers are not checked for collisions.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError as ModelValidationError

from railbook.identifiers import IdentifierGenerator, RandomIdentifierGenerator
from railbook.logging import get_logger
from railbook.models import Booking, BookingDraft, BookingStatus
from railbook.storage import KeyValueStore, dump_blob, load_blob

logger = get_logger(__name__)

_booking_list = TypeAdapter(list[Booking])

SEED_BOOKINGS: tuple[dict, ...] = (
    {
        "id": "BK1704067200001",
        "pnr": "PNR1234567890",
        "trainId": "1",
        "trainNumber": "12301",
        "trainName": "Rajdhani Express",
        "source": "NDLS",
        "destination": "HWH",
        "journeyDate": "2025-01-15",
        "classCode": "2A",
        "className": "Second AC",
        "passengers": [
            {"name": "Rahul Sharma", "age": 28, "gender": "male"},
            {"name": "Priya Sharma", "age": 26, "gender": "female"},
        ],
        "totalFare": 5600,
        "status": "confirmed",
        "bookedAt": "2025-01-05T10:30:00Z",
        "seatNumbers": ["2AA-15", "2AA-16"],
    },
    {
        "id": "BK1704067200002",
        "pnr": "PNR0987654321",
        "trainId": "4",
        "trainNumber": "12621",
        "trainName": "Tamil Nadu Express",
        "source": "NDLS",
        "destination": "MAS",
        "journeyDate": "2025-01-20",
        "classCode": "3A",
        "className": "Third AC",
        "passengers": [
            {"name": "Amit Kumar", "age": 35, "gender": "male"},
        ],
        "totalFare": 2250,
        "status": "confirmed",
        "bookedAt": "2025-01-04T14:45:00Z",
        "seatNumbers": ["3AB-42"],
    },
)


def seed_bookings() -> list[Booking]:
    """Fresh copies of the two demonstration bookings."""
    return _booking_list.validate_python(list(SEED_BOOKINGS))


def utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with milliseconds and a 'Z' suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class BookingStats:
    total_bookings: int
    total_passengers: int
    total_revenue: int


class BookingService:
    """
    Booking list plus draft slot, persisted through a key-value store.

    Args:
        store: Blob store for the booking list
        key: Blob key
        identifiers: Generator for booking IDs, PNRs and seat labels
        timestamp: Callable returning the ``bookedAt`` string for new bookings
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = "railway_bookings",
        identifiers: Optional[IdentifierGenerator] = None,
        timestamp: Callable[[], str] = utc_timestamp,
    ):
        self.store = store
        self.key = key
        self.identifiers = identifiers or RandomIdentifierGenerator()
        self.timestamp = timestamp
        self._lock = threading.RLock()
        self._bookings: list[Booking] = self._load()
        self._current: Optional[BookingDraft] = None

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load(self) -> list[Booking]:
        try:
            raw = self.store.get(self.key)
            if raw is None:
                logger.info("No stored bookings, seeding demonstration bookings")
                bookings = seed_bookings()
                self._persist(bookings)
                return bookings
            return _booking_list.validate_python(load_blob(raw))
        except (ValueError, ModelValidationError) as e:
            # The stored blob is replaced, losing whatever it held
            logger.warning(f"Stored bookings unreadable, reseeding: {e}")
            bookings = seed_bookings()
            self._persist(bookings)
            return bookings

    def _persist(self, bookings: list[Booking]) -> None:
        self.store.set(self.key, dump_blob([b.to_dict() for b in bookings]))

    # =========================================================================
    # Bookings
    # =========================================================================

    @property
    def bookings(self) -> list[Booking]:
        """All bookings, most recent first."""
        with self._lock:
            return list(self._bookings)

    def add_booking(self, draft: BookingDraft) -> Booking:
        """
        Create a confirmed booking from a completed draft.

        One seat label is generated per passenger. The new booking goes to
        the front of the list.

        Raises:
            ValueError: If the draft has no passengers or fare yet
        """
        if not draft.is_complete:
            raise ValueError("Draft is missing passengers or total fare")

        booking = Booking(
            **draft.model_dump(),
            id=self.identifiers.new_booking_id(),
            pnr=self.identifiers.new_pnr(),
            seat_numbers=[
                self.identifiers.new_seat_number(draft.class_code)
                for _ in draft.passengers
            ],
            booked_at=self.timestamp(),
            status=BookingStatus.confirmed,
        )

        with self._lock:
            self._bookings.insert(0, booking)
            self._persist(self._bookings)

        logger.info(
            f"Booking {booking.id} confirmed: PNR {booking.pnr}, "
            f"train {booking.train_number}, {len(booking.passengers)} passenger(s), "
            f"fare {booking.total_fare}"
        )
        return booking

    def cancel_booking(self, booking_id: str) -> bool:
        """
        Mark a booking cancelled.

        Returns:
            True if the booking exists (whatever its previous status), else False
        """
        with self._lock:
            for index, booking in enumerate(self._bookings):
                if booking.id == booking_id:
                    self._bookings[index] = booking.model_copy(
                        update={"status": BookingStatus.cancelled}
                    )
                    self._persist(self._bookings)
                    logger.info(f"Booking {booking_id} cancelled (PNR {booking.pnr})")
                    return True

        logger.info(f"Cancel requested for unknown booking {booking_id}")
        return False

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            for booking in self._bookings:
                if booking.id == booking_id:
                    return booking
        return None

    def get_booking_by_pnr(self, pnr: str) -> Optional[Booking]:
        """Look up a booking by PNR, ignoring case."""
        wanted = pnr.lower()
        with self._lock:
            for booking in self._bookings:
                if booking.pnr.lower() == wanted:
                    return booking
        return None

    def active_bookings(self) -> list[Booking]:
        return [b for b in self.bookings if b.status != BookingStatus.cancelled]

    def cancelled_bookings(self) -> list[Booking]:
        return [b for b in self.bookings if b.status == BookingStatus.cancelled]

    def get_statistics(self) -> BookingStats:
        """Booking count over all bookings; passengers and revenue over confirmed ones."""
        bookings = self.bookings
        confirmed = [b for b in bookings if b.status == BookingStatus.confirmed]
        return BookingStats(
            total_bookings=len(bookings),
            total_passengers=sum(len(b.passengers) for b in confirmed),
            total_revenue=sum(b.total_fare for b in confirmed),
        )

    # =========================================================================
    # Draft
    # =========================================================================

    @property
    def current_booking(self) -> Optional[BookingDraft]:
        return self._current

    def set_current_booking(self, draft: Optional[BookingDraft]) -> None:
        """Replace the draft slot wholesale."""
        with self._lock:
            self._current = draft

    def clear_current_booking(self) -> None:
        with self._lock:
            self._current = None
