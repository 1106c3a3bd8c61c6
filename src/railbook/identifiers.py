"""
Booking ID, PNR and seat label generation.

Values come from the clock and a random source only. Nothing here looks at
existing bookings, so two bookings can in principle share an ID, a PNR or a
seat. Callers that need uniqueness must swap in a different generator.
"""

import random
import string
import time
from typing import Callable, Optional, Protocol

BOOKING_ID_PREFIX = "BK"
PNR_LENGTH = 10
PNR_ALPHABET = string.ascii_uppercase + string.digits
COACH_LETTERS = "ABCDEFGH"
SEATS_PER_COACH = 72


class IdentifierGenerator(Protocol):
    def new_booking_id(self) -> str: ...

    def new_pnr(self) -> str: ...

    def new_seat_number(self, class_code: str) -> str: ...


class RandomIdentifierGenerator:
    """
    Time and randomness based identifiers.

    Args:
        rng: Random source (defaults to a fresh ``random.Random``)
        clock_ms: Callable returning the current epoch time in milliseconds
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock_ms: Optional[Callable[[], int]] = None,
    ):
        self.rng = rng or random.Random()
        self.clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)

    def new_booking_id(self) -> str:
        """
        Generate a booking ID.

        Format: 'BK' + epoch milliseconds + random integer in [0, 1000)
        (e.g., 'BK1704067200001417')
        """
        return f"{BOOKING_ID_PREFIX}{self.clock_ms()}{self.rng.randrange(1000)}"

    def new_pnr(self) -> str:
        """Generate a 10 character PNR drawn from A-Z and 0-9."""
        return "".join(self.rng.choice(PNR_ALPHABET) for _ in range(PNR_LENGTH))

    def new_seat_number(self, class_code: str) -> str:
        """
        Generate a seat label for a fare class.

        Format: class code + coach letter A-H + '-' + seat 1-72 (e.g., '2AC-41')
        """
        coach = self.rng.choice(COACH_LETTERS)
        seat = self.rng.randint(1, SEATS_PER_COACH)
        return f"{class_code}{coach}-{seat}"


_default_generator = RandomIdentifierGenerator()


def generate_booking_id() -> str:
    return _default_generator.new_booking_id()


def generate_pnr() -> str:
    return _default_generator.new_pnr()


def generate_seat_number(class_code: str) -> str:
    return _default_generator.new_seat_number(class_code)
