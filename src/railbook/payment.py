"""
Simulated payment.

IDLE -> PROCESSING -> SETTLED. Once the entered details pass their
non-empty checks the payment always succeeds: after a fixed delay the staged
booking is committed, the draft is cleared and the new booking is returned.
There is no card or UPI verification, and no way to abort a payment in flight.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from railbook.booking_flow import PaymentState
from railbook.booking_service import BookingService
from railbook.exceptions import NavigationStateError, PaymentInputError, RailbookException
from railbook.logging import LogContext, get_logger
from railbook.models import Booking

logger = get_logger(__name__)


class PaymentMethod(str, Enum):
    upi = "upi"
    debit = "debit"
    credit = "credit"


class PaymentStatus(str, Enum):
    idle = "idle"
    processing = "processing"
    settled = "settled"


@dataclass
class PaymentDetails:
    method: PaymentMethod = PaymentMethod.upi
    upi_id: str = ""
    card_number: str = ""
    card_expiry: str = ""
    card_cvv: str = ""

    def validate(self) -> None:
        """
        Check that the selected method's fields are filled in.

        Raises:
            PaymentInputError: If a required field is empty
        """
        if self.method == PaymentMethod.upi:
            if not self.upi_id:
                raise PaymentInputError(
                    "Please enter your UPI ID to proceed.",
                    {"upi_id": "UPI ID required"},
                )
            return

        missing = {
            name: "Required"
            for name, value in (
                ("card_number", self.card_number),
                ("card_expiry", self.card_expiry),
                ("card_cvv", self.card_cvv),
            )
            if not value
        }
        if missing:
            raise PaymentInputError("Please enter all card details to proceed.", missing)


@dataclass
class Confirmation:
    """State handed from payment to the confirmation display."""
    booking: Booking


class PaymentSimulator:
    """
    One payment attempt per instance.

    Args:
        bookings: Booking store that receives the committed booking
        delay_seconds: Simulated processing time
        sleep: Sleep function (tests pass a no-op)
    """

    def __init__(
        self,
        bookings: BookingService,
        delay_seconds: float = 3.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.bookings = bookings
        self.delay_seconds = delay_seconds
        self.sleep = sleep
        self.status = PaymentStatus.idle
        self.booking: Optional[Booking] = None

    def pay(self, state: Optional[PaymentState], details: PaymentDetails) -> Confirmation:
        """
        Process the payment and commit the booking.

        Raises:
            NavigationStateError: If no staged passengers or fare were carried over
            PaymentInputError: If the payment details are incomplete
            RailbookException: If this simulator is not idle
        """
        if state is None or state.train is None or not state.passengers or not state.total_fare:
            raise NavigationStateError("Nothing to pay for")
        if self.status != PaymentStatus.idle:
            raise RailbookException(f"Payment already {self.status.value}")

        details.validate()

        with LogContext(
            "payment",
            method=details.method.value,
            train=state.train.number,
            fare=state.total_fare,
        ) as ctx:
            self.status = PaymentStatus.processing
            ctx.log("Processing payment", delay=self.delay_seconds)
            self.sleep(self.delay_seconds)

            booking = self.bookings.add_booking(state.to_draft())
            self.bookings.clear_current_booking()
            ctx.log("Booking committed", booking=booking.id, pnr=booking.pnr)

            self.booking = booking
            self.status = PaymentStatus.settled

        logger.info(f"Payment settled for booking {booking.id}")
        return Confirmation(booking=booking)
