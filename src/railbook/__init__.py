"""
Railbook - a railway ticket reservation demo.

Train search over a static dataset, fare class selection, passenger entry,
simulated payment and booking management, persisted to local JSON blobs.
"""

from .booking_flow import BookingFlow, PassengerForm, calculate_fare, validate_passenger
from .booking_service import BookingService
from .exceptions import (
    RailbookException,
    ValidationError,
    PaymentInputError,
    NavigationStateError,
)
from .identifiers import IdentifierGenerator, RandomIdentifierGenerator
from .models import Booking, BookingDraft, BookingStatus, Passenger, Station, Train, TrainClass, User
from .payment import PaymentDetails, PaymentMethod, PaymentSimulator
from .session_service import SessionService
from .station_service import StationService

__version__ = "0.1.0"

__all__ = [
    "BookingFlow",
    "PassengerForm",
    "calculate_fare",
    "validate_passenger",
    "BookingService",
    "RailbookException",
    "ValidationError",
    "PaymentInputError",
    "NavigationStateError",
    "IdentifierGenerator",
    "RandomIdentifierGenerator",
    "Booking",
    "BookingDraft",
    "BookingStatus",
    "Passenger",
    "Station",
    "Train",
    "TrainClass",
    "User",
    "PaymentDetails",
    "PaymentMethod",
    "PaymentSimulator",
    "SessionService",
    "StationService",
]
