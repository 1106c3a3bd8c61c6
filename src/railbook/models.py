"""Data models for the railway reservation service."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model persisted with the camelCase keys of the stored blobs."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        """Convert to the JSON-compatible dict layout used in storage."""
        return self.model_dump(mode="json", by_alias=True)


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class BookingStatus(str, Enum):
    """
    Booking lifecycle status.

    ``waiting`` is part of the stored format but no workflow produces it.
    """
    confirmed = "confirmed"
    cancelled = "cancelled"
    waiting = "waiting"


class Station(CamelModel):
    """Represents a railway station."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(description="Unique station code")
    name: str = Field(description="Station name")
    city: str = Field(description="City served by the station")


class TrainClass(CamelModel):
    """A fare class offered on a train."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(description="Class code (e.g., 1A, 2A, SL)")
    name: str = Field(description="Class display name")
    fare: int = Field(ge=0, description="Fare per passenger in rupees")
    available_seats: int = Field(ge=0, description="Displayed seats still available")
    total_seats: int = Field(ge=0, description="Displayed class capacity")

    @model_validator(mode="after")
    def check_capacity(self) -> "TrainClass":
        if self.available_seats > self.total_seats:
            raise ValueError("availableSeats cannot exceed totalSeats")
        return self


class Train(CamelModel):
    """A scheduled train with its fare classes."""

    model_config = ConfigDict(frozen=True)

    id: str
    number: str
    name: str
    source: str = Field(description="Source station code")
    destination: str = Field(description="Destination station code")
    departure_time: str
    arrival_time: str
    duration: str
    days_of_operation: list[str]
    classes: list[TrainClass] = Field(min_length=1)

    def get_class(self, class_code: str) -> Optional[TrainClass]:
        """Return the fare class with the given code, or None."""
        for train_class in self.classes:
            if train_class.code == class_code:
                return train_class
        return None


class Passenger(CamelModel):
    name: str
    age: int
    gender: Gender


class Booking(CamelModel):
    """A confirmed or cancelled reservation."""

    id: str
    pnr: str
    train_id: str
    train_number: str
    train_name: str
    source: str
    destination: str
    journey_date: str
    class_code: str
    class_name: str
    passengers: list[Passenger]
    total_fare: int
    status: BookingStatus
    booked_at: str
    seat_numbers: list[str]

    @model_validator(mode="after")
    def check_seats(self) -> "Booking":
        if len(self.seat_numbers) != len(self.passengers):
            raise ValueError("seatNumbers must hold one seat per passenger")
        return self


class BookingDraft(CamelModel):
    """
    A booking under construction between class selection and payment.

    Passengers and fare are filled in once passenger entry succeeds.
    """

    train_id: str
    train_number: str
    train_name: str
    source: str
    destination: str
    journey_date: str
    class_code: str
    class_name: str
    passengers: list[Passenger] = Field(default_factory=list)
    total_fare: Optional[int] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.passengers) and self.total_fare is not None


class User(CamelModel):
    id: str
    full_name: str
    email: str
    mobile: str
    is_admin: bool = False
