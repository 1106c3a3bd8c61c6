"""
Station lookup and train search over the static reference data.

Train search uses loose matching: a train is returned when its source
matches OR its destination matches, so a train that only matches on
destination, with an unrelated source, is still a result.
"""

import unicodedata
from dataclasses import dataclass
from typing import Optional, List

from railbook.models import Station, Train, TrainClass
from railbook.reference_data import ReferenceData, get_reference_data

ALL_CLASSES = "all"


@dataclass(frozen=True)
class SeatAvailability:
    """Display status for one fare class."""
    train_class: TrainClass
    label: str

    @property
    def is_bookable(self) -> bool:
        return self.train_class.available_seats > 0


def availability_label(available: int, total: int) -> str:
    """
    Map displayed seat counts to a status label.

    More than half free is 'Available', more than a fifth 'Filling Fast',
    anything left 'Few Seats', otherwise 'Not Available'.
    """
    ratio = available / total if total else 0
    if ratio > 0.5:
        return "Available"
    if ratio > 0.2:
        return "Filling Fast"
    if ratio > 0:
        return "Few Seats"
    return "Not Available"


class StationService:
    """
    Station and train lookups.

    Args:
        reference: Reference dataset (defaults to the packaged one)
    """

    def __init__(self, reference: Optional[ReferenceData] = None):
        self.reference = reference or get_reference_data()

    @property
    def stations(self) -> tuple[Station, ...]:
        return self.reference.stations

    @property
    def trains(self) -> tuple[Train, ...]:
        return self.reference.trains

    def _normalize_name(self, name: str) -> str:
        """Normalize a name for matching (lowercase, no accents)."""
        normalized = unicodedata.normalize('NFD', name)
        normalized = ''.join(c for c in normalized if unicodedata.category(c) != 'Mn')
        return normalized.lower().strip()

    def get_station_name(self, code: str) -> str:
        return self.reference.get_station_name(code)

    def get_train(self, train_id: str) -> Optional[Train]:
        return self.reference.get_train(train_id)

    def find_stations(self, query: str) -> List[Station]:
        """
        Find stations whose code equals the query or whose name or city
        contains it.

        Args:
            query: Station code, name fragment or city name

        Returns:
            Matching stations (may be empty)
        """
        wanted = self._normalize_name(query)
        if not wanted:
            return []
        return [
            station for station in self.stations
            if station.code.lower() == wanted
            or wanted in self._normalize_name(station.name)
            or wanted in self._normalize_name(station.city)
        ]

    def _matches(self, station_code: str, query: str) -> bool:
        if station_code.lower() == query.lower():
            return True
        return query.lower() in self.get_station_name(station_code).lower()

    def search_trains(
        self,
        source: str,
        destination: str,
        class_code: Optional[str] = None,
    ) -> List[Train]:
        """
        Search trains by source and destination.

        Each side matches a station code exactly (ignoring case) or a
        substring of the station name. A train is kept if either side matches.

        Args:
            source: Source station code or name fragment
            destination: Destination station code or name fragment
            class_code: Only keep trains offering this class ('all' or None for any)

        Returns:
            Matching trains in reference order
        """
        results = [
            train for train in self.trains
            if self._matches(train.source, source)
            or self._matches(train.destination, destination)
        ]

        if class_code and class_code != ALL_CLASSES:
            results = [t for t in results if t.get_class(class_code) is not None]

        return results

    def seat_availability(self, train: Train) -> List[SeatAvailability]:
        return [
            SeatAvailability(
                train_class=train_class,
                label=availability_label(train_class.available_seats, train_class.total_seats),
            )
            for train_class in train.classes
        ]


_station_service: Optional[StationService] = None


def get_station_service() -> StationService:
    """
    Get or create the global StationService instance.

    Returns:
        StationService singleton instance
    """
    global _station_service

    if _station_service is None:
        _station_service = StationService()

    return _station_service
