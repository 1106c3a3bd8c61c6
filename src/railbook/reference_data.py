"""
Static station and train data.

The dataset ships as ``data/reference.json`` inside the package and is read
once; the loaded tuples are shared read-only for the life of the process.
"""

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from railbook.models import Station, Train

REFERENCE_FILE = Path(__file__).parent / "data" / "reference.json"


@dataclass(frozen=True)
class ReferenceData:
    stations: tuple[Station, ...]
    trains: tuple[Train, ...]

    def get_station(self, code: str) -> Optional[Station]:
        for station in self.stations:
            if station.code == code:
                return station
        return None

    def get_station_name(self, code: str) -> str:
        """Return the station name for a code, or the code itself when unknown."""
        station = self.get_station(code)
        return station.name if station else code

    def get_train(self, train_id: str) -> Optional[Train]:
        for train in self.trains:
            if train.id == train_id:
                return train
        return None


def load_reference_data(path: Path | str = REFERENCE_FILE) -> ReferenceData:
    """
    Load stations and trains from a JSON file.

    Args:
        path: JSON file with ``stations`` and ``trains`` arrays

    Returns:
        ReferenceData instance
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return ReferenceData(
        stations=tuple(Station.model_validate(s) for s in raw["stations"]),
        trains=tuple(Train.model_validate(t) for t in raw["trains"]),
    )


@lru_cache()
def get_reference_data() -> ReferenceData:
    """Get the packaged reference data (cached singleton)."""
    return load_reference_data()
