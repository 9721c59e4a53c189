from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class Stop:
    """A named boarding/alighting location"""
    id: str
    name: str
    lat: float
    lon: float

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'lat': self.lat, 'lon': self.lon}


@dataclass(frozen=True)
class Route:
    """A matatu line; stops are kept in one canonical travel direction"""
    id: str
    short_name: str
    long_name: str
    stops: Tuple[Stop, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'shortName': self.short_name,
            'longName': self.long_name,
            'stops': [stop.to_dict() for stop in self.stops],
        }


@dataclass(frozen=True)
class TransferZone:
    """Named cluster of stops that riders walk between (e.g. CBD Central)"""
    name: str
    stop_names: Tuple[str, ...]
    center_lat: float
    center_lon: float
    radius: float  # meters
