from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .transit import Route, Stop


@dataclass(frozen=True)
class SegmentResult:
    """Slice of a route between two stops, already in travel order"""
    stops: Tuple[Stop, ...] = ()
    valid: bool = False
    distance: Optional[float] = None  # meters along the route


@dataclass(frozen=True)
class ZoneMatch:
    """Outcome of checking whether two stops are walkable transfer partners"""
    in_zone: bool
    walk_distance: float
    zone_name: Optional[str] = None


@dataclass(frozen=True)
class JourneySegment:
    """One leg of a journey: a ride on a route or a walk between stops"""
    from_stop: Stop
    to_stop: Stop
    stops: Tuple[Stop, ...]
    route: Optional[Route] = None
    is_walking: bool = False
    walking_distance: Optional[float] = None
    distance: float = 0.0
    zone_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'route': None,
            'fromStop': self.from_stop.to_dict(),
            'toStop': self.to_stop.to_dict(),
            'stops': [stop.to_dict() for stop in self.stops],
            'isWalking': self.is_walking,
            'distance': self.distance,
        }
        if self.route is not None:
            # The full stop list would repeat what the segment already carries
            data['route'] = {
                'id': self.route.id,
                'shortName': self.route.short_name,
                'longName': self.route.long_name,
            }
        if self.is_walking:
            data['walkingDistance'] = self.walking_distance
            data['zoneName'] = self.zone_name
        return data


@dataclass(frozen=True)
class Journey:
    """Complete journey with all segments and the flattened stop sequence"""
    segments: Tuple[JourneySegment, ...]
    total_stops: Tuple[Stop, ...]
    score: float = 0.0
    strategy: str = 'direct'

    @property
    def is_arrived(self) -> bool:
        return not self.segments

    @property
    def ride_segments(self) -> List[JourneySegment]:
        return [seg for seg in self.segments if not seg.is_walking]

    @property
    def num_transfers(self) -> int:
        return max(0, len(self.ride_segments) - 1)

    @property
    def walking_distance(self) -> float:
        return sum(seg.walking_distance or 0.0 for seg in self.segments if seg.is_walking)

    @property
    def total_distance(self) -> float:
        return sum(seg.distance for seg in self.segments)

    @property
    def instructions(self) -> List[str]:
        if self.is_arrived:
            stop = self.total_stops[0]
            return [f"You are already at {stop.name}"]
        steps = []
        for seg in self.segments:
            if seg.is_walking:
                where = f" within {seg.zone_name}" if seg.zone_name else ""
                steps.append(f"Walk {seg.walking_distance:.0f} m from {seg.from_stop.name} "
                             f"to {seg.to_stop.name}{where}")
            else:
                hops = len(seg.stops) - 1
                steps.append(f"Take Route {seg.route.short_name} from {seg.from_stop.name} "
                             f"to {seg.to_stop.name} ({hops} stop{'' if hops == 1 else 's'})")
        return steps

    def to_dict(self) -> Dict[str, Any]:
        return {
            'segments': [seg.to_dict() for seg in self.segments],
            'totalStops': [stop.to_dict() for stop in self.total_stops],
            'score': self.score,
            'strategy': self.strategy,
            'numTransfers': self.num_transfers,
            'walkingDistance': self.walking_distance,
            'totalDistance': self.total_distance,
            'instructions': self.instructions,
        }
