"""
Transfer zones: named clusters (mostly the CBD) inside which riders walk
between stops to change matatus, even when the stops are not the same.
"""

import json
import logging
from typing import Iterable, List, Optional

from ..models.route_segments import ZoneMatch
from ..models.transit import Route, Stop, TransferZone
from ..utils.geo_utils import haversine_distance

logger = logging.getLogger(__name__)

DEFAULT_WALK_RADIUS_M = 800.0
GENERIC_ZONE_NAME = 'Walking Transfer'

DEFAULT_TRANSFER_ZONES = (
    TransferZone(
        name='CBD Central',
        stop_names=('odeon', 'otc', 'koja', 'kencom', 'bus station', 'gpo', 'commercial',
                    'tusker', 'archives', 'ronald ngala', 'fire station', 'landhies'),
        center_lat=-1.284, center_lon=36.827, radius=800,
    ),
    TransferZone(
        name='CBD East',
        stop_names=('machakos', 'muthurwa', 'railway'),
        center_lat=-1.290, center_lon=36.835, radius=600,
    ),
    TransferZone(
        name='Eastleigh',
        stop_names=('eastleigh', 'pumwani', 'california'),
        center_lat=-1.271, center_lon=36.852, radius=800,
    ),
)


def load_transfer_zones(path: str) -> List[TransferZone]:
    """Load a zone catalogue from a JSON list of zone objects.

    Each object carries ``name``, ``stopNames`` (or ``stop_names``),
    ``center`` as ``{"lat": .., "lon": ..}`` and ``radius`` in meters.
    """
    with open(path, 'r', encoding='utf-8') as f:
        raw = json.load(f)

    zones = []
    for entry in raw:
        names = entry.get('stopNames', entry.get('stop_names', []))
        zones.append(TransferZone(
            name=entry['name'],
            stop_names=tuple(name.lower() for name in names),
            center_lat=float(entry['center']['lat']),
            center_lon=float(entry['center']['lon']),
            radius=float(entry['radius']),
        ))
    logger.info(f"Loaded {len(zones)} transfer zones from {path}")
    return zones


class TransferZoneIndex:
    """Answers "can a rider walk between these two stops to transfer?"."""

    def __init__(self, zones: Iterable[TransferZone] = DEFAULT_TRANSFER_ZONES,
                 walk_radius: float = DEFAULT_WALK_RADIUS_M):
        self.zones = tuple(zones)
        self.walk_radius = walk_radius

    @staticmethod
    def matches_fragments(stop: Stop, zone: TransferZone) -> bool:
        name = stop.name.lower().strip()
        if not name:
            return False
        return any(fragment in name or name in fragment for fragment in zone.stop_names)

    def in_zone(self, stop: Stop, zone: TransferZone) -> bool:
        if self.matches_fragments(stop, zone):
            return True
        return haversine_distance(stop.lat, stop.lon, zone.center_lat, zone.center_lon) < zone.radius

    def zones_for(self, stop: Stop) -> List[TransferZone]:
        return [zone for zone in self.zones if self.in_zone(stop, zone)]

    def is_hub(self, stop: Stop) -> bool:
        """A hub is a stop whose name marks it as part of some zone"""
        return any(self.matches_fragments(stop, zone) for zone in self.zones)

    def fragment_zone(self, a: Stop, b: Stop) -> Optional[str]:
        """Name of a zone whose name fragments match both stops, if any"""
        for zone in self.zones:
            if self.matches_fragments(a, zone) and self.matches_fragments(b, zone):
                return zone.name
        return None

    def same_zone(self, a: Stop, b: Stop) -> ZoneMatch:
        walk_distance = haversine_distance(a.lat, a.lon, b.lat, b.lon)

        for zone in self.zones:
            if self.in_zone(a, zone) and self.in_zone(b, zone):
                return ZoneMatch(in_zone=True, zone_name=zone.name, walk_distance=walk_distance)

        if walk_distance < self.walk_radius:
            return ZoneMatch(in_zone=True, zone_name=GENERIC_ZONE_NAME, walk_distance=walk_distance)

        return ZoneMatch(in_zone=False, walk_distance=walk_distance)

    def find_zone_hub(self, route: Route, after_index: Optional[int] = None,
                      before_index: Optional[int] = None) -> Optional[Stop]:
        """First hub stop on a route, optionally restricted to a window.

        With only ``before_index`` the scan runs backwards from just before
        that position, so the hub nearest to it wins. Otherwise the scan runs
        forwards from just after ``after_index`` (or the start) up to
        ``before_index`` (or the end).
        """
        stops = route.stops
        if before_index is not None and after_index is None:
            positions = range(min(before_index, len(stops)) - 1, -1, -1)
        else:
            start = after_index + 1 if after_index is not None else 0
            end = min(before_index, len(stops)) if before_index is not None else len(stops)
            positions = range(max(start, 0), end)

        for idx in positions:
            if self.is_hub(stops[idx]):
                return stops[idx]
        return None
