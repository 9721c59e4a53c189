"""
Journey planning over the route network.

The network is small (tens of routes, hundreds of stops) so instead of a
generic shortest-path search the planner enumerates three strategies and
keeps the lowest-scoring candidate:

1. direct ride on a route serving both ends
2. one transfer at a shared stop, or a short walk between stops on the two routes
3. one transfer between zone hubs (CBD stops) on the two routes

Scores are in stop-equivalents: stops ridden, plus a fixed transfer penalty,
plus one unit per ``walk_meters_per_stop`` meters walked. A later candidate
replaces the best only on strict improvement, so ties keep the first found.
"""

import logging
from typing import List, Optional

from ..graph.route_network import RouteNetwork
from ..graph.transfer_zones import TransferZoneIndex
from ..models.route_segments import Journey, JourneySegment, SegmentResult, ZoneMatch
from ..models.transit import Route, Stop
from ..utils.geo_utils import haversine_distance

logger = logging.getLogger(__name__)

TRANSFER_PENALTY = 10.0
WALK_METERS_PER_STOP = 200.0
WEAK_HUB_PENALTY = 50.0


def _scan_order(pivot: int, length: int, forward_first: bool) -> List[int]:
    after = list(range(pivot + 1, length))
    before = list(range(pivot - 1, -1, -1))
    return after + before if forward_first else before + after


class _BestJourney:
    """Running best across all strategies"""

    def __init__(self):
        self.journey: Optional[Journey] = None

    def offer(self, journey: Optional[Journey]):
        if journey is None:
            return
        if self.journey is None or journey.score < self.journey.score:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("New best %s journey, score=%.2f: %s",
                             journey.strategy, journey.score, ' | '.join(journey.instructions))
            self.journey = journey


class JourneyPlanner:
    """Stateless query engine: ``find_journey(from_stop, to_stop)``"""

    def __init__(self, network: RouteNetwork, zones: Optional[TransferZoneIndex] = None,
                 transfer_penalty: float = TRANSFER_PENALTY,
                 walk_meters_per_stop: float = WALK_METERS_PER_STOP,
                 weak_hub_penalty: float = WEAK_HUB_PENALTY,
                 zone_transfer_bonus: float = 0.0,
                 min_direct_distance: float = 0.0):
        self.network = network
        self.resolver = network.resolver
        self.zones = zones or TransferZoneIndex()
        self.transfer_penalty = transfer_penalty
        self.walk_meters_per_stop = walk_meters_per_stop
        self.weak_hub_penalty = weak_hub_penalty
        self.zone_transfer_bonus = zone_transfer_bonus
        self.min_direct_distance = min_direct_distance

    def find_journey(self, from_stop: Stop, to_stop: Stop) -> Optional[Journey]:
        """Best journey between two stops, or None when no strategy connects them"""
        if self.resolver.is_same_stop(from_stop, to_stop):
            return Journey(segments=(), total_stops=(from_stop,), score=0.0, strategy='arrived')

        from_routes = self.network.routes_serving(from_stop)
        logger.debug(f"Routes serving {from_stop.name}: {[r.short_name for r in from_routes]}")
        if not from_routes:
            return None

        to_routes = self.network.routes_serving(to_stop)
        logger.debug(f"Routes serving {to_stop.name}: {[r.short_name for r in to_routes]}")
        if not to_routes:
            return None

        best = _BestJourney()
        if self._direct_allowed(from_stop, to_stop):
            self._direct_routes(from_stop, to_stop, from_routes, to_routes, best)
        self._shared_stop_transfers(from_stop, to_stop, from_routes, to_routes, best)
        self._zone_hub_transfers(from_stop, to_stop, from_routes, to_routes, best)

        if best.journey is None:
            logger.info(f"No journey found from {from_stop.name} to {to_stop.name}")
        return best.journey

    def _direct_allowed(self, from_stop: Stop, to_stop: Stop) -> bool:
        if self.min_direct_distance <= 0:
            return True
        distance = haversine_distance(from_stop.lat, from_stop.lon, to_stop.lat, to_stop.lon)
        return distance > self.min_direct_distance

    def _direct_routes(self, from_stop: Stop, to_stop: Stop, from_routes: List[Route],
                       to_routes: List[Route], best: _BestJourney):
        to_route_ids = {route.id for route in to_routes}
        for route in from_routes:
            if route.id not in to_route_ids:
                continue
            segment = self.network.segment(route, from_stop, to_stop)
            if not segment.valid:
                continue
            ride = self._ride(route, segment)
            best.offer(Journey(segments=(ride,), total_stops=segment.stops,
                               score=float(len(segment.stops)), strategy='direct'))

    def _shared_stop_transfers(self, from_stop: Stop, to_stop: Stop, from_routes: List[Route],
                               to_routes: List[Route], best: _BestJourney):
        for from_route in from_routes:
            from_idx = self.network.stop_index(from_route, from_stop)
            if from_idx == -1:
                continue
            for to_route in to_routes:
                if to_route.id == from_route.id:
                    continue
                to_idx = self.network.stop_index(to_route, to_stop)
                if to_idx == -1:
                    continue
                # Stored direction first; the reverse scans serve trips the other way
                for i in _scan_order(from_idx, len(from_route.stops), forward_first=True):
                    for j in _scan_order(to_idx, len(to_route.stops), forward_first=False):
                        best.offer(self._transfer(from_route, from_idx, i, to_route, j, to_idx,
                                                  strategy='transfer'))

    def _zone_hub_transfers(self, from_stop: Stop, to_stop: Stop, from_routes: List[Route],
                            to_routes: List[Route], best: _BestJourney):
        for from_route in from_routes:
            from_idx = self.network.stop_index(from_route, from_stop)
            if from_idx == -1:
                continue
            from_hub = (self.zones.find_zone_hub(from_route, after_index=from_idx - 1)
                        or self.zones.find_zone_hub(from_route))
            if from_hub is None:
                continue
            hub_from_idx = from_route.stops.index(from_hub)

            for to_route in to_routes:
                if to_route.id == from_route.id:
                    continue
                to_idx = self.network.stop_index(to_route, to_stop)
                if to_idx == -1:
                    continue

                hub_penalty = 0.0
                # Scans back to index 0, so a hub at the route's first stop is found here
                to_hub = self.zones.find_zone_hub(to_route, before_index=to_idx + 1)
                if to_hub is None:
                    to_hub = self.zones.find_zone_hub(to_route)
                    hub_penalty = self.weak_hub_penalty
                if to_hub is None:
                    continue

                best.offer(self._transfer(from_route, from_idx, hub_from_idx,
                                          to_route, to_route.stops.index(to_hub), to_idx,
                                          strategy='zone-hub', extra_penalty=hub_penalty))

    def _transfer(self, from_route: Route, from_idx: int, alight_idx: int,
                  to_route: Route, board_idx: int, to_idx: int,
                  strategy: str, extra_penalty: float = 0.0) -> Optional[Journey]:
        """Ride, optional walk, ride; None when the two transfer stops are not walkable"""
        alight = from_route.stops[alight_idx]
        board = to_route.stops[board_idx]

        walk: Optional[ZoneMatch] = None
        if not self.resolver.is_same_stop(alight, board):
            walk = self.zones.same_zone(alight, board)
            if not walk.in_zone or not self._walk_allowed(alight, board, walk):
                return None

        first_leg = self.network.segment_between(from_route, from_idx, alight_idx)
        second_leg = self.network.segment_between(to_route, board_idx, to_idx)

        score = len(first_leg.stops) + len(second_leg.stops) + self.transfer_penalty + extra_penalty
        if walk is not None:
            score += walk.walk_distance / self.walk_meters_per_stop - self.zone_transfer_bonus

        segments = []
        # A single-stop "ride" means the transfer stop is the origin or destination itself
        if len(first_leg.stops) > 1:
            segments.append(self._ride(from_route, first_leg))
        if walk is not None:
            segments.append(JourneySegment(
                from_stop=alight, to_stop=board, stops=(alight, board),
                is_walking=True, walking_distance=walk.walk_distance,
                distance=walk.walk_distance, zone_name=walk.zone_name,
            ))
        if len(second_leg.stops) > 1:
            segments.append(self._ride(to_route, second_leg))
        if not segments:
            return None

        total_stops = list(first_leg.stops)
        for stop in second_leg.stops:
            if total_stops and total_stops[-1] == stop:
                continue
            total_stops.append(stop)

        return Journey(segments=tuple(segments), total_stops=tuple(total_stops),
                       score=score, strategy=strategy)

    def _walk_allowed(self, a: Stop, b: Stop, match: ZoneMatch) -> bool:
        # Radius-only zone membership may pair stops far apart; cap those walks
        if match.walk_distance < self.zones.walk_radius:
            return True
        return self.zones.fragment_zone(a, b) is not None

    @staticmethod
    def _ride(route: Route, segment: SegmentResult) -> JourneySegment:
        return JourneySegment(
            from_stop=segment.stops[0], to_stop=segment.stops[-1], stops=segment.stops,
            route=route, distance=segment.distance or 0.0,
        )
