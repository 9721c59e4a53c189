"""
Queryable route network built from the loaded stop and route tables.
"""

import logging
import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from ..models.route_segments import SegmentResult
from ..models.transit import Route, Stop
from ..utils.geo_utils import haversine_distance, vectorized_haversine
from ..utils.stop_resolver import StopResolver

logger = logging.getLogger(__name__)

GRID_SIZE_DEG = 0.009  # ~1km at Nairobi's latitude
METERS_PER_DEG_LAT = 111320.0


def build_ride_graph(routes: Sequence[Route]) -> nx.MultiGraph:
    """Ride graph: one edge per consecutive stop pair, keyed by route id"""
    graph = nx.MultiGraph()
    for route in routes:
        for stop in route.stops:
            if stop.id not in graph:
                graph.add_node(stop.id, name=stop.name, lat=stop.lat, lon=stop.lon, routes=set())
            graph.nodes[stop.id]['routes'].add(route.id)

        for current_stop, next_stop in zip(route.stops, route.stops[1:]):
            distance = haversine_distance(current_stop.lat, current_stop.lon,
                                          next_stop.lat, next_stop.lon)
            graph.add_edge(current_stop.id, next_stop.id, key=route.id,
                           route_id=route.id, distance=distance)
    return graph


class RouteNetwork:
    """Read-only indices over the route catalogue.

    Route stop lists are used as given; nothing here mutates the master tables.
    """

    def __init__(self, stops: Sequence[Stop], routes: Sequence[Route],
                 resolver: Optional[StopResolver] = None, grid_size: float = GRID_SIZE_DEG):
        self.stops = list(stops)
        self.routes = list(routes)
        self.resolver = resolver or StopResolver()
        self.grid_size = grid_size

        self.stops_by_id: Dict[str, Stop] = {stop.id: stop for stop in self.stops}
        self.routes_by_id: Dict[str, Route] = {route.id: route for route in self.routes}
        self.routes_by_stop_id: Dict[str, List[Route]] = defaultdict(list)
        self.spatial_grid: Dict[Tuple[int, int], List[Stop]] = defaultdict(list)
        self._serving_cache: Dict[Stop, List[Route]] = {}

        self._build_routes_by_stop_index()
        self._build_spatial_grid()
        self.graph = build_ride_graph(self.routes)

        logger.info(f"Route network built: {len(self.routes)} routes, {len(self.stops)} stops, "
                    f"ride graph {self.graph.number_of_nodes()} nodes, "
                    f"{self.graph.number_of_edges()} edges")

    def _build_routes_by_stop_index(self):
        for route in self.routes:
            for stop in route.stops:
                served = self.routes_by_stop_id[stop.id]
                if not any(r.id == route.id for r in served):
                    served.append(route)

    def _build_spatial_grid(self):
        for stop in self.stops:
            self.spatial_grid[self._grid_key(stop.lat, stop.lon)].append(stop)

    def _grid_key(self, lat: float, lon: float) -> Tuple[int, int]:
        return (math.floor(lat / self.grid_size), math.floor(lon / self.grid_size))

    def routes_serving(self, stop: Stop) -> List[Route]:
        """Every route with a stop considered the same as ``stop``"""
        if stop not in self._serving_cache:
            self._serving_cache[stop] = [
                route for route in self.routes
                if any(self.resolver.is_same_stop(route_stop, stop) for route_stop in route.stops)
            ]
        return self._serving_cache[stop]

    def routes_for_stop_id(self, stop_id: str) -> List[Route]:
        """Routes listing exactly this stop id"""
        return list(self.routes_by_stop_id.get(stop_id, []))

    def stop_index(self, route: Route, stop: Stop) -> int:
        return self.resolver.index_of(route.stops, stop)

    def segment(self, route: Route, from_stop: Stop, to_stop: Stop) -> SegmentResult:
        """Inclusive slice of ``route`` between two stops, in travel order.

        Travel against the stored direction is a reversed slice.
        """
        from_idx = self.stop_index(route, from_stop)
        to_idx = self.stop_index(route, to_stop)
        if from_idx == -1 or to_idx == -1:
            return SegmentResult()
        return self.segment_between(route, from_idx, to_idx)

    def segment_between(self, route: Route, from_idx: int, to_idx: int) -> SegmentResult:
        if from_idx <= to_idx:
            stops = route.stops[from_idx:to_idx + 1]
        else:
            stops = tuple(reversed(route.stops[to_idx:from_idx + 1]))
        return SegmentResult(stops=stops, valid=True, distance=self.ride_distance(route, stops))

    def ride_distance(self, route: Route, stops: Sequence[Stop]) -> float:
        """Meters travelled along consecutive stops of a route"""
        total = 0.0
        for current_stop, next_stop in zip(stops, stops[1:]):
            edges = self.graph.get_edge_data(current_stop.id, next_stop.id) or {}
            edge = edges.get(route.id)
            if edge is None:
                total += haversine_distance(current_stop.lat, current_stop.lon,
                                            next_stop.lat, next_stop.lon)
            else:
                total += edge['distance']
        return total

    def nearby_stops(self, lat: float, lon: float, radius: float = 1000.0) -> List[Stop]:
        """Stops within ``radius`` meters, nearest first.

        Candidates come from the grid cells around the query point (at least
        the 3x3 neighbourhood) before the exact distance filter. When that
        neighbourhood has more cells than the grid holds, every stop is a
        candidate instead.
        """
        if math.isnan(radius) or radius < 0:
            return []

        span = radius / (self.grid_size * METERS_PER_DEG_LAT)
        if 2 * span + 1 > math.sqrt(len(self.spatial_grid)):
            candidates = list(self.stops)
        else:
            rings = max(1, math.ceil(span))
            lat_idx, lon_idx = self._grid_key(lat, lon)
            candidates = []
            for d_lat in range(-rings, rings + 1):
                for d_lon in range(-rings, rings + 1):
                    candidates.extend(self.spatial_grid.get((lat_idx + d_lat, lon_idx + d_lon), []))
        if not candidates:
            return []

        distances = vectorized_haversine(
            lat, lon,
            np.array([stop.lat for stop in candidates]),
            np.array([stop.lon for stop in candidates]),
        )
        within = [(distance, idx) for idx, distance in enumerate(distances) if distance <= radius]
        within.sort()
        return [candidates[idx] for _, idx in within]

    def transfer_stops(self) -> List[Stop]:
        """Stops listed by more than one route"""
        return [self.stops_by_id[node] for node, data in self.graph.nodes(data=True)
                if len(data['routes']) > 1 and node in self.stops_by_id]

