"""
Matatu Route Service: the entry point the UI and API layers talk to.

Loads the stop/route tables once through a TransitDataStore, builds the
RouteNetwork and answers stop lookups, spatial queries and journey requests.
"""

import logging
import math
from typing import Dict, Any, List, Optional, Tuple

from .config import Config
from .data.loader import TransitDataStore
from .data.sources import ROUTES_HEADER, STOPS_HEADER, make_table_source
from .exceptions import InvalidCoordinatesError, ServiceNotReadyError, StopNotFoundError
from .graph.route_network import RouteNetwork
from .graph.transfer_zones import DEFAULT_TRANSFER_ZONES, TransferZoneIndex, load_transfer_zones
from .models.route_segments import Journey
from .models.transit import Route, Stop
from .routing.journey_planner import JourneyPlanner
from .utils.geo_utils import haversine_distance, validate_coordinates
from .utils.stop_resolver import StopResolver


class MatatuRouteService:
    """
    Route service that provides matatu journeys by:
    1. Loading stops and routes once (routes rebuilt from their corridor names)
    2. Indexing routes by stop and stops by grid cell
    3. Searching direct, shared-stop and zone-hub transfer journeys
    """

    def __init__(self, store: TransitDataStore, zones: Optional[TransferZoneIndex] = None,
                 grid_size: Optional[float] = None, planner_config: Optional[dict] = None):
        self.logger = logging.getLogger(__name__)
        self.store = store
        self.resolver = store.resolver
        self.zones = zones or TransferZoneIndex()
        self.grid_size = grid_size
        self.planner_config = planner_config or {}

        self.network: Optional[RouteNetwork] = None
        self.planner: Optional[JourneyPlanner] = None

    @classmethod
    def from_config(cls, config: Config) -> 'MatatuRouteService':
        """Build a service wired to the configured table locations"""
        config.validate()
        sources = config.get_source_config()
        store = TransitDataStore(
            make_table_source(sources['stops_source'], STOPS_HEADER, sources['timeout']),
            make_table_source(sources['routes_source'], ROUTES_HEADER, sources['timeout']),
            resolver=StopResolver(same_stop_radius=config.same_stop_radius),
        )
        zone_list = (load_transfer_zones(config.transfer_zones_file)
                     if config.transfer_zones_file else DEFAULT_TRANSFER_ZONES)
        zones = TransferZoneIndex(zone_list, walk_radius=config.walk_transfer_radius)
        return cls(store, zones=zones, grid_size=config.get_network_config()['grid_size'],
                   planner_config=config.get_planner_config())

    @property
    def is_ready(self) -> bool:
        return self.planner is not None

    async def initialize(self):
        """Load tables and build the network and planner"""
        self.logger.info("Loading matatu stops and routes...")
        stops = await self.store.load_stops()
        routes = await self.store.load_routes()

        network_kwargs = {'grid_size': self.grid_size} if self.grid_size else {}
        self.network = RouteNetwork(stops, routes, resolver=self.resolver, **network_kwargs)
        self.planner = JourneyPlanner(self.network, zones=self.zones, **self.planner_config)
        self.logger.info(f"Matatu route service ready: {len(stops)} stops, {len(routes)} routes")

    async def reload(self):
        """Re-parse the tables, e.g. after a fix to the parsing rules"""
        self.store.invalidate()
        self.network = None
        self.planner = None
        await self.initialize()

    def _require_network(self) -> RouteNetwork:
        if self.network is None:
            raise ServiceNotReadyError("Route service has not been initialized")
        return self.network

    # ------------------------------------------------------------------
    #  Lookups
    # ------------------------------------------------------------------

    def all_stops(self) -> List[Stop]:
        return list(self._require_network().stops)

    def all_routes(self) -> List[Route]:
        return list(self._require_network().routes)

    def get_stop(self, stop_id: str) -> Stop:
        stop = self._require_network().stops_by_id.get(stop_id)
        if stop is None:
            raise StopNotFoundError(f"Unknown stop id: {stop_id}")
        return stop

    def get_stop_by_name(self, name: str) -> Stop:
        """Case-insensitive exact name lookup"""
        wanted = name.lower().strip()
        for stop in self._require_network().stops:
            if stop.name.lower() == wanted:
                return stop
        raise StopNotFoundError(f"Unknown stop name: {name}")

    def resolve_stop(self, ref: str) -> Stop:
        """Stop by id, falling back to its name"""
        network = self._require_network()
        if ref in network.stops_by_id:
            return network.stops_by_id[ref]
        return self.get_stop_by_name(ref)

    def get_route(self, route_id: str) -> Optional[Route]:
        return self._require_network().routes_by_id.get(route_id)

    def routes_for_stop(self, stop: Stop) -> List[Route]:
        return self._require_network().routes_serving(stop)

    def search_stops(self, query: str, limit: int = 10) -> List[Stop]:
        """Stops whose name contains the query, case-insensitive"""
        needle = query.lower().strip()
        if not needle:
            return []
        matches = [stop for stop in self._require_network().stops if needle in stop.name.lower()]
        return matches[:limit]

    # ------------------------------------------------------------------
    #  Spatial queries
    # ------------------------------------------------------------------

    def nearby_stops(self, lat: float, lon: float, radius: float = 1000.0) -> List[Stop]:
        if not validate_coordinates(lat, lon):
            raise InvalidCoordinatesError(f"Invalid coordinates: {lat}, {lon}")
        if not math.isfinite(radius) or radius < 0:
            raise InvalidCoordinatesError(f"Invalid search radius: {radius}")
        return self._require_network().nearby_stops(lat, lon, radius)

    def find_nearest_stop(self, lat: float, lon: float) -> Tuple[Optional[Stop], float]:
        """Nearest stop and its distance in meters, searching wider rings as needed"""
        network = self._require_network()
        if not validate_coordinates(lat, lon):
            raise InvalidCoordinatesError(f"Invalid coordinates: {lat}, {lon}")

        for radius in (1000.0, 5000.0, 25000.0):
            nearby = network.nearby_stops(lat, lon, radius)
            if nearby:
                stop = nearby[0]
                return stop, haversine_distance(lat, lon, stop.lat, stop.lon)

        best_stop, best_distance = None, float('inf')
        for stop in network.stops:
            distance = haversine_distance(lat, lon, stop.lat, stop.lon)
            if distance < best_distance:
                best_stop, best_distance = stop, distance
        return best_stop, best_distance

    def find_nearest_route(self, lat: float, lon: float, radius: float = 2000.0) -> Optional[Route]:
        """First route serving the nearest served stop; falls back to the first route"""
        network = self._require_network()
        for stop in self.nearby_stops(lat, lon, radius):
            routes = network.routes_for_stop_id(stop.id)
            if routes:
                return routes[0]
        return network.routes[0] if network.routes else None

    @staticmethod
    def nearest_stop_on_route(route: Route, lat: float, lon: float) -> Optional[Tuple[Stop, int, float]]:
        """(stop, index, distance) of the route stop closest to a position"""
        nearest = None
        for index, stop in enumerate(route.stops):
            distance = haversine_distance(lat, lon, stop.lat, stop.lon)
            if nearest is None or distance < nearest[2]:
                nearest = (stop, index, distance)
        return nearest

    @staticmethod
    def next_stop(route: Route, current_index: int, direction: str = 'forward') -> Optional[Stop]:
        if direction == 'forward':
            return route.stops[current_index + 1] if current_index < len(route.stops) - 1 else None
        if direction == 'backward':
            return route.stops[current_index - 1] if current_index > 0 else None
        raise ValueError(f"Unknown direction: {direction}")

    # ------------------------------------------------------------------
    #  Journeys
    # ------------------------------------------------------------------

    def find_journey(self, from_stop: Stop, to_stop: Stop) -> Optional[Journey]:
        self._require_network()
        return self.planner.find_journey(from_stop, to_stop)

    def find_journey_between(self, origin: str, destination: str) -> Optional[Journey]:
        """Journey between two stops given by id or name"""
        return self.find_journey(self.resolve_stop(origin), self.resolve_stop(destination))

    def summary(self) -> Dict[str, Any]:
        network = self._require_network()
        return {
            'stops': len(network.stops),
            'routes': len(network.routes),
            'transfer_stops': len(network.transfer_stops()),
            'zones': [zone.name for zone in self.zones.zones],
        }
