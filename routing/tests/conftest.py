"""Pytest configuration and fixtures."""

import asyncio

import pytest

from matatu_routing.core_route_service import MatatuRouteService
from matatu_routing.data.loader import TransitDataStore, parse_routes_table, parse_stops_table
from matatu_routing.graph.route_network import RouteNetwork
from matatu_routing.graph.transfer_zones import TransferZoneIndex
from matatu_routing.routing.journey_planner import JourneyPlanner

STOPS_TXT = """stop_id,stop_name,stop_lat,stop_lon,location_type
1,Kencom,-1.2864,36.8250,0
2,Globe Cinema,-1.2789,36.8195,0
3,Ngara,-1.2731,36.8232,0
4,Pangani,-1.2676,36.8339,0
5,Roysambu,-1.2180,36.8870,0
6,Kangemi,-1.2670,36.7480,0
7,Westlands,-1.2674,36.8108,0
8,Odeon,-1.2830,36.8260,0
9,Kawangware,-1.2840,36.7490,0
10,Eastleigh,-1.2740,36.8500,0
11,Karen,-1.3190,36.7070,0
12,Rongai,-1.3960,36.7440,0
13,Kitengela,-1.4750,36.9600,0
14,Karura,-1.2400,36.8300,0
X1,Broken Stop,not-a-number,36.8000,0
"""

ROUTES_TXT = """route_id,agency_id,route_short_name,route_long_name,route_type
1,NBO,125,Kencom - Globe Cinema - Ngara - Pangani - Roysambu,3
2,NBO,115,Kangemi - Westlands,3
3,NBO,46,Kawangware - Odeon,3
4,NBO,33,Pangani - Eastleigh,3
5,NBO,111,Rongai - Karen,3
6,NBO,110,Kitengela - Athi River,3
7,NBO,999,Nowhere - Atlantis,3
8,NBO,12,K - M,3
"""


class CountingSource:
    """Table source that records how often it is called"""

    def __init__(self, text: str):
        self.text = text
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        return self.text


class SlowCountingSource(CountingSource):
    """Async source that yields to the event loop before answering"""

    async def __call__(self) -> str:
        self.calls += 1
        await asyncio.sleep(0.01)
        return self.text


@pytest.fixture
def stops():
    return parse_stops_table(STOPS_TXT)


@pytest.fixture
def routes(stops):
    return parse_routes_table(ROUTES_TXT, stops)


@pytest.fixture
def stop(stops):
    """Look up a fixture stop by name."""
    by_name = {s.name: s for s in stops}
    return by_name.__getitem__


@pytest.fixture
def network(stops, routes) -> RouteNetwork:
    return RouteNetwork(stops, routes)


@pytest.fixture
def planner(network) -> JourneyPlanner:
    return JourneyPlanner(network, zones=TransferZoneIndex())


@pytest.fixture
def store() -> TransitDataStore:
    return TransitDataStore(CountingSource(STOPS_TXT), CountingSource(ROUTES_TXT))


@pytest.fixture
def service(store) -> MatatuRouteService:
    service = MatatuRouteService(store)
    asyncio.run(service.initialize())
    return service
