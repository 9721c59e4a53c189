import pytest

from matatu_routing.graph.route_network import RouteNetwork
from matatu_routing.utils.geo_utils import haversine_distance


def test_indices(network):
    assert len(network.stops_by_id) == 14
    assert set(network.routes_by_id) == {"1", "2", "3", "4", "5", "6"}
    assert [r.short_name for r in network.routes_for_stop_id("4")] == ["125", "33"]
    assert network.routes_for_stop_id("14") == []


def test_ride_graph(network):
    assert network.graph.number_of_nodes() == 13
    assert network.graph.has_edge("1", "2", key="1")
    assert network.graph.nodes["4"]["routes"] == {"1", "4"}
    assert [s.name for s in network.transfer_stops()] == ["Pangani"]


def test_routes_serving(network, stop):
    assert [r.short_name for r in network.routes_serving(stop("Pangani"))] == ["125", "33"]
    assert [r.short_name for r in network.routes_serving(stop("Kencom"))] == ["125"]
    assert network.routes_serving(stop("Karura")) == []


def test_segment_forward_and_reverse(network, stop):
    route = network.routes_by_id["1"]
    forward = network.segment(route, stop("Kencom"), stop("Ngara"))
    assert forward.valid
    assert [s.name for s in forward.stops] == ["Kencom", "Globe Cinema", "Ngara"]

    backward = network.segment(route, stop("Ngara"), stop("Kencom"))
    assert backward.valid
    assert backward.stops == tuple(reversed(forward.stops))
    assert backward.distance == pytest.approx(forward.distance)


def test_segment_edge_cases(network, stop):
    route = network.routes_by_id["1"]
    single = network.segment(route, stop("Ngara"), stop("Ngara"))
    assert single.valid
    assert [s.name for s in single.stops] == ["Ngara"]
    assert single.distance == 0.0

    missing = network.segment(route, stop("Kencom"), stop("Karen"))
    assert not missing.valid
    assert missing.stops == ()


def test_ride_distance_sums_consecutive_legs(network, stop):
    route = network.routes_by_id["1"]
    segment = network.segment(route, stop("Kencom"), stop("Ngara"))
    kencom, globe, ngara = segment.stops
    expected = (haversine_distance(kencom.lat, kencom.lon, globe.lat, globe.lon)
                + haversine_distance(globe.lat, globe.lon, ngara.lat, ngara.lon))
    assert segment.distance == pytest.approx(expected)


def test_nearby_stops(network, stop):
    kencom = stop("Kencom")
    assert [s.name for s in network.nearby_stops(kencom.lat, kencom.lon, 500)] == ["Kencom", "Odeon"]
    assert network.nearby_stops(0.0, 0.0, 1000) == []


def test_nearby_stops_beyond_one_cell(network, stop):
    """A radius wider than a grid cell must still find stops several cells away."""
    kencom = stop("Kencom")
    names = [s.name for s in network.nearby_stops(kencom.lat, kencom.lon, 3000)]
    assert names[:2] == ["Kencom", "Odeon"]
    assert {"Globe Cinema", "Ngara", "Pangani", "Westlands"} <= set(names)
    assert "Eastleigh" not in names, "Eastleigh is ~3.1 km from Kencom"


def test_huge_radius_scans_every_stop(network, stop):
    """A radius spanning far more cells than the grid holds returns every stop."""
    kencom = stop("Kencom")
    names = [s.name for s in network.nearby_stops(kencom.lat, kencom.lon, 2_000_000)]
    assert len(names) == 14
    assert names[:2] == ["Kencom", "Odeon"]
    assert len(network.nearby_stops(kencom.lat, kencom.lon, float("inf"))) == 14


def test_unusable_radius_finds_nothing(network, stop):
    kencom = stop("Kencom")
    assert network.nearby_stops(kencom.lat, kencom.lon, float("nan")) == []
    assert network.nearby_stops(kencom.lat, kencom.lon, -5.0) == []


def test_empty_network():
    network = RouteNetwork([], [])
    assert network.nearby_stops(-1.28, 36.82) == []
    assert network.transfer_stops() == []
