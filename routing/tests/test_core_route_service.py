import asyncio

import pytest

from conftest import ROUTES_TXT, STOPS_TXT, CountingSource
from matatu_routing.config import Config
from matatu_routing.core_route_service import MatatuRouteService
from matatu_routing.data.loader import TransitDataStore
from matatu_routing.exceptions import InvalidCoordinatesError, ServiceNotReadyError, StopNotFoundError


def test_service_requires_initialization():
    service = MatatuRouteService(TransitDataStore(CountingSource(STOPS_TXT), CountingSource(ROUTES_TXT)))
    assert not service.is_ready
    with pytest.raises(ServiceNotReadyError):
        service.all_stops()


def test_lookups(service):
    assert len(service.all_stops()) == 14
    assert len(service.all_routes()) == 6
    assert service.get_stop("1").name == "Kencom"
    assert service.get_stop_by_name("  globe cinema ").id == "2"
    assert service.resolve_stop("4").name == "Pangani"
    assert service.resolve_stop("Pangani").id == "4"
    assert service.get_route("2").short_name == "115"
    assert service.get_route("999") is None
    assert [r.short_name for r in service.routes_for_stop(service.get_stop("4"))] == ["125", "33"]


def test_unknown_stops_raise(service):
    with pytest.raises(StopNotFoundError):
        service.get_stop("nope")
    with pytest.raises(StopNotFoundError):
        service.resolve_stop("Atlantis")


def test_search_stops(service):
    assert [s.name for s in service.search_stops("GLOBE")] == ["Globe Cinema"]
    assert len(service.search_stops("a", limit=3)) == 3
    assert service.search_stops("   ") == []


def test_nearest_stop_and_route(service):
    stop, distance = service.find_nearest_stop(-1.2831, 36.8261)
    assert stop.name == "Odeon"
    assert distance < 20

    # Karura is far from everything but still has a nearest stop
    stop, distance = service.find_nearest_stop(-1.2400, 36.8300)
    assert stop.name == "Karura"

    assert service.find_nearest_route(-1.2831, 36.8261).short_name == "46"
    # Nothing within 2 km of the equator: fall back to the first route
    assert service.find_nearest_route(0.0, 0.0).short_name == "125"


def test_invalid_coordinates(service):
    with pytest.raises(InvalidCoordinatesError):
        service.nearby_stops(120.0, 36.8)
    with pytest.raises(InvalidCoordinatesError):
        service.find_nearest_stop(-1.28, 200.0)


@pytest.mark.parametrize("radius", [float("nan"), float("inf"), -1.0])
def test_invalid_search_radius(service, radius):
    with pytest.raises(InvalidCoordinatesError):
        service.nearby_stops(-1.2864, 36.8250, radius)


def test_route_stop_navigation(service):
    route = service.get_route("1")
    stop, index, distance = MatatuRouteService.nearest_stop_on_route(route, -1.2730, 36.8230)
    assert (stop.name, index) == ("Ngara", 2)
    assert distance < 50
    assert MatatuRouteService.next_stop(route, index).name == "Pangani"
    assert MatatuRouteService.next_stop(route, index, "backward").name == "Globe Cinema"
    assert MatatuRouteService.next_stop(route, 4) is None
    assert MatatuRouteService.next_stop(route, 0, "backward") is None
    with pytest.raises(ValueError):
        MatatuRouteService.next_stop(route, 0, "sideways")


def test_find_journey_between_ids_and_names(service):
    journey = service.find_journey_between("Kencom", "2")
    assert journey.strategy == "direct"
    assert journey.instructions == ["Take Route 125 from Kencom to Globe Cinema (1 stop)"]
    longer = service.find_journey_between("Kencom", "Ngara")
    assert longer.instructions == ["Take Route 125 from Kencom to Ngara (2 stops)"]
    assert service.find_journey_between("Rongai", "Kitengela") is None


def test_summary(service):
    summary = service.summary()
    assert summary["stops"] == 14
    assert summary["routes"] == 6
    assert summary["transfer_stops"] == 1
    assert "CBD Central" in summary["zones"]


def test_reload_reparses_tables(service):
    asyncio.run(service.reload())
    assert service.is_ready
    assert service.store.stops_source.calls == 2
    assert service.store.routes_source.calls == 2


def test_from_config_with_local_files(tmp_path):
    stops_path = tmp_path / "stops.txt"
    routes_path = tmp_path / "routes.txt"
    stops_path.write_text(STOPS_TXT, encoding="utf-8")
    routes_path.write_text(ROUTES_TXT, encoding="utf-8")

    cfg = Config()
    cfg.stops_source = str(stops_path)
    cfg.routes_source = str(routes_path)
    cfg.transfer_penalty = 2.0

    service = MatatuRouteService.from_config(cfg)
    asyncio.run(service.initialize())
    assert len(service.all_routes()) == 6

    journey = service.find_journey_between("Kencom", "Eastleigh")
    assert journey.score == pytest.approx(8)


def test_missing_table_file_loads_nothing(tmp_path):
    cfg = Config()
    cfg.stops_source = str(tmp_path / "missing-stops.txt")
    cfg.routes_source = str(tmp_path / "missing-routes.txt")

    service = MatatuRouteService.from_config(cfg)
    asyncio.run(service.initialize())
    assert service.all_stops() == []
    assert not service.store.is_loaded
