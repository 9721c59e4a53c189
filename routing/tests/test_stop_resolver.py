import pytest

from matatu_routing.models.transit import Stop
from matatu_routing.utils.stop_resolver import StopResolver, normalize_name, smart_split_route_name

resolver = StopResolver()


@pytest.mark.parametrize("long_name, expected", [
    ("Thika Road - CBD", ["thika road", "cbd"]),
    ("Westlands Bypass - CBD", ["westlands bypass", "cbd"]),
    ("Westlands-Bypass - CBD", ["westlands bypass", "cbd"]),
    ("Kangemi - - Westlands", ["kangemi", "westlands"]),
    ("A - Ngara", ["ngara"]),
    ("K - M", []),
])
def test_smart_split_route_name(long_name, expected):
    assert smart_split_route_name(long_name) == expected


def test_compound_names_only_match_whole_words():
    """'south b' must not be protected inside 'south bay'."""
    assert smart_split_route_name("South Bay - South B") == ["south bay", "south b"]
    assert smart_split_route_name("Pangani-Flyover-Ngara") == ["pangani flyover", "ngara"]


def test_normalize_name():
    assert normalize_name("Bus-Station") == "busstation"
    assert normalize_name(" T Mall ") == "tmall"


def test_resolve_tiers_first_hit_wins():
    westlands_bypass = Stop("1", "Westlands Bypass", -1.256, 36.803)
    westlands = Stop("2", "Westlands", -1.2674, 36.8108)
    globe = Stop("3", "Globe Cinema", -1.2789, 36.8195)
    t_mall = Stop("4", "T Mall", -1.3100, 36.8150)
    candidates = [westlands_bypass, westlands, globe, t_mall]

    # Exact beats an earlier starts-with candidate
    assert resolver.resolve_by_name("westlands", candidates) == westlands
    assert resolver.resolve_by_name("Globe", candidates) == globe
    assert resolver.resolve_by_name("cinema", candidates) == globe
    assert resolver.resolve_by_name("t-mall", candidates) == t_mall
    assert resolver.resolve_by_name("tmall", candidates) == t_mall


def test_resolve_rejects_short_and_unknown_fragments():
    stops = [Stop("1", "Ngara", -1.2731, 36.8232)]
    assert resolver.resolve_by_name("ng", stops) is None
    assert resolver.resolve_by_name("atlantis", stops) is None
    assert resolver.resolve_by_name("ngara", []) is None


def test_is_same_stop():
    kencom = Stop("1", "Kencom", -1.2864, 36.8250)
    assert resolver.is_same_stop(kencom, Stop("1", "Elsewhere", 0.0, 0.0))
    assert resolver.is_same_stop(kencom, Stop("9", "KENCOM", 0.0, 0.0))
    assert resolver.is_same_stop(kencom, Stop("9", "Kencom Stage", 0.0, 0.0))
    assert resolver.is_same_stop(Stop("5", "Bus-Station", 0.0, 0.0),
                                 Stop("6", "bus station", 1.0, 1.0))
    # ~200 m away under a different name
    assert resolver.is_same_stop(kencom, Stop("7", "Moi Avenue", -1.2846, 36.8250))
    # Odeon is ~394 m from Kencom
    assert not resolver.is_same_stop(kencom, Stop("8", "Odeon", -1.2830, 36.8260))


def test_empty_names_do_not_match_everything():
    nameless = Stop("1", "", 0.0, 0.0)
    assert not resolver.is_same_stop(nameless, Stop("2", "Kencom", -1.2864, 36.8250))


def test_index_of():
    stops = (Stop("1", "Kangemi", -1.267, 36.748), Stop("2", "Westlands", -1.2674, 36.8108))
    assert resolver.index_of(stops, Stop("x", "westlands", 5.0, 5.0)) == 1
    assert resolver.index_of(stops, Stop("y", "Karen", -1.319, 36.707)) == -1
