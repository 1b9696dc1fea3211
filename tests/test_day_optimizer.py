import pytest

from src.itinerary.errors import InsufficientInstanceError
from src.itinerary.models.domain import Stop, StopKind, TravelMode
from src.itinerary.services.planning.day_optimizer import optimize_day, summarize_legs
from src.itinerary.services.routing.matrix import TravelTimeMatrix


def _stop(sid: str, kind: StopKind = StopKind.PLACE, lat: float = 0.0, lon: float = 0.0) -> Stop:
    return Stop(stop_id=sid, latitude=lat, longitude=lon, kind=kind, visit_min=30)


def _line_matrix(xs) -> TravelTimeMatrix:
    """Travel minutes equal to the distance along a line."""
    return TravelTimeMatrix.from_rows([[abs(a - b) * 60 for b in xs] for a in xs])


def test_zig_zag_day_is_reordered():
    stops = [
        _stop("H1", StopKind.HOTEL),
        _stop("A"),
        _stop("B"),
        _stop("C"),
        _stop("H2", StopKind.HOTEL),
    ]
    result = optimize_day(stops, _line_matrix([0, 1, -1, 5, 10]))

    assert result.changed is True
    assert result.stop_ids == ["H1", "B", "A", "C", "H2"]
    assert result.positions == [0, 2, 1, 3, 4]
    assert result.cost_before_min == pytest.approx(14)
    assert result.cost_after_min == pytest.approx(12)


def test_exact_solver_agrees_on_small_day():
    stops = [
        _stop("H1", StopKind.HOTEL),
        _stop("A"),
        _stop("B"),
        _stop("C"),
        _stop("H2", StopKind.HOTEL),
    ]
    result = optimize_day(stops, _line_matrix([0, 1, -1, 5, 10]), exact=True)

    assert result.stop_ids == ["H1", "B", "A", "C", "H2"]


def test_optimal_day_reports_no_change():
    stops = [
        _stop("H1", StopKind.HOTEL),
        _stop("A"),
        _stop("B"),
        _stop("C"),
        _stop("H2", StopKind.HOTEL),
    ]
    modes = [TravelMode.DRIVING, TravelMode.WALKING, TravelMode.CYCLING, TravelMode.WALKING, TravelMode.DRIVING]
    result = optimize_day(stops, _line_matrix([0, 1, 3, 5, 10]), modes)

    assert result.changed is False
    assert result.stop_ids == ["H1", "A", "B", "C", "H2"]
    assert result.modes == modes


def test_round_trip_keeps_input_order_when_reverse_costs_the_same():
    stops = [
        _stop("H", StopKind.HOTEL),
        _stop("A"),
        _stop("B"),
        _stop("H", StopKind.HOTEL),
    ]
    modes = [TravelMode.DRIVING, TravelMode.WALKING, TravelMode.CYCLING, TravelMode.DRIVING]
    # Nearest-neighbor alone would visit B first; both directions cost 10.
    result = optimize_day(stops, _line_matrix([0, 5, 1, 0]), modes)

    assert result.changed is False
    assert result.stop_ids == ["H", "A", "B", "H"]
    assert result.positions == [0, 1, 2, 3]
    assert result.modes == modes
    assert result.cost_before_min == pytest.approx(10)
    assert result.cost_after_min == pytest.approx(10)


def test_flight_block_moves_as_a_unit_and_keeps_modes():
    stops = [
        _stop("H", StopKind.HOTEL),
        _stop("AP1", StopKind.AIRPORT),
        _stop("AP2", StopKind.AIRPORT),
        _stop("P"),
        _stop("H2", StopKind.HOTEL),
    ]
    modes = [TravelMode.DRIVING, TravelMode.WALKING, TravelMode.FLIGHT, TravelMode.CYCLING, TravelMode.DRIVING]
    result = optimize_day(stops, _line_matrix([0, 8, 2, 1, 10]), modes)

    assert result.changed is True
    assert result.stop_ids == ["H", "P", "AP1", "AP2", "H2"]
    assert result.modes == [
        TravelMode.DRIVING,
        TravelMode.CYCLING,
        TravelMode.WALKING,
        TravelMode.FLIGHT,
        TravelMode.DRIVING,
    ]


def test_flight_pair_never_split_even_when_cheaper():
    stops = [
        _stop("H", StopKind.HOTEL),
        _stop("P"),
        _stop("AP1", StopKind.AIRPORT),
        _stop("AP2", StopKind.AIRPORT),
        _stop("H2", StopKind.HOTEL),
    ]
    modes = [TravelMode.DRIVING, TravelMode.DRIVING, TravelMode.DRIVING, TravelMode.FLIGHT, TravelMode.DRIVING]
    # Unlocked, visiting AP2 before AP1 would be cheapest.
    result = optimize_day(stops, _line_matrix([0, 1, 8, 2, 10]), modes)

    index = result.stop_ids.index("AP1")
    assert result.stop_ids[index + 1] == "AP2"
    assert result.stop_ids == ["H", "P", "AP1", "AP2", "H2"]
    assert result.changed is False


def test_without_the_flight_mode_airports_are_free_to_move():
    stops = [
        _stop("H", StopKind.HOTEL),
        _stop("P"),
        _stop("AP1", StopKind.AIRPORT),
        _stop("AP2", StopKind.AIRPORT),
        _stop("H2", StopKind.HOTEL),
    ]
    result = optimize_day(stops, _line_matrix([0, 1, 8, 2, 10]))

    assert result.stop_ids == ["H", "P", "AP2", "AP1", "H2"]


def test_single_movable_block_is_left_alone():
    stops = [
        _stop("AP1", StopKind.AIRPORT),
        _stop("AP2", StopKind.AIRPORT),
        _stop("AP3", StopKind.AIRPORT),
    ]
    modes = [TravelMode.DRIVING, TravelMode.FLIGHT, TravelMode.FLIGHT]
    result = optimize_day(stops, _line_matrix([0, 5, 9]), modes)

    assert result.changed is False
    assert result.stop_ids == ["AP1", "AP2", "AP3"]


def test_day_needs_three_stops():
    stops = [_stop("H", StopKind.HOTEL), _stop("P")]
    with pytest.raises(InsufficientInstanceError):
        optimize_day(stops, _line_matrix([0, 1]))


def test_leg_summary_estimates_flights():
    stops = [
        _stop("H", StopKind.HOTEL),
        _stop("AP1", StopKind.AIRPORT, lat=0.0, lon=0.0),
        _stop("AP2", StopKind.AIRPORT, lat=0.0, lon=10.0),
    ]
    matrix = TravelTimeMatrix.from_rows([[0, 600, None], [600, 0, None], [None, None, 0]])

    legs = summarize_legs(stops, matrix, [TravelMode.DRIVING, TravelMode.DRIVING, TravelMode.FLIGHT])

    assert legs[0].minutes == 10
    assert legs[0].estimated is False
    assert legs[1].mode is TravelMode.FLIGHT
    assert legs[1].estimated is True
    assert legs[1].minutes == 114


def test_leg_summary_reports_unreachable_as_none():
    stops = [_stop("H", StopKind.HOTEL), _stop("P")]
    legs = summarize_legs(stops, TravelTimeMatrix.from_rows([[0, None], [None, 0]]))

    assert legs[0].minutes is None
