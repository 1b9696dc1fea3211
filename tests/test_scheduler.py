import math
import random

import pytest

from src.itinerary.errors import ShapeMismatchError
from src.itinerary.models.domain import DayWindow, Stop, StopKind, parse_time_to_minutes
from src.itinerary.services.routing.matrix import TravelTimeMatrix
from src.itinerary.services.scheduling.scheduler import build_itinerary_plan


def _stop(sid: str, kind: StopKind = StopKind.PLACE, visit_min: float = 0.0) -> Stop:
    return Stop(stop_id=sid, latitude=0.0, longitude=0.0, kind=kind, visit_min=visit_min)


def _uniform_matrix(size: int, minutes: float) -> TravelTimeMatrix:
    return TravelTimeMatrix.from_rows(
        [[0 if i == j else minutes * 60 for j in range(size)] for i in range(size)]
    )


def test_single_day_round_trip():
    stops = [
        _stop("A", StopKind.HOTEL),
        _stop("B", visit_min=60),
        _stop("C", StopKind.HOTEL),
    ]
    plan = build_itinerary_plan(stops, DayWindow.from_strings("08:00", "20:00"), _uniform_matrix(3, 30))

    assert len(plan.days) == 1
    day = plan.days[0]
    assert [step.stop_id for step in day.steps] == ["A", "B", "C"]
    assert day.overflow is False
    assert day.travel_min_total == 60
    assert day.visit_min_total == 60
    assert day.total_min == 120
    assert day.start_hotel_id == "A"
    assert day.end_hotel_id == "C"
    assert [step.arrive_min_of_day for step in day.steps] == [0, 30, 120]
    assert plan.path_stop_ids == ["A", "B", "C"]
    assert plan.leg_days == [1, 1]
    assert plan.activity_order_ids == ["B"]


def test_oversized_stop_is_forced_with_overflow():
    stops = [_stop("H", StopKind.HOTEL), _stop("X", visit_min=600)]
    plan = build_itinerary_plan(stops, DayWindow.from_strings("08:00", "16:00"), _uniform_matrix(2, 30))

    assert len(plan.days) == 1
    day = plan.days[0]
    assert day.overflow is True
    assert [step.stop_id for step in day.steps] == ["H", "X", "H"]
    assert day.total_min == 660
    assert plan.overflow_days == [1]


def test_queue_spills_into_following_days():
    stops = [
        _stop("H", StopKind.HOTEL),
        _stop("P1", visit_min=240),
        _stop("P2", visit_min=240),
        _stop("P3", visit_min=240),
    ]
    plan = build_itinerary_plan(stops, DayWindow.from_strings("08:00", "18:00"), _uniform_matrix(4, 30))

    assert [[step.stop_id for step in day.steps] for day in plan.days] == [
        ["H", "P1", "P2", "H"],
        ["H", "P3", "H"],
    ]
    assert not any(day.overflow for day in plan.days)
    assert plan.path_stop_ids == ["H", "P1", "P2", "H", "P3", "H"]
    assert plan.leg_days == [1, 1, 1, 2, 2]
    assert plan.activity_order_ids == ["P1", "P2", "P3"]


def test_day_ends_at_nearest_hotel_and_next_day_starts_there():
    stops = [
        _stop("H1", StopKind.HOTEL),
        _stop("P1", visit_min=300),
        _stop("H2", StopKind.HOTEL),
        _stop("P2", visit_min=300),
    ]
    minutes = [
        [0, 20, 60, 80],
        [20, 0, 10, 50],
        [60, 10, 0, 15],
        [80, 50, 15, 0],
    ]
    matrix = TravelTimeMatrix.from_rows([[value * 60 for value in row] for row in minutes])
    plan = build_itinerary_plan(stops, DayWindow(start=540, end=900), matrix)

    assert len(plan.days) == 2
    first, second = plan.days
    assert (first.start_hotel_id, first.end_hotel_id) == ("H1", "H2")
    assert (second.start_hotel_id, second.end_hotel_id) == ("H2", "H2")
    assert [step.stop_id for step in second.steps] == ["H2", "P2", "H2"]
    assert plan.path_stop_ids == ["H1", "P1", "H2", "P2", "H2"]


def test_only_hotels_yields_a_single_stay_day():
    stops = [_stop("H", StopKind.HOTEL)]
    plan = build_itinerary_plan(stops, DayWindow.from_strings("08:00", "20:00"), TravelTimeMatrix.from_rows([[0]]))

    assert len(plan.days) == 1
    assert [step.stop_id for step in plan.days[0].steps] == ["H", "H"]
    assert plan.path_stop_ids == ["H"]
    assert plan.leg_days == []


def test_no_hotel_returns_empty_plan():
    stops = [_stop("P1", visit_min=30), _stop("P2", visit_min=30)]
    plan = build_itinerary_plan(stops, DayWindow.from_strings("08:00", "20:00"), _uniform_matrix(2, 10))

    assert plan.days == []
    assert plan.path_stop_ids == []


def test_matrix_size_must_match_stops():
    stops = [_stop("H", StopKind.HOTEL), _stop("P", visit_min=30)]
    with pytest.raises(ShapeMismatchError):
        build_itinerary_plan(stops, DayWindow.from_strings("08:00", "20:00"), _uniform_matrix(3, 10))


def test_unreachable_stop_is_forced_and_flagged():
    stops = [_stop("H", StopKind.HOTEL), _stop("P", visit_min=30)]
    matrix = TravelTimeMatrix.from_rows([[0, None], [None, 0]])
    plan = build_itinerary_plan(stops, DayWindow.from_strings("08:00", "20:00"), matrix)

    day = plan.days[0]
    assert day.overflow is True
    assert [step.stop_id for step in day.steps] == ["H", "P", "H"]
    assert day.steps[1].reachable is False
    assert day.steps[2].reachable is False
    assert day.travel_min_total == 0
    assert math.isfinite(day.total_min)


def test_every_attraction_scheduled_exactly_once():
    rng = random.Random(2024)
    for _ in range(60):
        hotel_count = rng.randint(1, 3)
        place_count = rng.randint(0, 8)
        stops = [_stop(f"H{i}", StopKind.HOTEL) for i in range(hotel_count)]
        stops += [
            _stop(f"P{i}", rng.choice([StopKind.PLACE, StopKind.AIRPORT]), visit_min=rng.randint(0, 700))
            for i in range(place_count)
        ]
        rng.shuffle(stops)
        size = len(stops)
        rows = [
            [0 if i == j else (None if rng.random() < 0.1 else rng.randint(60, 7200)) for j in range(size)]
            for i in range(size)
        ]
        window = DayWindow(start=480, end=480 + rng.randint(0, 720))

        plan = build_itinerary_plan(stops, window, TravelTimeMatrix.from_rows(rows))

        visited = [
            step.stop_id
            for day in plan.days
            for step in day.steps
            if step.kind is not StopKind.HOTEL
        ]
        expected = [stop.stop_id for stop in stops if not stop.is_hotel]
        assert visited == expected
        assert plan.activity_order_ids == expected
        assert 1 <= len(plan.days) <= place_count + 2
        for day in plan.days:
            assert day.steps[0].kind is StopKind.HOTEL
            assert day.steps[-1].kind is StopKind.HOTEL


def test_parse_time_to_minutes_clamps_and_defaults():
    assert parse_time_to_minutes("08:30") == 510
    assert parse_time_to_minutes("25:70") == 23 * 60 + 59
    assert parse_time_to_minutes("later") == 0
    assert DayWindow.from_strings("20:00", "08:00").length == 0
