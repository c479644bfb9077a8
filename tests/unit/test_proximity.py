from __future__ import annotations

from datetime import datetime, timezone

from src.domain.algorithms.proximity import StopAlertFilter, evaluate_proximity
from src.domain.models import GeoPoint, Position, Stop

T0 = datetime(2025, 11, 24, 8, 0, tzinfo=timezone.utc)


def _position(lat: float, lon: float) -> Position:
    return Position(bus_id="bus-1", lat=lat, lon=lon, timestamp=T0)


def _stops() -> tuple[Stop, ...]:
    return (
        Stop(id="s1", name="Main Gate", location=GeoPoint(lat=17.3850, lon=78.4867), stop_order=1),
        Stop(id="s2", name="Library", location=GeoPoint(lat=17.4000, lon=78.4867), stop_order=2),
        Stop(id="s3", name="Hostel Block", location=GeoPoint(lat=17.4500, lon=78.4867), stop_order=3),
    )


def test_single_stop_within_threshold_yields_one_event() -> None:
    # ~220 m north of the main gate, ~1.4 km from the library.
    events = evaluate_proximity(_position(17.3870, 78.4867), _stops(), threshold_km=0.5)

    assert len(events) == 1
    assert events[0].stop.id == "s1"
    assert events[0].message == "Bus approaching Main Gate"
    assert events[0].duration_s == 5.0


def test_no_stop_within_threshold_yields_nothing() -> None:
    events = evaluate_proximity(_position(17.3000, 78.3000), _stops(), threshold_km=0.5)
    assert events == ()


def test_events_follow_stop_order_not_input_order() -> None:
    stops = tuple(reversed(_stops()))
    # Generous threshold that covers the first two stops.
    events = evaluate_proximity(_position(17.3925, 78.4867), stops, threshold_km=1.0)

    assert [e.stop.id for e in events] == ["s1", "s2"]


def test_threshold_is_strict() -> None:
    stop = _stops()[0]
    events = evaluate_proximity(_position(stop.location.lat, stop.location.lon), (stop,), threshold_km=0.0)
    assert events == ()


def test_evaluator_is_stateless_and_retriggers() -> None:
    pos = _position(17.3851, 78.4867)

    first = evaluate_proximity(pos, _stops())
    second = evaluate_proximity(pos, _stops())

    assert [e.stop.id for e in first] == ["s1"]
    assert first == second


def test_alert_filter_suppresses_repeats_until_bus_moves_away() -> None:
    stops = _stops()
    flt = StopAlertFilter(threshold_km=0.5, hysteresis_factor=2.0)
    near = _position(17.3855, 78.4867)

    assert [e.stop.id for e in flt.filter(evaluate_proximity(near, stops))] == ["s1"]
    flt.rearm(near, stops)
    assert flt.filter(evaluate_proximity(near, stops)) == ()
    assert flt.notified_stop_ids == frozenset({"s1"})

    # ~0.8 km away: beyond the threshold but inside the hysteresis band.
    mid = _position(17.3922, 78.4867)
    flt.rearm(mid, stops)
    assert "s1" in flt.notified_stop_ids

    # ~5.5 km away re-arms the stop.
    far = _position(17.3350, 78.4867)
    flt.rearm(far, stops)
    assert "s1" not in flt.notified_stop_ids

    flt.rearm(near, stops)
    assert [e.stop.id for e in flt.filter(evaluate_proximity(near, stops))] == ["s1"]
