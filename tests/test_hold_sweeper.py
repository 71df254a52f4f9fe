from __future__ import annotations

import threading

import pytest

from car_booking.domain.models import BookingStatus
from car_booking.services.hold_sweeper import HoldSweeper


def test_run_once_expires_lapsed_holds(connection, make_booking, booking_service, clock):
    hold = make_booking("2024-06-01", "2024-06-05")
    sweeper = HoldSweeper(connection, 5, clock=clock)

    assert sweeper.run_once() == 0
    clock.advance(minutes=11)
    assert sweeper.run_once() == 1
    assert booking_service.get_booking(hold.id).status == BookingStatus.EXPIRED


def test_run_forever_stops_after_max_runs(connection, make_booking, clock):
    make_booking("2024-06-01", "2024-06-05")
    clock.advance(minutes=11)
    sweeper = HoldSweeper(connection, 0.01, clock=clock)
    assert sweeper.run_forever(max_runs=3) == 1


def test_run_forever_returns_when_stop_event_is_set(connection, clock):
    stop_event = threading.Event()
    stop_event.set()
    sweeper = HoldSweeper(connection, 60, clock=clock)
    assert sweeper.run_forever(stop_event) == 0


def test_interval_must_be_positive(connection):
    with pytest.raises(ValueError):
        HoldSweeper(connection, 0)
