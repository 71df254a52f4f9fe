"""Background expiry of unpaid holds."""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime
from typing import Callable, Optional

from car_booking.logging_config import get_logger
from car_booking.services.availability_service import AvailabilityService
from car_booking.utils.dates import utc_now

DEFAULT_INTERVAL_SECONDS = 30.0


class HoldSweeper:
    """Periodically expires lapsed holds so the ledger stays tidy between reads.

    Availability checks still sweep on their own; this only shortens the time
    an expired hold keeps showing as HOLD in listings.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("Sweep interval must be positive.")
        self._availability = AvailabilityService(connection, clock=clock)
        self._interval = interval_seconds
        self._logger = get_logger(self.__class__.__name__)

    @property
    def interval(self) -> float:
        return self._interval

    def run_once(self) -> int:
        return self._availability.expire_holds()

    def run_forever(
        self,
        stop_event: Optional[threading.Event] = None,
        *,
        max_runs: Optional[int] = None,
    ) -> int:
        """Sweep every ``interval`` seconds until ``stop_event`` is set.

        Returns the total number of holds expired.
        """
        stop_event = stop_event or threading.Event()
        total = 0
        runs = 0
        self._logger.info("Hold sweeper started (interval=%ss)", self._interval)
        while not stop_event.is_set():
            try:
                total += self.run_once()
            except sqlite3.OperationalError:
                # Locked by another writer; the next tick retries.
                self._logger.exception("Hold sweep failed")
            runs += 1
            if max_runs is not None and runs >= max_runs:
                break
            stop_event.wait(self._interval)
        self._logger.info("Hold sweeper stopped after %s run(s), expired=%s", runs, total)
        return total
