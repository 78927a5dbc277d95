"""Availability engine: conflict detection and live occupancy.

Everything in this module is a pure function of its arguments. Nothing is
cached between calls, so the answers are always re-derivable from stored
booking rows plus the wall-clock time handed in by the caller.
"""

from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional, Sequence

from ..entities.booking import Booking
from ..entities.station import Station
from ..value_objects.live_status import LiveStatus
from ..value_objects.time_range import TimeRange


def intervals_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """Half-open interval test: [a) and [b) overlap unless one ends before the other starts."""
    return not (end_a <= start_b or start_a >= end_b)


def _same_station_day(booking: Booking, station_id: int, booking_date: date) -> bool:
    return (
        booking.is_confirmed
        and booking.station_id == station_id
        and booking.booking_date == booking_date
    )


def find_conflicts(
    station_id: int,
    booking_date: date,
    start: time,
    end: time,
    existing_bookings: Iterable[Booking]
) -> List[Booking]:
    """Confirmed bookings for the station/date whose interval overlaps [start, end)."""
    return [
        booking for booking in existing_bookings
        if _same_station_day(booking, station_id, booking_date)
        and intervals_overlap(start, end, booking.start_time, booking.end_time)
    ]


def conflict_check(
    station_id: int,
    booking_date: date,
    start: time,
    end: time,
    existing_bookings: Iterable[Booking]
) -> bool:
    """True if any confirmed booking for the station/date overlaps [start, end)."""
    return bool(find_conflicts(station_id, booking_date, start, end, existing_bookings))


def find_occupying_booking(
    station_id: int,
    now: datetime,
    bookings: Iterable[Booking]
) -> Optional[Booking]:
    """The confirmed booking whose interval contains ``now``.

    If the stored data violates the no-overlap invariant the earliest start
    wins, so the answer stays deterministic.
    """
    candidates = [
        booking for booking in bookings
        if _same_station_day(booking, station_id, now.date())
        and booking.time_range.contains(now)
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda b: (b.start_time, b.created_at))


def compute_live_status(
    station: Station,
    now: datetime,
    bookings_for_station_today: Iterable[Booking]
) -> LiveStatus:
    """Occupancy of ``station`` at ``now``. Completed bookings never occupy."""
    booking = find_occupying_booking(station.id, now, bookings_for_station_today)
    if booking is None:
        return LiveStatus.available(station)

    remaining_seconds = (booking.time_range.datetime_end - now).total_seconds()
    return LiveStatus.occupied(station, booking, int(remaining_seconds // 60))


def compute_live_statuses(
    stations: Sequence[Station],
    now: datetime,
    bookings: Iterable[Booking]
) -> List[LiveStatus]:
    """Live status for every station, in station order."""
    by_station: Dict[int, List[Booking]] = {}
    for booking in bookings:
        by_station.setdefault(booking.station_id, []).append(booking)
    return [
        compute_live_status(station, now, by_station.get(station.id, []))
        for station in stations
    ]


def compute_window_availability(
    stations: Sequence[Station],
    window: TimeRange,
    bookings: Iterable[Booking]
) -> Dict[int, bool]:
    """Map station id -> whether the station is free for the whole window."""
    bookings = list(bookings)
    return {
        station.id: not conflict_check(
            station.id,
            window.booking_date,
            window.start_time,
            window.end_time,
            bookings
        )
        for station in stations
    }
