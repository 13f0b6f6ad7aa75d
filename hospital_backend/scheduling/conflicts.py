"""Booking-time conflict detection.

An existing non-cancelled appointment conflicts with a proposed one when the
existing start falls in ``[proposed_start, proposed_start + duration)``.
Bounds are compared as UTC instants.
"""

from datetime import datetime, timezone

from hospital_backend.scheduling.clock import add_minutes, require_aware
from hospital_backend.scheduling.intervals import AppointmentInterval, active_intervals


def proposed_end(start_time: datetime, duration_minutes: int) -> datetime:
    return add_minutes(require_aware(start_time, 'Proposed start'), duration_minutes)


def find_conflicts(
    start_time: datetime,
    duration_minutes: int,
    existing_appointments,
    exclude_id: int | None = None,
) -> list[AppointmentInterval]:
    end_time = proposed_end(start_time, duration_minutes)
    start_time = start_time.astimezone(timezone.utc)

    return [
        interval
        for interval in active_intervals(existing_appointments)
        if (exclude_id is None or interval.appointment_id != exclude_id)
        and start_time <= interval.start_time.astimezone(timezone.utc) < end_time
    ]


def has_conflict(
    start_time: datetime,
    duration_minutes: int,
    existing_appointments,
    exclude_id: int | None = None,
) -> bool:
    return bool(find_conflicts(start_time, duration_minutes, existing_appointments, exclude_id))
