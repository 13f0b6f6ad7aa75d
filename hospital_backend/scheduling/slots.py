"""Open appointment slots for one doctor on one civil day.

Candidate starts sit on a fixed grid from ``work_start_hour`` up to, but not
including, ``work_end_hour``. A candidate is booked when its start instant
falls inside an existing appointment's half-open interval. Only the start is
tested, so a slot can be listed even though a longer appointment booked there
would run into the next one.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy.orm import Session

from hospital_backend.core.config import SchedulingConfig
from hospital_backend.scheduling import store
from hospital_backend.scheduling.clock import day_bounds
from hospital_backend.scheduling.errors import InvalidInput
from hospital_backend.scheduling.intervals import AppointmentInterval, active_intervals

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = SchedulingConfig()


@dataclass(frozen=True)
class Slot:
    time: datetime
    display: str


def format_slot_label(slot_time: datetime) -> str:
    return slot_time.strftime('%I:%M %p')


def iterate_candidate_starts(day: date, config: SchedulingConfig = DEFAULT_CONFIG):
    tz = config.tzinfo
    for hour in range(config.work_start_hour, config.work_end_hour):
        for minute in range(0, 60, config.slot_step_minutes):
            yield datetime.combine(day, time(hour, minute), tzinfo=tz)


def is_slot_booked(
    slot_start: datetime,
    intervals: list[AppointmentInterval],
    default_duration_minutes: int,
) -> bool:
    return any(interval.contains(slot_start, default_duration_minutes) for interval in intervals)


def generate_available_slots(
    day: date,
    existing_appointments,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> list[Slot]:
    intervals = active_intervals(existing_appointments)

    return [
        Slot(time=slot_start, display=format_slot_label(slot_start))
        for slot_start in iterate_candidate_starts(day, config)
        if not is_slot_booked(slot_start, intervals, config.default_duration_minutes)
    ]


def available_slots_for_doctor(
    db: Session,
    doctor_id: int,
    day: date,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> list[Slot]:
    if doctor_id is None or doctor_id <= 0:
        raise InvalidInput('Doctor ID is required.')

    day_start, day_end = day_bounds(day, config)
    appointments = store.list_appointments(db, doctor_id, day_start, day_end, config=config)
    intervals = [AppointmentInterval.from_model(appointment) for appointment in appointments]

    slots = generate_available_slots(day, intervals, config)
    logger.debug('Doctor %s has %d open slots on %s', doctor_id, len(slots), day.isoformat())
    return slots
