"""Conflict-checked booking and rescheduling.

Writers for the same doctor are serialised through an in-process lock, so the
conflict check and the insert that follows it see a consistent calendar. The
partial unique index on ``(doctor_id, appointment_date)`` backs this up for
writers in other processes.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from threading import Lock
from weakref import WeakValueDictionary

from sqlalchemy.orm import Session

from hospital_backend.core.config import SchedulingConfig
from hospital_backend.models.appointment import Appointment
from hospital_backend.scheduling import store
from hospital_backend.scheduling.clock import from_storage, localize, to_storage
from hospital_backend.scheduling.conflicts import find_conflicts, proposed_end
from hospital_backend.scheduling.errors import InvalidInput, SlotUnavailable
from hospital_backend.scheduling.intervals import (
    APPOINTMENT_STATUSES,
    CANCELLED_STATUS,
    AppointmentInterval,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = SchedulingConfig()
EDITABLE_FIELDS = ('status', 'notes', 'appointment_type', 'appointment_date', 'duration_minutes', 'patient_id')

_registry_lock = Lock()
# Entries disappear once no writer holds or waits on the lock.
_doctor_locks: WeakValueDictionary = WeakValueDictionary()


@contextmanager
def doctor_lock(doctor_id: int):
    with _registry_lock:
        lock = _doctor_locks.get(doctor_id)
        if lock is None:
            lock = Lock()
            _doctor_locks[doctor_id] = lock
    with lock:
        yield


def validate_doctor_id(doctor_id) -> int:
    if isinstance(doctor_id, bool) or not isinstance(doctor_id, int) or doctor_id <= 0:
        raise InvalidInput('Doctor ID is required.')
    return doctor_id


def resolve_duration(duration_minutes, config: SchedulingConfig) -> int:
    if duration_minutes is None or duration_minutes == 0:
        return config.default_duration_minutes
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes < 0:
        raise InvalidInput('Duration must be a positive number of minutes.')
    return duration_minutes


def normalize_status(status: str) -> str:
    normalized = (status or '').strip().lower()
    if normalized not in APPOINTMENT_STATUSES:
        raise InvalidInput(f'Invalid appointment status: {status!r}.')
    return normalized


def _ensure_free(
    db: Session,
    doctor_id: int,
    start_time: datetime,
    duration_minutes: int,
    config: SchedulingConfig,
    exclude_id: int | None = None,
) -> None:
    end_time = proposed_end(start_time, duration_minutes)
    existing = store.list_appointments(db, doctor_id, start_time, end_time, config=config)
    intervals = [AppointmentInterval.from_model(appointment) for appointment in existing]

    conflicts = find_conflicts(start_time, duration_minutes, intervals, exclude_id=exclude_id)
    if conflicts:
        logger.warning(
            'Rejected booking for doctor %s at %s: overlaps appointment %s',
            doctor_id,
            start_time.isoformat(),
            conflicts[0].appointment_id,
        )
        raise SlotUnavailable()


def check_and_book_appointment(
    db: Session,
    doctor_id: int,
    start_time: datetime,
    duration_minutes: int | None = None,
    details: dict | None = None,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> Appointment:
    doctor_id = validate_doctor_id(doctor_id)
    if not isinstance(start_time, datetime):
        raise InvalidInput('Appointment date is required.')
    duration_minutes = resolve_duration(duration_minutes, config)
    start_time = localize(start_time, config).replace(second=0, microsecond=0)

    details = dict(details or {})
    details['status'] = 'scheduled'

    with doctor_lock(doctor_id):
        _ensure_free(db, doctor_id, start_time, duration_minutes, config)
        appointment = store.insert_appointment(db, doctor_id, start_time, duration_minutes, details, config=config)

    logger.info(
        'Booked appointment %s for doctor %s at %s (%d min)',
        appointment.id,
        doctor_id,
        start_time.isoformat(),
        duration_minutes,
    )
    return appointment


def reschedule_appointment(
    db: Session,
    appointment: Appointment,
    changes: dict,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> Appointment:
    """Apply a partial update, re-checking conflicts when the interval moves."""
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise InvalidInput(f'Unsupported fields: {", ".join(sorted(unknown))}.')

    old_status = appointment.status or 'scheduled'
    new_status = normalize_status(changes['status']) if changes.get('status') is not None else old_status

    old_start = from_storage(appointment.appointment_date)
    new_start = old_start
    if changes.get('appointment_date') is not None:
        new_start = localize(changes['appointment_date'], config).replace(second=0, microsecond=0)

    new_duration = appointment.duration_minutes or config.default_duration_minutes
    if 'duration_minutes' in changes:
        new_duration = resolve_duration(changes['duration_minutes'], config)

    interval_changed = new_start != old_start or new_duration != appointment.duration_minutes
    reactivated = old_status == CANCELLED_STATUS and new_status != CANCELLED_STATUS
    needs_check = new_status != CANCELLED_STATUS and (interval_changed or reactivated)

    with doctor_lock(appointment.doctor_id):
        if needs_check:
            _ensure_free(db, appointment.doctor_id, new_start, new_duration, config, exclude_id=appointment.id)

        appointment.status = new_status
        appointment.appointment_date = to_storage(new_start, config)
        appointment.duration_minutes = new_duration
        for field in ('notes', 'appointment_type', 'patient_id'):
            if field in changes:
                setattr(appointment, field, changes[field])

        store.save_appointment(db, appointment)

    logger.info('Updated appointment %s (status=%s)', appointment.id, appointment.status)
    return appointment
