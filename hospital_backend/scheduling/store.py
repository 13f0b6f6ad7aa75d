"""SQLAlchemy access to the appointments table.

Store failures are rolled back and re-raised as scheduling errors so callers
never mistake an outage for an empty calendar.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from hospital_backend.core.config import SchedulingConfig
from hospital_backend.models.appointment import Appointment
from hospital_backend.models.user import User
from hospital_backend.scheduling.clock import to_storage
from hospital_backend.scheduling.errors import InvalidInput, SlotUnavailable, UpstreamUnavailable
from hospital_backend.scheduling.intervals import CANCELLED_STATUS

logger = logging.getLogger(__name__)

UNIQUE_SLOT_INDEX = 'uq_appointments_doctor_start_active'
DOCTOR_ROLE = 'doctor'


def _upstream_failure(db: Session, exc: SQLAlchemyError, action: str) -> UpstreamUnavailable:
    db.rollback()
    logger.exception('Appointment store failed while %s', action)
    return UpstreamUnavailable('Database unavailable. Verify DATABASE_URL and database credentials.')


def _is_slot_collision(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return UNIQUE_SLOT_INDEX in message or 'UNIQUE constraint failed: appointments.doctor_id' in message


def list_appointments(
    db: Session,
    doctor_id: int,
    start: datetime,
    end: datetime,
    include_cancelled: bool = False,
    config: SchedulingConfig | None = None,
) -> list[Appointment]:
    """Appointments for ``doctor_id`` whose start lies in ``[start, end)``."""
    config = config or SchedulingConfig()

    try:
        query = db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date >= to_storage(start, config),
            Appointment.appointment_date < to_storage(end, config),
        )
        if not include_cancelled:
            query = query.filter(Appointment.status != CANCELLED_STATUS)

        return query.order_by(Appointment.appointment_date.asc()).all()
    except SQLAlchemyError as exc:
        raise _upstream_failure(db, exc, 'listing appointments') from exc


def search_appointments(
    db: Session,
    start: datetime | None = None,
    end: datetime | None = None,
    doctor_id: int | None = None,
    patient_id: int | None = None,
    config: SchedulingConfig | None = None,
) -> list[Appointment]:
    config = config or SchedulingConfig()

    try:
        query = db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.doctor),
        )
        if start is not None:
            query = query.filter(Appointment.appointment_date >= to_storage(start, config))
        if end is not None:
            query = query.filter(Appointment.appointment_date < to_storage(end, config))
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)

        return query.order_by(Appointment.appointment_date.asc()).all()
    except SQLAlchemyError as exc:
        raise _upstream_failure(db, exc, 'searching appointments') from exc


def get_appointment(db: Session, appointment_id: int) -> Appointment | None:
    try:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()
    except SQLAlchemyError as exc:
        raise _upstream_failure(db, exc, 'loading an appointment') from exc


def insert_appointment(
    db: Session,
    doctor_id: int,
    start_time: datetime,
    duration_minutes: int,
    details: dict | None = None,
    config: SchedulingConfig | None = None,
) -> Appointment:
    config = config or SchedulingConfig()
    details = details or {}

    appointment = Appointment(
        doctor_id=doctor_id,
        patient_id=details.get('patient_id'),
        appointment_date=to_storage(start_time, config),
        duration_minutes=duration_minutes,
        appointment_type=details.get('appointment_type'),
        notes=details.get('notes'),
        status=details.get('status') or 'scheduled',
    )

    try:
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
    except IntegrityError as exc:
        db.rollback()
        if _is_slot_collision(exc):
            logger.warning('Unique slot index rejected booking for doctor %s at %s', doctor_id, start_time)
            raise SlotUnavailable() from exc
        raise InvalidInput('Appointment references an unknown doctor or patient.') from exc
    except SQLAlchemyError as exc:
        raise _upstream_failure(db, exc, 'inserting an appointment') from exc

    return appointment


def save_appointment(db: Session, appointment: Appointment) -> Appointment:
    try:
        db.commit()
        db.refresh(appointment)
    except IntegrityError as exc:
        db.rollback()
        if _is_slot_collision(exc):
            raise SlotUnavailable() from exc
        raise InvalidInput('Appointment references an unknown doctor or patient.') from exc
    except SQLAlchemyError as exc:
        raise _upstream_failure(db, exc, 'updating an appointment') from exc

    return appointment


def delete_appointment(db: Session, appointment: Appointment) -> None:
    try:
        db.delete(appointment)
        db.commit()
    except SQLAlchemyError as exc:
        raise _upstream_failure(db, exc, 'deleting an appointment') from exc


def list_doctors(db: Session) -> list[User]:
    try:
        return db.query(User).filter(User.role == DOCTOR_ROLE).order_by(User.full_name.asc()).all()
    except SQLAlchemyError as exc:
        raise _upstream_failure(db, exc, 'listing doctors') from exc
