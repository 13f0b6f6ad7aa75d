import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from hospital_backend.auth.dependencies import get_current_user
from hospital_backend.core.config import SchedulingConfig
from hospital_backend.database import get_db
from hospital_backend.models.appointment import Appointment
from hospital_backend.models.user import User
from hospital_backend.routes.common import ensure_database_ready, get_scheduling_config, to_http_exception
from hospital_backend.scheduling import booking, store
from hospital_backend.scheduling.clock import day_bounds, from_storage, parse_day
from hospital_backend.scheduling.conflicts import proposed_end
from hospital_backend.scheduling.errors import InvalidInput, SchedulingError
from hospital_backend.scheduling.intervals import APPOINTMENT_STATUSES
from hospital_backend.scheduling.slots import available_slots_for_doctor

router = APIRouter(tags=['appointments'])
logger = logging.getLogger(__name__)

MAX_APPOINTMENT_NOTES_LENGTH = 1000
DURATION_OPTIONS = (15, 30, 45, 60, 90, 120)
APPOINTMENT_TYPES = (
    'General Consultation',
    'Follow-up',
    'Specialist Consultation',
    'Routine Check-up',
    'Urgent Care',
    'Preventive Care',
    'Surgery Consultation',
    'Lab Results Review',
)


def _normalize_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


def _normalize_appointment_type(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class SlotResponse(BaseModel):
    time: datetime
    display: str


class AvailableSlotsResponse(BaseModel):
    availableSlots: list[SlotResponse]


class CreateAppointmentRequest(BaseModel):
    patient_id: int | None = Field(default=None, alias='patientId')
    doctor_id: int = Field(alias='doctorId', gt=0)
    appointment_date: datetime = Field(alias='appointmentDate')
    duration_minutes: int | None = Field(default=None, alias='durationMinutes', ge=0)
    appointment_type: str | None = Field(default=None, alias='appointmentType')
    notes: str | None = None

    class Config:
        populate_by_name = True

    @field_validator('appointment_type')
    @classmethod
    def validate_appointment_type(cls, value: str | None) -> str | None:
        return _normalize_appointment_type(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)


class UpdateAppointmentRequest(BaseModel):
    patient_id: int | None = Field(default=None, alias='patientId')
    appointment_date: datetime | None = Field(default=None, alias='appointmentDate')
    duration_minutes: int | None = Field(default=None, alias='durationMinutes', ge=0)
    appointment_type: str | None = Field(default=None, alias='appointmentType')
    notes: str | None = None
    status: str | None = None

    class Config:
        populate_by_name = True

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip().lower()
        if normalized not in APPOINTMENT_STATUSES:
            raise ValueError('Invalid appointment status.')
        return normalized

    @field_validator('appointment_type')
    @classmethod
    def validate_appointment_type(cls, value: str | None) -> str | None:
        return _normalize_appointment_type(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int | None = None
    patient_name: str | None = None
    doctor_id: int
    doctor_name: str | None = None
    appointment_date: datetime
    end_time: datetime
    duration_minutes: int
    appointment_type: str | None = None
    notes: str | None = None
    status: str
    created_at: datetime | None = None


class AppointmentEnvelope(BaseModel):
    appointment: AppointmentResponse


class AppointmentListResponse(BaseModel):
    appointments: list[AppointmentResponse]


class AppointmentTypesResponse(BaseModel):
    appointmentTypes: list[str]
    durationOptions: list[int]


def serialize_appointment(appointment: Appointment, config: SchedulingConfig) -> AppointmentResponse:
    start_time = from_storage(appointment.appointment_date).astimezone(config.tzinfo)
    duration_minutes = appointment.duration_minutes or config.default_duration_minutes

    return AppointmentResponse(
        id=appointment.id,
        patient_id=appointment.patient_id,
        patient_name=appointment.patient_name,
        doctor_id=appointment.doctor_id,
        doctor_name=appointment.doctor_name,
        appointment_date=start_time,
        end_time=proposed_end(start_time, duration_minutes).astimezone(config.tzinfo),
        duration_minutes=duration_minutes,
        appointment_type=appointment.appointment_type,
        notes=appointment.notes,
        status=appointment.status or 'scheduled',
        created_at=from_storage(appointment.created_at) if appointment.created_at else None,
    )


def _parse_id(value: str | None, label: str) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        parsed = int(value)
    except ValueError as exc:
        raise InvalidInput(f'Invalid {label}.') from exc
    if parsed <= 0:
        raise InvalidInput(f'Invalid {label}.')
    return parsed


def _load_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = store.get_appointment(db, appointment_id)
    if appointment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found.',
        )
    return appointment


@router.get('/available-slots', response_model=AvailableSlotsResponse)
def list_available_slots(
    doctor_id: str | None = Query(default=None, alias='doctorId'),
    date: str | None = Query(default=None),
    db: Session = Depends(get_db),
    config: SchedulingConfig = Depends(get_scheduling_config),
):
    if not doctor_id or not date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Doctor ID and date are required',
        )

    ensure_database_ready()

    try:
        slots = available_slots_for_doctor(db, _parse_id(doctor_id, 'doctor ID'), parse_day(date, config), config)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return AvailableSlotsResponse(
        availableSlots=[SlotResponse(time=slot.time, display=slot.display) for slot in slots],
    )


@router.get('/types', response_model=AppointmentTypesResponse)
def list_appointment_types():
    return AppointmentTypesResponse(
        appointmentTypes=list(APPOINTMENT_TYPES),
        durationOptions=list(DURATION_OPTIONS),
    )


@router.get('', response_model=AppointmentListResponse)
def list_appointments(
    date: str | None = Query(default=None),
    doctor_id: str | None = Query(default=None, alias='doctorId'),
    patient_id: str | None = Query(default=None, alias='patientId'),
    db: Session = Depends(get_db),
    config: SchedulingConfig = Depends(get_scheduling_config),
):
    ensure_database_ready()

    try:
        start = end = None
        if date:
            start, end = day_bounds(parse_day(date, config), config)

        appointments = store.search_appointments(
            db,
            start=start,
            end=end,
            doctor_id=_parse_id(doctor_id, 'doctor ID'),
            patient_id=_parse_id(patient_id, 'patient ID'),
            config=config,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return AppointmentListResponse(
        appointments=[serialize_appointment(appointment, config) for appointment in appointments],
    )


@router.post('', response_model=AppointmentEnvelope, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: SchedulingConfig = Depends(get_scheduling_config),
):
    ensure_database_ready()

    try:
        appointment = booking.check_and_book_appointment(
            db,
            doctor_id=data.doctor_id,
            start_time=data.appointment_date,
            duration_minutes=data.duration_minutes,
            details={
                'patient_id': data.patient_id,
                'appointment_type': data.appointment_type,
                'notes': data.notes,
            },
            config=config,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    logger.info('Appointment %s created by %s', appointment.id, current_user.email)
    return AppointmentEnvelope(appointment=serialize_appointment(appointment, config))


@router.patch('/{appointment_id}', response_model=AppointmentEnvelope)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: SchedulingConfig = Depends(get_scheduling_config),
):
    ensure_database_ready()

    try:
        appointment = _load_appointment(db, appointment_id)
        changes = data.model_dump(exclude_unset=True)
        appointment = booking.reschedule_appointment(db, appointment, changes, config)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    logger.info('Appointment %s updated by %s', appointment.id, current_user.email)
    return AppointmentEnvelope(appointment=serialize_appointment(appointment, config))


@router.delete('/{appointment_id}')
def delete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_database_ready()

    try:
        appointment = _load_appointment(db, appointment_id)
        store.delete_appointment(db, appointment)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    logger.info('Appointment %s deleted by %s', appointment_id, current_user.email)
    return {'message': 'Appointment deleted successfully'}
