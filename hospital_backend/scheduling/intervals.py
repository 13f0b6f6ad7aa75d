from dataclasses import dataclass
from datetime import datetime, timezone

from hospital_backend.scheduling.clock import add_minutes, from_storage, require_aware

CANCELLED_STATUS = 'cancelled'
APPOINTMENT_STATUSES = (
    'scheduled',
    'confirmed',
    'in-progress',
    'completed',
    CANCELLED_STATUS,
    'no-show',
)


@dataclass(frozen=True)
class AppointmentInterval:
    """Half-open span ``[start_time, start_time + duration_minutes)`` held by an appointment."""

    start_time: datetime
    duration_minutes: int | None = None
    status: str = 'scheduled'
    appointment_id: int | None = None

    def __post_init__(self) -> None:
        require_aware(self.start_time, 'Appointment start')

    @classmethod
    def from_model(cls, appointment) -> 'AppointmentInterval':
        return cls(
            start_time=from_storage(appointment.appointment_date),
            duration_minutes=appointment.duration_minutes,
            status=appointment.status or 'scheduled',
            appointment_id=appointment.id,
        )

    @property
    def is_cancelled(self) -> bool:
        return (self.status or '').strip().lower() == CANCELLED_STATUS

    def end_time(self, default_duration_minutes: int) -> datetime:
        # A zero or missing duration occupies the default length.
        minutes = self.duration_minutes or default_duration_minutes
        return add_minutes(self.start_time, minutes)

    def contains(self, instant: datetime, default_duration_minutes: int) -> bool:
        start = self.start_time.astimezone(timezone.utc)
        return start <= instant.astimezone(timezone.utc) < self.end_time(default_duration_minutes)


def active_intervals(intervals) -> list[AppointmentInterval]:
    return [interval for interval in intervals if not interval.is_cancelled]
