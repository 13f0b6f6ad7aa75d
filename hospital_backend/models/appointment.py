"""Appointment model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from hospital_backend.database import Base
from hospital_backend.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Appointment(Base):
    """A doctor's booked interval; ``appointment_date`` is naive UTC."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_doctor_start", "doctor_id", "appointment_date"),
        # At most one active appointment may start at a given instant per doctor.
        Index(
            "uq_appointments_doctor_start_active",
            "doctor_id",
            "appointment_date",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    appointment_date = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)
    appointment_type = Column(String)
    notes = Column(String)
    status = Column(String, nullable=False, default="scheduled")
    created_at = Column(DateTime, default=_utcnow)

    patient = relationship(User, foreign_keys=[patient_id])
    doctor = relationship(User, foreign_keys=[doctor_id])

    @property
    def patient_name(self) -> str | None:
        return self.patient.full_name if self.patient else None

    @property
    def doctor_name(self) -> str | None:
        return self.doctor.full_name if self.doctor else None
