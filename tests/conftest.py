import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from hospital_backend.database import Base  # noqa: E402
from hospital_backend.models.appointment import Appointment  # noqa: E402
from hospital_backend.models.user import User  # noqa: E402


@pytest.fixture
def appointment_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__, Appointment.__table__])

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[Appointment.__table__, User.__table__])


@pytest.fixture
def doctor(appointment_db) -> User:
    user = User(email='house@hospital.org', full_name='Gregory House', role='doctor')
    appointment_db.add(user)
    appointment_db.commit()
    appointment_db.refresh(user)
    return user


@pytest.fixture
def add_appointment(appointment_db, doctor):
    def _add(start: datetime, duration_minutes: int = 30, status: str = 'scheduled', doctor_id: int | None = None):
        appointment = Appointment(
            doctor_id=doctor_id or doctor.id,
            appointment_date=start,
            duration_minutes=duration_minutes,
            status=status,
        )
        appointment_db.add(appointment)
        appointment_db.commit()
        appointment_db.refresh(appointment)
        return appointment

    return _add
