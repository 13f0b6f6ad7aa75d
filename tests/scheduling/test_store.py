from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from hospital_backend.models.user import User
from hospital_backend.scheduling import store
from hospital_backend.scheduling.errors import UpstreamUnavailable


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_list_appointments_filters_range_doctor_and_status(appointment_db, doctor, add_appointment) -> None:
    inside = add_appointment(datetime(2024, 6, 10, 9, 0))
    add_appointment(datetime(2024, 6, 10, 10, 0), status='cancelled')
    add_appointment(datetime(2024, 6, 11, 0, 0))
    add_appointment(datetime(2024, 6, 10, 11, 0), doctor_id=doctor.id + 1)

    appointments = store.list_appointments(appointment_db, doctor.id, _utc(2024, 6, 10), _utc(2024, 6, 11))

    assert [appointment.id for appointment in appointments] == [inside.id]


def test_list_appointments_can_include_cancelled(appointment_db, doctor, add_appointment) -> None:
    add_appointment(datetime(2024, 6, 10, 9, 0))
    add_appointment(datetime(2024, 6, 10, 10, 0), status='cancelled')

    appointments = store.list_appointments(
        appointment_db, doctor.id, _utc(2024, 6, 10), _utc(2024, 6, 11), include_cancelled=True
    )

    assert [appointment.status for appointment in appointments] == ['scheduled', 'cancelled']


def test_search_appointments_orders_by_start(appointment_db, doctor, add_appointment) -> None:
    late = add_appointment(datetime(2024, 6, 10, 15, 0))
    early = add_appointment(datetime(2024, 6, 10, 9, 0))
    early.patient_id = 5
    appointment_db.commit()

    everything = store.search_appointments(appointment_db, doctor_id=doctor.id)
    by_patient = store.search_appointments(appointment_db, patient_id=5)

    assert [appointment.id for appointment in everything] == [early.id, late.id]
    assert [appointment.id for appointment in by_patient] == [early.id]


def test_get_and_delete_appointment(appointment_db, doctor, add_appointment) -> None:
    appointment = add_appointment(datetime(2024, 6, 10, 9, 0))

    assert store.get_appointment(appointment_db, appointment.id) is appointment

    store.delete_appointment(appointment_db, appointment)

    assert store.get_appointment(appointment_db, appointment.id) is None


def test_list_doctors_returns_only_doctors_by_name(appointment_db, doctor) -> None:
    appointment_db.add_all([
        User(email='allison@hospital.org', full_name='Allison Cameron', role='doctor'),
        User(email='patient@example.org', full_name='Aaron Patient', role='patient'),
    ])
    appointment_db.commit()

    doctors = store.list_doctors(appointment_db)

    assert [user.full_name for user in doctors] == ['Allison Cameron', 'Gregory House']


class _BrokenSession:
    def __init__(self) -> None:
        self.rolled_back = False

    def query(self, *args, **kwargs):
        raise OperationalError('SELECT 1', {}, Exception('connection refused'))

    def rollback(self) -> None:
        self.rolled_back = True


@pytest.mark.parametrize(
    'call',
    [
        lambda db: store.search_appointments(db),
        lambda db: store.get_appointment(db, 1),
        lambda db: store.list_doctors(db),
    ],
)
def test_store_errors_become_upstream_unavailable(call) -> None:
    db = _BrokenSession()

    with pytest.raises(UpstreamUnavailable):
        call(db)

    assert db.rolled_back
