import pytest
from fastapi import HTTPException

from hospital_backend.models.user import User
from hospital_backend.routes import doctor_routes
from hospital_backend.routes.doctor_routes import list_doctors
from hospital_backend.scheduling.errors import UpstreamUnavailable


@pytest.fixture(autouse=True)
def skip_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('hospital_backend.routes.doctor_routes.ensure_database_ready', lambda: None)


def test_list_doctors_returns_doctor_profiles(appointment_db, doctor) -> None:
    appointment_db.add(User(email='patient@example.org', full_name='Pat Ient', role='patient'))
    appointment_db.commit()

    response = list_doctors(db=appointment_db)

    assert [(item.full_name, item.email) for item in response.doctors] == [('Gregory House', 'house@hospital.org')]


def test_list_doctors_reports_store_outage(appointment_db, monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(db):
        raise UpstreamUnavailable('Database unavailable.')

    monkeypatch.setattr(doctor_routes.store, 'list_doctors', _fail)

    with pytest.raises(HTTPException) as exception_info:
        list_doctors(db=appointment_db)

    assert exception_info.value.status_code == 503
