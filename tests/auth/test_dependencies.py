import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from hospital_backend.auth import jwt_handler
from hospital_backend.auth.dependencies import get_current_user
from hospital_backend.models.user import User


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_round_trip() -> None:
    token = jwt_handler.create_access_token('nurse@hospital.org', role='staff')

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'nurse@hospital.org'
    assert payload['role'] == 'staff'


def test_get_current_user_resolves_token_subject(appointment_db) -> None:
    user = User(email='nurse@hospital.org', full_name='Nurse Joy', role='staff')
    appointment_db.add(user)
    appointment_db.commit()

    token = jwt_handler.create_access_token('nurse@hospital.org')
    current = get_current_user(credentials=_credentials(token), db=appointment_db)

    assert current.id == user.id


def test_get_current_user_rejects_invalid_token(appointment_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials('not-a-token'), db=appointment_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_unknown_user(appointment_db) -> None:
    token = jwt_handler.create_access_token('ghost@hospital.org')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=appointment_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'User not found'
