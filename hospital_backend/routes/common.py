from functools import lru_cache

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from hospital_backend.core.config import SchedulingConfig, load_scheduling_config
from hospital_backend.database import ensure_appointment_schema, ensure_user_schema
from hospital_backend.scheduling.errors import (
    InvalidInput,
    SchedulingError,
    SlotUnavailable,
    UpstreamUnavailable,
)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

_STATUS_CODES = (
    (SlotUnavailable, status.HTTP_409_CONFLICT),
    (InvalidInput, status.HTTP_400_BAD_REQUEST),
    (UpstreamUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_exception(exc: SchedulingError) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def ensure_database_ready() -> None:
    try:
        ensure_user_schema()
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@lru_cache
def get_scheduling_config() -> SchedulingConfig:
    return load_scheduling_config()
