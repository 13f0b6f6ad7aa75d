from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from hospital_backend.database import get_db
from hospital_backend.routes.common import ensure_database_ready, to_http_exception
from hospital_backend.scheduling import store
from hospital_backend.scheduling.errors import SchedulingError

router = APIRouter(tags=['doctors'])


class DoctorResponse(BaseModel):
    id: int
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None

    class Config:
        from_attributes = True


class DoctorListResponse(BaseModel):
    doctors: list[DoctorResponse]


@router.get('', response_model=DoctorListResponse)
def list_doctors(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        doctors = store.list_doctors(db)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    return DoctorListResponse(doctors=[DoctorResponse.model_validate(doctor) for doctor in doctors])
