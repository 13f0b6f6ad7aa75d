import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected an integer.") from exc


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = _get_int("API_PORT", 8000)

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:3000"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

HOSPITAL_TIMEZONE = os.getenv("HOSPITAL_TIMEZONE", "UTC")
WORK_START_HOUR = _get_int("WORK_START_HOUR", 9)
WORK_END_HOUR = _get_int("WORK_END_HOUR", 17)
SLOT_STEP_MINUTES = _get_int("SLOT_STEP_MINUTES", 30)
DEFAULT_DURATION_MINUTES = _get_int("DEFAULT_DURATION_MINUTES", 30)


@dataclass(frozen=True)
class SchedulingConfig:
    """Working-day grid used for slot generation and booking.

    ``timezone`` is an IANA zone name; civil dates and naive timestamps are
    interpreted in it.
    """

    work_start_hour: int = 9
    work_end_hour: int = 17
    slot_step_minutes: int = 30
    default_duration_minutes: int = 30
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        if not 0 <= self.work_start_hour < self.work_end_hour <= 24:
            raise ValueError("Working hours must satisfy 0 <= start < end <= 24.")
        if not 0 < self.slot_step_minutes <= 60:
            raise ValueError("Slot step must be between 1 and 60 minutes.")
        if self.default_duration_minutes <= 0:
            raise ValueError("Default duration must be a positive number of minutes.")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {self.timezone!r}.") from exc

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_scheduling_config() -> SchedulingConfig:
    return SchedulingConfig(
        work_start_hour=WORK_START_HOUR,
        work_end_hour=WORK_END_HOUR,
        slot_step_minutes=SLOT_STEP_MINUTES,
        default_duration_minutes=DEFAULT_DURATION_MINUTES,
        timezone=HOSPITAL_TIMEZONE,
    )


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    load_scheduling_config()
