from datetime import date, datetime, timedelta, timezone

import pytest

from hospital_backend.core.config import SchedulingConfig
from hospital_backend.scheduling.clock import add_minutes, day_bounds, from_storage, localize, parse_day, to_storage
from hospital_backend.scheduling.errors import InvalidInput

NEW_YORK = SchedulingConfig(timezone='America/New_York')


def test_localize_keeps_aware_values() -> None:
    value = datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc)

    assert localize(value, NEW_YORK) is value


def test_to_storage_reads_naive_values_in_hospital_timezone() -> None:
    assert to_storage(datetime(2024, 1, 15, 9, 0), NEW_YORK) == datetime(2024, 1, 15, 14, 0)
    assert to_storage(datetime(2024, 6, 10, 9, 0), NEW_YORK) == datetime(2024, 6, 10, 13, 0)


def test_from_storage_attaches_utc() -> None:
    assert from_storage(datetime(2024, 6, 10, 13, 0)) == datetime(2024, 6, 10, 13, 0, tzinfo=timezone.utc)


def test_day_bounds_follow_civil_midnights_across_dst() -> None:
    start, end = day_bounds(date(2024, 3, 10), NEW_YORK)

    assert end.astimezone(timezone.utc) - start.astimezone(timezone.utc) == timedelta(hours=23)
    assert to_storage(start, NEW_YORK) == datetime(2024, 3, 10, 5, 0)


@pytest.mark.parametrize(
    'raw',
    ['2024-06-10', ' 2024-06-10 ', '2024-06-10T00:00:00', '2024-06-10T00:00:00.000Z'],
)
def test_parse_day_accepts_dates_and_timestamps(raw: str) -> None:
    assert parse_day(raw) == date(2024, 6, 10)


@pytest.mark.parametrize('raw', [None, '', 'tomorrow', '2024-13-40'])
def test_parse_day_rejects_malformed_values(raw) -> None:
    with pytest.raises(InvalidInput):
        parse_day(raw)


def test_parse_day_reads_instants_in_hospital_timezone() -> None:
    kolkata = SchedulingConfig(timezone='Asia/Kolkata')

    assert parse_day('2024-06-09T18:30:00Z', kolkata) == date(2024, 6, 10)
    assert parse_day('2024-06-09T18:29:00Z', kolkata) == date(2024, 6, 9)
    assert parse_day('2024-06-09', kolkata) == date(2024, 6, 9)


def test_add_minutes_counts_elapsed_time_across_dst() -> None:
    start = datetime(2024, 3, 10, 1, 30, tzinfo=NEW_YORK.tzinfo)

    assert add_minutes(start, 60) == datetime(2024, 3, 10, 7, 30, tzinfo=timezone.utc)
