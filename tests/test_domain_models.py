"""
Tests for domain models.
"""

import pendulum
import pytest
from datetime import time

from slotengine.domain.models import (
    Appointment,
    AppointmentStatus,
    AvailableEmployee,
    ConsolidatedExceptionGroup,
    Employee,
    ExceptionDateRange,
    ExceptionType,
    LunchBreak,
    OpenDay,
    ScheduleException,
    Service,
    TimeRange,
    TimeSlot,
    WeeklyHours,
    iter_dates,
    parse_clock,
)


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        start = pendulum.parse("2026-10-19 09:00", tz="Europe/Zurich")
        end = pendulum.parse("2026-10-19 17:00", tz="Europe/Zurich")

        tr = TimeRange(start=start, end=end)

        assert tr.start == start
        assert tr.end == end
        assert tr.duration_minutes() == 480  # 8 hours

    def test_invalid_time_range_raises_error(self):
        """Test that creating an invalid time range raises ValueError."""
        start = pendulum.parse("2026-10-19 17:00", tz="Europe/Zurich")
        end = pendulum.parse("2026-10-19 09:00", tz="Europe/Zurich")

        with pytest.raises(ValueError, match="Start time .* must be before end time"):
            TimeRange(start=start, end=end)

    def test_overlaps_excludes_touching_ranges(self):
        """Ranges that only touch at an endpoint do not overlap."""
        tr1 = TimeRange(
            start=pendulum.parse("2026-10-19 09:00", tz="Europe/Zurich"),
            end=pendulum.parse("2026-10-19 12:00", tz="Europe/Zurich")
        )
        tr2 = TimeRange(
            start=pendulum.parse("2026-10-19 11:00", tz="Europe/Zurich"),
            end=pendulum.parse("2026-10-19 14:00", tz="Europe/Zurich")
        )
        tr3 = TimeRange(
            start=pendulum.parse("2026-10-19 12:00", tz="Europe/Zurich"),
            end=pendulum.parse("2026-10-19 17:00", tz="Europe/Zurich")
        )

        assert tr1.overlaps(tr2)
        assert tr2.overlaps(tr1)
        assert not tr1.overlaps(tr3)

    def test_intersect_no_overlap(self):
        """Test intersection with no overlap returns None."""
        tr1 = TimeRange(
            start=pendulum.parse("2026-10-19 09:00", tz="Europe/Zurich"),
            end=pendulum.parse("2026-10-19 12:00", tz="Europe/Zurich")
        )
        tr2 = TimeRange(
            start=pendulum.parse("2026-10-19 14:00", tz="Europe/Zurich"),
            end=pendulum.parse("2026-10-19 17:00", tz="Europe/Zurich")
        )

        assert tr1.intersect(tr2) is None

    def test_expand_and_contains(self):
        tr = TimeRange(
            start=pendulum.parse("2026-10-19 10:00", tz="Europe/Zurich"),
            end=pendulum.parse("2026-10-19 11:00", tz="Europe/Zurich")
        )

        wide = tr.expand(before_minutes=10, after_minutes=15)

        assert wide.start == pendulum.parse("2026-10-19 09:50", tz="Europe/Zurich")
        assert wide.end == pendulum.parse("2026-10-19 11:15", tz="Europe/Zurich")
        assert wide.contains(tr)
        assert not tr.contains(wide)


class TestDayHours:
    """Tests for the open/closed day variant and weekly hours."""

    def test_open_day_requires_open_before_close(self):
        with pytest.raises(ValueError, match="must be before closing time"):
            OpenDay(open=time(18, 0), close=time(9, 0))

    def test_lunch_must_lie_within_opening_hours(self):
        with pytest.raises(ValueError, match="must lie within"):
            OpenDay(
                open=time(9, 0),
                close=time(12, 0),
                lunch=LunchBreak(start=time(11, 30), end=time(12, 30)),
            )

    def test_weekly_hours_lookup_by_date(self):
        """Monday maps to weekday 0; unset weekdays return None."""
        monday_hours = OpenDay(open=time(9, 0), close=time(17, 0))
        weekly = WeeklyHours(days={0: monday_hours})

        assert weekly.for_date(pendulum.date(2026, 10, 19)) == monday_hours
        assert weekly.for_date(pendulum.date(2026, 10, 20)) is None

    def test_weekly_hours_rejects_invalid_weekday(self):
        with pytest.raises(ValueError, match="between 0 and 6"):
            WeeklyHours(days={7: OpenDay(open=time(9, 0), close=time(17, 0))})


class TestScheduleException:
    """Tests for ScheduleException validation."""

    def test_modified_hours_need_both_times(self):
        with pytest.raises(ValueError, match="require a start and an end time"):
            ScheduleException(
                id="x",
                employee_id="emp-a",
                date=pendulum.date(2026, 10, 19),
                type=ExceptionType.MODIFIED_HOURS,
                start_time=time(10, 0),
            )

    def test_whole_day_exception_rejects_times(self):
        with pytest.raises(ValueError, match="must not carry times"):
            ScheduleException(
                id="x",
                employee_id="emp-a",
                date=pendulum.date(2026, 10, 19),
                type=ExceptionType.UNAVAILABLE,
                start_time=time(10, 0),
                end_time=time(12, 0),
            )

    def test_holiday_counts_as_whole_day(self):
        assert ExceptionType.HOLIDAY.is_whole_day
        assert ExceptionType.UNAVAILABLE.is_whole_day
        assert not ExceptionType.MODIFIED_HOURS.is_whole_day


def test_service_rejects_non_positive_duration():
    with pytest.raises(ValueError, match="duration"):
        Service(id="svc", business_id="biz-1", name="Nichts", duration=0)


def test_employee_can_perform_requires_active_and_qualified():
    employee = Employee(id="emp-a", business_id="biz-1", name="Anna", service_ids=("svc-cut",))

    assert employee.can_perform("svc-cut")
    assert not employee.can_perform("svc-color")
    assert not Employee(
        id="emp-b", business_id="biz-1", name="Ben", service_ids=("svc-cut",), is_active=False
    ).can_perform("svc-cut")
    assert not Employee(
        id="emp-c", business_id="biz-1", name="Clara", service_ids=("svc-cut",), can_perform_services=False
    ).can_perform("svc-cut")


def test_only_pending_and_confirmed_appointments_block_time():
    blocking = {status for status in AppointmentStatus if status.blocks_time}
    assert blocking == {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}

    appointment = Appointment(
        id="apt-1",
        business_id="biz-1",
        employee_id="emp-a",
        service_id="svc-cut",
        start=pendulum.datetime(2026, 10, 19, 10, 0, tz="Europe/Zurich"),
        end=pendulum.datetime(2026, 10, 19, 10, 30, tz="Europe/Zurich"),
        status=AppointmentStatus.CANCELLED,
    )
    assert not appointment.blocks_time


def test_time_slot_display():
    slot = TimeSlot(
        time=pendulum.datetime(2026, 10, 19, 9, 30, tz="Europe/Zurich"),
        available_employees=(
            AvailableEmployee(id="emp-a", name="Anna"),
            AvailableEmployee(id="emp-b", name="Ben"),
        ),
    )

    assert slot.available
    assert slot.available_employee_count == 2
    assert slot.employee_ids() == ["emp-a", "emp-b"]
    assert slot.format_display() == "09:30 Uhr | Anna, Ben (2 verfügbar)"


def test_exception_date_range_collects_groups():
    first = ConsolidatedExceptionGroup(
        date=pendulum.date(2026, 12, 24),
        type=ExceptionType.UNAVAILABLE,
        reason="Ferien",
        employee_ids=("emp-a", "emp-b"),
        employee_names=("Anna", "Ben"),
        source_exception_ids=("e1", "e2"),
    )
    second = ConsolidatedExceptionGroup(
        date=pendulum.date(2026, 12, 25),
        type=ExceptionType.UNAVAILABLE,
        reason="Ferien",
        employee_ids=("emp-a",),
        employee_names=("Anna",),
        source_exception_ids=("e3",),
    )
    date_range = ExceptionDateRange(
        start_date=first.date,
        end_date=second.date,
        type=ExceptionType.UNAVAILABLE,
        reason="Ferien",
        groups=(first, second),
    )

    assert date_range.day_count == 2
    assert date_range.source_exception_ids == ("e1", "e2", "e3")
    assert date_range.employee_names == ("Anna", "Ben")
    assert date_range.format_display() == "24.12.2026 – 25.12.2026 | Ferien"


def test_iter_dates_is_inclusive():
    days = iter_dates(pendulum.date(2026, 10, 30), pendulum.date(2026, 11, 2))

    assert [d.day for d in days] == [30, 31, 1, 2]
    assert iter_dates(pendulum.date(2026, 11, 2), pendulum.date(2026, 11, 1)) == []


def test_parse_clock():
    assert parse_clock("09:30") == time(9, 30)
    assert parse_clock("17:00:00") == time(17, 0)
    with pytest.raises(ValueError, match="expected HH:MM"):
        parse_clock("nine")
