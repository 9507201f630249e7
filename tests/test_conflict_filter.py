"""
Tests for the conflict filter.
"""

import pendulum

from slotengine.domain.conflict_filter import blocked_range, filter_conflicts
from slotengine.domain.models import Appointment, AppointmentStatus, TimeRange

TZ = "Europe/Zurich"


def _dt(clock: str):
    return pendulum.parse(f"2026-10-19 {clock}", tz=TZ)


def _appointment(service_id, start, end, status=AppointmentStatus.CONFIRMED, appointment_id="apt-1"):
    return Appointment(
        id=appointment_id,
        business_id="biz-1",
        employee_id="emp-a",
        service_id=service_id,
        start=_dt(start),
        end=_dt(end),
        status=status,
    )


class TestFilterConflicts:
    """Tests for filter_conflicts."""

    def test_booked_time_is_removed(self, haircut):
        available = [TimeRange(start=_dt("09:00"), end=_dt("12:00"))]
        appointments = [_appointment("svc-cut", "10:00", "10:30")]

        free = filter_conflicts(available, appointments, {haircut.id: haircut})

        assert free == [
            TimeRange(start=_dt("09:00"), end=_dt("10:00")),
            TimeRange(start=_dt("10:30"), end=_dt("12:00")),
        ]

    def test_buffers_of_the_booked_service_widen_the_block(self, coloring):
        """A 10:00-11:30 coloring with 10/15 min buffers blocks 09:50-11:45."""
        available = [TimeRange(start=_dt("09:00"), end=_dt("12:00"))]
        appointments = [_appointment("svc-color", "10:00", "11:30")]

        free = filter_conflicts(available, appointments, {coloring.id: coloring})

        assert free == [
            TimeRange(start=_dt("09:00"), end=_dt("09:50")),
            TimeRange(start=_dt("11:45"), end=_dt("12:00")),
        ]

    def test_cancelled_appointments_do_not_block(self, haircut):
        available = [TimeRange(start=_dt("09:00"), end=_dt("12:00"))]
        appointments = [
            _appointment("svc-cut", "10:00", "10:30", AppointmentStatus.CANCELLED),
            _appointment("svc-cut", "11:00", "11:30", AppointmentStatus.NO_SHOW, "apt-2"),
        ]

        assert filter_conflicts(available, appointments, {haircut.id: haircut}) == available


def test_unknown_service_blocks_without_buffers(caplog):
    appointment = _appointment("svc-gone", "10:00", "10:30")

    free = filter_conflicts(
        [TimeRange(start=_dt("09:00"), end=_dt("12:00"))], [appointment], {}
    )

    assert free[0].end == _dt("10:00")
    assert free[1].start == _dt("10:30")
    assert "Unknown service svc-gone" in caplog.text


def test_blocked_range_without_service():
    appointment = _appointment("svc-cut", "10:00", "10:30")

    assert blocked_range(appointment, None) == appointment.time_range
