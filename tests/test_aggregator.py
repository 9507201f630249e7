"""
Tests for slot aggregation and automatic employee assignment.
"""

import pendulum
import pytest

from slotengine.domain.aggregator import aggregate_slots, appointment_load, choose_employee
from slotengine.domain.exceptions import SlotUnavailableError
from slotengine.domain.models import Appointment, AppointmentStatus, AvailableEmployee

TZ = "Europe/Zurich"

ANNA = AvailableEmployee(id="emp-a", name="Anna")
BEN = AvailableEmployee(id="emp-b", name="Ben")
CLARA = AvailableEmployee(id="emp-c", name="Clara")


def _dt(clock: str):
    return pendulum.parse(f"2026-10-19 {clock}", tz=TZ)


def _appointment(appointment_id, employee_id, status=AppointmentStatus.CONFIRMED):
    return Appointment(
        id=appointment_id,
        business_id="biz-1",
        employee_id=employee_id,
        service_id="svc-cut",
        start=_dt("09:00"),
        end=_dt("09:30"),
        status=status,
    )


class TestAggregateSlots:
    """Tests for aggregate_slots."""

    def test_one_slot_per_time_with_every_free_employee(self):
        slots = aggregate_slots({
            BEN: [_dt("09:00"), _dt("10:00")],
            ANNA: [_dt("10:00"), _dt("09:30")],
        })

        assert [s.time for s in slots] == [_dt("09:00"), _dt("09:30"), _dt("10:00")]
        assert slots[0].employee_ids() == ["emp-b"]
        assert slots[1].employee_ids() == ["emp-a"]
        assert slots[2].employee_ids() == ["emp-a", "emp-b"]

    def test_count_matches_employees_with_the_time(self):
        """available_employee_count equals the number of lists containing the time."""
        per_employee = {
            ANNA: [_dt("09:00"), _dt("09:30")],
            BEN: [_dt("09:30")],
            CLARA: [_dt("09:30"), _dt("10:00")],
        }

        for slot in aggregate_slots(per_employee):
            expected = sum(1 for times in per_employee.values() if slot.time in times)
            assert slot.available_employee_count == expected

    def test_no_employees_no_slots(self):
        assert aggregate_slots({}) == []


class TestChooseEmployee:
    """Tests for choose_employee."""

    def test_least_loaded_employee_wins(self):
        """Clara already has an appointment; Anna and Ben have none."""
        appointments = [_appointment("apt-1", "emp-c")]

        chosen = choose_employee([CLARA, BEN, ANNA], appointments)

        assert chosen == ANNA

    def test_tie_goes_to_lowest_id_regardless_of_order(self):
        assert choose_employee([BEN, ANNA], []) == ANNA
        assert choose_employee([ANNA, BEN], []) == ANNA

    def test_load_beats_id(self):
        appointments = [_appointment("apt-1", "emp-a"), _appointment("apt-2", "emp-a")]

        assert choose_employee([ANNA, BEN], appointments) == BEN

    def test_only_confirmed_appointments_count(self):
        appointments = [
            _appointment("apt-1", "emp-a", AppointmentStatus.CANCELLED),
            _appointment("apt-2", "emp-b", AppointmentStatus.PENDING),
            _appointment("apt-3", "emp-b", AppointmentStatus.CONFIRMED),
        ]

        assert appointment_load(appointments) == {"emp-b": 1}

    def test_pending_appointments_do_not_add_load(self):
        """Anna has two pending requests, Ben one confirmed appointment."""
        appointments = [
            _appointment("apt-1", "emp-a", AppointmentStatus.PENDING),
            _appointment("apt-2", "emp-a", AppointmentStatus.PENDING),
            _appointment("apt-3", "emp-b", AppointmentStatus.CONFIRMED),
        ]

        assert choose_employee([ANNA, BEN], appointments) == ANNA

    def test_no_candidates(self):
        with pytest.raises(SlotUnavailableError):
            choose_employee([], [])
