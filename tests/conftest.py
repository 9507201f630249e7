"""
Shared fixtures: a small salon open Monday to Saturday.

2026-10-19 is a Monday; the fixed clock puts "now" at 07:00 that morning,
before opening, so every slot of the day is still in the future.
"""

from datetime import time

import pendulum
import pytest

from slotengine.domain.models import (
    CLOSED,
    Business,
    Employee,
    LunchBreak,
    OpenDay,
    Service,
    WeeklyHours,
)

TIMEZONE = "Europe/Zurich"


@pytest.fixture
def monday():
    return pendulum.date(2026, 10, 19)


@pytest.fixture
def clock():
    """Fixed clock: Monday 2026-10-19 07:00 in the requested timezone."""
    return lambda tz: pendulum.datetime(2026, 10, 19, 7, 0, tz=tz)


@pytest.fixture
def business_hours():
    weekday = OpenDay(
        open=time(9, 0),
        close=time(18, 0),
        lunch=LunchBreak(start=time(12, 0), end=time(13, 0)),
    )
    return WeeklyHours(days={
        0: weekday,
        1: weekday,
        2: weekday,
        3: weekday,
        4: weekday,
        5: OpenDay(open=time(9, 0), close=time(14, 0)),
        6: CLOSED,
    })


@pytest.fixture
def business(business_hours):
    return Business(
        id="biz-1",
        name="Salon Lindenhof",
        business_hours=business_hours,
        timezone=TIMEZONE,
    )


@pytest.fixture
def haircut():
    return Service(id="svc-cut", business_id="biz-1", name="Haarschnitt", duration=30)


@pytest.fixture
def coloring():
    return Service(
        id="svc-color",
        business_id="biz-1",
        name="Färben",
        duration=90,
        buffer_before=10,
        buffer_after=15,
    )


@pytest.fixture
def employees():
    qualified = ("svc-cut", "svc-color")
    return [
        Employee(id="emp-a", business_id="biz-1", name="Anna", service_ids=qualified),
        Employee(id="emp-b", business_id="biz-1", name="Ben", service_ids=qualified),
        Employee(id="emp-c", business_id="biz-1", name="Clara", service_ids=qualified),
    ]
