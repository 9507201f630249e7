"""
Tests for the interval algebra.
"""

import pendulum

from slotengine.domain import intervals
from slotengine.domain.models import TimeRange


def _range(start: str, end: str) -> TimeRange:
    return TimeRange(
        start=pendulum.parse(f"2026-10-19 {start}", tz="Europe/Zurich"),
        end=pendulum.parse(f"2026-10-19 {end}", tz="Europe/Zurich"),
    )


class TestMerge:
    """Tests for merge."""

    def test_merge_overlapping_and_adjacent(self):
        """Overlapping and touching ranges collapse into one."""
        merged = intervals.merge([
            _range("10:00", "11:00"),
            _range("09:00", "10:00"),
            _range("10:30", "12:00"),
            _range("14:00", "15:00"),
        ])

        assert merged == [_range("09:00", "12:00"), _range("14:00", "15:00")]

    def test_merge_empty(self):
        assert intervals.merge([]) == []


class TestSubtract:
    """Tests for subtract and subtract_from_block."""

    def test_subtract_from_block(self):
        free = intervals.subtract_from_block(
            _range("09:00", "17:00"),
            [_range("14:00", "15:00"), _range("10:00", "11:00")],
        )

        assert free == [
            _range("09:00", "10:00"),
            _range("11:00", "14:00"),
            _range("15:00", "17:00"),
        ]

    def test_busy_range_is_clipped_to_block(self):
        """A busy range sticking out of the block only removes the overlap."""
        free = intervals.subtract_from_block(
            _range("09:00", "12:00"),
            [_range("08:00", "09:30"), _range("11:45", "13:00")],
        )

        assert free == [_range("09:30", "11:45")]

    def test_fully_covered_block_leaves_nothing(self):
        assert intervals.subtract_from_block(
            _range("09:00", "12:00"), [_range("08:00", "13:00")]
        ) == []

    def test_subtract_over_several_blocks(self):
        free = intervals.subtract(
            [_range("13:00", "18:00"), _range("09:00", "12:00")],
            [_range("11:00", "14:00")],
        )

        assert free == [_range("09:00", "11:00"), _range("14:00", "18:00")]


def test_intersect_lists():
    common = intervals.intersect(
        [_range("09:00", "12:00"), _range("13:00", "18:00")],
        [_range("11:00", "14:00")],
    )

    assert common == [_range("11:00", "12:00"), _range("13:00", "14:00")]
