"""
Interval algebra over TimeRange lists.

Shared by the conflict filter (subtracting booked time from working time)
and anything else that needs to combine ranges. All functions are pure and
return new lists sorted by start time.
"""

from typing import Iterable, List

from .models import TimeRange


def merge(ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Merge overlapping or adjacent time ranges.

    Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
    """
    sorted_ranges = sorted(ranges, key=lambda r: r.start)
    if not sorted_ranges:
        return []

    merged: List[TimeRange] = [sorted_ranges[0]]

    for current in sorted_ranges[1:]:
        last = merged[-1]

        # Check if ranges overlap or are adjacent (no gap)
        if current.start <= last.end:
            merged[-1] = TimeRange(
                start=last.start,
                end=max(last.end, current.end)
            )
        else:
            merged.append(current)

    return merged


def intersect(first: Iterable[TimeRange], second: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Calculate the intersection of two lists of time ranges.

    Returns all periods covered by both lists.
    """
    second_list = list(second)
    intersections: List[TimeRange] = []

    for range1 in first:
        for range2 in second_list:
            intersection = range1.intersect(range2)
            if intersection:
                intersections.append(intersection)

    return merge(intersections)


def subtract_from_block(block: TimeRange, busy_ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Subtract busy times from a single block, yielding the free ranges.

    Busy ranges are clipped to the block first, so a range that starts
    before or ends after the block still removes the overlapping part.

    Example:
    Block: 09:00 - 17:00
    Busy: [10:00-11:00, 14:00-15:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
    """
    free_ranges: List[TimeRange] = []
    current_start = block.start

    overlapping = sorted(
        (busy for busy in busy_ranges if block.overlaps(busy)),
        key=lambda r: r.start,
    )

    for busy in overlapping:
        clipped_busy_start = max(busy.start, block.start)
        clipped_busy_end = min(busy.end, block.end)

        # If there's free time before this busy period
        if current_start < clipped_busy_start:
            free_ranges.append(
                TimeRange(start=current_start, end=clipped_busy_start)
            )

        current_start = max(current_start, clipped_busy_end)

    if current_start < block.end:
        free_ranges.append(
            TimeRange(start=current_start, end=block.end)
        )

    return free_ranges


def subtract(blocks: Iterable[TimeRange], busy_ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Subtract busy ranges from every block.

    The blocks are the "universe" of usable time; whatever is left after
    removing the busy ranges is free time.
    """
    busy_list = list(busy_ranges)
    free: List[TimeRange] = []

    for block in sorted(blocks, key=lambda r: r.start):
        free.extend(subtract_from_block(block, busy_list))

    return free
