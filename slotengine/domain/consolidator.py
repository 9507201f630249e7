"""
Consolidate schedule exception rows for bulk administration.

Exceptions are stored one row per employee and date. Administrators think
in terms of "the whole team is off for Christmas" or "Anna is on holiday
for two weeks", so rows are grouped by (date, type, reason) and the groups
are then merged into ranges of consecutive dates.

Groups and ranges are views: deleting one means deleting every source row
it was built from.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from pendulum import Date

from .models import (
    ConsolidatedExceptionGroup,
    ExceptionDateRange,
    ExceptionType,
    ScheduleException,
)

logger = logging.getLogger(__name__)

GroupKey = Tuple[Date, ExceptionType, Union[str, None]]


def _reason_sort_key(reason: str | None) -> Tuple[bool, str]:
    # None sorts before every string, including the empty one
    return (reason is not None, reason or "")


def _group_sort_key(group: ConsolidatedExceptionGroup):
    return (group.date, group.type.value, _reason_sort_key(group.reason))


def consolidate_exceptions(
    exceptions: Iterable[ScheduleException],
    employee_names: Mapping[str, str] | None = None,
) -> List[ConsolidatedExceptionGroup]:
    """
    Group exception rows by (date, type, reason).

    A missing reason is its own key and never equal to an empty reason.
    The result does not depend on the order of the input rows: groups are
    sorted by date, type and reason, and the employees inside a group by
    employee id.

    Args:
        exceptions: Raw exception rows
        employee_names: Employee names by id; unknown ids show the id

    Returns:
        One group per distinct (date, type, reason)
    """
    names = employee_names or {}
    members: Dict[GroupKey, List[ScheduleException]] = {}

    for exception in exceptions:
        key = (exception.date, exception.type, exception.reason)
        members.setdefault(key, []).append(exception)

    groups: List[ConsolidatedExceptionGroup] = []

    for (day, exception_type, reason), rows in members.items():
        rows = sorted(rows, key=lambda row: (row.employee_id, row.id))
        groups.append(
            ConsolidatedExceptionGroup(
                date=day,
                type=exception_type,
                reason=reason,
                employee_ids=tuple(row.employee_id for row in rows),
                employee_names=tuple(
                    names.get(row.employee_id, row.employee_id) for row in rows
                ),
                source_exception_ids=tuple(row.id for row in rows),
            )
        )

    groups.sort(key=_group_sort_key)

    logger.debug("Consolidated exception rows into %d group(s)", len(groups))

    return groups


def merge_into_ranges(
    groups: Iterable[ConsolidatedExceptionGroup],
) -> List[ExceptionDateRange]:
    """
    Merge groups into ranges of consecutive dates.

    Groups are walked in sorted order. The current range grows only while
    the next group has the same (type, reason) as the previous group and
    falls exactly one calendar day after it. Anything else, including a
    group with another reason on the same date, starts a new range.
    """
    finished: List[List[ConsolidatedExceptionGroup]] = []
    current: List[ConsolidatedExceptionGroup] = []

    for group in sorted(groups, key=_group_sort_key):
        if current:
            previous = current[-1]
            if (
                (group.type, group.reason) == (previous.type, previous.reason)
                and group.date == previous.date.add(days=1)
            ):
                current.append(group)
                continue
            finished.append(current)
        current = [group]

    if current:
        finished.append(current)

    ranges = [
        ExceptionDateRange(
            start_date=members[0].date,
            end_date=members[-1].date,
            type=members[0].type,
            reason=members[0].reason,
            groups=tuple(members),
        )
        for members in finished
    ]
    ranges.sort(
        key=lambda r: (r.start_date, r.type.value, _reason_sort_key(r.reason))
    )

    return ranges


def exception_ids_for(
    items: Iterable[ConsolidatedExceptionGroup | ExceptionDateRange],
) -> List[str]:
    """
    Collect the ids of every source row behind groups or ranges.

    Duplicates are removed while keeping the first occurrence.
    """
    seen: set[str] = set()
    ids: List[str] = []

    for item in items:
        for exception_id in item.source_exception_ids:
            if exception_id not in seen:
                ids.append(exception_id)
                seen.add(exception_id)

    return ids
