# Copyright 2018 Brian T. Park
#
# MIT License.

"""
Calendar helpers that resolve the symbolic ON field of a Rule ('lastSun',
'Sun>=8', 'Fri<=1', '21') into a concrete day of a given year and month, and
into the (count, weekday, month) form used by the output records.
"""

import datetime
from typing import Optional
from typing import Tuple

from tzsnapshot.data_types.ts_types import DayKind
from tzsnapshot.data_types.ts_types import DaySpec
from tzsnapshot.data_types.ts_types import TransitionDay
from tzsnapshot.data_types.ts_types import LAST_WEEK

# ISO-8601 specifies Monday=1, Sunday=7
WEEK_TO_WEEK_INDEX = {
    'Mon': 1,
    'Tue': 2,
    'Wed': 3,
    'Thu': 4,
    'Fri': 5,
    'Sat': 6,
    'Sun': 7,
}

DAYS_IN_MONTH = [31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def parse_on_day_string(on_string: str) -> Optional[DaySpec]:
    """Parse things like "Sun>=1", "lastSun", "20", "Fri<=2" into a DaySpec.
    Returns None if there is a syntax error.
    """
    if on_string.isdigit():
        day = int(on_string)
        if day < 1 or day > 31:
            return None
        return DaySpec(DayKind.EXACT, 0, day)

    if on_string[:4] == 'last':
        day_of_week = WEEK_TO_WEEK_INDEX.get(on_string[4:])
        if day_of_week is None:
            return None
        return DaySpec(DayKind.LAST, day_of_week, 0)

    for op, kind in (('>=', DayKind.ON_OR_AFTER), ('<=', DayKind.ON_OR_BEFORE)):
        index = on_string.find(op)
        if index < 0:
            continue
        day_of_week = WEEK_TO_WEEK_INDEX.get(on_string[:index])
        day_string = on_string[index + 2:]
        if day_of_week is None or not day_string.isdigit():
            return None
        day = int(day_string)
        if day < 1 or day > 31:
            return None
        return DaySpec(kind, day_of_week, day)

    return None


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in the given (year, month)."""
    is_leap = (year % 4 == 0) and ((year % 100 != 0) or (year % 400) == 0)
    days = DAYS_IN_MONTH[month - 1]
    if month == 2:
        days += is_leap
    return days


def calc_day_of_month(on_day: DaySpec, year: int, month: int) -> int:
    """Return the day of month matching on_day in the given (year, month).

    An EXACT day is returned as-is. For the other kinds the result always
    lies within the month: a 'Sun>=29' which would spill into the following
    month is pulled back by one week, and a 'Sun<=2' which would spill into
    the previous month is pushed forward by one week.
    """
    if on_day.kind == DayKind.EXACT:
        return on_day.day_of_month

    month_days = days_in_month(year, month)
    if on_day.kind == DayKind.LAST:
        # Step back one week from the first of the following month.
        if month == 12:
            next_month = datetime.date(year + 1, 1, 1)
        else:
            next_month = datetime.date(year, month + 1, 1)
        start = next_month - datetime.timedelta(days=7)
        shift = (on_day.day_of_week - start.isoweekday()) % 7
        return start.day + shift

    limit = min(on_day.day_of_month, month_days)
    limit_date = datetime.date(year, month, limit)
    if on_day.kind == DayKind.ON_OR_AFTER:
        day = limit + (on_day.day_of_week - limit_date.isoweekday()) % 7
        if day > month_days:
            day -= 7
    else:
        day = limit - (limit_date.isoweekday() - on_day.day_of_week) % 7
        if day < 1:
            day += 7
    return day


def calc_transition_day(
    on_day: DaySpec,
    year: int,
    month: int,
) -> Tuple[TransitionDay, Optional[str]]:
    """Convert on_day into a TransitionDay (count, weekday, month) valid for
    the given year. Returns the TransitionDay and a note describing the
    approximation, or None if the conversion is exact for every year.

    'lastSun' maps to count LAST_WEEK. 'Sun>=8' maps exactly to the 2nd
    Sunday, but 'Sun>=9' does not start on a 7-day boundary, so its count is
    the one computed for the given year. Similarly, an exact day of month is
    represented by the weekday it falls on in the given year.
    """
    if on_day.kind == DayKind.LAST:
        return TransitionDay(LAST_WEEK, on_day.day_of_week, month), None

    month_days = days_in_month(year, month)
    day = min(calc_day_of_month(on_day, year, month), month_days)
    weekday = datetime.date(year, month, day).isoweekday()
    count = (day - 1) // 7 + 1
    transition_day = TransitionDay(count, weekday, month)

    note: Optional[str] = None
    if on_day.kind == DayKind.EXACT:
        note = (
            f"day {on_day.day_of_month} of month {month} "
            f"rounded to week {count} weekday {weekday}"
        )
    elif on_day.kind == DayKind.ON_OR_AFTER:
        # A day pulled back into the month no longer satisfies '>='.
        if ((on_day.day_of_month - 1) % 7 != 0
                or day < on_day.day_of_month):
            note = (
                f"weekday {on_day.day_of_week}>={on_day.day_of_month} "
                f"of month {month} rounded to week {count}"
            )
    else:
        if on_day.day_of_month % 7 != 0:
            note = (
                f"weekday {on_day.day_of_week}<={on_day.day_of_month} "
                f"of month {month} rounded to week {count}"
            )
    return transition_day, note
