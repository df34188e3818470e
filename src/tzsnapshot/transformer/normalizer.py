# Copyright 2018 Brian T. Park
#
# MIT License.

"""
Conversion of the AT field of a Rule into minutes after midnight, expressed in
the local wall clock time in effect just before the transition. Also holds the
'[-]hh:mm[:ss]' parsers used for the STDOFF, RULES, SAVE and AT fields.
"""

from typing import List
from typing import Optional
from typing import Tuple

from tzsnapshot.data_types.ts_types import TimeBase
from tzsnapshot.data_types.ts_types import TimeSpec
from tzsnapshot.data_types.ts_types import MINUTES_PER_DAY

INVALID_MINUTES = 99999

SUFFIX_TO_TIME_BASE = {
    '': TimeBase.WALL,
    'w': TimeBase.WALL,
    's': TimeBase.STANDARD,
    'u': TimeBase.UTC,
    'g': TimeBase.UTC,
    'z': TimeBase.UTC,
}


def time_string_to_minutes(time_string: str) -> int:
    """Converts the '[-]hh:mm[:ss]' string into +/- total minutes from 00:00.
    Seconds are truncated towards 0. Returns INVALID_MINUTES if there is a
    parsing error.
    """
    sign = 1
    if time_string[:1] == '-':
        sign = -1
        time_string = time_string[1:]
    elif time_string[:1] == '+':
        time_string = time_string[1:]

    try:
        elems = time_string.split(':')
        if len(elems) > 3:
            return INVALID_MINUTES
        hour = int(elems[0])
        minute = int(elems[1]) if len(elems) > 1 else 0
        second = int(elems[2]) if len(elems) > 2 else 0
    except ValueError:
        return INVALID_MINUTES

    # A number of countries use 24:00, and Japan uses 25:00(!).
    # Rule  Japan   1948    1951  -     Sep Sat>=8  25:00   0   	S
    if hour > 25:
        return INVALID_MINUTES
    if minute > 59:
        return INVALID_MINUTES
    if second > 59:
        return INVALID_MINUTES
    return sign * (hour * 60 + minute)


def offset_minutes(raw: str, adjustment: int = 0) -> int:
    """Parse a STDOFF or SAVE string ('-8:00', '5:30', '1', '0') into signed
    minutes, then add the adjustment. A bare number means hours, as in zic.
    Raises ValueError if the string is invalid.
    """
    minutes = time_string_to_minutes(raw)
    if minutes == INVALID_MINUTES:
        raise ValueError(f"Invalid offset '{raw}'")
    return minutes + adjustment


def parse_time_spec(at_time: str, suffix: str) -> Optional[TimeSpec]:
    """Convert the AT field ('2:00', 's') into a TimeSpec. Returns None if the
    time or the suffix is invalid.
    """
    base = SUFFIX_TO_TIME_BASE.get(suffix)
    if base is None:
        return None
    minutes = time_string_to_minutes(at_time)
    if minutes == INVALID_MINUTES:
        return None
    return TimeSpec(minutes, base)


def normalize_at_minutes(
    at: TimeSpec,
    utc_offset_minutes: int,
    other_save_minutes: int,
    zone_name: str,
    problems: List[str],
) -> int:
    """Convert the AT time into the local wall clock time just before the
    transition. 'other_save_minutes' is the SAVE of the paired rule, i.e. the
    saving in effect just before this rule's transition.

    A transition expressed in UTC can land outside of the calendar day after
    conversion. The day of a transition is described by its weekday, so
    instead of rolling into the adjacent day, the time is clamped to 00:00 or
    24:00 and a problem is recorded.
    """
    if at.base == TimeBase.WALL:
        return at.minutes
    if at.base == TimeBase.STANDARD:
        return at.minutes + other_save_minutes

    minutes = at.minutes + utc_offset_minutes + other_save_minutes
    if minutes < 0:
        problems.append(
            f'{zone_name}: transition at {minutes_to_hm_string(minutes)} '
            'moved to start of day'
        )
        return 0
    if minutes > MINUTES_PER_DAY:
        problems.append(
            f'{zone_name}: transition at {minutes_to_hm_string(minutes)} '
            'moved to end of day'
        )
        return MINUTES_PER_DAY
    return minutes


def minutes_to_hm(minutes: int) -> Tuple[int, int]:
    """Convert minutes to (h, m). Works only for positive minutes."""
    return (minutes // 60, minutes % 60)


def minutes_to_hm_string(minutes: int) -> str:
    """Convert minutes to [-]hh:mm."""
    if minutes < 0:
        sign = '-'
        minutes = -minutes
    else:
        sign = ''
    h, m = minutes_to_hm(minutes)
    return f'{sign}{h:02}:{m:02}'
