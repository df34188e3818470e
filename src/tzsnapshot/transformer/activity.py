# Copyright 2018 Brian T. Park
#
# MIT License.

import datetime
from typing import Optional

from tzsnapshot.data_types.ts_types import ZoneRule
from tzsnapshot.data_types.ts_types import MAX_TO_YEAR
from tzsnapshot.transformer.calendar import calc_day_of_month
from tzsnapshot.transformer.calendar import days_in_month


def calc_last_active_date(
    rule: ZoneRule,
    reference_date: datetime.date,
) -> Optional[datetime.date]:
    """Return the date (at local midnight) on which the rule most recently
    fired, as of the reference_date. Returns None if the rule has never fired,
    i.e. its first transition lies after the reference_date.

    The candidate year is the reference year for 'max', FROM for 'only', and
    TO (capped at the reference year) otherwise. If the transition in the
    reference year has not happened yet, the previous year's transition is
    the most recent one. An 'only' rule always resolves to its FROM year.
    """
    ref_year = reference_date.year
    ref_month_day = (reference_date.month, reference_date.day)

    if rule.from_year > ref_year:
        return None
    if rule.from_year == ref_year:
        day = calc_day_of_month(rule.on_day, rule.from_year, rule.month)
        if (rule.month, day) > ref_month_day:
            return None

    if rule.to_only:
        year = rule.from_year
    elif rule.to_year == MAX_TO_YEAR:
        year = ref_year
    else:
        year = min(rule.to_year, ref_year)

    if not rule.to_only and year == ref_year:
        day = calc_day_of_month(rule.on_day, year, rule.month)
        if (rule.month, day) > ref_month_day:
            year -= 1

    day = calc_day_of_month(rule.on_day, year, rule.month)
    day = min(day, days_in_month(year, rule.month))
    return datetime.date(year, rule.month, day)
