import datetime
import unittest

from tzsnapshot.data_types.ts_types import DayKind
from tzsnapshot.data_types.ts_types import DaySpec
from tzsnapshot.data_types.ts_types import TimeBase
from tzsnapshot.data_types.ts_types import TimeSpec
from tzsnapshot.data_types.ts_types import ZoneRule
from tzsnapshot.data_types.ts_types import MAX_TO_YEAR
from tzsnapshot.transformer.activity import calc_last_active_date

REFERENCE_DATE = datetime.date(2026, 10, 19)


def _rule(
    from_year: int,
    to_year: int,
    month: int,
    on_day: DaySpec,
    to_only: bool = False,
) -> ZoneRule:
    return ZoneRule(
        name='Test',
        from_year=from_year,
        to_year=to_year,
        to_only=to_only,
        month=month,
        on_day=on_day,
        at=TimeSpec(120, TimeBase.WALL),
        save_minutes=0,
        letters='',
    )


class TestCalcLastActiveDate(unittest.TestCase):
    def test_max_rule_already_fired_this_year(self) -> None:
        rule = _rule(2007, MAX_TO_YEAR, 3, DaySpec(DayKind.ON_OR_AFTER, 7, 8))
        self.assertEqual(
            datetime.date(2026, 3, 8),
            calc_last_active_date(rule, REFERENCE_DATE))

    def test_max_rule_not_yet_fired_this_year(self) -> None:
        # Nov 1st 2026 is after the reference date, so last year's Nov 2nd.
        rule = _rule(2007, MAX_TO_YEAR, 11, DaySpec(DayKind.ON_OR_AFTER, 7, 1))
        self.assertEqual(
            datetime.date(2025, 11, 2),
            calc_last_active_date(rule, REFERENCE_DATE))

    def test_same_month_uses_day(self) -> None:
        rule = _rule(2007, MAX_TO_YEAR, 10, DaySpec(DayKind.EXACT, 0, 19))
        self.assertEqual(
            datetime.date(2026, 10, 19),
            calc_last_active_date(rule, REFERENCE_DATE))
        rule = _rule(2007, MAX_TO_YEAR, 10, DaySpec(DayKind.EXACT, 0, 20))
        self.assertEqual(
            datetime.date(2025, 10, 20),
            calc_last_active_date(rule, REFERENCE_DATE))

    def test_explicit_to_year_in_past(self) -> None:
        rule = _rule(1987, 2006, 4, DaySpec(DayKind.ON_OR_AFTER, 7, 1))
        self.assertEqual(
            datetime.date(2006, 4, 2),
            calc_last_active_date(rule, REFERENCE_DATE))

    def test_explicit_to_year_in_future(self) -> None:
        rule = _rule(2020, 2030, 3, DaySpec(DayKind.LAST, 7, 0))
        self.assertEqual(
            datetime.date(2026, 3, 29),
            calc_last_active_date(rule, REFERENCE_DATE))

    def test_only_rule(self) -> None:
        rule = _rule(
            2010, 2010, 3, DaySpec(DayKind.LAST, 7, 0), to_only=True)
        self.assertEqual(
            datetime.date(2010, 3, 28),
            calc_last_active_date(rule, REFERENCE_DATE))

    def test_rule_in_the_future(self) -> None:
        rule = _rule(2027, MAX_TO_YEAR, 3, DaySpec(DayKind.LAST, 7, 0))
        self.assertIsNone(calc_last_active_date(rule, REFERENCE_DATE))

        # Starts this year, but later in the year.
        rule = _rule(2026, MAX_TO_YEAR, 11, DaySpec(DayKind.ON_OR_AFTER, 7, 1))
        self.assertIsNone(calc_last_active_date(rule, REFERENCE_DATE))

        rule = _rule(2026, 2026, 10, DaySpec(DayKind.LAST, 7, 0), to_only=True)
        self.assertIsNone(calc_last_active_date(rule, REFERENCE_DATE))

    def test_only_rules_resolve_to_from_year(self) -> None:
        for year in range(2000, 2031):
            for month in (1, 10, 12):
                rule = _rule(
                    year, year, month, DaySpec(DayKind.ON_OR_AFTER, 7, 1),
                    to_only=True)
                last_active = calc_last_active_date(rule, REFERENCE_DATE)
                if year < REFERENCE_DATE.year:
                    self.assertIsNotNone(last_active)
                if year > REFERENCE_DATE.year:
                    self.assertIsNone(last_active)
                if last_active is not None:
                    self.assertEqual(year, last_active.year)


if __name__ == '__main__':
    unittest.main()
