import calendar
import datetime
import unittest

from tzsnapshot.data_types.ts_types import DayKind
from tzsnapshot.data_types.ts_types import DaySpec
from tzsnapshot.data_types.ts_types import TransitionDay
from tzsnapshot.data_types.ts_types import LAST_WEEK
from tzsnapshot.transformer.calendar import calc_day_of_month
from tzsnapshot.transformer.calendar import calc_transition_day
from tzsnapshot.transformer.calendar import days_in_month
from tzsnapshot.transformer.calendar import parse_on_day_string

SUNDAY = 7


class TestParseOnDayString(unittest.TestCase):
    def test_parse_on_day_string(self) -> None:
        self.assertEqual(
            DaySpec(DayKind.EXACT, 0, 20), parse_on_day_string('20'))
        self.assertEqual(
            DaySpec(DayKind.LAST, 7, 0), parse_on_day_string('lastSun'))
        self.assertEqual(
            DaySpec(DayKind.LAST, 1, 0), parse_on_day_string('lastMon'))
        self.assertEqual(
            DaySpec(DayKind.ON_OR_AFTER, 7, 8), parse_on_day_string('Sun>=8'))
        self.assertEqual(
            DaySpec(DayKind.ON_OR_BEFORE, 5, 1), parse_on_day_string('Fri<=1'))

    def test_parse_on_day_string_fails(self) -> None:
        self.assertIsNone(parse_on_day_string('lastXyz'))
        self.assertIsNone(parse_on_day_string('Sun>=x'))
        self.assertIsNone(parse_on_day_string('Foo<=2'))
        self.assertIsNone(parse_on_day_string('32'))
        self.assertIsNone(parse_on_day_string('Sun=8'))


class TestDaysInMonth(unittest.TestCase):
    def test_days_in_month(self) -> None:
        self.assertEqual(31, days_in_month(2026, 1))
        self.assertEqual(28, days_in_month(2026, 2))
        self.assertEqual(29, days_in_month(2024, 2))
        self.assertEqual(28, days_in_month(2100, 2))
        self.assertEqual(29, days_in_month(2000, 2))
        self.assertEqual(30, days_in_month(2026, 4))
        self.assertEqual(31, days_in_month(2026, 12))


class TestCalcDayOfMonth(unittest.TestCase):
    def test_exact_day(self) -> None:
        on_day = DaySpec(DayKind.EXACT, 0, 21)
        self.assertEqual(21, calc_day_of_month(on_day, 2026, 3))

    def test_last_day_of_week(self) -> None:
        on_day = DaySpec(DayKind.LAST, SUNDAY, 0)
        self.assertEqual(29, calc_day_of_month(on_day, 2026, 3))
        self.assertEqual(25, calc_day_of_month(on_day, 2026, 10))
        self.assertEqual(26, calc_day_of_month(on_day, 2025, 10))
        self.assertEqual(22, calc_day_of_month(on_day, 2026, 2))
        self.assertEqual(27, calc_day_of_month(on_day, 2026, 12))

    def test_on_or_after(self) -> None:
        self.assertEqual(
            8, calc_day_of_month(DaySpec(DayKind.ON_OR_AFTER, 7, 8), 2026, 3))
        self.assertEqual(
            9, calc_day_of_month(DaySpec(DayKind.ON_OR_AFTER, 7, 8), 2025, 3))
        self.assertEqual(
            1, calc_day_of_month(DaySpec(DayKind.ON_OR_AFTER, 7, 1), 2026, 11))
        self.assertEqual(
            30, calc_day_of_month(DaySpec(DayKind.ON_OR_AFTER, 1, 29), 2026, 3))

    def test_on_or_after_stays_in_month(self) -> None:
        # Fri>=29 in April 2026 would be May 1st.
        self.assertEqual(
            24, calc_day_of_month(DaySpec(DayKind.ON_OR_AFTER, 5, 29), 2026, 4))
        # Sat>=29 in a 28-day February.
        self.assertEqual(
            28, calc_day_of_month(DaySpec(DayKind.ON_OR_AFTER, 6, 29), 2026, 2))

    def test_on_or_before(self) -> None:
        self.assertEqual(
            6, calc_day_of_month(DaySpec(DayKind.ON_OR_BEFORE, 5, 7), 2026, 3))
        self.assertEqual(
            28, calc_day_of_month(DaySpec(DayKind.ON_OR_BEFORE, 6, 30), 2026, 3))
        self.assertEqual(
            1, calc_day_of_month(DaySpec(DayKind.ON_OR_BEFORE, 7, 2), 2026, 3))
        self.assertEqual(
            2, calc_day_of_month(DaySpec(DayKind.ON_OR_BEFORE, 1, 2), 2026, 3))

    def test_on_or_before_stays_in_month(self) -> None:
        # Tue<=2 in March 2026 would be Feb 24th.
        self.assertEqual(
            3, calc_day_of_month(DaySpec(DayKind.ON_OR_BEFORE, 2, 2), 2026, 3))

    def test_last_sunday_for_every_month(self) -> None:
        on_day = DaySpec(DayKind.LAST, SUNDAY, 0)
        for year in range(1990, 2040):
            for month in range(1, 13):
                day = calc_day_of_month(on_day, year, month)
                month_days = calendar.monthrange(year, month)[1]
                self.assertGreaterEqual(day, 1)
                self.assertLessEqual(day, month_days)
                self.assertEqual(
                    SUNDAY, datetime.date(year, month, day).isoweekday())
                self.assertGreater(day + 7, month_days)


class TestCalcTransitionDay(unittest.TestCase):
    def test_last(self) -> None:
        transition_day, note = calc_transition_day(
            DaySpec(DayKind.LAST, SUNDAY, 0), 2026, 3)
        self.assertEqual(TransitionDay(LAST_WEEK, SUNDAY, 3), transition_day)
        self.assertIsNone(note)

    def test_aligned_on_or_after(self) -> None:
        transition_day, note = calc_transition_day(
            DaySpec(DayKind.ON_OR_AFTER, SUNDAY, 8), 2026, 3)
        self.assertEqual(TransitionDay(2, SUNDAY, 3), transition_day)
        self.assertIsNone(note)

        transition_day, note = calc_transition_day(
            DaySpec(DayKind.ON_OR_AFTER, SUNDAY, 1), 2026, 11)
        self.assertEqual(TransitionDay(1, SUNDAY, 11), transition_day)
        self.assertIsNone(note)

    def test_unaligned_on_or_after(self) -> None:
        # Sun>=9 in March 2026 is the 15th, the 3rd Sunday.
        transition_day, note = calc_transition_day(
            DaySpec(DayKind.ON_OR_AFTER, SUNDAY, 9), 2026, 3)
        self.assertEqual(TransitionDay(3, SUNDAY, 3), transition_day)
        self.assertIsNotNone(note)

    def test_on_or_after_pulled_back_into_month(self) -> None:
        # No Sunday on or after Feb 29th in 2026, so Feb 22nd is used.
        transition_day, note = calc_transition_day(
            DaySpec(DayKind.ON_OR_AFTER, SUNDAY, 29), 2026, 2)
        self.assertEqual(TransitionDay(4, SUNDAY, 2), transition_day)
        self.assertIsNotNone(note)

        # Sun>=29 in March 2026 is the 29th, no approximation.
        transition_day, note = calc_transition_day(
            DaySpec(DayKind.ON_OR_AFTER, SUNDAY, 29), 2026, 3)
        self.assertEqual(TransitionDay(5, SUNDAY, 3), transition_day)
        self.assertIsNone(note)

    def test_aligned_on_or_before(self) -> None:
        transition_day, note = calc_transition_day(
            DaySpec(DayKind.ON_OR_BEFORE, 5, 7), 2026, 3)
        self.assertEqual(TransitionDay(1, 5, 3), transition_day)
        self.assertIsNone(note)

    def test_exact_day(self) -> None:
        # March 21st 2026 is the 3rd Saturday.
        transition_day, note = calc_transition_day(
            DaySpec(DayKind.EXACT, 0, 21), 2026, 3)
        self.assertEqual(TransitionDay(3, 6, 3), transition_day)
        self.assertIsNotNone(note)


if __name__ == '__main__':
    unittest.main()
