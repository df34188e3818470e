# Copyright 2018 Brian T. Park
#
# MIT License.

import datetime
from typing import List
from typing import Optional

from tzsnapshot.data_types.ts_types import FamilyReduction
from tzsnapshot.data_types.ts_types import ReductionsMap
from tzsnapshot.data_types.ts_types import UnsupportedInputError
from tzsnapshot.data_types.ts_types import ZoneEntry
from tzsnapshot.data_types.ts_types import ZoneName
from tzsnapshot.data_types.ts_types import ZoneRecord
from tzsnapshot.data_types.ts_types import ZoneRule
from tzsnapshot.transformer.calendar import calc_transition_day
from tzsnapshot.transformer.normalizer import minutes_to_hm
from tzsnapshot.transformer.normalizer import minutes_to_hm_string
from tzsnapshot.transformer.normalizer import normalize_at_minutes
from tzsnapshot.transformer.reducer import split_standard_daylight


class ZoneSynthesizer:
    """Combine the ZoneEntry of a zone with the reduced rules of its rule
    family into a single ZoneRecord. Approximations are appended to
    'problems'. Zones which cannot be represented raise UnsupportedInputError.
    """
    def __init__(
        self,
        reference_date: datetime.date,
        reductions: ReductionsMap,
        problems: List[str],
    ):
        self.reference_date = reference_date
        self.reductions = reductions
        self.problems = problems

    def synthesize(self, entry: ZoneEntry) -> ZoneRecord:
        if entry.until is not None and entry.until > self.reference_date:
            raise UnsupportedInputError(
                f"{entry.name}: UNTIL {entry.until.isoformat()} "
                "is in the future")

        if entry.policy_name is None:
            return self._synthesize_fixed(entry)

        reduction = self.reductions.get(entry.policy_name)
        if reduction is None:
            raise UnsupportedInputError(
                f"{entry.name}: unknown rule family '{entry.policy_name}'")

        if reduction.discarded:
            self.problems.append(
                f"{entry.name}: discarded {len(reduction.discarded)} excess "
                f"rules of '{reduction.name}': "
                + '; '.join(rule.raw_line.strip()
                            for rule in reduction.discarded)
            )

        if len(reduction.rules) == 0:
            return self._synthesize_dormant(entry, reduction)
        if len(reduction.rules) == 1:
            raise UnsupportedInputError(
                f"{entry.name}: rule family '{reduction.name}' has a single "
                f"active rule in {self.reference_date.year}")

        pair = split_standard_daylight(reduction.rules)
        if pair is None:
            raise UnsupportedInputError(
                f"{entry.name}: cannot tell the standard rule from the "
                f"daylight rule in '{reduction.name}'")
        std_rule, dst_rule = pair
        return self._synthesize_pair(entry, std_rule, dst_rule)

    def _synthesize_fixed(self, entry: ZoneEntry) -> ZoneRecord:
        """RULES is '-' or a fixed saving like '1:00'."""
        offset = entry.utc_offset_minutes
        if entry.save_minutes != 0:
            offset += entry.save_minutes
            self.problems.append(
                f"{entry.name}: fixed saving "
                f"{minutes_to_hm_string(entry.save_minutes)} "
                "folded into standard offset")
        abbrev = format_abbrev(
            entry.format, '', offset, entry.save_minutes != 0)
        return _standard_only_record(abbrev, offset)

    def _synthesize_dormant(
        self,
        entry: ZoneEntry,
        reduction: FamilyReduction,
    ) -> ZoneRecord:
        """No rule of the family is valid in the reference year, so the
        Base Rule (last rule that fired) stays in effect all year. Standard
        and daylight states are identical, unlike a zone without a family
        whose daylight fields are absent.
        """
        offset = entry.utc_offset_minutes
        if reduction.base is None:
            self.problems.append(
                f"{entry.name}: no rule of '{reduction.name}' has taken "
                "effect, using standard time")
            return _dormant_record(
                format_abbrev(entry.format, '', offset, False), offset)

        rule = reduction.base.rule
        if rule.save_minutes != 0:
            offset += rule.save_minutes
            self.problems.append(
                f"{entry.name}: saving "
                f"{minutes_to_hm_string(rule.save_minutes)} of "
                f"'{reduction.name}' folded into standard offset")
        abbrev = format_abbrev(
            entry.format, rule.letters, offset, rule.save_minutes != 0)
        return _dormant_record(abbrev, offset)

    def _synthesize_pair(
        self,
        entry: ZoneEntry,
        std_rule: ZoneRule,
        dst_rule: ZoneRule,
    ) -> ZoneRecord:
        year = self.reference_date.year
        offset = entry.utc_offset_minutes

        dst_start, note = calc_transition_day(
            dst_rule.on_day, year, dst_rule.month)
        if note:
            self.problems.append(f'{entry.name}: {note}')
        dst_end, note = calc_transition_day(
            std_rule.on_day, year, std_rule.month)
        if note:
            self.problems.append(f'{entry.name}: {note}')

        # Each transition happens while the other rule is in effect.
        start_minutes = normalize_at_minutes(
            dst_rule.at, offset, std_rule.save_minutes, entry.name,
            self.problems)
        end_minutes = normalize_at_minutes(
            std_rule.at, offset, dst_rule.save_minutes, entry.name,
            self.problems)

        std_abbrev = format_abbrev(
            entry.format, std_rule.letters, offset, False)
        dst_abbrev = format_abbrev(
            entry.format, dst_rule.letters, offset + dst_rule.save_minutes,
            True)

        return ZoneRecord(
            std_name=ZoneName(std_abbrev, std_abbrev),
            dst_name=ZoneName(dst_abbrev, dst_abbrev),
            std_offset_minutes=offset,
            dst_delta_minutes=dst_rule.save_minutes,
            dst_start=dst_start,
            dst_start_time=minutes_to_hm(start_minutes),
            dst_end=dst_end,
            dst_end_time=minutes_to_hm(end_minutes),
        )


def _standard_only_record(abbrev: str, offset: int) -> ZoneRecord:
    return ZoneRecord(
        std_name=ZoneName(abbrev, abbrev),
        dst_name=None,
        std_offset_minutes=offset,
        dst_delta_minutes=0,
        dst_start=None,
        dst_start_time=None,
        dst_end=None,
        dst_end_time=None,
    )


def _dormant_record(abbrev: str, offset: int) -> ZoneRecord:
    """Both states use the same name, with no saving and no transitions."""
    name = ZoneName(abbrev, abbrev)
    return ZoneRecord(
        std_name=name,
        dst_name=name,
        std_offset_minutes=offset,
        dst_delta_minutes=0,
        dst_start=None,
        dst_start_time=None,
        dst_end=None,
        dst_end_time=None,
    )


def format_abbrev(
    format: str,
    letters: Optional[str],
    offset_minutes: int,
    is_dst: bool,
) -> str:
    """Expand the FORMAT field of a Zone into an abbreviation.

        * 'GMT/BST' selects the first or second half using 'is_dst',
        * 'P%sT' replaces '%s' with the LETTER of the rule ('-' means empty),
        * '%z' is replaced with the numeric UTC offset (e.g. '+05', '+0530').
    """
    if '/' in format:
        std_format, dst_format = format.split('/', 1)
        return dst_format if is_dst else std_format

    if '%s' in format:
        if letters is None or letters == '-':
            letters = ''
        format = format.replace('%s', letters)
    if '%z' in format:
        format = format.replace('%z', format_numeric_offset(offset_minutes))
    return format


def format_numeric_offset(offset_minutes: int) -> str:
    """Format the UTC offset the way zic expands '%z': '+05', '-03', '+0530'.
    """
    sign = '-' if offset_minutes < 0 else '+'
    h, m = divmod(abs(offset_minutes), 60)
    if m == 0:
        return f'{sign}{h:02}'
    return f'{sign}{h:02}{m:02}'
