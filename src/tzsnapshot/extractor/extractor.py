# Copyright 2018 Brian T. Park
#
# MIT License.

"""
Parses the raw TZ Database files (e.g. 'northamerica', 'europe') into the
PoliciesMap, ZonesMap and LinksMap data structures. The parser recognizes 3
kinds of lines:

    Rule  NAME  FROM  TO  -  IN  ON  AT  SAVE  LETTER/S
    Zone  NAME  STDOFF  RULES  FORMAT  [UNTIL]
    Link  TARGET  LINK-NAME

A Zone line with an UNTIL field is followed by one or more continuation lines,
which contain only the 'STDOFF RULES FORMAT [UNTIL]' fields.
"""

import logging
import os
from dataclasses import dataclass
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple

from tzsnapshot.data_types.ts_types import LinksMap
from tzsnapshot.data_types.ts_types import PoliciesMap
from tzsnapshot.data_types.ts_types import ZoneEraRaw
from tzsnapshot.data_types.ts_types import ZoneInfoRaw
from tzsnapshot.data_types.ts_types import ZoneRuleRaw
from tzsnapshot.data_types.ts_types import ZonesMap
from tzsnapshot.data_types.ts_types import MAX_TO_YEAR
from tzsnapshot.data_types.ts_types import MAX_UNTIL_YEAR
from tzsnapshot.data_types.ts_types import MIN_YEAR

MONTH_NAMES = [
    'january', 'february', 'march', 'april', 'may', 'june',
    'july', 'august', 'september', 'october', 'november', 'december',
]


@dataclass
class _ParserState:
    """State carried from one line to the next. A non-None zone_name means
    that the previous Zone line (or continuation line) had an UNTIL field, so
    the next line may be a continuation line.
    """
    zone_name: Optional[str] = None
    line_number: int = 0


class Extractor:
    """Read the various TZ Database files and convert the Rule, Zone and Link
    lines into raw records. Usage:

        extractor = Extractor(input_dir)
        extractor.parse()
        extractor.print_summary()
        policies_map, zones_map, links_map = extractor.get_data()
    """

    # Files that contain the Zone, Rule and Link entries.
    ZONE_FILES = [
        'africa',
        'antarctica',
        'asia',
        'australasia',
        'backward',
        'etcetera',
        'europe',
        'northamerica',
        'southamerica',
    ]

    def __init__(self, input_dir: str = ''):
        self.input_dir = input_dir

        self.policies_map: PoliciesMap = {}
        self.zones_map: ZonesMap = {}
        self.links_map: LinksMap = {}

        self.rule_lines_count = 0
        self.zone_lines_count = 0
        self.link_lines_count = 0
        self.duplicate_zones: List[str] = []
        self.duplicate_links: List[str] = []

    def parse(self) -> None:
        """Read the zone files in ZONE_FILES from the input_dir."""
        for name in self.ZONE_FILES:
            full_filename = os.path.join(self.input_dir, name)
            logging.info('Processing %s', full_filename)
            with open(full_filename, 'r', encoding='utf-8') as f:
                self.parse_lines(f)

    def parse_lines(self, lines: Iterable[str]) -> None:
        """Parse the lines of a single TZ file. Can be called multiple times
        to accumulate several files.
        """
        state = _ParserState()
        for line in lines:
            state.line_number += 1
            self._parse_line(state, line)

    def print_summary(self) -> None:
        logging.info(
            'Line count (Rule, Zone, Link): (%s, %s, %s)',
            self.rule_lines_count,
            self.zone_lines_count,
            self.link_lines_count,
        )
        logging.info(
            'Policies: %s; Zones: %s; Links: %s',
            len(self.policies_map),
            len(self.zones_map),
            len(self.links_map),
        )
        if self.duplicate_zones:
            logging.info('Duplicate zones: %s', self.duplicate_zones)
        if self.duplicate_links:
            logging.info('Duplicate links: %s', self.duplicate_links)

    def get_data(self) -> Tuple[PoliciesMap, ZonesMap, LinksMap]:
        return self.policies_map, self.zones_map, self.links_map

    def _parse_line(self, state: _ParserState, line: str) -> None:
        line = line.rstrip('\n')
        comment_index = line.find('#')
        if comment_index >= 0:
            line = line[:comment_index]
        if not line.strip():
            return

        words = line.split()
        tag = words[0]
        is_continuation = line[0] in ' \t'

        if is_continuation:
            if state.zone_name is None:
                raise Exception(
                    f'Line {state.line_number}: '
                    f'unexpected continuation line "{line}"')
            era = _process_era(words, line)
            self.zones_map[state.zone_name]['eras'].append(era)
            self.zone_lines_count += 1
            if era['until_year'] == MAX_UNTIL_YEAR:
                state.zone_name = None
        elif tag == 'Rule':
            state.zone_name = None
            rule = _process_rule(words, line)
            self.policies_map.setdefault(rule['name'], []).append(rule)
            self.rule_lines_count += 1
        elif tag == 'Zone':
            state.zone_name = None
            if len(words) < 5:
                raise Exception(
                    f'Line {state.line_number}: invalid Zone line "{line}"')
            zone_name = words[1]
            era = _process_era(words[2:], line)
            if zone_name in self.zones_map:
                self.duplicate_zones.append(zone_name)
            info: ZoneInfoRaw = {'name': zone_name, 'eras': [era]}
            self.zones_map[zone_name] = info
            self.zone_lines_count += 1
            if era['until_year'] != MAX_UNTIL_YEAR:
                state.zone_name = zone_name
        elif tag == 'Link':
            state.zone_name = None
            if len(words) != 3:
                raise Exception(
                    f'Line {state.line_number}: invalid Link line "{line}"')
            target, link_name = words[1], words[2]
            if link_name in self.links_map:
                self.duplicate_links.append(link_name)
            self.links_map[link_name] = target
            self.link_lines_count += 1
        else:
            raise Exception(
                f'Line {state.line_number}: unrecognized line "{line}"')


def _process_rule(words: List[str], line: str) -> ZoneRuleRaw:
    """Convert the words of a Rule line into a ZoneRuleRaw."""
    if len(words) != 10:
        raise Exception(f'Invalid Rule line "{line}"')

    from_year = parse_from_year(words[2])
    to_only = words[3] == 'only'
    to_year = parse_to_year(words[3], from_year)
    at_time, at_time_suffix = parse_at_time_string(words[7])

    return {
        'name': words[1],
        'from_year': from_year,
        'to_year': to_year,
        'to_only': to_only,
        'in_month': month_to_index(words[5]),
        'on_day': words[6],
        'at_time': at_time,
        'at_time_suffix': at_time_suffix,
        'delta_offset': words[8],
        'letter': words[9],
        'raw_line': line,
    }


def _process_era(words: List[str], line: str) -> ZoneEraRaw:
    """Convert the 'STDOFF RULES FORMAT [UNTIL]' words into a ZoneEraRaw. The
    UNTIL field has the form 'YEAR [MONTH [DAY [TIME]]]'.
    """
    if len(words) < 3 or len(words) > 7:
        raise Exception(f'Invalid Zone line "{line}"')

    until_year = int(words[3]) if len(words) > 3 else MAX_UNTIL_YEAR
    until_month = month_to_index(words[4]) if len(words) > 4 else 1
    until_day_string = words[5] if len(words) > 5 else '1'
    if len(words) > 6:
        until_time, until_time_suffix = parse_at_time_string(words[6])
    else:
        until_time, until_time_suffix = '0:00', ''

    return {
        'offset_string': words[0],
        'rules': words[1],
        'format': words[2],
        'until_year': until_year,
        'until_month': until_month,
        'until_day_string': until_day_string,
        'until_time': until_time,
        'until_time_suffix': until_time_suffix,
        'raw_line': line,
    }


def parse_from_year(year_string: str) -> int:
    """Parse the FROM field, which is a year or 'min'/'minimum'."""
    if year_string in ('min', 'minimum'):
        return MIN_YEAR
    return int(year_string)


def parse_to_year(year_string: str, from_year: int) -> int:
    """Parse the TO field. 'only' means the same as from_year, 'max' becomes
    MAX_TO_YEAR.
    """
    if year_string == 'only':
        return from_year
    if year_string in ('max', 'maximum'):
        return MAX_TO_YEAR
    return int(year_string)


def parse_at_time_string(at_string: str) -> Tuple[str, str]:
    """Parses the '2:00s' string into '2:00' and 's'. If no suffix is
    given, returns ''. Throws an Exception if the suffix is not recognized.
    """
    suffix_index = len(at_string) - 1
    suffix = at_string[suffix_index]
    if suffix in 'wsugz':
        at_time = at_string[:suffix_index]
    elif suffix.isdigit():
        at_time = at_string
        suffix = ''
    else:
        raise Exception(f'Invalid AT suffix in "{at_string}"')
    return (at_time, suffix)


def month_to_index(month: str) -> int:
    """Convert the month name (full, or an abbreviation of at least 3
    letters) into an index, 'Jan' = 1. Throws an Exception if the month is
    not recognized.
    """
    name = month.lower()
    if len(name) >= 3:
        for index, month_name in enumerate(MONTH_NAMES):
            if month_name.startswith(name):
                return index + 1
    raise Exception(f'Invalid month "{month}"')
