# Copyright 2020 Brian T. Park
#
# MIT License

import datetime
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Collection
from typing import Dict
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Set
from typing import Tuple
from typing import cast
from typing_extensions import TypedDict

"""
Data types created or consumed by the extractor, transformer and generator
packages. These allow typing checking to be performed using mypy. Also contains
global constants used by multiple packages.
"""

# -----------------------------------------------------------------------------
# Constants used by various modules.
# -----------------------------------------------------------------------------

# Indicate +Infinity UNTIL year (represented by empty field).
MAX_UNTIL_YEAR: int = 10000

# Indicate 'max' in the TO field.
MAX_TO_YEAR: int = MAX_UNTIL_YEAR - 1

# Marker year to indicate 'min' in the FROM field.
MIN_YEAR: int = 0

# Specificity of a rule whose TO field is 'max'. Lower is more specific.
MAX_SPECIFICITY: int = MAX_UNTIL_YEAR

# Week count of a TransitionDay which means 'last weekday of the month'.
LAST_WEEK: int = 5

MINUTES_PER_DAY: int = 24 * 60


class UnsupportedInputError(Exception):
    """Raised when a zone cannot be represented by a single standard rule
    and a single daylight rule (e.g. a future UNTIL, or a rule family with
    exactly one rule active in the reference year).
    """
    pass


# -----------------------------------------------------------------------------
# Data types produced by extractor.py.
# -----------------------------------------------------------------------------

class ZoneRuleRaw(TypedDict, total=False):
    """Represents the input records corresponding to the 'RULE' lines in a
    tz database file. Those entries look like this:

    # Rule  NAME    FROM    TO    TYPE IN   ON      AT      SAVE    LETTER
    Rule    US      2007    max   -    Mar  Sun>=8  2:00    1:00    D
    Rule    US      2007    max   -    Nov  Sun>=1  2:00    0       S
    """
    name: str  # name of the rule family
    from_year: int  # from year
    to_year: int  # to year, MAX_TO_YEAR (9999) means 'max'
    to_only: bool  # True if TO is 'only'
    in_month: int  # month index (1-12)
    on_day: str  # 'lastSun' or 'Sun>=2', or 'dayOfMonth'
    at_time: str  # hour at which to transition to and from DST
    at_time_suffix: str  # '', 's', 'w', 'u', 'g', 'z'
    delta_offset: str  # DST offset from Standard time ('SAVE' field)
    letter: str  # 'D', 'S', '-', but sometimes longer 'DD', 'CAT', etc.
    raw_line: str  # the original RULE line from the TZ file


class ZoneEraRaw(TypedDict, total=False):
    """Represents the input records corresponding to the 'ZONE' lines in a
    tz database file. Those entries look like this:

    # Zone  NAME                STDOFF      RULES   FORMAT  [UNTIL]
    Zone    America/Chicago     -5:50:36    -       LMT     1883 Nov 18 12:09:24
                                -6:00       US      C%sT    1920
                                ...
                                -6:00       US      C%sT

    """
    offset_string: str   # STD offset from UTC/GMT
    rules: str  # name of the Rule in effect, '-', or a 'hh:mm' saving
    format: str  # abbreviation format (e.g. P%sT, E%sT, GMT/BST, %z)
    until_year: int  # MAX_UNTIL_YEAR means 'max'
    until_month: int  # 1-12
    until_day_string: str  # e.g. 'lastSun', 'Sun>=3', or '1'-'31'
    until_time: str  # e.g. '2:00', '00:01'
    until_time_suffix: str  # '', 's', 'w', 'g', 'u', 'z'
    raw_line: str  # original ZONE line in TZ file


class ZoneInfoRaw(TypedDict):
    """A 'Zone' line with its continuation lines."""
    name: str
    eras: List[ZoneEraRaw]


# Map of policyName -> ZoneRuleRaw[]. Created by extractor.py.
PoliciesMap = Dict[str, List[ZoneRuleRaw]]

# Map of zoneName -> ZoneInfoRaw. Created by extractor.py.
ZonesMap = Dict[str, ZoneInfoRaw]

# Map of linkName -> zoneName. Created by extractor.py.
LinksMap = Dict[str, str]


# -----------------------------------------------------------------------------
# Parsed rule and zone types, created by transformer.py.
# -----------------------------------------------------------------------------

class DayKind(Enum):
    EXACT = 'exact'  # '21'
    ON_OR_AFTER = '>='  # 'Sun>=8'
    ON_OR_BEFORE = '<='  # 'Fri<=1'
    LAST = 'last'  # 'lastSun'


class DaySpec(NamedTuple):
    """The ON field of a Rule, or the day of an UNTIL field."""
    kind: DayKind
    day_of_week: int  # ISO weekday, Mon=1, Sun=7; 0 for EXACT
    day_of_month: int  # 1-31; 0 for LAST


class TimeBase(Enum):
    WALL = 'w'  # local wall clock in effect before the transition
    STANDARD = 's'  # local standard time
    UTC = 'u'  # also 'g' and 'z'


class TimeSpec(NamedTuple):
    """The AT field of a Rule."""
    minutes: int  # minutes after midnight, may exceed 24:00
    base: TimeBase


@dataclass(frozen=True)
class ZoneRule:
    """A single parsed RULE line."""
    name: str
    from_year: int
    to_year: int  # MAX_TO_YEAR for 'max'
    to_only: bool  # TO is 'only'
    month: int
    on_day: DaySpec
    at: TimeSpec
    save_minutes: int
    letters: str  # '-' already converted to ''
    raw_line: str = ''

    @property
    def specificity(self) -> int:
        """Width of the validity span in years. Lower is more specific."""
        if self.to_only:
            return 1
        if self.to_year == MAX_TO_YEAR:
            return MAX_SPECIFICITY
        return self.to_year - self.from_year + 1


@dataclass(frozen=True)
class BaseRule:
    """The most recently fired rule of a family. Used when no rule of the
    family is valid in the reference year.
    """
    rule: ZoneRule
    last_active: datetime.date


@dataclass
class FamilyReduction:
    """Result of reducing the rules of one family as of the reference date.
    """
    name: str
    rules: List[ZoneRule]  # at most 2 rules valid in the reference year
    base: Optional[BaseRule]  # None if no rule has ever fired
    discarded: List[ZoneRule]  # excess rules dropped by specificity


@dataclass(frozen=True)
class ZoneEntry:
    """The era of a Zone in effect at the reference date."""
    name: str
    utc_offset_minutes: int
    policy_name: Optional[str]  # None if RULES is '-' or a fixed saving
    save_minutes: int  # fixed saving from RULES, 0 for '-' or a family
    format: str
    until: Optional[datetime.date] = None


# Map of policyName -> ZoneRule[]
RulesMap = Dict[str, List[ZoneRule]]

# Map of policyName -> FamilyReduction
ReductionsMap = Dict[str, FamilyReduction]

# Map of zoneName -> ZoneEntry
EntriesMap = Dict[str, ZoneEntry]


# -----------------------------------------------------------------------------
# Output records created by synthesizer.py.
# -----------------------------------------------------------------------------

class ZoneName(NamedTuple):
    abbrev: str
    name: str


class TransitionDay(NamedTuple):
    """The 'Nth weekday of month' form of a transition day."""
    count: int  # 1-4, or LAST_WEEK
    weekday: int  # ISO weekday, Mon=1, Sun=7
    month: int  # 1-12


@dataclass(frozen=True)
class ZoneRecord:
    std_name: ZoneName
    dst_name: Optional[ZoneName]
    std_offset_minutes: int
    dst_delta_minutes: int
    dst_start: Optional[TransitionDay]
    dst_start_time: Optional[Tuple[int, int]]  # (hour, minute)
    dst_end: Optional[TransitionDay]
    dst_end_time: Optional[Tuple[int, int]]  # (hour, minute)


# Map of zoneName or linkName -> ZoneRecord
RecordsMap = Dict[str, ZoneRecord]

# Map of {name -> Set[reason]} used by Transformer to collect de-duped error
# messages or warnings. A set() collection does not serialize well to JSON, so
# create_zone_snapshot_database() converts these into {name -> List[str]}.
CommentsMap = Dict[str, Collection[str]]


@dataclass
class TransformerResult:
    """Result type of Transformer.transform().
    """

    zones_map: ZonesMap  # {zoneName -> ZoneInfoRaw}
    policies_map: PoliciesMap  # {policyName -> ZoneRuleRaw[]}
    links_map: LinksMap  # {linkName -> zoneName}
    rules_map: RulesMap  # {policyName -> ZoneRule[]}
    reductions: ReductionsMap  # {policyName -> FamilyReduction}
    entries: EntriesMap  # {zoneName -> ZoneEntry}
    records: RecordsMap  # {zoneName or linkName -> ZoneRecord}
    problems: List[str]  # ordered problem log
    removed_zones: CommentsMap  # {zoneName -> reasons[]}
    removed_policies: CommentsMap  # {policyName -> reasons[]}
    removed_links: CommentsMap  # {linkName -> reasons[]}
    notable_zones: CommentsMap  # {zoneName -> reasons[]}


def create_transformer_result(
    zones_map: ZonesMap,
    policies_map: PoliciesMap,
    links_map: LinksMap,
) -> TransformerResult:
    """Return an initial TransformerResult holding only the raw maps."""
    return TransformerResult(
        zones_map=zones_map,
        policies_map=policies_map,
        links_map=links_map,
        rules_map={},
        reductions={},
        entries={},
        records={},
        problems=[],
        removed_zones={},
        removed_policies={},
        removed_links={},
        notable_zones={},
    )


def add_comment(comments: CommentsMap, name: str, reason: str) -> None:
    """Add the human readable 'reason' to the 'comments' CommentsMap.
    """
    reasons = cast(Optional[Set[str]], comments.get(name))
    if not reasons:
        reasons = set()
        comments[name] = reasons
    reasons.add(reason)


def merge_comments(target: CommentsMap, new: CommentsMap) -> None:
    """Merge 'new' CommentsMap into 'target' CommentsMap.
    """
    for name, new_reasons in new.items():
        old_reasons = cast(Optional[Set[str]], target.get(name))
        if not old_reasons:
            old_reasons = set()
            target[name] = old_reasons
        old_reasons.update(new_reasons)


# -----------------------------------------------------------------------------
# The snapshot database which can be rendered into different forms by
# various generators (e.g. JSON, or a Python module).
# -----------------------------------------------------------------------------

class ZoneSnapshotDatabase(TypedDict):
    """The complete internal representation of the TZ Database files after
    reducing them to one snapshot record per zone and link.
    """

    # Context data.
    tz_version: str
    tz_files: List[str]
    reference_date: str  # YYYY-MM-DD
    strict: bool
    num_zones: int
    num_links: int

    # Data from Transformer
    records: RecordsMap
    problems: List[str]
    removed_zones: CommentsMap
    removed_policies: CommentsMap
    removed_links: CommentsMap
    notable_zones: CommentsMap


def create_zone_snapshot_database(
    tz_version: str,
    tz_files: List[str],
    reference_date: datetime.date,
    strict: bool,
    tresult: TransformerResult,
) -> ZoneSnapshotDatabase:
    """Return an instance of ZoneSnapshotDatabase from the various
    ingredients.
    """
    num_links = len([
        name for name in tresult.records
        if name in tresult.links_map
    ])
    return {
        # Context data.
        'tz_version': tz_version,
        'tz_files': tz_files,
        'reference_date': reference_date.isoformat(),
        'strict': strict,
        'num_zones': len(tresult.records) - num_links,
        'num_links': num_links,

        # Data from Transformer.
        'records': OrderedDict(sorted(tresult.records.items())),
        'problems': list(tresult.problems),
        'removed_zones': _sort_comments(tresult.removed_zones),
        'removed_policies': _sort_comments(tresult.removed_policies),
        'removed_links': _sort_comments(tresult.removed_links),
        'notable_zones': _sort_comments(tresult.notable_zones),
    }


def _sort_comments(comments: CommentsMap) -> CommentsMap:
    """Sort and convert {name -> Set(str)} to {name -> List(str)} to provide
    deterministic ordering.
    """
    return OrderedDict(
        (k, list(sorted(v)))
        for k, v in sorted(comments.items())
    )
