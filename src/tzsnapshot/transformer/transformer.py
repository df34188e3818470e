# Copyright 2018 Brian T. Park
#
# MIT License.

import datetime
import logging
from typing import List
from typing import Optional
from typing import Set
from typing import Tuple

from tzsnapshot.data_types.ts_types import CommentsMap
from tzsnapshot.data_types.ts_types import EntriesMap
from tzsnapshot.data_types.ts_types import LinksMap
from tzsnapshot.data_types.ts_types import PoliciesMap
from tzsnapshot.data_types.ts_types import RecordsMap
from tzsnapshot.data_types.ts_types import ReductionsMap
from tzsnapshot.data_types.ts_types import RulesMap
from tzsnapshot.data_types.ts_types import TransformerResult
from tzsnapshot.data_types.ts_types import UnsupportedInputError
from tzsnapshot.data_types.ts_types import ZoneEntry
from tzsnapshot.data_types.ts_types import ZoneEraRaw
from tzsnapshot.data_types.ts_types import ZoneRule
from tzsnapshot.data_types.ts_types import ZoneRuleRaw
from tzsnapshot.data_types.ts_types import ZonesMap
from tzsnapshot.data_types.ts_types import add_comment
from tzsnapshot.data_types.ts_types import merge_comments
from tzsnapshot.data_types.ts_types import MAX_UNTIL_YEAR
from tzsnapshot.data_types.ts_types import MIN_YEAR
from tzsnapshot.transformer.calendar import calc_day_of_month
from tzsnapshot.transformer.calendar import days_in_month
from tzsnapshot.transformer.calendar import parse_on_day_string
from tzsnapshot.transformer.normalizer import offset_minutes
from tzsnapshot.transformer.normalizer import parse_time_spec
from tzsnapshot.transformer.reducer import RuleFamilyReducer
from tzsnapshot.transformer.synthesizer import ZoneSynthesizer


class Transformer:
    """
    Converts the ZonesMap, PoliciesMap, and LinksMap data structures (as
    produced by the Extractor) into one ZoneRecord per zone and link, valid as
    of the reference date. The stages run strictly in order:

        1) parse the Rules of every rule family,
        2) reduce every rule family to its active rules and Base Rule,
        3) select the era of each Zone in effect at the reference date,
        4) synthesize one ZoneRecord per Zone,
        5) copy the ZoneRecord of the target Zone to each Link.

    Zones which cannot be represented raise UnsupportedInputError if 'strict'
    is True. Otherwise they are removed and noted in 'removed_zones'.
    """
    def __init__(
        self,
        reference_date: datetime.date,
        strict: bool = True,
        include_list: Optional[Set[str]] = None,
    ):
        """
        Args:
            reference_date: date at which the rules are resolved
            strict: stop at the first zone which cannot be represented
            include_list: include list of zones and links, empty means 'all'
        """
        self.reference_date = reference_date
        self.strict = strict
        self.include_list = include_list if include_list else set()

        self.all_removed_zones: CommentsMap = {}
        self.all_removed_policies: CommentsMap = {}
        self.all_removed_links: CommentsMap = {}
        self.all_notable_zones: CommentsMap = {}
        self.problems: List[str] = []

    def transform(self, tresult: TransformerResult) -> None:
        """
        Transforms the given tresult in-situ through a series of filters.
        """
        zones_map = tresult.zones_map
        policies_map = tresult.policies_map
        links_map = tresult.links_map

        logging.info('Reference date %s', self.reference_date.isoformat())
        logging.info(
            'Found %d zones, %d policies, %d links',
            len(zones_map),
            len(policies_map),
            len(links_map),
        )

        # Part 1: Filter zones and links through the include list.
        zones_map = self._filter_include_zones(zones_map, self.include_list)
        links_map = self._filter_include_links(links_map, self.include_list)

        # Part 2: Rules must be fully reduced before any zone is synthesized,
        # because a Zone may refer to a rule family defined anywhere.
        rules_map = self._create_rules(policies_map)
        reducer = RuleFamilyReducer(self.reference_date)
        reductions = reducer.reduce_all(rules_map)

        # Part 3: Zones.
        entries = self._create_zone_entries(zones_map, rules_map)
        records = self._synthesize_records(entries, reductions)

        # Part 4: Links, after all zones are synthesized.
        self._resolve_links(links_map, records)

        tresult.zones_map = zones_map
        tresult.links_map = links_map
        tresult.rules_map = rules_map
        tresult.reductions = reductions
        tresult.entries = entries
        tresult.records = records
        tresult.problems = self.problems
        tresult.removed_zones = self.all_removed_zones
        tresult.removed_policies = self.all_removed_policies
        tresult.removed_links = self.all_removed_links
        tresult.notable_zones = self.all_notable_zones

    def print_summary(self, tresult: TransformerResult) -> None:
        logging.info(
            f"Summary: Records: generated={len(tresult.records)}"
            f"; removed zones={len(tresult.removed_zones)}"
            f"; removed links={len(tresult.removed_links)}")

        logging.info(
            f"Summary: Policies: reduced={len(tresult.reductions)}"
            f"; removed={len(tresult.removed_policies)}")

        logging.info(f"Summary: Problems: {len(tresult.problems)}")

    def _print_comments_map(
        self,
        label: str,
        comments: CommentsMap,
        max_comments: int = 5,
    ) -> None:
        """Helper routine that prints the 'Removed' or 'Noted' zones, rules or
        links along with the reason why it was removed or noted. Print up to
        a maximum of max_comments entries.
        """
        if len(comments) == 0:
            return

        # Print summary line, e.g.:
        # "Removed 3 policies with invalid Rule fields"
        logging.info(label, len(comments))

        # Print all lines if len() <= max_comments. Otherwise, print top half of
        # max_comments and bottom half of max_comments.
        sorted_comments = sorted(comments.items())
        num_items = len(sorted_comments)
        if num_items <= max_comments:
            for name, reasons in sorted_comments:
                logging.info(f'- {name} ({reasons})')
        else:
            ellipses_printed = False
            limit = (max_comments - 1) // 2
            for index, (name, reasons) in enumerate(sorted_comments):
                if index < limit or index >= num_items - limit:
                    logging.info(f'- {name} ({reasons})')
                elif not ellipses_printed:
                    logging.info('- [...]')
                    ellipses_printed = True

    def _remove_zone(
        self,
        removed_zones: CommentsMap,
        name: str,
        error: UnsupportedInputError,
    ) -> None:
        if self.strict:
            raise error
        add_comment(removed_zones, name, str(error))

    # --------------------------------------------------------------------
    # Part 1: Include filtering.
    # --------------------------------------------------------------------

    def _filter_include_links(
        self,
        links_map: LinksMap,
        include_list: Set[str]
    ) -> LinksMap:
        """Remove links missing from include list."""
        if not include_list:
            return links_map

        results: LinksMap = {}
        removed_links: CommentsMap = {}
        for link_name, zone_name in links_map.items():
            if link_name in include_list:
                results[link_name] = zone_name
            else:
                add_comment(
                    removed_links, link_name,
                    "Link missing from include list"
                )

        self._print_comments_map(
            'Removed %s links missing from include list', removed_links,
        )
        merge_comments(self.all_removed_links, removed_links)
        return results

    def _filter_include_zones(
        self,
        zones_map: ZonesMap,
        include_list: Set[str]
    ) -> ZonesMap:
        """Remove zones missing from include list."""
        if not include_list:
            return zones_map

        results: ZonesMap = {}
        removed_zones: CommentsMap = {}
        for name, info in zones_map.items():
            if name in include_list:
                results[name] = info
            else:
                add_comment(
                    removed_zones, name,
                    "Zone missing from include list"
                )

        self._print_comments_map(
            'Removed %s zones missing from include list', removed_zones,
        )
        merge_comments(self.all_removed_zones, removed_zones)
        return results

    # --------------------------------------------------------------------
    # Part 2: Rules.
    # --------------------------------------------------------------------

    def _create_rules(self, policies_map: PoliciesMap) -> RulesMap:
        """Parse the ON, AT, SAVE and LETTER fields of each Rule. A rule
        family with an invalid Rule is removed entirely.
        """
        results: RulesMap = {}
        removed_policies: CommentsMap = {}
        for name, raw_rules in policies_map.items():
            rules: List[ZoneRule] = []
            for raw_rule in raw_rules:
                rule, error = _create_rule(name, raw_rule)
                if rule is None:
                    add_comment(removed_policies, name, error)
                    break
                rules.append(rule)
            else:
                results[name] = rules

        self._print_comments_map(
            'Removed %s policies with invalid Rule fields', removed_policies,
        )
        merge_comments(self.all_removed_policies, removed_policies)
        return results

    # --------------------------------------------------------------------
    # Part 3: Zones.
    # --------------------------------------------------------------------

    def _create_zone_entries(
        self,
        zones_map: ZonesMap,
        rules_map: RulesMap,
    ) -> EntriesMap:
        """Select the era of each zone in effect at the reference date. Eras
        whose UNTIL is on or before the reference date are history and are
        skipped.
        """
        results: EntriesMap = {}
        removed_zones: CommentsMap = {}
        for name, info in zones_map.items():
            era: Optional[ZoneEraRaw] = None
            until: Optional[datetime.date] = None
            valid = True
            for candidate in info['eras']:
                if candidate['until_year'] == MAX_UNTIL_YEAR:
                    era, until = candidate, None
                    break
                until = calc_until_date(candidate)
                if until is None:
                    valid = False
                    add_comment(
                        removed_zones, name,
                        f"invalid UNTIL day '{candidate['until_day_string']}'")
                    break
                if until > self.reference_date:
                    era = candidate
                    break
            if not valid:
                continue
            if era is None:
                add_comment(
                    removed_zones, name,
                    'All eras ended before '
                    f'{self.reference_date.isoformat()}')
                continue

            try:
                utc_offset = offset_minutes(era['offset_string'])
            except ValueError:
                add_comment(
                    removed_zones, name,
                    f"invalid STDOFF '{era['offset_string']}'")
                continue

            rules_string = era['rules']
            policy_name: Optional[str] = None
            save_minutes = 0
            if rules_string == '-':
                pass
            elif rules_string[:1].isdigit() or rules_string[:1] == '-':
                try:
                    save_minutes = offset_minutes(rules_string)
                except ValueError:
                    add_comment(
                        removed_zones, name,
                        f"invalid RULES '{rules_string}'")
                    continue
            elif rules_string not in rules_map:
                add_comment(
                    removed_zones, name,
                    f"policy '{rules_string}' not found")
                continue
            else:
                policy_name = rules_string

            results[name] = ZoneEntry(
                name=name,
                utc_offset_minutes=utc_offset,
                policy_name=policy_name,
                save_minutes=save_minutes,
                format=era['format'],
                until=until,
            )

        self._print_comments_map(
            'Removed %s zones without a current era', removed_zones,
        )
        merge_comments(self.all_removed_zones, removed_zones)
        return results

    def _synthesize_records(
        self,
        entries: EntriesMap,
        reductions: ReductionsMap,
    ) -> RecordsMap:
        results: RecordsMap = {}
        removed_zones: CommentsMap = {}
        notable_zones: CommentsMap = {}
        synthesizer = ZoneSynthesizer(
            self.reference_date, reductions, self.problems)
        for name, entry in entries.items():
            problems_count = len(self.problems)
            try:
                results[name] = synthesizer.synthesize(entry)
            except UnsupportedInputError as e:
                self._remove_zone(removed_zones, name, e)
            for problem in self.problems[problems_count:]:
                add_comment(notable_zones, name, problem)

        self._print_comments_map(
            'Removed %s zones which cannot be represented', removed_zones,
        )
        self._print_comments_map(
            'Noted %s zones with approximated rules', notable_zones,
        )
        merge_comments(self.all_removed_zones, removed_zones)
        merge_comments(self.all_notable_zones, notable_zones)
        return results

    # --------------------------------------------------------------------
    # Part 4: Links.
    # --------------------------------------------------------------------

    def _resolve_links(self, links_map: LinksMap, records: RecordsMap) -> None:
        """Copy the ZoneRecord of the target zone into each link. A link to a
        link is followed to its zone. Links whose zone has no record are
        dropped.
        """
        zone_records = dict(records)
        removed_links: CommentsMap = {}
        for link_name, target in links_map.items():
            if link_name in zone_records:
                add_comment(
                    removed_links, link_name, 'Link name is also a Zone name')
                continue

            zone_name = target
            hops = 0
            while (zone_name not in zone_records
                    and zone_name in links_map
                    and hops < len(links_map)):
                zone_name = links_map[zone_name]
                hops += 1

            record = zone_records.get(zone_name)
            if record is None:
                logging.warning(
                    "Link '%s': target zone '%s' has no record",
                    link_name, target)
                add_comment(
                    removed_links, link_name,
                    f'Target Zone "{target}" missing')
                continue
            records[link_name] = record

        self._print_comments_map(
            'Removed %s links with missing zones', removed_links,
        )
        merge_comments(self.all_removed_links, removed_links)


def _create_rule(
    name: str,
    raw_rule: ZoneRuleRaw,
) -> Tuple[Optional[ZoneRule], str]:
    """Convert a ZoneRuleRaw into a ZoneRule. Returns (None, reason) if a
    field is invalid.
    """
    # 'min only' names no calendar year.
    if raw_rule['from_year'] == MIN_YEAR and raw_rule['to_only']:
        return None, "invalid FROM 'min' with TO 'only'"

    on_day = parse_on_day_string(raw_rule['on_day'])
    if on_day is None:
        return None, f"invalid ON '{raw_rule['on_day']}'"

    at = parse_time_spec(raw_rule['at_time'], raw_rule['at_time_suffix'])
    if at is None:
        return None, (
            f"invalid AT '{raw_rule['at_time']}"
            f"{raw_rule['at_time_suffix']}'")

    try:
        save_minutes = offset_minutes(raw_rule['delta_offset'])
    except ValueError:
        return None, f"invalid SAVE '{raw_rule['delta_offset']}'"

    letter = raw_rule['letter']
    return ZoneRule(
        name=name,
        from_year=raw_rule['from_year'],
        to_year=raw_rule['to_year'],
        to_only=raw_rule['to_only'],
        month=raw_rule['in_month'],
        on_day=on_day,
        at=at,
        save_minutes=save_minutes,
        letters='' if letter == '-' else letter,
        raw_line=raw_rule.get('raw_line', ''),
    ), ''


def calc_until_date(era: ZoneEraRaw) -> Optional[datetime.date]:
    """Convert the UNTIL field of an era into a date. The time of day is
    ignored. Returns None if the day field is invalid.
    """
    on_day = parse_on_day_string(era['until_day_string'])
    if on_day is None:
        return None
    year = era['until_year']
    month = era['until_month']
    day = calc_day_of_month(on_day, year, month)
    day = min(day, days_in_month(year, month))
    return datetime.date(year, month, day)
