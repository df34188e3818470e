# Copyright 2018 Brian T. Park
#
# MIT License.

import datetime
import logging
from typing import List
from typing import Optional
from typing import Tuple

from tzsnapshot.data_types.ts_types import BaseRule
from tzsnapshot.data_types.ts_types import FamilyReduction
from tzsnapshot.data_types.ts_types import ReductionsMap
from tzsnapshot.data_types.ts_types import RulesMap
from tzsnapshot.data_types.ts_types import ZoneRule
from tzsnapshot.data_types.ts_types import MAX_TO_YEAR
from tzsnapshot.transformer.activity import calc_last_active_date


class RuleFamilyReducer:
    """Reduce each rule family (all Rules sharing a NAME) to the at most 2
    rules which are valid in the year of the reference date, plus a Base Rule
    which is used when none of the rules are valid in that year.
    """
    def __init__(self, reference_date: datetime.date):
        self.reference_date = reference_date

    def reduce_all(self, rules_map: RulesMap) -> ReductionsMap:
        reductions: ReductionsMap = {}
        for name, rules in rules_map.items():
            reductions[name] = self.reduce(name, rules)
        return reductions

    def reduce(self, name: str, rules: List[ZoneRule]) -> FamilyReduction:
        base: Optional[BaseRule] = None
        for rule in rules:
            last_active = calc_last_active_date(rule, self.reference_date)
            if last_active is None:
                continue
            if base is None or last_active > base.last_active:
                base = BaseRule(rule=rule, last_active=last_active)

        year = self.reference_date.year
        candidates = [rule for rule in rules if is_rule_in_year(rule, year)]

        discarded: List[ZoneRule] = []
        if len(candidates) > 2:
            ordered = sorted(candidates, key=lambda r: r.specificity)
            candidates = ordered[:2]
            discarded = ordered[2:]
            logging.info(
                "Rule family '%s': kept %s most specific rules, "
                "discarded %s",
                name, len(candidates), len(discarded),
            )

        return FamilyReduction(
            name=name,
            rules=candidates,
            base=base,
            discarded=discarded,
        )


def is_rule_in_year(rule: ZoneRule, year: int) -> bool:
    """Return True if the [FROM, TO] interval of the rule covers the year."""
    if rule.to_only:
        return rule.from_year == year
    return (
        (rule.to_year == MAX_TO_YEAR or rule.to_year >= year)
        and rule.from_year <= year
    )


def split_standard_daylight(
    rules: List[ZoneRule],
) -> Optional[Tuple[ZoneRule, ZoneRule]]:
    """Order a pair of rules as (standard, daylight), where the standard rule
    is the one with a SAVE of 0. Returns None if the pair cannot be ordered,
    i.e. both or neither rule has a SAVE of 0.
    """
    if len(rules) != 2:
        return None
    first, second = rules
    if first.save_minutes == 0 and second.save_minutes != 0:
        return (first, second)
    if second.save_minutes == 0 and first.save_minutes != 0:
        return (second, first)
    return None
