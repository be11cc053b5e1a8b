"""
Rule selection — which catalog rules apply to an estimate, and in what order.

A rule applies iff it is active, the service is listed in its
applicableServices, the move date falls inside its effective window, and
every condition matches. Survivors are sorted by priority ascending with
Python's stable sort, so ties keep catalog order. Lower priority fires first.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple

from ..schemas import EstimateInput, Leg, Location, LocationHandicapRule, PricingRule, RuleCatalog
from .conditions import ConditionEvaluator, build_facts

logger = logging.getLogger(__name__)


def in_effect(rule: PricingRule, move_date: Optional[date]) -> bool:
    """Inclusive [effectiveFrom, effectiveTo] check. Undated moves pass undated rules only."""
    if rule.effective_from is None and rule.effective_to is None:
        return True
    if move_date is None:
        return False
    if rule.effective_from is not None and move_date < rule.effective_from:
        return False
    if rule.effective_to is not None and move_date > rule.effective_to:
        return False
    return True


def is_candidate(rule: PricingRule, service: Optional[str], move_date: Optional[date]) -> bool:
    """Active / service / date filters, before any condition is looked at.

    A rule with an empty applicableServices list matches no service. Passing
    service=None skips the service filter entirely.
    """
    if not rule.is_active:
        return False
    if service is not None and service not in rule.applicable_services:
        return False
    return in_effect(rule, move_date)


def sort_by_priority(rules):
    return sorted(rules, key=lambda r: r.priority)


class RuleSelector:
    def __init__(self, evaluator: Optional[ConditionEvaluator] = None):
        self.evaluator = evaluator or ConditionEvaluator()

    def select_applicable_rules(self, catalog: RuleCatalog, estimate_input: EstimateInput) -> List[PricingRule]:
        facts = build_facts(estimate_input)
        selected = [
            rule for rule in catalog.pricing_rules
            if is_candidate(rule, estimate_input.service, estimate_input.move_date)
            and self.evaluator.matches(rule.conditions, facts, rule_id=rule.id)
        ]
        logger.debug(
            "Selected %d of %d pricing rules for service=%s",
            len(selected), len(catalog.pricing_rules), estimate_input.service,
        )
        return sort_by_priority(selected)


class HandicapResolver:
    """
    Same filter-then-sort as RuleSelector, run once per leg against that
    leg's Location (condition paths like "stairsCount", "longCarry").
    """

    def __init__(self, evaluator: Optional[ConditionEvaluator] = None):
        self.evaluator = evaluator or ConditionEvaluator()

    def _select_for_leg(
        self,
        handicaps: Sequence[LocationHandicapRule],
        location: Location,
        service: Optional[str],
        move_date: Optional[date],
    ) -> List[LocationHandicapRule]:
        facts = build_facts(location)
        selected = []
        for rule in handicaps:
            # service filter only applies when the caller supplies one
            if not is_candidate(rule, service, move_date):
                continue
            if self.evaluator.matches(rule.conditions, facts, rule_id=rule.id):
                selected.append(rule)
        return sort_by_priority(selected)

    def select_handicaps(
        self,
        catalog: RuleCatalog,
        pickup: Location,
        delivery: Location,
        service: Optional[str] = None,
        move_date: Optional[date] = None,
    ) -> List[Tuple[LocationHandicapRule, Leg]]:
        """Returns (rule, leg) pairs, pickup leg first then delivery."""
        pickup_rules = self._select_for_leg(catalog.location_handicaps, pickup, service, move_date)
        delivery_rules = self._select_for_leg(catalog.location_handicaps, delivery, service, move_date)
        logger.debug(
            "Selected %d pickup and %d delivery handicaps",
            len(pickup_rules), len(delivery_rules),
        )
        return (
            [(rule, Leg.PICKUP) for rule in pickup_rules]
            + [(rule, Leg.DELIVERY) for rule in delivery_rules]
        )


def select_applicable_rules(catalog: RuleCatalog, estimate_input: EstimateInput) -> List[PricingRule]:
    return RuleSelector().select_applicable_rules(catalog, estimate_input)


def select_handicaps(catalog, pickup, delivery, service=None, move_date=None):
    return HandicapResolver().select_handicaps(catalog, pickup, delivery, service, move_date)
