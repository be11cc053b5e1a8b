"""
Price accumulation — folds the ordered rule list into a category breakdown.

Pricing rules and location handicaps come from two catalog lists but share
one ordering pass: a stable sort by priority over
pricing rules + pickup handicaps + delivery handicaps.

Action semantics:
    add_fixed       target += amount
    add_percentage  target += running_total_when_rule_fired * amount / 100
    add_per_unit    target += amount * units(unit)
    multiply        target += target * (amount - 1)

add_percentage compounds: every earlier rule, percentages included, is in the
running total it sees. Handicap impacts always land in locationHandicaps;
a handicap multiply still reads its own target category.

Only + - * / on floats happen here. Nothing is rounded until the Rounder.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..exceptions import ConfigurationError
from ..schemas import (
    Action,
    ActionType,
    AppliedRule,
    Breakdown,
    BreakdownCategory,
    EstimateInput,
    Leg,
    LocationHandicapRule,
    PricingRule,
    RuleCategory,
)
from .units import count_units

logger = logging.getLogger(__name__)

# Breakdown attribute for each target category, in summation order
CATEGORY_FIELDS: Dict[BreakdownCategory, str] = {
    BreakdownCategory.BASE_LABOR: "base_labor",
    BreakdownCategory.MATERIALS: "materials",
    BreakdownCategory.TRANSPORTATION: "transportation",
    BreakdownCategory.LOCATION_HANDICAPS: "location_handicaps",
    BreakdownCategory.SPECIAL_SERVICES: "special_services",
    BreakdownCategory.OVERHEAD: "overhead",
}

# (rule, leg); leg is None for pricing rules
OrderedRule = Tuple[Union[PricingRule, LocationHandicapRule], Optional[Leg]]


def list_action_types() -> list[str]:
    return [t.value for t in ActionType]


def list_categories() -> list[str]:
    """Rule category tags a catalog may use."""
    return [c.value for c in RuleCategory]


def merge_ordering(
    pricing_rules: Sequence[PricingRule],
    handicaps: Sequence[Tuple[LocationHandicapRule, Leg]],
) -> List[OrderedRule]:
    """
    One global priority ordering for both rule sources.

    sorted() is stable, so ties keep pricing rules ahead of handicaps and
    pickup ahead of delivery, each in catalog order.
    """
    combined: List[OrderedRule] = [(rule, None) for rule in pricing_rules]
    combined.extend(handicaps)
    return sorted(combined, key=lambda pair: pair[0].priority)


def _money(value: float) -> str:
    if value < 0:
        return f"-${-value:.2f}"
    return f"${value:.2f}"


class Accumulation:
    """Result of one accumulation pass. Categories are unrounded."""

    def __init__(self, breakdown: Breakdown, applied_rules: List[AppliedRule], running_total: float):
        self.breakdown = breakdown
        self.applied_rules = applied_rules
        self.running_total = running_total

    def __repr__(self):
        return (
            f"Accumulation(running_total={self.running_total!r}, "
            f"applied_rules={len(self.applied_rules)})"
        )


class PriceAccumulator:

    def apply(self, ordered_rules: Sequence[OrderedRule], estimate_input: EstimateInput) -> Accumulation:
        """
        Runs every (rule, leg) pair in order against a zeroed breakdown.

        Raises ConfigurationError on an action this engine cannot perform;
        nothing partial is returned in that case.
        """
        totals = {field: 0.0 for field in CATEGORY_FIELDS.values()}
        running_total = 0.0
        applied: List[AppliedRule] = []

        for index, (rule, leg) in enumerate(ordered_rules):
            impact, details = self.apply_rule(rule, leg, estimate_input, totals, running_total)
            running_total += impact
            rule_id = f"{rule.id}_{leg.value}" if leg is not None else rule.id
            applied.append(AppliedRule(
                rule_id=rule_id,
                rule_name=rule.name,
                priority=rule.priority,
                price_impact=impact,
                application_index=index,
                category=rule.category.value,
                leg=leg,
                calculation_details=details,
            ))
            logger.debug("Applied %s (priority %d): %s", rule_id, rule.priority, _money(impact))

        return Accumulation(
            breakdown=Breakdown(**totals),
            applied_rules=applied,
            running_total=running_total,
        )

    def apply_rule(
        self,
        rule: PricingRule,
        leg: Optional[Leg],
        estimate_input: EstimateInput,
        totals: Dict[str, float],
        running_total: float,
    ) -> Tuple[float, str]:
        """
        Apply one rule's actions to `totals` in place.

        Returns (net impact, calculation details). `running_total` is the
        snapshot taken when the rule fires; all of its percentage actions use it.
        """
        location = None
        if leg is Leg.PICKUP:
            location = estimate_input.pickup
        elif leg is Leg.DELIVERY:
            location = estimate_input.delivery

        impact_total = 0.0
        details = []
        for action in rule.actions:
            impact, detail = self._apply_action(rule, action, estimate_input, location, totals, running_total)
            post_to = BreakdownCategory.LOCATION_HANDICAPS if leg is not None else action.target
            totals[self._field_for(post_to, rule.id)] += impact
            impact_total += impact
            details.append(detail)
        return impact_total, "; ".join(details)

    def _field_for(self, category, rule_id: str) -> str:
        field = CATEGORY_FIELDS.get(category)
        if field is None:
            raise ConfigurationError(f"Unknown breakdown category: {category!r}", rule_id=rule_id)
        return field

    def _apply_action(self, rule, action: Action, estimate_input, location, totals, running_total) -> Tuple[float, str]:
        label = action.description or rule.name

        if action.type is ActionType.ADD_FIXED:
            return action.amount, f"{label}: {_money(action.amount)}"

        if action.type is ActionType.ADD_PERCENTAGE:
            impact = running_total * action.amount / 100
            return impact, f"{label}: {action.amount:g}% of {_money(running_total)} = {_money(impact)}"

        if action.type is ActionType.ADD_PER_UNIT:
            if not action.unit:
                raise ConfigurationError("add_per_unit action has no unit", rule_id=rule.id)
            try:
                units = count_units(action.unit, estimate_input, location)
            except ConfigurationError as e:
                raise ConfigurationError(str(e), rule_id=rule.id) from e
            impact = action.amount * units
            return impact, f"{label}: {units:g} {action.unit} × {_money(action.amount)} = {_money(impact)}"

        if action.type is ActionType.MULTIPLY:
            current = totals[self._field_for(action.target, rule.id)]
            impact = current * (action.amount - 1)
            return impact, f"{label}: {action.target.value} {_money(current)} × {action.amount:g} = {_money(impact)} added"

        raise ConfigurationError(f"Unsupported action type: {action.type!r}", rule_id=rule.id)
