"""
Rule dry-run — explains what one rule would do for one input.

Used by rule authors to check a rule before publishing it in a catalog.
Unlike the estimator, configuration defects are reported in `errors`
rather than raised.
"""

import logging
from typing import Any, List, Optional

from ..exceptions import ConfigurationError
from ..schemas import CamelModel, EstimateInput, Leg, PricingRule
from .accumulator import CATEGORY_FIELDS, PriceAccumulator
from .conditions import ConditionEvaluator, build_facts
from .selector import in_effect

logger = logging.getLogger(__name__)


class ConditionTrace(CamelModel):
    field: str
    operator: str
    expected: Any = None
    actual: Any = None
    result: bool = False


class RuleTrace(CamelModel):
    rule_id: str
    rule_name: str
    leg: Optional[Leg] = None
    matched: bool
    skipped_reason: Optional[str] = None
    conditions: List[ConditionTrace] = []
    price_impact: float = 0.0
    calculation_details: str = ""
    errors: List[str] = []


def _skip_reason(rule: PricingRule, estimate_input: EstimateInput, leg: Optional[Leg]) -> Optional[str]:
    if not rule.is_active:
        return "Rule is inactive"
    if estimate_input.service not in rule.applicable_services:
        return f"Service {estimate_input.service!r} is not in applicableServices"
    if not in_effect(rule, estimate_input.move_date):
        return "Move date is outside the rule's effective dates"
    return None


def trace_rule(
    rule: PricingRule,
    estimate_input: EstimateInput,
    leg: Optional[Leg] = None,
    running_total: float = 0.0,
) -> RuleTrace:
    """
    Evaluate `rule` against `estimate_input` and report every condition.

    Pass `leg` to trace a location handicap against that leg's Location.
    Percentage actions are computed against `running_total` (zero by default).
    """
    evaluator = ConditionEvaluator()
    if leg is Leg.PICKUP:
        facts = build_facts(estimate_input.pickup)
    elif leg is Leg.DELIVERY:
        facts = build_facts(estimate_input.delivery)
    else:
        facts = build_facts(estimate_input)

    errors = []
    condition_traces = []
    for condition in rule.conditions:
        expected = condition.values if condition.values is not None else condition.value
        try:
            result, actual = evaluator.check(condition, facts)
        except ConfigurationError as e:
            errors.append(str(e))
            result, actual = False, None
        condition_traces.append(ConditionTrace(
            field=condition.field,
            operator=condition.operator.value,
            expected=expected,
            actual=actual,
            result=result,
        ))

    skipped_reason = _skip_reason(rule, estimate_input, leg)
    matched = skipped_reason is None and not errors and all(c.result for c in condition_traces)

    impact = 0.0
    details = ""
    if matched:
        totals = {field: 0.0 for field in CATEGORY_FIELDS.values()}
        try:
            impact, details = PriceAccumulator().apply_rule(rule, leg, estimate_input, totals, running_total)
        except ConfigurationError as e:
            errors.append(str(e))

    logger.debug("Traced rule %s: matched=%s errors=%d", rule.id, matched, len(errors))
    return RuleTrace(
        rule_id=rule.id,
        rule_name=rule.name,
        leg=leg,
        matched=matched,
        skipped_reason=skipped_reason,
        conditions=condition_traces,
        price_impact=impact,
        calculation_details=details,
        errors=errors,
    )
