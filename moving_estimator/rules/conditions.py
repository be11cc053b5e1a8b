"""
Condition evaluation — decides whether a rule's condition set matches.

Conditions are looked up by dotted camelCase path (e.g. "specialItems.piano",
"pickup.stairsCount", "rooms.0.totalWeight") against a facts dict built from
the input. All conditions must hold (logical AND); an empty list always holds.

Every operator is matched explicitly. Anything outside the closed set, a
path naming no field, or operands the operator cannot compare raise
ConfigurationError — a misconfigured rule never silently evaluates false.
"""

import logging
from datetime import date
from typing import Any, Iterable, Optional, Tuple

from ..exceptions import ConfigurationError
from ..schemas import CamelModel, Condition, ConditionOperator

logger = logging.getLogger(__name__)


def build_facts(model: CamelModel) -> dict:
    """Snapshot a model as a camelCase dict for field lookup."""
    return model.model_dump(by_alias=True)


def resolve_field(facts: dict, path: str) -> Any:
    """
    Walk a dotted path through nested dicts and lists.

    Returns None when the path runs into a null value or past the end of a
    list; raises ConfigurationError when a key is not part of the schema.
    """
    current = facts
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, dict):
            if part not in current:
                raise ConfigurationError(f"Unknown field path: {path!r}")
            current = current[part]
        elif isinstance(current, (list, tuple)):
            if not part.isdigit():
                raise ConfigurationError(
                    f"Field path {path!r} needs a list index at {part!r}"
                )
            index = int(part)
            if index >= len(current):
                return None
            current = current[index]
        else:
            raise ConfigurationError(
                f"Field path {path!r} continues past a scalar at {part!r}"
            )
    return current


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_date(actual, expected, path: str):
    """A date field compares with ISO date strings; anything else is left alone."""
    if isinstance(actual, date) and isinstance(expected, str):
        try:
            return date.fromisoformat(expected)
        except ValueError:
            raise ConfigurationError(
                f"Cannot compare {path!r} ({actual!r}) with {expected!r}"
            )
    return expected


def _strict_equals(actual, expected, path: str) -> bool:
    """Equality that never lets a bool match a number (True != 1 here)."""
    expected = _as_date(actual, expected, path)
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    return type(actual) is type(expected) and actual == expected


def _ordered_pair(actual, expected, path: str):
    """Coerce (actual, expected) into values that can be ordered, or raise."""
    if _is_number(actual) and _is_number(expected):
        return actual, expected
    if isinstance(actual, date):
        expected = _as_date(actual, expected, path)
        if isinstance(expected, date):
            return actual, expected
    raise ConfigurationError(
        f"Cannot compare {path!r} ({actual!r}) with {expected!r}"
    )


def _operand_list(condition: Condition) -> list:
    values = condition.values if condition.values is not None else condition.value
    if not isinstance(values, (list, tuple)):
        raise ConfigurationError(
            f"Operator {condition.operator.value} on {condition.field!r} needs a list of values"
        )
    return list(values)


class ConditionEvaluator:
    """Evaluates Conditions against a facts dict."""

    def check(self, condition: Condition, facts: dict) -> Tuple[bool, Any]:
        """Evaluate one condition. Returns (result, actual field value)."""
        actual = resolve_field(facts, condition.field)
        op = condition.operator
        expected = condition.value

        if op is ConditionOperator.EXISTS:
            return actual is not None, actual

        if op is ConditionOperator.EQUALS:
            return _strict_equals(actual, expected, condition.field), actual

        if op is ConditionOperator.NOT_EQUALS:
            return not _strict_equals(actual, expected, condition.field), actual

        if op in (ConditionOperator.GREATER_THAN, ConditionOperator.GREATER_THAN_OR_EQUAL,
                  ConditionOperator.LESS_THAN, ConditionOperator.LESS_THAN_OR_EQUAL):
            if actual is None:
                return False, actual
            left, right = _ordered_pair(actual, expected, condition.field)
            if op is ConditionOperator.GREATER_THAN:
                return left > right, actual
            if op is ConditionOperator.GREATER_THAN_OR_EQUAL:
                return left >= right, actual
            if op is ConditionOperator.LESS_THAN:
                return left < right, actual
            return left <= right, actual

        if op is ConditionOperator.IN:
            options = _operand_list(condition)
            return any(_strict_equals(actual, o, condition.field) for o in options), actual

        if op is ConditionOperator.NOT_IN:
            options = _operand_list(condition)
            return not any(_strict_equals(actual, o, condition.field) for o in options), actual

        if op is ConditionOperator.BETWEEN:
            bounds = _operand_list(condition)
            if len(bounds) != 2:
                raise ConfigurationError(
                    f"between on {condition.field!r} needs exactly two bounds, got {len(bounds)}"
                )
            if actual is None:
                return False, actual
            left, low = _ordered_pair(actual, bounds[0], condition.field)
            _, high = _ordered_pair(actual, bounds[1], condition.field)
            return low <= left <= high, actual

        raise ConfigurationError(f"Unsupported operator: {op!r}")

    def evaluate(self, condition: Condition, facts: dict) -> bool:
        result, _ = self.check(condition, facts)
        return result

    def matches(self, conditions: Iterable[Condition], facts: dict, rule_id: Optional[str] = None) -> bool:
        """
        True if every condition holds.

        All conditions are evaluated (no short-circuit) so a broken condition
        is reported even when an earlier one is already false.
        """
        try:
            results = [self.evaluate(c, facts) for c in conditions]
        except ConfigurationError as e:
            if e.rule_id is None and rule_id is not None:
                logger.error("Rule %s has a broken condition: %s", rule_id, e)
                raise ConfigurationError(str(e), rule_id=rule_id) from e
            raise
        return all(results)


def list_operators() -> list[str]:
    """All condition operators a catalog may use."""
    return [op.value for op in ConditionOperator]
