"""
Condition Evaluator - Evaluates atomic predicates against a data record

Supports:
- Flat dotted keys ("product.vendor" stored as one key)
- Nested records (walks dict segments)
- Numeric comparison (>, <)
- String comparison (==, !=, contains, is-empty)
- Left-to-right evaluation of AND/OR chains

Every failure resolves to False; nothing raises out of this module.
"""

import json
import logging
import math
from typing import Any, List, Mapping, Optional

from dsi.schema.models import Condition, Join, Operator, canonical_operator

logger = logging.getLogger(__name__)


class _Missing:
    """Sentinel for a path absent from the data record"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def resolve_path(data: Mapping[str, Any], path: str) -> Any:
    """
    Resolve a dotted data path in a record

    A literal key equal to the full path wins; otherwise the path is walked
    segment by segment through nested mappings.

    Returns:
        The stored value, or MISSING when the path does not resolve
    """
    if not isinstance(data, Mapping) or not path:
        return MISSING

    if path in data:
        return data[path]

    current: Any = data
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return MISSING

    return current


def to_canonical_string(value: Any) -> str:
    """String form used by ==, !=, contains and is-empty (null is empty)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            number = float(str(value).strip())
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def evaluate_condition(field: str, operator: str, literal: Any, data: Mapping[str, Any]) -> bool:
    """
    Evaluate one predicate against a data record

    Args:
        field: Data path to test (e.g. "review_count")
        operator: One of >, <, ==, !=, contains, is-empty
        literal: Value to compare against
        data: Data record

    Returns:
        True if the predicate holds. Missing fields, unparseable numbers and
        unknown operators all give False.
    """
    try:
        value = resolve_path(data, field)
        if value is MISSING:
            logger.debug(f"Field not found in data record: {field}")
            return False

        operator = canonical_operator(operator)

        if operator in (Operator.GT.value, Operator.LT.value):
            left = _to_number(value)
            right = _to_number(literal)
            if left is None or right is None:
                logger.debug(f"Non-numeric comparison: {field} {operator} {literal!r}")
                return False
            if operator == Operator.GT.value:
                return left > right
            return left < right

        text = to_canonical_string(value)

        if operator == Operator.EQ.value:
            return text == to_canonical_string(literal)
        if operator == Operator.NE.value:
            return text != to_canonical_string(literal)
        if operator == Operator.CONTAINS.value:
            return to_canonical_string(literal) in text
        if operator == Operator.IS_EMPTY.value:
            return len(text) == 0

        logger.debug(f"Unknown operator: {operator}")
        return False

    except Exception as e:
        logger.debug(f"Condition {field} {operator} {literal!r} could not be evaluated: {e}")
        return False


def evaluate(condition: Condition, data: Mapping[str, Any]) -> bool:
    """Evaluate a Condition against a data record."""
    return evaluate_condition(condition.field, condition.operator, condition.value, data)


def evaluate_chain(conditions: List[Condition], data: Mapping[str, Any]) -> bool:
    """
    Evaluate a condition chain strictly left to right

    There is no precedence: ``a AND b OR c`` is ``(a AND b) OR c``. The join
    stored on a condition links it to the next one. AND skips the next operand
    once the result is False; OR skips it once the result is True. A TERMINAL
    before the end of the chain is read as AND.

    An empty chain is False.
    """
    if not conditions:
        return False

    result = evaluate(conditions[0], data)

    for previous, condition in zip(conditions, conditions[1:]):
        if previous.join == Join.OR:
            if result:
                continue
            result = evaluate(condition, data)
        else:
            if not result:
                continue
            result = evaluate(condition, data)

    return result
