"""
app/validators/rule_expressions.py

Parsing and evaluation of validation-rule expressions.

Expression grammar per rule type:
    format       regular expression, matched against the whole string value
    range        "lo..hi" with either bound optional ("0..", "..100")
    reference    comma-separated permitted codes
    custom       "<op> <literal>" or "not_blank"
    consistency  "<field_a> <op> <field_b>"

Operators: == != > >= < <=
"""

from __future__ import annotations

import operator
import re
from decimal import Decimal
from typing import Any, Callable, Mapping

from app.domain.attributes import is_blank
from app.domain.validation import RuleType
from app.validators.type_checks import to_datetime, to_number

# Longest operators first so ">=" is not read as ">".
_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    "<": operator.lt,
}

NOT_BLANK = "not_blank"

_COMPARISON_PATTERN = re.compile(r"^\s*(>=|<=|==|!=|>|<)\s*(.+?)\s*$")
_CONSISTENCY_PATTERN = re.compile(r"^\s*([A-Za-z_][\w.]*)\s*(>=|<=|==|!=|>|<)\s*([A-Za-z_][\w.]*)\s*$")


class RuleExpressionError(ValueError):
    """
    Raised when a rule expression cannot be parsed.
    """


def compare_values(left: Any, op: str, right: Any) -> bool:
    """
    Compare two values numerically, then as dates, then as strings.
    """

    func = _OPERATORS.get(op)
    if func is None:
        raise RuleExpressionError(f"Unsupported operator: {op}")

    left_number, right_number = to_number(left), to_number(right)
    if left_number is not None and right_number is not None:
        return func(left_number, right_number)

    left_date, right_date = to_datetime(left), to_datetime(right)
    if left_date is not None and right_date is not None:
        return func(left_date, right_date)

    return func(str(left), str(right))


def _unquote(literal: str) -> str:
    if len(literal) >= 2 and literal[0] == literal[-1] and literal[0] in {"'", '"'}:
        return literal[1:-1]
    return literal


def parse_range(expression: str) -> tuple[Decimal | None, Decimal | None]:
    if ".." not in expression:
        raise RuleExpressionError(f"Range expression must look like 'lo..hi': {expression!r}")
    low_raw, high_raw = (part.strip() for part in expression.split("..", 1))
    bounds: list[Decimal | None] = []
    for raw in (low_raw, high_raw):
        if not raw:
            bounds.append(None)
            continue
        bound = to_number(raw)
        if bound is None:
            raise RuleExpressionError(f"Range bound is not numeric: {raw!r}")
        bounds.append(bound)
    low, high = bounds
    if low is None and high is None:
        raise RuleExpressionError("Range expression needs at least one bound.")
    if low is not None and high is not None and low > high:
        raise RuleExpressionError(f"Range lower bound exceeds upper bound: {expression!r}")
    return low, high


def evaluate_format(expression: str, value: Any) -> bool:
    try:
        return re.fullmatch(expression, str(value)) is not None
    except re.error as exc:
        raise RuleExpressionError(f"Invalid regular expression: {exc}") from exc


def evaluate_range(expression: str, value: Any) -> bool:
    low, high = parse_range(expression)
    number = to_number(value)
    if number is None:
        return False
    if low is not None and number < low:
        return False
    if high is not None and number > high:
        return False
    return True


def evaluate_reference(expression: str, value: Any) -> bool:
    codes = {code.strip() for code in expression.split(",") if code.strip()}
    if not codes:
        raise RuleExpressionError("Reference expression lists no codes.")
    return str(value).strip() in codes


def evaluate_custom(expression: str, value: Any) -> bool:
    if expression.strip() == NOT_BLANK:
        return not is_blank(value)
    match = _COMPARISON_PATTERN.match(expression)
    if match is None:
        raise RuleExpressionError(f"Custom expression must be '<op> <literal>': {expression!r}")
    op, literal = match.groups()
    return compare_values(value, op, _unquote(literal))


def evaluate_consistency(expression: str, attributes: Mapping[str, Any]) -> bool:
    """
    Compare two attributes of the same record. Missing operands pass.
    """

    match = _CONSISTENCY_PATTERN.match(expression)
    if match is None:
        raise RuleExpressionError(
            f"Consistency expression must be '<field> <op> <field>': {expression!r}"
        )
    left_name, op, right_name = match.groups()
    left = attributes.get(left_name)
    right = attributes.get(right_name)
    if is_blank(left) or is_blank(right):
        return True
    return compare_values(left, op, right)


_VALUE_EVALUATORS: dict[str, Callable[[str, Any], bool]] = {
    RuleType.FORMAT: evaluate_format,
    RuleType.RANGE: evaluate_range,
    RuleType.REFERENCE: evaluate_reference,
    RuleType.CUSTOM: evaluate_custom,
}


def evaluate_value_rule(rule_type: str, expression: str, value: Any) -> bool:
    """
    Evaluate a single-value rule. Consistency rules need the whole record.
    """

    evaluator = _VALUE_EVALUATORS.get(rule_type)
    if evaluator is None:
        raise RuleExpressionError(f"Rule type {rule_type!r} cannot be applied to a single value.")
    return evaluator(expression, value)
