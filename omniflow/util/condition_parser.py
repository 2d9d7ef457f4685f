"""
Restricted boolean expressions for branch nodes.

An expression is parsed once into a Condition and evaluated against a single
resolved value by a pure function. Grammar:

    expr     := operand OP literal | 'true' | 'false' | 'value'
    operand  := 'value' | literal
    OP       := '>=' | '<=' | '>' | '<' | '==' | '!=' | 'contains'

Operators are searched in exactly that order and the first one found in the
text wins, so "value>=10" is never read as '>' followed by "=10".
Evaluation never raises; anything that cannot be evaluated is False.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from omniflow.util.js_values import is_truthy, loose_equals, to_display_string, to_number

logger = logging.getLogger(__name__)

VALUE_TOKEN = 'value'


class Operator(str, Enum):
    GTE = '>='
    LTE = '<='
    GT = '>'
    LT = '<'
    EQ = '=='
    NE = '!='
    CONTAINS = 'contains'

    @property
    def is_numeric(self) -> bool:
        return self in (Operator.GTE, Operator.LTE, Operator.GT, Operator.LT)


OPERATOR_PRIORITY = (
    Operator.GTE,
    Operator.LTE,
    Operator.GT,
    Operator.LT,
    Operator.EQ,
    Operator.NE,
    Operator.CONTAINS,
)


@dataclass(frozen=True)
class Operand:
    raw: str
    literal: Any = None
    is_value_ref: bool = False

    def resolve(self, value: Any, numeric: bool) -> Any:
        if not self.is_value_ref:
            return self.literal
        # The bound value is re-read as a literal when it is text, so a
        # resolved '"A"' compares equal to "A".
        if not numeric and isinstance(value, str):
            return parse_literal(value)
        return value


@dataclass(frozen=True)
class Condition:
    source: str
    operator: Optional[Operator] = None
    left: Optional[Operand] = None
    right: Optional[Operand] = None

    @property
    def is_fallback(self) -> bool:
        return self.operator is None


def _strip_quotes(text: str) -> Optional[str]:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ('"', "'"):
        return text[1:-1]
    return None


def parse_literal(text: str) -> Any:
    """Quoted string, then number, then true/false, else the text itself."""
    unquoted = _strip_quotes(text)
    if unquoted is not None:
        return unquoted
    number = to_number(text)
    if not math.isnan(number):
        return int(number) if number.is_integer() else number
    if text == 'true':
        return True
    if text == 'false':
        return False
    return text


def parse_numeric_literal(text: str) -> float:
    """Literal on the numeric path: quotes stripped, non-numbers read as 0."""
    unquoted = _strip_quotes(text)
    if unquoted is not None:
        text = unquoted
    number = to_number(text)
    return 0.0 if math.isnan(number) else number


def _parse_operand(raw: str, numeric: bool) -> Operand:
    if raw == VALUE_TOKEN:
        return Operand(raw=raw, is_value_ref=True)
    literal = parse_numeric_literal(raw) if numeric else parse_literal(raw)
    return Operand(raw=raw, literal=literal)


def parse_condition(text: Optional[str]) -> Condition:
    text = text if isinstance(text, str) else ('' if text is None else str(text))
    for operator in OPERATOR_PRIORITY:
        if operator.value not in text:
            continue
        parts = [p.strip() for p in text.split(operator.value)]
        numeric = operator.is_numeric
        return Condition(
            source=text,
            operator=operator,
            left=_parse_operand(parts[0], numeric),
            right=_parse_operand(parts[1], numeric),
        )
    return Condition(source=text)


def _compare(operator: Operator, left: Any, right: Any) -> bool:
    if operator.is_numeric:
        a, b = to_number(left), to_number(right)
        if operator is Operator.GTE:
            return a >= b
        if operator is Operator.LTE:
            return a <= b
        if operator is Operator.GT:
            return a > b
        return a < b
    if operator is Operator.EQ:
        return loose_equals(left, right)
    if operator is Operator.NE:
        return not loose_equals(left, right)
    return to_display_string(right) in to_display_string(left)


def evaluate_condition(condition: Condition, value: Any) -> bool:
    if condition.is_fallback:
        if condition.source == 'true':
            return True
        if condition.source == VALUE_TOKEN:
            return is_truthy(value)
        return False

    numeric = condition.operator.is_numeric
    try:
        left = condition.left.resolve(value, numeric)
        right = condition.right.resolve(value, numeric)
        return bool(_compare(condition.operator, left, right))
    except (TypeError, ValueError, OverflowError) as e:
        logger.debug("Condition %r could not be evaluated: %s", condition.source, e)
        return False


def evaluate(text: Optional[str], value: Any) -> bool:
    """Parse and evaluate in one step."""
    return evaluate_condition(parse_condition(text), value)
