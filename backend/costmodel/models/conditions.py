"""
Risk-rule condition expressions.

A condition string such as ``"> 500"`` or ``"!= 3"`` is parsed once into a
``RuleCondition`` (attribute, operator, threshold) and then evaluated against
block attributes without further string handling.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional, Union

# Block attribute referenced by a rule → field name on BlockCharacteristics
RULE_ATTRIBUTES: dict[str, str] = {
    "depth": "depth",
    "rock_hardness": "hardness",
    "grade": "grade",
    "abrasivity": "abrasivity",
}

ORDERING_OPERATORS = {">", ">=", "<", "<="}

_CONDITION_RE = re.compile(r"^\s*(>=|<=|==|!=|>|<|=)\s*(.+?)\s*$")


@dataclass(frozen=True)
class RuleCondition:
    attribute: str
    operator: str
    threshold: Union[float, str]

    def evaluate(self, value: Optional[float]) -> bool:
        """Compare a block attribute value against the threshold."""
        if value is None:
            return False
        numeric = isinstance(self.threshold, float)
        if self.operator in ORDERING_OPERATORS:
            if not numeric:
                return False
            if self.operator == ">":
                return value > self.threshold
            if self.operator == ">=":
                return value >= self.threshold
            if self.operator == "<":
                return value < self.threshold
            return value <= self.threshold
        # Equality: a non-numeric literal never equals a numeric attribute
        equal = numeric and value == self.threshold
        return not equal if self.operator == "!=" else equal


def _parse_literal(raw: str) -> Union[float, str]:
    try:
        number = float(raw)
    except ValueError:
        return raw
    return number if math.isfinite(number) else raw


def parse_condition(attribute: str, condition: str) -> RuleCondition:
    """
    Parse ``condition`` for ``attribute``.

    Raises ValueError for an unknown attribute, a missing operator, or an
    ordering comparison against a non-numeric literal.
    """
    if attribute not in RULE_ATTRIBUTES:
        raise ValueError(
            f"Unknown rule attribute '{attribute}'. Choose from {list(RULE_ATTRIBUTES)}"
        )
    match = _CONDITION_RE.match(condition or "")
    if not match:
        raise ValueError(f"Cannot parse condition '{condition}' for '{attribute}'")

    operator, literal = match.groups()
    threshold = _parse_literal(literal)
    if operator in ORDERING_OPERATORS and not isinstance(threshold, float):
        raise ValueError(
            f"Condition '{condition}' compares '{attribute}' against non-numeric '{literal}'"
        )
    return RuleCondition(attribute=attribute, operator=operator, threshold=threshold)
