"""
Rule evaluator: applies one validation rule's condition to document content.

Each ConditionType member has exactly one handler. Handlers are pure: the
same (rule, content) always produces the same RuleOutcome.
"""

import json
import math
import re
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from dateutil import parser as date_parser
from dateutil.parser import ParserError

from clearance.field_resolver import resolve_field
from clearance.schema import ConditionType, RuleOutcome, ValidationRule

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
# Fills parts a partial date omits; a leap year with a 31-day month never rejects a real date.
_DATE_DEFAULT = datetime(2000, 1, 1)


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def _as_text(value: Any) -> str:
    """String form of a content value as it would appear in the extracted JSON."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)
    return str(value)


def _parse_bound(raw: Optional[str]) -> int:
    """Parse a length operand; leading integer wins, anything unparseable is 0."""
    if raw is None:
        return 0
    match = _LEADING_INT.match(str(raw))
    if not match:
        return 0
    return int(match.group(1))


def _is_numeric(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    text = _as_text(value).strip()
    if not text:
        return False
    try:
        number = float(text)
    except ValueError:
        return False
    return math.isfinite(number)


def _is_date(value: Any) -> bool:
    if not _is_present(value) or isinstance(value, bool):
        return False
    text = _as_text(value).strip()
    if not text:
        return False
    try:
        datetime.fromisoformat(text[:-1] + "+00:00" if text.endswith("Z") else text)
        return True
    except ValueError:
        pass
    try:
        date_parser.parse(text, default=_DATE_DEFAULT)
    except (ParserError, ValueError, OverflowError):
        return False
    return True


def _check_required(rule: ValidationRule, value: Any) -> RuleOutcome:
    if _is_present(value):
        return RuleOutcome(passed=True, details=f"Field has value: {_as_text(value)}")
    return RuleOutcome(passed=False, details="Field is missing or empty")


def _check_equals(rule: ValidationRule, value: Any) -> RuleOutcome:
    expected = rule.condition_value or ""
    found = _as_text(value) if value is not None else "missing"
    return RuleOutcome(
        passed=value is not None and _as_text(value) == expected,
        details=f"Expected: {expected}, Found: {found}",
    )


def _check_contains(rule: ValidationRule, value: Any) -> RuleOutcome:
    needle = rule.condition_value or ""
    text = _as_text(value)
    return RuleOutcome(
        passed=_is_present(value) and needle in text,
        details=f'Checking if "{text}" contains "{needle}"',
    )


def _check_min_length(rule: ValidationRule, value: Any) -> RuleOutcome:
    bound = _parse_bound(rule.condition_value)
    length = len(_as_text(value)) if _is_present(value) else 0
    return RuleOutcome(
        passed=length >= bound,
        details=f"Required length: {bound}, Actual length: {length}",
    )


def _check_max_length(rule: ValidationRule, value: Any) -> RuleOutcome:
    bound = _parse_bound(rule.condition_value)
    length = len(_as_text(value)) if _is_present(value) else 0
    return RuleOutcome(
        passed=length <= bound,
        details=f"Max length: {bound}, Actual length: {length}",
    )


def _check_numeric(rule: ValidationRule, value: Any) -> RuleOutcome:
    numeric = _is_numeric(value)
    return RuleOutcome(
        passed=numeric,
        details=f'Value "{_as_text(value)}" is {"numeric" if numeric else "not numeric"}',
    )


def _check_date_format(rule: ValidationRule, value: Any) -> RuleOutcome:
    valid = _is_date(value)
    return RuleOutcome(
        passed=valid,
        details=f'Value "{_as_text(value)}" is {"a valid date" if valid else "not a valid date"}',
    )


def _check_unknown(rule: ValidationRule, value: Any) -> RuleOutcome:
    return RuleOutcome(passed=True, details=f"Unknown validation type: {rule.condition_type}")


_HANDLERS: Dict[ConditionType, Callable[[ValidationRule, Any], RuleOutcome]] = {
    ConditionType.REQUIRED: _check_required,
    ConditionType.EQUALS: _check_equals,
    ConditionType.CONTAINS: _check_contains,
    ConditionType.MIN_LENGTH: _check_min_length,
    ConditionType.MAX_LENGTH: _check_max_length,
    ConditionType.NUMERIC: _check_numeric,
    ConditionType.DATE_FORMAT: _check_date_format,
    ConditionType.UNKNOWN: _check_unknown,
}


def evaluate_rule(rule: ValidationRule, content: Any) -> RuleOutcome:
    """
    Evaluate a single rule against extracted document content.

    Args:
        rule: Validation rule to apply
        content: Extracted content record

    Returns:
        RuleOutcome with the pass/fail verdict and a human-readable explanation
    """
    value = resolve_field(content, rule.condition_field)
    return _HANDLERS[rule.condition](rule, value)
