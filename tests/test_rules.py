"""
Tests for the rule evaluator: one group per condition type.
"""

from datetime import datetime
from unittest.mock import patch

import pytest
from dateutil.parser import _parser as dateutil_parser

from clearance.rules import evaluate_rule
from clearance.schema import ConditionType


def _clock_at(year, month, day):
    """datetime class whose now() is pinned, for patching dateutil's clock."""

    class PinnedDatetime(datetime):
        @classmethod
        def now(cls, tz=None):
            return datetime(year, month, day, tzinfo=tz)

    return PinnedDatetime


class TestRequired:

    @pytest.mark.parametrize("content", [{}, {"invoice_number": None}, {"invoice_number": ""}])
    def test_missing_or_empty_fails(self, make_rule, content):
        outcome = evaluate_rule(make_rule(condition_type="required"), content)
        assert outcome.passed is False
        assert outcome.details == "Field is missing or empty"

    @pytest.mark.parametrize("value", ["INV-1", 0, False, " "])
    def test_present_values_pass(self, make_rule, value):
        outcome = evaluate_rule(make_rule(condition_type="required"), {"invoice_number": value})
        assert outcome.passed is True
        assert outcome.details.startswith("Field has value:")

    def test_details_include_value(self, make_rule):
        outcome = evaluate_rule(make_rule(condition_type="required"), {"invoice_number": "INV-1"})
        assert outcome.details == "Field has value: INV-1"


class TestEquals:

    def test_string_match(self, make_rule):
        rule = make_rule(condition_type="equals", condition_field="currency", condition_value="USD")
        outcome = evaluate_rule(rule, {"currency": "USD"})
        assert outcome.passed is True
        assert outcome.details == "Expected: USD, Found: USD"

    def test_mismatch(self, make_rule):
        rule = make_rule(condition_type="equals", condition_field="currency", condition_value="USD")
        outcome = evaluate_rule(rule, {"currency": "EUR"})
        assert outcome.passed is False
        assert "Expected: USD" in outcome.details and "Found: EUR" in outcome.details

    def test_numbers_compare_by_string_form(self, make_rule):
        rule = make_rule(condition_type="equals", condition_field="pieces", condition_value="3")
        assert evaluate_rule(rule, {"pieces": 3}).passed is True
        assert evaluate_rule(rule, {"pieces": 3.0}).passed is True

    def test_missing_value_never_equals(self, make_rule):
        rule = make_rule(condition_type="equals", condition_field="currency", condition_value=None)
        outcome = evaluate_rule(rule, {})
        assert outcome.passed is False
        assert "Found: missing" in outcome.details


class TestContains:

    def test_substring_found(self, make_rule):
        rule = make_rule(condition_type="contains", condition_field="port", condition_value="Rotterdam")
        outcome = evaluate_rule(rule, {"port": "Port of Rotterdam"})
        assert outcome.passed is True
        assert outcome.details == 'Checking if "Port of Rotterdam" contains "Rotterdam"'

    def test_substring_missing(self, make_rule):
        rule = make_rule(condition_type="contains", condition_field="port", condition_value="Hamburg")
        assert evaluate_rule(rule, {"port": "Port of Rotterdam"}).passed is False

    def test_missing_value_fails(self, make_rule):
        rule = make_rule(condition_type="contains", condition_field="port", condition_value="")
        assert evaluate_rule(rule, {}).passed is False
        assert evaluate_rule(rule, {"port": ""}).passed is False

    def test_non_string_value_uses_string_form(self, make_rule):
        rule = make_rule(condition_type="contains", condition_field="hs_code", condition_value="8471")
        assert evaluate_rule(rule, {"hs_code": 847130}).passed is True


class TestLengthBounds:

    def test_min_length(self, make_rule):
        rule = make_rule(condition_type="min_length", condition_value="5")
        assert evaluate_rule(rule, {"invoice_number": "INV-12"}).passed is True
        outcome = evaluate_rule(rule, {"invoice_number": "INV"})
        assert outcome.passed is False
        assert outcome.details == "Required length: 5, Actual length: 3"

    def test_max_length(self, make_rule):
        rule = make_rule(condition_type="max_length", condition_value="4")
        assert evaluate_rule(rule, {"invoice_number": "INV1"}).passed is True
        outcome = evaluate_rule(rule, {"invoice_number": "INV-12"})
        assert outcome.passed is False
        assert outcome.details == "Max length: 4, Actual length: 6"

    @pytest.mark.parametrize("raw", [None, "", "abc", "many"])
    def test_unparseable_bound_is_zero(self, make_rule, raw):
        min_rule = make_rule(condition_type="min_length", condition_value=raw)
        max_rule = make_rule(condition_type="max_length", condition_value=raw)

        assert evaluate_rule(min_rule, {}).passed is True
        assert evaluate_rule(min_rule, {"invoice_number": "INV-1"}).passed is True
        assert evaluate_rule(max_rule, {}).passed is True
        assert evaluate_rule(max_rule, {"invoice_number": ""}).passed is True
        assert evaluate_rule(max_rule, {"invoice_number": "INV-1"}).passed is False

    def test_leading_integer_is_used(self, make_rule):
        rule = make_rule(condition_type="min_length", condition_value=" 3 chars")
        outcome = evaluate_rule(rule, {"invoice_number": "AB"})
        assert outcome.details == "Required length: 3, Actual length: 2"

    def test_missing_value_has_zero_length(self, make_rule):
        rule = make_rule(condition_type="min_length", condition_value="1")
        outcome = evaluate_rule(rule, {})
        assert outcome.passed is False
        assert outcome.details.endswith("Actual length: 0")


class TestNumeric:

    @pytest.mark.parametrize("value", [42, 3.14, "17", " 2.5 ", "-1e3", "0"])
    def test_numeric_values(self, make_rule, value):
        rule = make_rule(condition_type="numeric", condition_field="total")
        outcome = evaluate_rule(rule, {"total": value})
        assert outcome.passed is True
        assert outcome.details.endswith("is numeric")

    @pytest.mark.parametrize("value", [None, "", "12 USD", "abc", "nan", "inf", True, float("inf")])
    def test_non_numeric_values(self, make_rule, value):
        rule = make_rule(condition_type="numeric", condition_field="total")
        outcome = evaluate_rule(rule, {"total": value})
        assert outcome.passed is False
        assert outcome.details.endswith("is not numeric")

    def test_missing_field_is_not_numeric(self, make_rule):
        assert evaluate_rule(make_rule(condition_type="numeric", condition_field="total"), {}).passed is False


class TestDateFormat:

    @pytest.mark.parametrize("value", ["2024-03-15", "2024-03-15T10:30:00Z", "March 15, 2024", "15 Mar 2024"])
    def test_valid_dates(self, make_rule, value):
        rule = make_rule(condition_type="date_format", condition_field="date")
        outcome = evaluate_rule(rule, {"date": value})
        assert outcome.passed is True
        assert outcome.details.endswith("is a valid date")

    @pytest.mark.parametrize("value", ["not-a-date", "2024-13-45", "", None])
    def test_invalid_dates(self, make_rule, value):
        rule = make_rule(condition_type="date_format", condition_field="date")
        outcome = evaluate_rule(rule, {"date": value})
        assert outcome.passed is False
        assert outcome.details.endswith("is not a valid date")

    @pytest.mark.parametrize("value, today_a, today_b", [
        ("31", (2026, 2, 10), (2026, 3, 10)),
        ("Feb 29", (2026, 6, 1), (2028, 6, 1)),
    ])
    def test_partial_date_verdict_ignores_current_date(self, make_rule, value, today_a, today_b):
        rule = make_rule(condition_type="date_format", condition_field="date")
        with patch.object(dateutil_parser.datetime, "datetime", _clock_at(*today_a)):
            first = evaluate_rule(rule, {"date": value})
        with patch.object(dateutil_parser.datetime, "datetime", _clock_at(*today_b)):
            second = evaluate_rule(rule, {"date": value})
        assert first == second
        assert first.passed is True


class TestUnknownConditionType:

    @pytest.mark.parametrize("content", [{}, {"invoice_number": ""}, {"invoice_number": "INV-1"}, None])
    def test_always_passes(self, make_rule, content):
        rule = make_rule(condition_type="unknown_type")
        outcome = evaluate_rule(rule, content)
        assert outcome.passed is True
        assert outcome.details == "Unknown validation type: unknown_type"

    def test_raw_condition_maps_to_unknown_member(self, make_rule):
        assert make_rule(condition_type="regex").condition is ConditionType.UNKNOWN
        assert make_rule(condition_type="").condition is ConditionType.UNKNOWN
        assert make_rule(condition_type="numeric").condition is ConditionType.NUMERIC


def test_evaluation_is_deterministic(make_rule):
    rule = make_rule(condition_type="date_format", condition_field="shipment.date")
    content = {"shipment": {"date": "2024-02-30"}}
    first = evaluate_rule(rule, content)
    second = evaluate_rule(rule, content)
    assert first == second
