"""
Validation orchestrator: runs every active rule for a document type against
extracted content and records the outcome.

The rule source and the result sink are passed in, so the same code path
serves the HTTP handler, the background worker and the tests.
"""

import logging
from typing import Any, Iterable, List, Optional, Protocol

from clearance.rules import evaluate_rule
from clearance.schema import (
    CheckStatus,
    RuleOutcome,
    RuleResult,
    ValidationCheck,
    ValidationIssue,
    ValidationResult,
    ValidationRule,
)

logger = logging.getLogger(__name__)


class RuleSource(Protocol):
    """Anything that can list the active rules for a document type."""

    def load_rules(self, document_type: str) -> List[ValidationRule]:
        ...


class ValidationSink(Protocol):
    """Anything that can replace a document's stored validation results."""

    def replace_results(self, document_id: str, result: ValidationResult) -> None:
        ...


def _safe_evaluate(rule: ValidationRule, content: Any) -> RuleOutcome:
    try:
        return evaluate_rule(rule, content)
    except Exception as e:
        logger.exception(f"Rule {rule.id} raised during evaluation")
        return RuleOutcome(passed=False, details=f"Rule evaluation error: {e}")


def evaluate_rules(rules: Iterable[ValidationRule], content: Any) -> ValidationResult:
    """
    Evaluate rules independently and aggregate checks and issues.

    Every rule yields one check; every failed check yields one issue with
    the rule's field, message and severity. No rule sees another's outcome.
    """
    checks: List[ValidationCheck] = []
    issues: List[ValidationIssue] = []
    rule_results: List[RuleResult] = []

    for rule in rules:
        outcome = _safe_evaluate(rule, content)
        checks.append(ValidationCheck(
            name=rule.display_name,
            description=rule.error_message,
            status=CheckStatus.PASSED if outcome.passed else CheckStatus.FAILED,
            details=outcome.details,
        ))
        rule_results.append(RuleResult(rule_id=rule.id, passed=outcome.passed, details=outcome.details))
        if not outcome.passed:
            issues.append(ValidationIssue(
                field=rule.condition_field,
                issue=rule.error_message,
                severity=rule.severity,
            ))

    return ValidationResult(checks=checks, issues=issues, rule_results=rule_results)


def _applicable(rules: Iterable[ValidationRule], document_type: str) -> List[ValidationRule]:
    applicable = []
    for rule in rules:
        if not rule.is_active or rule.document_type != document_type:
            logger.debug(f"Skipping rule {rule.id}: not active for {document_type!r}")
            continue
        applicable.append(rule)
    return applicable


def validate_document(
    document_id: str,
    document_type: str,
    content: Any,
    rule_source: RuleSource,
    sink: Optional[ValidationSink] = None,
) -> ValidationResult:
    """
    Run one validation pass for a document.

    If the rule source fails the pass enforces no rules: the result is empty
    and rules_loaded is False. Sink failures are not caught.

    Args:
        document_id: Document identifier
        document_type: Declared document type, matched exactly against rules
        content: Extracted content record
        rule_source: Provides active rules for the document type
        sink: Replaces stored results for the document; skipped when None

    Returns:
        ValidationResult with checks, issues and per-rule results
    """
    rules_loaded = True
    try:
        rules = _applicable(rule_source.load_rules(document_type), document_type)
    except Exception as e:
        logger.error(
            f"Could not load validation rules for document type {document_type!r}; "
            f"no rules will be enforced for document {document_id}: {e}"
        )
        rules = []
        rules_loaded = False
    else:
        if not rules:
            logger.info(f"No active validation rules for document type {document_type!r}")

    result = evaluate_rules(rules, content)
    result.rules_loaded = rules_loaded

    failed = sum(1 for check in result.checks if check.status == CheckStatus.FAILED)
    logger.info(
        f"Validated document {document_id}: {len(result.checks)} checks, "
        f"{failed} failed, {len(result.issues)} issues"
    )

    if sink is not None:
        try:
            sink.replace_results(document_id, result)
        except Exception as e:
            logger.error(f"Failed to persist validation results for document {document_id}: {e}")
            raise

    return result
