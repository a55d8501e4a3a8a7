"""
Data models for document validation rules and their outcomes.
Uses Pydantic for validation and type safety.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Issue severity as the dashboard displays it."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CheckStatus(str, Enum):
    """
    Outcome of one rule against one document.
    PENDING is only ever read back from storage; the evaluator emits PASSED or FAILED.
    """
    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"


class DocumentStatus(str, Enum):
    """Lifecycle of an uploaded customs document."""
    PENDING = "pending"
    PROCESSING = "processing"
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    REJECTED = "rejected"


class ConditionType(str, Enum):
    """
    Closed set of rule conditions.
    UNKNOWN covers any condition string this version does not understand;
    such rules always pass so newer rule rows never break older workers.
    """
    REQUIRED = "required"
    EQUALS = "equals"
    CONTAINS = "contains"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    NUMERIC = "numeric"
    DATE_FORMAT = "date_format"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, raw: Optional[str]) -> "ConditionType":
        """Map a stored condition string onto a member, UNKNOWN when unrecognized."""
        try:
            member = cls(raw)
        except ValueError:
            return cls.UNKNOWN
        return member


class ValidationRule(BaseModel):
    """
    Declarative check definition as stored in the rules table.
    condition_type is kept as the raw stored string so unrecognized values
    can be reported verbatim.
    """
    id: str
    rule_name: str = ""
    rule_code: str = ""
    document_type: str
    condition_field: str
    condition_type: str
    condition_value: Optional[str] = None
    error_message: str = ""
    severity: Severity = Severity.MEDIUM
    is_active: bool = True
    description: str = ""

    @property
    def condition(self) -> ConditionType:
        return ConditionType.from_raw(self.condition_type)

    @property
    def display_name(self) -> str:
        return self.rule_name or self.rule_code or self.id


class RuleOutcome(BaseModel):
    """Verdict of a single rule evaluation."""
    passed: bool
    details: str = ""


class ValidationCheck(BaseModel):
    """Recorded outcome of one rule for one document."""
    name: str
    description: str
    status: CheckStatus
    details: str = ""


class ValidationIssue(BaseModel):
    """A failed check projected into the (field, message, severity) display shape."""
    field: str
    issue: str
    severity: Severity


class RuleResult(BaseModel):
    """Per-rule verdict keyed by rule id, stored in the document_validations table."""
    rule_id: str
    passed: bool
    details: str = ""


class ValidationResult(BaseModel):
    """Aggregated output of one validation pass."""
    checks: List[ValidationCheck] = Field(default_factory=list)
    issues: List[ValidationIssue] = Field(default_factory=list)
    rule_results: List[RuleResult] = Field(default_factory=list)
    # False when the rule store could not be read and the pass enforced nothing
    rules_loaded: bool = True


class StatusDecision(BaseModel):
    """Recommended document status after a validation pass."""
    status: DocumentStatus
    flagged: bool
