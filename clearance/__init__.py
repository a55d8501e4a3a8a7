"""
Customs document clearance: rule-driven validation of extracted document content.
"""

from clearance.field_resolver import resolve_field
from clearance.rules import evaluate_rule
from clearance.status import derive_status
from clearance.validate import evaluate_rules, validate_document

__all__ = ["resolve_field", "evaluate_rule", "evaluate_rules", "validate_document", "derive_status"]
