"""
Supabase-backed rule store.
Reads active validation rules per document type and seeds the sample rule set.
"""

import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from clearance.config import ClearanceSettings, get_settings
from clearance.errors import RuleStoreError
from clearance.schema import Severity, ValidationRule
from clearance.severity import map_severity_from_db, map_severity_to_db
from clearance.supabase_client import get_service_role_client

logger = logging.getLogger(__name__)

SAMPLE_DOCUMENT_TYPE = "PDF Document"

SAMPLE_RULES: List[Dict[str, Any]] = [
    {
        "rule_name": "Invoice Number Required",
        "rule_code": "INV_NUM_REQ",
        "condition_field": "invoice_number",
        "condition_type": "required",
        "error_message": "Invoice number is required for all invoices",
        "severity": Severity.HIGH,
        "description": "Validates that an invoice number is present in the document",
    },
    {
        "rule_name": "Company Name Required",
        "rule_code": "COMPANY_REQ",
        "condition_field": "company_name",
        "condition_type": "required",
        "error_message": "Company name must be present",
        "severity": Severity.MEDIUM,
        "description": "Validates that a company name is present in the document",
    },
    {
        "rule_name": "Total Amount Required",
        "rule_code": "TOTAL_AMT_REQ",
        "condition_field": "total_amount",
        "condition_type": "required",
        "error_message": "Total amount must be specified",
        "severity": Severity.HIGH,
        "description": "Validates that a total amount is present in the document",
    },
    {
        "rule_name": "Date Format Check",
        "rule_code": "DATE_FORMAT",
        "condition_field": "date",
        "condition_type": "date_format",
        "error_message": "Date must be in valid format",
        "severity": Severity.MEDIUM,
        "description": "Validates that the date field contains a valid date format",
    },
]


def rule_from_row(row: Dict[str, Any]) -> ValidationRule:
    """Convert a validation_rules row into a ValidationRule, mapping severity at the boundary."""
    return ValidationRule(
        id=str(row["id"]),
        rule_name=row.get("rule_name") or "",
        rule_code=row.get("rule_code") or "",
        document_type=row.get("document_type") or "",
        condition_field=row.get("condition_field") or "",
        condition_type=row.get("condition_type") or "",
        condition_value=row.get("condition_value"),
        error_message=row.get("error_message") or "",
        severity=map_severity_from_db(row.get("severity")),
        # NULL is_active is treated as active, matching the column default
        is_active=row.get("is_active") is not False,
        description=row.get("description") or "",
    )


def load_rules(
    document_type: str,
    client: Client,
    settings: Optional[ClearanceSettings] = None,
) -> List[ValidationRule]:
    """
    Fetch active validation rules for a document type, in store order.

    Raises:
        RuleStoreError: if the query fails or a row cannot be parsed
    """
    settings = settings or get_settings()
    try:
        result = (
            client.table(settings.rules_table)
            .select("*")
            .eq("document_type", document_type)
            .eq("is_active", True)
            .execute()
        )
        rows = result.data or []
        return [rule_from_row(row) for row in rows]
    except Exception as e:
        raise RuleStoreError(f"Error fetching validation rules for {document_type!r}: {e}") from e


class SupabaseRuleSource:
    """RuleSource backed by the validation_rules table."""

    def __init__(self, client: Optional[Client] = None, settings: Optional[ClearanceSettings] = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_service_role_client(self.settings)
        return self._client

    def load_rules(self, document_type: str) -> List[ValidationRule]:
        rules = load_rules(document_type, self.client, self.settings)
        logger.debug(f"Loaded {len(rules)} rules for {document_type!r}")
        return rules


def create_sample_rules(
    client: Client,
    document_type: str = SAMPLE_DOCUMENT_TYPE,
    settings: Optional[ClearanceSettings] = None,
) -> int:
    """
    Insert the sample rule set for a document type.

    Returns:
        Number of rules inserted

    Raises:
        RuleStoreError: if the insert fails
    """
    settings = settings or get_settings()
    rows = []
    for sample in SAMPLE_RULES:
        row = dict(sample)
        row["document_type"] = document_type
        row["severity"] = map_severity_to_db(sample["severity"])
        row["is_active"] = True
        rows.append(row)

    try:
        client.table(settings.rules_table).insert(rows).execute()
    except Exception as e:
        logger.error(f"Error creating sample validation rules: {e}")
        raise RuleStoreError(f"Error creating sample validation rules: {e}") from e

    logger.info(f"Sample validation rules created for {document_type!r}")
    return len(rows)
