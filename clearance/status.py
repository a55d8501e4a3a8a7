"""
Status derivation: maps a pass's issues onto the recommended document status.
"""

from typing import Iterable

from clearance.schema import DocumentStatus, Severity, StatusDecision, ValidationIssue


def derive_status(issues: Iterable[ValidationIssue]) -> StatusDecision:
    """
    Any high-severity issue rejects and flags the document; otherwise it
    waits for a human to verify it.
    """
    flagged = any(issue.severity == Severity.HIGH for issue in issues)
    status = DocumentStatus.REJECTED if flagged else DocumentStatus.PENDING_VERIFICATION
    return StatusDecision(status=status, flagged=flagged)
