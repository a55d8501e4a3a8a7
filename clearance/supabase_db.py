"""
Supabase persistence for validation results and document state.

Every write raises PersistenceError on failure: losing validation results
silently would let a document's displayed state drift from its history.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

from clearance.config import ClearanceSettings, get_settings
from clearance.errors import DocumentNotFoundError, InvalidTransitionError, PersistenceError
from clearance.schema import DocumentStatus, StatusDecision, ValidationResult
from clearance.supabase_client import get_service_role_client

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_check_rows(document_id: str, result: ValidationResult) -> List[Dict[str, Any]]:
    return [
        {"document_id": document_id, **check.model_dump(mode="json")}
        for check in result.checks
    ]


def build_issue_rows(document_id: str, result: ValidationResult) -> List[Dict[str, Any]]:
    return [
        {"document_id": document_id, **issue.model_dump(mode="json")}
        for issue in result.issues
    ]


def build_rule_result_rows(document_id: str, result: ValidationResult) -> List[Dict[str, Any]]:
    return [
        {
            "document_id": document_id,
            "rule_id": rule_result.rule_id,
            "status": "pass" if rule_result.passed else "fail",
            "details": {"result": rule_result.details},
        }
        for rule_result in result.rule_results
    ]


class SupabaseValidationSink:
    """
    ValidationSink that replaces a document's checks, issues and per-rule
    results. Prior rows are deleted before the new set is inserted, so a
    retried pass reconciles any partial write from an earlier one.
    """

    def __init__(self, client: Optional[Client] = None, settings: Optional[ClearanceSettings] = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_service_role_client(self.settings)
        return self._client

    def _replace(self, table: str, document_id: str, rows: List[Dict[str, Any]]) -> None:
        self.client.table(table).delete().eq("document_id", document_id).execute()
        if rows:
            self.client.table(table).insert(rows).execute()

    def replace_results(self, document_id: str, result: ValidationResult) -> None:
        try:
            self._replace(self.settings.checks_table, document_id, build_check_rows(document_id, result))
            self._replace(self.settings.issues_table, document_id, build_issue_rows(document_id, result))
            self._replace(self.settings.results_table, document_id, build_rule_result_rows(document_id, result))
        except Exception as e:
            raise PersistenceError(f"Failed to store validation results for {document_id}: {e}") from e


def get_document(document_id: str, client: Client, settings: Optional[ClearanceSettings] = None) -> Dict[str, Any]:
    """
    Fetch a document row.

    Raises:
        DocumentNotFoundError: if no row has this id
        PersistenceError: if the query fails
    """
    settings = settings or get_settings()
    try:
        result = client.table(settings.documents_table).select("*").eq("id", document_id).limit(1).execute()
    except Exception as e:
        raise PersistenceError(f"Failed to fetch document {document_id}: {e}") from e
    if not result.data:
        raise DocumentNotFoundError(document_id)
    return result.data[0]


def get_document_content(
    document_id: str,
    client: Client,
    settings: Optional[ClearanceSettings] = None,
) -> Optional[Dict[str, Any]]:
    """Return the most recent extracted content for a document, or None if nothing was extracted."""
    settings = settings or get_settings()
    try:
        result = (
            client.table(settings.content_table)
            .select("content")
            .eq("document_id", document_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise PersistenceError(f"Failed to fetch content for document {document_id}: {e}") from e
    if not result.data:
        return None
    return result.data[0].get("content")


def update_document_status(
    document_id: str,
    status: DocumentStatus,
    progress: int,
    client: Client,
    settings: Optional[ClearanceSettings] = None,
    **fields: Any,
) -> None:
    """Update a document's status and progress, plus any extra columns."""
    settings = settings or get_settings()
    update_data = {
        "status": DocumentStatus(status).value,
        "progress": progress,
        "last_updated": _now_iso(),
        **fields,
    }
    try:
        client.table(settings.documents_table).update(update_data).eq("id", document_id).execute()
    except Exception as e:
        raise PersistenceError(f"Failed to update status for document {document_id}: {e}") from e


def add_history_event(
    document_id: str,
    status: DocumentStatus,
    message: str,
    client: Client,
    settings: Optional[ClearanceSettings] = None,
) -> None:
    """Append an event to the document's history."""
    settings = settings or get_settings()
    try:
        client.table(settings.history_table).insert({
            "document_id": document_id,
            "status": DocumentStatus(status).value,
            "message": message,
        }).execute()
    except Exception as e:
        raise PersistenceError(f"Failed to add history event for document {document_id}: {e}") from e


def apply_status_decision(
    document_id: str,
    decision: StatusDecision,
    client: Client,
    processing_time_ms: Optional[int] = None,
    settings: Optional[ClearanceSettings] = None,
) -> None:
    """Move a processed document to its recommended status and record the completion event."""
    fields: Dict[str, Any] = {
        "flagged": decision.flagged,
        "processing_completed": _now_iso(),
    }
    if processing_time_ms is not None:
        fields["processing_time_ms"] = processing_time_ms
    update_document_status(document_id, decision.status, 100, client, settings, **fields)

    message = (
        "Document has validation issues"
        if decision.status == DocumentStatus.REJECTED
        else "Document processed and awaiting verification"
    )
    add_history_event(document_id, decision.status, message, client, settings)


_MANUAL_TRANSITIONS = {
    DocumentStatus.VERIFIED: {DocumentStatus.PENDING_VERIFICATION},
    DocumentStatus.REJECTED: {DocumentStatus.PENDING_VERIFICATION, DocumentStatus.VERIFIED},
}


def _manual_transition(
    document_id: str,
    target: DocumentStatus,
    message: str,
    client: Client,
    settings: Optional[ClearanceSettings] = None,
) -> Dict[str, Any]:
    document = get_document(document_id, client, settings)
    current = document.get("status")
    allowed = {s.value for s in _MANUAL_TRANSITIONS[target]}
    if current not in allowed:
        raise InvalidTransitionError(
            f"Cannot move document {document_id} from {current!r} to {target.value!r}"
        )
    update_document_status(document_id, target, 100, client, settings)
    add_history_event(document_id, target, message, client, settings)
    logger.info(f"Document {document_id} moved from {current} to {target.value}")
    return {**document, "status": target.value, "progress": 100}


def verify_document(
    document_id: str,
    client: Client,
    message: Optional[str] = None,
    settings: Optional[ClearanceSettings] = None,
) -> Dict[str, Any]:
    """Human sign-off: pending_verification -> verified."""
    return _manual_transition(
        document_id, DocumentStatus.VERIFIED, message or "Document verified", client, settings
    )


def reject_document(
    document_id: str,
    client: Client,
    message: Optional[str] = None,
    settings: Optional[ClearanceSettings] = None,
) -> Dict[str, Any]:
    """Human rejection of a document awaiting or past verification."""
    return _manual_transition(
        document_id, DocumentStatus.REJECTED, message or "Document rejected", client, settings
    )
