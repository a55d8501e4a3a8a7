"""
Document processing step: runs a validation pass for a stored document and
moves it out of processing.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import Client

from clearance.config import ClearanceSettings, get_settings
from clearance.schema import DocumentStatus
from clearance.status import derive_status
from clearance.supabase_client import get_service_role_client
from clearance.supabase_db import (
    SupabaseValidationSink,
    add_history_event,
    apply_status_decision,
    get_document,
    get_document_content,
    update_document_status,
)
from clearance.supabase_rules import SupabaseRuleSource
from clearance.validate import validate_document

logger = logging.getLogger(__name__)


def process_document(
    document_id: str,
    client: Optional[Client] = None,
    settings: Optional[ClearanceSettings] = None,
) -> Dict[str, Any]:
    """
    Validate a stored document and apply the recommended status.

    Pipeline: processing -> load extracted content -> validate against the
    active rules for the document's type -> rejected | pending_verification.
    Safe to re-run: each pass fully replaces the previous pass's results.

    Args:
        document_id: Document identifier
        client: Supabase client (service role client when omitted)
        settings: Settings (read from environment when omitted)

    Returns:
        dict with document_id, status, flagged, checks, issues, rules_loaded

    Raises:
        DocumentNotFoundError: if the document does not exist
        PersistenceError: if any write fails
    """
    settings = settings or get_settings()
    client = client or get_service_role_client(settings)
    started = time.monotonic()

    document = get_document(document_id, client, settings)
    document_type = document.get("type") or ""
    logger.info(f"📄 Processing document {document_id} (type={document_type!r})")

    update_document_status(
        document_id, DocumentStatus.PROCESSING, 10, client, settings,
        processing_started=datetime.now(timezone.utc).isoformat(),
    )
    add_history_event(document_id, DocumentStatus.PROCESSING, "Document processing started", client, settings)

    content = get_document_content(document_id, client, settings)
    if content is None:
        logger.warning(f"No extracted content for document {document_id}; validating empty content")
        content = {}

    update_document_status(document_id, DocumentStatus.PROCESSING, 70, client, settings)

    result = validate_document(
        document_id,
        document_type,
        content,
        rule_source=SupabaseRuleSource(client, settings),
        sink=SupabaseValidationSink(client, settings),
    )
    decision = derive_status(result.issues)

    processing_time_ms = int((time.monotonic() - started) * 1000)
    apply_status_decision(document_id, decision, client, processing_time_ms, settings)

    logger.info(f"✅ Document {document_id} -> {decision.status.value} (flagged={decision.flagged})")
    return {
        "document_id": document_id,
        "status": decision.status.value,
        "flagged": decision.flagged,
        "checks": [check.model_dump(mode="json") for check in result.checks],
        "issues": [issue.model_dump(mode="json") for issue in result.issues],
        "rules_loaded": result.rules_loaded,
    }
