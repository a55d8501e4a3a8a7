"""
Flask application exposing document validation to the dashboard.

The interactive validate endpoint and the background worker share the same
validation core; this module only translates HTTP to function calls.
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request

from clearance.config import load_settings
from clearance.errors import (
    ClearanceError,
    ConfigurationError,
    DocumentNotFoundError,
    InvalidTransitionError,
)
from clearance.runner import process_document
from clearance.status import derive_status
from clearance.supabase_client import get_service_role_client
from clearance.supabase_db import SupabaseValidationSink, reject_document, verify_document
from clearance.supabase_rules import SupabaseRuleSource
from clearance.validate import validate_document
from jobs.pg_queue import enqueue_validation, get_job_status

settings = load_settings()

app = Flask(__name__)
app.logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

logger = logging.getLogger(__name__)


def get_client():
    """Service-role Supabase client for the current request."""
    return get_service_role_client(settings)


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


@app.errorhandler(DocumentNotFoundError)
def handle_not_found(e):
    return jsonify({"success": False, "error": str(e)}), 404


@app.errorhandler(InvalidTransitionError)
def handle_invalid_transition(e):
    return jsonify({"success": False, "error": str(e)}), 409


@app.errorhandler(ConfigurationError)
def handle_configuration_error(e):
    logger.error(f"Configuration error: {e}")
    return jsonify({"success": False, "error": "Service is not configured"}), 503


@app.errorhandler(ClearanceError)
def handle_clearance_error(e):
    logger.error(f"Request failed: {e}")
    return jsonify({"success": False, "error": str(e)}), 500


@app.route("/api/validation_rules")
def list_validation_rules():
    """List active rules for ?document_type=..."""
    document_type: Optional[str] = request.args.get("document_type")
    if not document_type:
        return jsonify({"success": False, "error": "document_type is required"}), 400

    rules = SupabaseRuleSource(get_client(), settings).load_rules(document_type)
    return jsonify({
        "success": True,
        "document_type": document_type,
        "rules": [rule.model_dump(mode="json") for rule in rules],
    })


@app.route("/api/documents/<document_id>/validate", methods=["POST"])
def validate(document_id):
    """
    Validate posted content against the rules for its document type.

    Stores checks and issues for the document and returns the recommended
    status; applying it to the document is left to the caller.
    """
    body = _json_body()
    document_type = body.get("document_type")
    content = body.get("content")
    if not document_type or not isinstance(document_type, str):
        return jsonify({"success": False, "error": "document_type is required"}), 400
    if content is not None and not isinstance(content, (dict, list)):
        return jsonify({"success": False, "error": "content must be a JSON object"}), 400

    client = get_client()
    result = validate_document(
        document_id,
        document_type,
        content or {},
        rule_source=SupabaseRuleSource(client, settings),
        sink=SupabaseValidationSink(client, settings),
    )
    decision = derive_status(result.issues)
    return jsonify({
        "success": True,
        "document_id": document_id,
        "checks": [check.model_dump(mode="json") for check in result.checks],
        "issues": [issue.model_dump(mode="json") for issue in result.issues],
        "rules_loaded": result.rules_loaded,
        "recommended": decision.model_dump(mode="json"),
    })


@app.route("/api/documents/<document_id>/process", methods=["POST"])
def process(document_id):
    """Run the full processing step synchronously and apply the resulting status."""
    result = process_document(document_id, client=get_client(), settings=settings)
    return jsonify({"success": True, **result})


@app.route("/api/documents/<document_id>/enqueue", methods=["POST"])
def enqueue(document_id):
    """Queue the document for the background worker."""
    client = get_client()
    try:
        job_id = enqueue_validation(document_id, client=client, settings=settings)
    except Exception as e:
        logger.error(f"Failed to enqueue document {document_id}: {e}")
        return jsonify({"success": False, "error": str(e)}), 500
    return jsonify({"success": True, "job_id": job_id}), 202


@app.route("/api/job_status/<job_id>")
def job_status(job_id):
    status = get_job_status(job_id, client=get_client(), settings=settings)
    code = 404 if status.get("status") == "not_found" else 200
    return jsonify(status), code


@app.route("/api/documents/<document_id>/verify", methods=["POST"])
def verify(document_id):
    """Human sign-off on a document awaiting verification."""
    document = verify_document(document_id, get_client(), _json_body().get("message"), settings)
    return jsonify({"success": True, "document": document})


@app.route("/api/documents/<document_id>/reject", methods=["POST"])
def reject(document_id):
    document = reject_document(document_id, get_client(), _json_body().get("message"), settings)
    return jsonify({"success": True, "document": document})


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s [%(levelname)s] %(message)s'
    )
    app.run(debug=False)
