"""
PostgreSQL-based job queue using Supabase.
Validation jobs live in the jobs table and are polled by worker.py.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import Client

from clearance.config import ClearanceSettings, get_settings
from clearance.supabase_client import get_service_role_client

logger = logging.getLogger(__name__)

JOB_TYPE_VALIDATE = "validate_document"


def enqueue_validation(
    document_id: str,
    client: Optional[Client] = None,
    settings: Optional[ClearanceSettings] = None,
    max_attempts: int = 3,
) -> str:
    """
    Enqueue a document for background validation.

    Returns:
        Job ID (UUID as string)

    Raises:
        Exception if job cannot be enqueued
    """
    settings = settings or get_settings()
    try:
        supabase = client or get_service_role_client(settings)
        result = supabase.table(settings.jobs_table).insert({
            "job_type": JOB_TYPE_VALIDATE,
            "status": "queued",
            "job_data": {"document_id": document_id},
            "progress": 0,
            "status_message": f"Queued: {document_id}",
            "attempts": 0,
            "max_attempts": max_attempts,
        }).execute()

        if not result.data:
            raise Exception("Failed to create job in database")

        return str(result.data[0]["id"])
    except Exception as e:
        raise Exception(f"Failed to enqueue job: {str(e)}") from e


def get_job_status(
    job_id: str,
    client: Optional[Client] = None,
    settings: Optional[ClearanceSettings] = None,
) -> Dict[str, Any]:
    """
    Get the status of a job.

    Returns:
        dict with status, result, error, etc.
    """
    settings = settings or get_settings()
    try:
        supabase = client or get_service_role_client(settings)
        result = supabase.table(settings.jobs_table).select("*").eq("id", job_id).execute()

        if not result.data:
            return {"job_id": job_id, "status": "not_found", "error": "Job not found"}

        job = result.data[0]
        return {
            "job_id": job_id,
            "status": job.get("status", "unknown"),
            "result": job.get("result"),
            "error": job.get("error_message"),
            "progress": job.get("progress", 0),
            "status_message": job.get("status_message", ""),
            "created_at": job.get("created_at"),
            "started_at": job.get("started_at"),
            "finished_at": job.get("finished_at"),
        }
    except Exception as e:
        return {"job_id": job_id, "status": "error", "error": str(e)}


def get_next_job(client: Client, settings: Optional[ClearanceSettings] = None) -> Optional[Dict[str, Any]]:
    """
    Get the next queued validation job (oldest first). Used by the worker.

    Returns:
        Job dict or None if no jobs available
    """
    settings = settings or get_settings()
    try:
        result = (
            client.table(settings.jobs_table)
            .select("*")
            .eq("status", "queued")
            .eq("job_type", JOB_TYPE_VALIDATE)
            .order("created_at", desc=False)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return result.data[0]
    except Exception as e:
        logger.error(f"Error getting next job: {e}")
        return None


def update_job_status(
    job_id: str,
    status: str,
    client: Client,
    progress: Optional[int] = None,
    status_message: Optional[str] = None,
    result: Optional[Dict[str, Any]] = None,
    error_message: Optional[str] = None,
    error_traceback: Optional[str] = None,
    attempts: Optional[int] = None,
    clear_error: bool = False,
    settings: Optional[ClearanceSettings] = None,
) -> bool:
    """
    Update job status and progress. Used by the worker.

    clear_error resets error_message and error_traceback left by an earlier
    attempt.
    """
    settings = settings or get_settings()
    update_data: Dict[str, Any] = {"status": status}

    if progress is not None:
        update_data["progress"] = progress
    if status_message:
        update_data["status_message"] = status_message
    if result:
        update_data["result"] = result
    if clear_error:
        update_data["error_message"] = None
        update_data["error_traceback"] = None
    if error_message:
        update_data["error_message"] = error_message
    if error_traceback:
        update_data["error_traceback"] = error_traceback
    if attempts is not None:
        update_data["attempts"] = attempts

    if status == "started":
        update_data["started_at"] = datetime.now(timezone.utc).isoformat()
    elif status in ("finished", "failed"):
        update_data["finished_at"] = datetime.now(timezone.utc).isoformat()

    try:
        response = client.table(settings.jobs_table).update(update_data).eq("id", job_id).execute()
        return bool(response.data)
    except Exception as e:
        logger.error(f"Error updating job status: {e}")
        return False
