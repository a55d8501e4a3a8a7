#!/usr/bin/env python3
"""
PostgreSQL-based worker that validates queued documents in the background.

Usage:
    python worker.py
"""

import logging
import sys
import time
import traceback

from clearance.config import ClearanceSettings, load_settings
from clearance.errors import ConfigurationError, DocumentNotFoundError, InvalidJobError
from clearance.runner import process_document
from clearance.supabase_client import get_service_role_client
from jobs.pg_queue import get_next_job, update_job_status

logger = logging.getLogger(__name__)


def process_job(job, client, settings: ClearanceSettings) -> bool:
    """
    Process a single validation job.

    Failed jobs are re-queued until max_attempts is reached; a validation
    pass fully replaces earlier results, so a retry reconciles partial writes.
    """
    job_id = job["id"]
    job_data = job.get("job_data") or {}
    document_id = job_data.get("document_id")
    attempts = int(job.get("attempts") or 0) + 1
    max_attempts = int(job.get("max_attempts") or 1)

    update_job_status(
        job_id, "started", client,
        progress=0,
        status_message=f"Validating document {document_id}",
        attempts=attempts,
        settings=settings,
    )

    try:
        if not document_id:
            raise InvalidJobError("document_id not found in job data")

        result = process_document(document_id, client=client, settings=settings)

        update_job_status(
            job_id, "finished", client,
            progress=100,
            status_message=f"Document {document_id} -> {result['status']}",
            result=result,
            clear_error=True,
            settings=settings,
        )
        logger.info(f"✅ Job {job_id} completed: {document_id} -> {result['status']}")
        return True

    except Exception as e:
        error_traceback = traceback.format_exc()
        retryable = not isinstance(e, (DocumentNotFoundError, InvalidJobError))

        if retryable and attempts < max_attempts:
            # A queued job reports no error; the last one is kept in status_message.
            update_job_status(
                job_id, "queued", client,
                progress=0,
                status_message=f"Retrying after error: {str(e)}",
                clear_error=True,
                settings=settings,
            )
            logger.warning(f"⚠️ Job {job_id} failed (attempt {attempts}/{max_attempts}), re-queued: {e}")
        else:
            update_job_status(
                job_id, "failed", client,
                progress=100,
                status_message=f"Error: {str(e)}",
                error_message=str(e),
                error_traceback=error_traceback,
                settings=settings,
            )
            logger.error(f"❌ Job {job_id} failed with exception: {e}")
        logger.debug(error_traceback)
        return False


def main():
    """Main worker loop."""
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s [%(levelname)s] %(message)s'
    )

    try:
        client = get_service_role_client(settings)
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        logger.error("   Get it from: Supabase Dashboard > Settings > API > service_role key")
        sys.exit(1)

    logger.info(f"🚀 Worker {settings.worker_id} started")
    logger.info(f"⏳ Polling for validation jobs every {settings.worker_poll_interval} seconds...")

    while True:
        try:
            job = get_next_job(client, settings)
            if job:
                logger.info(f"📥 Processing job {job['id']}")
                process_job(job, client, settings)
            else:
                time.sleep(settings.worker_poll_interval)
        except KeyboardInterrupt:
            logger.info("🛑 Worker stopped by user")
            break
        except Exception as e:
            logger.error(f"❌ Error in worker loop: {e}")
            logger.debug(traceback.format_exc())
            time.sleep(settings.worker_poll_interval)


if __name__ == '__main__':
    main()
