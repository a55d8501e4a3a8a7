"""
Environment-driven settings for the clearance service.

Values come from os.environ; entry points call load_settings() which also
reads a local .env file for development.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class ClearanceSettings:
    """Supabase credentials, table names and worker tuning."""

    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    supabase_service_role_key: Optional[str] = None

    rules_table: str = "validation_rules"
    checks_table: str = "validation_checks"
    issues_table: str = "validation_issues"
    results_table: str = "document_validations"
    documents_table: str = "documents"
    content_table: str = "document_content"
    history_table: str = "document_history"
    jobs_table: str = "jobs"

    worker_id: str = "worker"
    worker_poll_interval: float = 2.0
    log_level: str = "INFO"


def get_settings() -> ClearanceSettings:
    """Build settings from the current environment."""
    defaults = ClearanceSettings()
    try:
        poll_interval = float(_env("WORKER_POLL_INTERVAL", str(defaults.worker_poll_interval)))
    except ValueError:
        poll_interval = defaults.worker_poll_interval

    return ClearanceSettings(
        supabase_url=_env("SUPABASE_URL"),
        supabase_anon_key=_env("SUPABASE_ANON_KEY"),
        supabase_service_role_key=_env("SUPABASE_SERVICE_ROLE_KEY"),
        rules_table=_env("CLEARANCE_RULES_TABLE", defaults.rules_table),
        checks_table=_env("CLEARANCE_CHECKS_TABLE", defaults.checks_table),
        issues_table=_env("CLEARANCE_ISSUES_TABLE", defaults.issues_table),
        results_table=_env("CLEARANCE_RESULTS_TABLE", defaults.results_table),
        documents_table=_env("CLEARANCE_DOCUMENTS_TABLE", defaults.documents_table),
        content_table=_env("CLEARANCE_CONTENT_TABLE", defaults.content_table),
        history_table=_env("CLEARANCE_HISTORY_TABLE", defaults.history_table),
        jobs_table=_env("CLEARANCE_JOBS_TABLE", defaults.jobs_table),
        worker_id=_env("WORKER_ID", f"worker-{os.getpid()}"),
        worker_poll_interval=poll_interval,
        log_level=(_env("LOG_LEVEL", defaults.log_level) or "INFO").upper(),
    )


def load_settings() -> ClearanceSettings:
    """Load .env (if present) and build settings. Used by entry points."""
    load_dotenv()
    return get_settings()
