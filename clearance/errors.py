"""
Exception types raised by the clearance package.
"""


class ClearanceError(Exception):
    """Base class for document clearance failures."""


class ConfigurationError(ClearanceError):
    """Supabase credentials or other required settings are missing."""


class RuleStoreError(ClearanceError):
    """Validation rules could not be read from the rule store."""


class PersistenceError(ClearanceError):
    """Validation results or document state could not be written."""


class DocumentNotFoundError(ClearanceError):
    """The requested document row does not exist."""

    def __init__(self, document_id: str):
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class InvalidTransitionError(ClearanceError):
    """A manual status change was requested from a status that does not allow it."""


class InvalidJobError(ClearanceError):
    """A queued job's payload cannot be processed on any attempt."""
