"""
Severity mapping between the rules table and the dashboard.

The validation_severity enum in storage uses info/warning/error while
checks and issues use low/medium/high.
"""

from typing import Optional, Union

from clearance.schema import Severity

_FROM_DB = {
    "info": Severity.LOW,
    "warning": Severity.MEDIUM,
    "error": Severity.HIGH,
}

_TO_DB = {
    Severity.LOW: "info",
    Severity.MEDIUM: "warning",
    Severity.HIGH: "error",
}


def map_severity_from_db(db_severity: Optional[str]) -> Severity:
    """
    Map a stored severity onto the display scale.

    Rows that already carry low/medium/high are passed through; anything
    else becomes MEDIUM.
    """
    if db_severity is None:
        return Severity.MEDIUM
    key = str(db_severity).strip().lower()
    if key in _FROM_DB:
        return _FROM_DB[key]
    try:
        return Severity(key)
    except ValueError:
        return Severity.MEDIUM


def map_severity_to_db(severity: Union[Severity, str, None]) -> str:
    """Map a display severity onto the storage enum, 'warning' when unrecognized."""
    try:
        return _TO_DB[Severity(severity)]
    except (ValueError, KeyError):
        return "warning"
