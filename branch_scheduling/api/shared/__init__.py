"""
Shared utilities for Branch Scheduling API.
"""

from .security import check_rate_limit, get_client_ip, sanitize_string
from .validators import (
    validate_date_string,
    validate_docname,
    validate_positive_int,
    validate_time_slots,
    validate_time_string,
)

__all__ = [
    "check_rate_limit",
    "get_client_ip",
    "sanitize_string",
    "validate_date_string",
    "validate_docname",
    "validate_positive_int",
    "validate_time_slots",
    "validate_time_string",
]
