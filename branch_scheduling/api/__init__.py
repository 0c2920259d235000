"""
Branch Scheduling API

Structure:
    api/
    ├── __init__.py              # This file
    ├── schedule_api.py          # Whitelisted endpoints
    └── shared/                  # Shared utilities
        ├── __init__.py          # Re-exports
        ├── security.py          # Rate limiting, sanitization
        └── validators.py        # Date, time and time-slot validators

Usage:
    frappe.call("branch_scheduling.api.schedule_api.get_available_start_times", ...)
"""

from . import shared

__all__ = [
    "shared",
]
