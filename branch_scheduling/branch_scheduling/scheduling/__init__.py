"""
Scheduling Services Module

This module provides the availability & conflict engine:
- Interval primitives (intervals.py)
- Engine records and settings (models.py, settings.py)
- Effective working hours resolution (working_hours.py)
- Bookable start time generation (slots.py)
- Cross-branch conflict detection (conflicts.py)
- Conflict messages (formatting.py)
- Staff utilization metrics (utilization.py)
- Frappe record loaders (loaders.py)

Everything except loaders.py is pure and does not import frappe.
"""
