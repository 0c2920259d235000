"""
Scheduling Validators

Input-boundary validation for the scheduling endpoints and DocTypes.
Malformed input is rejected here so the engine can assume well-formed
dates and time slots.
"""

import json
import re
from datetime import datetime
import frappe
from frappe import _
from frappe.utils import cint
from typing import Any, List

from branch_scheduling.branch_scheduling.scheduling.intervals import TimeSlot, minutes_to_time, overlaps, to_minutes

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")
MAX_DOCNAME_LENGTH = 140
UNSAFE_DOCNAME_RE = re.compile(
    r"<script|javascript:|\b(SELECT|INSERT|UPDATE|DELETE|DROP|UNION)\s+|--|;",
    re.IGNORECASE
)


def validate_date_string(date_str: str, field_name: str = "date") -> str:
    """Require an existing calendar date in YYYY-MM-DD form and return it stripped."""
    if not date_str:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    date_str = str(date_str).strip()
    if not DATE_RE.match(date_str):
        frappe.throw(_(f"Invalid {field_name} format. Use YYYY-MM-DD"), frappe.ValidationError)

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError:
        frappe.throw(_(f"Invalid {field_name}: {date_str} is not a calendar date"), frappe.ValidationError)

    return date_str


def validate_time_string(time_str: str, field_name: str = "time") -> str:
    """
    Validate a wall-clock time (HH:MM or HH:MM:SS) and normalize it to HH:MM.

    Raises:
        frappe.ValidationError: If the time is missing or out of range
    """
    if not time_str:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    time_str = str(time_str).strip()

    if not TIME_RE.match(time_str):
        frappe.throw(_(f"Invalid {field_name} format. Use HH:MM"), frappe.ValidationError)

    try:
        minutes = to_minutes(time_str)
    except ValueError:
        frappe.throw(_(f"Invalid {field_name}: {time_str}"), frappe.ValidationError)

    return minutes_to_time(minutes)


def validate_positive_int(value: Any, field_name: str) -> int:
    """Validate a strictly positive integer (minutes, counts)."""
    number = cint(value)
    if number <= 0:
        frappe.throw(_(f"{field_name} must be greater than 0"), frappe.ValidationError)
    return number


def validate_time_slots(time_slots: Any, field_name: str = "time_slots") -> List[TimeSlot]:
    """
    Validate a list of {"start", "end"} slots.

    Accepts a list or its JSON string (as sent by frappe.call).
    Each slot must have start < end and slots must not overlap each other.

    Returns:
        list[TimeSlot]: slots in the order received

    Raises:
        frappe.ValidationError: If any slot is malformed or slots overlap
    """
    if isinstance(time_slots, str):
        try:
            time_slots = json.loads(time_slots)
        except ValueError:
            frappe.throw(_(f"Invalid {field_name}: expected a JSON list"), frappe.ValidationError)

    if not isinstance(time_slots, list) or not time_slots:
        frappe.throw(_(f"{field_name} must be a non-empty list"), frappe.ValidationError)

    slots = []
    for idx, raw in enumerate(time_slots, 1):
        if not isinstance(raw, dict):
            frappe.throw(_(f"{field_name} row {idx}: expected an object"), frappe.ValidationError)

        start = validate_time_string(raw.get("start") or raw.get("start_time"), f"{field_name} row {idx} start")
        end = validate_time_string(raw.get("end") or raw.get("end_time"), f"{field_name} row {idx} end")

        if to_minutes(start) >= to_minutes(end):
            frappe.throw(
                _(f"{field_name} row {idx}: start ({start}) must be before end ({end})"),
                frappe.ValidationError,
            )
        slots.append(TimeSlot.from_times(start, end))

    ordered = sorted(slots)
    for current, following in zip(ordered, ordered[1:]):
        if overlaps(current, following):
            frappe.throw(
                _(f"{field_name}: {current} overlaps with {following}"),
                frappe.ValidationError,
            )

    return slots


def validate_docname(name: str, field_name: str = "name") -> str:
    """
    Validate a document name received from the client.

    Names longer than 140 characters or carrying markup or SQL keywords are rejected.
    """
    if not name:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    name = str(name).strip()
    if len(name) > MAX_DOCNAME_LENGTH or UNSAFE_DOCNAME_RE.search(name):
        frappe.throw(_(f"Invalid {field_name}"), frappe.ValidationError)

    return name
