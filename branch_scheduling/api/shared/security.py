"""
Security Utilities for Public Booking Lookups

Rate limiting by client IP and free-text sanitization for the endpoints
that allow guest access.
"""

import re
from typing import Optional

import frappe
from frappe import _
from frappe.utils import cint


def get_client_ip() -> str:
    """Client IP address, honouring proxy headers."""
    if not getattr(frappe.local, "request", None):
        return "local"

    forwarded_for = frappe.request.headers.get("X-Forwarded-For", "")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()

    real_ip = frappe.request.headers.get("X-Real-IP", "")
    if real_ip:
        return real_ip.strip()

    return frappe.request.remote_addr or "unknown"


def check_rate_limit(action: str, limit: int = 30, seconds: int = 60) -> None:
    """
    Limit requests per IP for an action, counting in Frappe's cache (Redis).

    Raises:
        frappe.TooManyRequestsError: If the limit was reached in the window
    """
    ip = get_client_ip()
    cache_key = f"rate_limit:branch_scheduling:{action}:{ip}"

    current = cint(frappe.cache.get_value(cache_key) or 0)
    if current >= limit:
        frappe.logger("branch_scheduling").warning(
            f"Rate limit exceeded. IP: {ip}, Action: {action}, Limit: {limit}/{seconds}s"
        )
        frappe.throw(
            _("Too many requests. Please wait a moment and try again."),
            frappe.TooManyRequestsError
        )

    frappe.cache.set_value(cache_key, current + 1, expires_in_sec=seconds)


def sanitize_string(value: Optional[str], max_length: int = 500) -> Optional[str]:
    """Strip, truncate and drop control characters. Empty input returns None."""
    if not value:
        return None

    value = str(value).strip()[:max_length]
    return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)
