"""
Branch Scheduling Exceptions
"""

import frappe


class StaffScheduleConflictError(frappe.ValidationError):
	"""
	Raised when a staff schedule overlaps the staff member's hours at
	another branch. The message carries the formatted conflict list; the
	user may resubmit with ignore_conflicts to force-save.
	"""

	pass
