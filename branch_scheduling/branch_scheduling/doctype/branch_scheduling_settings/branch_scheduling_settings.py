# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Branch Scheduling Settings DocType (Single)

Configuración del motor de agenda a nivel de sitio.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint

from branch_scheduling.branch_scheduling.scheduling.settings import (
	ASSIGNMENT_MODES,
	DEFAULT_SETTINGS,
	SchedulingSettings,
)


class BranchSchedulingSettings(Document):
	"""
	Validations:
	- slot_granularity_minutes > 0
	- default_service_duration_minutes > 0
	- date_assignment_mode in ("replace", "additive")
	"""

	def validate(self) -> None:
		if self.slot_granularity_minutes is not None and cint(self.slot_granularity_minutes) <= 0:
			frappe.throw(_("Slot Granularity debe ser mayor que 0"))

		if self.default_service_duration_minutes is not None and cint(self.default_service_duration_minutes) <= 0:
			frappe.throw(_("Default Service Duration debe ser mayor que 0"))

		if self.date_assignment_mode and self.date_assignment_mode not in ASSIGNMENT_MODES:
			frappe.throw(_(f"Date Assignment Mode inválido: {self.date_assignment_mode}"))


def get_scheduling_settings() -> SchedulingSettings:
	"""
	Lee Branch Scheduling Settings y lo convierte al registro del motor.
	Los campos vacíos toman el valor por defecto.
	"""
	doc = frappe.get_cached_doc("Branch Scheduling Settings")

	auto_approve = doc.auto_approve_leave
	return SchedulingSettings(
		slot_granularity_minutes=cint(doc.slot_granularity_minutes) or DEFAULT_SETTINGS.slot_granularity_minutes,
		default_service_duration_minutes=(
			cint(doc.default_service_duration_minutes) or DEFAULT_SETTINGS.default_service_duration_minutes
		),
		auto_approve_leave=DEFAULT_SETTINGS.auto_approve_leave if auto_approve is None else bool(cint(auto_approve)),
		date_assignment_mode=doc.date_assignment_mode or DEFAULT_SETTINGS.date_assignment_mode,
	)
