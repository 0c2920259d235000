# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Schedule Date Override DocType

Excepción de horario para una fecha concreta. Sin staff aplica a toda la
sucursal (closed / custom_hours); con staff solo a ese staff
(unavailable / custom_hours / available).
"""

import frappe
from frappe import _
from frappe.model.document import Document

from branch_scheduling.branch_scheduling.scheduling.intervals import TimeSlot, overlaps, to_minutes
from branch_scheduling.branch_scheduling.scheduling.models import OverrideType


class ScheduleDateOverride(Document):
	def validate(self) -> None:
		if not self.branch:
			frappe.throw(_("Branch es requerido"))
		if not self.date:
			frappe.throw(_("Date es requerido"))

		self._validate_override_type()
		self._validate_time_slots()
		self._validate_unique_per_scope()

	def _validate_override_type(self) -> None:
		allowed = OverrideType.STAFF_TYPES if self.staff else OverrideType.LOCATION_TYPES
		if self.override_type not in allowed:
			scope = _("staff") if self.staff else _("sucursal")
			frappe.throw(
				_(f"Override Type '{self.override_type}' no es válido para un override de {scope}. "
				  f"Valores permitidos: {', '.join(allowed)}")
			)

	def _validate_time_slots(self) -> None:
		"""custom_hours requiere slots válidos; los demás tipos no usan slots."""
		if self.override_type != OverrideType.CUSTOM_HOURS:
			return

		if not self.time_slots:
			frappe.throw(_("Custom Hours requiere al menos un horario"))

		slots = []
		for row in self.time_slots:
			start = to_minutes(row.start_time)
			end = to_minutes(row.end_time)
			if start >= end:
				frappe.throw(_(f"Fila {row.idx}: Start Time debe ser menor que End Time"))
			slots.append(TimeSlot(start, end))

		ordered = sorted(slots)
		for current, following in zip(ordered, ordered[1:]):
			if overlaps(current, following):
				frappe.throw(_(f"Los horarios {current} y {following} se solapan"))

	def _validate_unique_per_scope(self) -> None:
		filters = {
			"branch": self.branch,
			"date": self.date,
			"staff": self.staff if self.staff else ["is", "not set"],
		}
		if not self.is_new():
			filters["name"] = ["!=", self.name]

		existing = frappe.db.exists("Schedule Date Override", filters)
		if existing:
			frappe.throw(
				_(f"Ya existe un override para esta fecha: {existing}"),
				frappe.DuplicateEntryError
			)
