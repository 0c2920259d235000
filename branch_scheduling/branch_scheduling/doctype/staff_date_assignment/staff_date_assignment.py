# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Staff Date Assignment DocType

Asignación puntual de un staff a una sucursal en una fecha.
Antes de guardar se detectan solapamientos con las otras sucursales del staff.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint, getdate

from branch_scheduling.branch_scheduling.exceptions import StaffScheduleConflictError
from branch_scheduling.branch_scheduling.scheduling.conflicts import (
	detect_assignment_conflicts,
	validate_against_location_hours,
)
from branch_scheduling.branch_scheduling.scheduling.formatting import format_conflict_message
from branch_scheduling.branch_scheduling.scheduling.intervals import TimeSlot, overlaps, to_minutes
from branch_scheduling.branch_scheduling.scheduling.loaders import (
	get_staff_name,
	load_branch_hours,
	load_date_assignments,
	logger,
)


class StaffDateAssignment(Document):
	"""
	Validations:
	- staff, branch, date requeridos
	- al menos un time slot, cada uno con start < end
	- slots sin solapamiento entre sí
	- slots dentro del horario de la sucursal (si está definido)
	- sin conflictos con otras sucursales (salvo ignore_conflicts)
	"""

	def validate(self) -> None:
		self._validate_required_fields()
		slots = self._validate_time_slots()
		self._validate_branch_hours(slots)
		self._check_cross_branch_conflicts(slots)

	def _validate_required_fields(self) -> None:
		if not self.staff:
			frappe.throw(_("Staff es requerido"))
		if not self.branch:
			frappe.throw(_("Branch es requerido"))
		if not self.date:
			frappe.throw(_("Date es requerido"))

	def _validate_time_slots(self) -> list:
		if not self.time_slots:
			frappe.throw(_("Debe definir al menos un horario"))

		slots = []
		for row in self.time_slots:
			if not row.start_time or not row.end_time:
				frappe.throw(_(f"Fila {row.idx}: Start Time y End Time son requeridos"))

			start = to_minutes(row.start_time)
			end = to_minutes(row.end_time)
			if start >= end:
				frappe.throw(_(f"Fila {row.idx}: Start Time debe ser menor que End Time"))
			slots.append(TimeSlot(start, end))

		ordered = sorted(slots)
		for current, following in zip(ordered, ordered[1:]):
			if overlaps(current, following):
				frappe.throw(_(f"Los horarios {current} y {following} se solapan"))

		return slots

	def _validate_branch_hours(self, slots: list) -> None:
		"""Los slots deben caber en el horario de la sucursal, si la sucursal lo tiene definido."""
		branch_hours = load_branch_hours(self.branch, self.date)
		if branch_hours is None:
			return

		valid, message = validate_against_location_hours(slots, branch_hours)
		if not valid:
			frappe.throw(_(message))

	def _check_cross_branch_conflicts(self, slots: list) -> None:
		"""
		Detecta solapamientos con asignaciones del mismo staff en otras sucursales.

		Sin ignore_conflicts lanza StaffScheduleConflictError con el detalle.
		Con ignore_conflicts guarda igual y solo registra el conflicto.
		"""
		target_date = getdate(self.date)
		existing = load_date_assignments(
			self.staff,
			target_date,
			exclude_name=self.name if not self.is_new() else None
		)

		conflicts = detect_assignment_conflicts(
			self.staff,
			get_staff_name(self.staff),
			target_date,
			self.branch,
			slots,
			existing
		)
		if not conflicts:
			return

		message = format_conflict_message(conflicts)

		if cint(self.ignore_conflicts):
			logger().info(
				f"Staff Date Assignment {self.name}: guardada con {len(conflicts)} conflicto(s)\n{message}"
			)
			return

		frappe.throw(
			_("El staff ya tiene horario en otra sucursal:") + "\n" + message,
			StaffScheduleConflictError,
			title=_("Conflicto de horario"),
		)
