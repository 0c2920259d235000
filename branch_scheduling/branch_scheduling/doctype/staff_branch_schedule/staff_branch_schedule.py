# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Staff Branch Schedule DocType

Horario semanal recurrente de un staff en una sucursal.
Tabla hija: Weekly Time Slot (weekday, start_time, end_time).
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint

from branch_scheduling.branch_scheduling.exceptions import StaffScheduleConflictError
from branch_scheduling.branch_scheduling.scheduling.conflicts import detect_weekly_conflicts
from branch_scheduling.branch_scheduling.scheduling.formatting import format_weekly_conflict_message
from branch_scheduling.branch_scheduling.scheduling.intervals import to_minutes
from branch_scheduling.branch_scheduling.scheduling.loaders import load_other_branch_weekly_hours, logger
from branch_scheduling.branch_scheduling.scheduling.models import WEEKDAYS, weekly_hours_from_rows


class StaffBranchSchedule(Document):
	"""
	Validations:
	- un solo horario activo por (staff, branch)
	- weekday válido y start_time < end_time en cada fila
	- sin solapamientos dentro del mismo día
	- sin conflictos con los horarios del staff en otras sucursales (salvo ignore_conflicts)
	"""

	def validate(self) -> None:
		self._validate_unique_active()
		self._validate_rows()
		if cint(self.is_active):
			self._check_weekly_conflicts()

	def _validate_unique_active(self) -> None:
		if not cint(self.is_active):
			return

		filters = {"staff": self.staff, "branch": self.branch, "is_active": 1}
		if not self.is_new():
			filters["name"] = ["!=", self.name]

		existing = frappe.db.exists("Staff Branch Schedule", filters)
		if existing:
			frappe.throw(_(f"El staff ya tiene un horario activo en esta sucursal: {existing}"))

	def _validate_rows(self) -> None:
		by_day = {}
		for row in self.weekly_slots or []:
			weekday = (row.weekday or "").lower()
			if weekday not in WEEKDAYS:
				frappe.throw(_(f"Fila {row.idx}: Weekday inválido '{row.weekday}'"))

			start = to_minutes(row.start_time)
			end = to_minutes(row.end_time)
			if start >= end:
				frappe.throw(_(f"Fila {row.idx}: Start Time debe ser menor que End Time"))
			by_day.setdefault(weekday, []).append((start, end, row.idx))

		for weekday, ranges in by_day.items():
			ranges.sort()
			for (_start, current_end, _idx), (next_start, _end, next_idx) in zip(ranges, ranges[1:]):
				if next_start < current_end:
					frappe.throw(_(f"Fila {next_idx}: se solapa con otro horario del {weekday}"))

	def _check_weekly_conflicts(self) -> None:
		conflicts = detect_weekly_conflicts(
			weekly_hours_from_rows(self.weekly_slots or []),
			load_other_branch_weekly_hours(self.staff, self.branch),
			self.branch
		)
		if not conflicts:
			return

		message = format_weekly_conflict_message(conflicts)

		if cint(self.ignore_conflicts):
			logger().info(f"Staff Branch Schedule {self.name}: guardado con {len(conflicts)} conflicto(s)\n{message}")
			return

		frappe.throw(
			_("El staff ya tiene horario en otra sucursal:") + "\n" + message,
			StaffScheduleConflictError,
			title=_("Conflicto de horario"),
		)
