# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Branch Appointment DocType

Cita de un cliente con un staff en una sucursal. Valida que el horario
cabe en el horario efectivo del staff y que no choca con otras citas.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint, getdate

from branch_scheduling.branch_scheduling.doctype.branch_scheduling_settings.branch_scheduling_settings import (
	get_scheduling_settings,
)
from branch_scheduling.branch_scheduling.scheduling.intervals import to_minutes
from branch_scheduling.branch_scheduling.scheduling.loaders import load_schedule_snapshot
from branch_scheduling.branch_scheduling.scheduling.models import AppointmentStatus
from branch_scheduling.branch_scheduling.scheduling.slots import (
	calculate_end_time,
	detect_appointment_conflicts,
	validate_appointment_slot,
)
from branch_scheduling.branch_scheduling.scheduling.working_hours import resolve_working_hours


class BranchAppointment(Document):
	"""
	Flujo:
	1. Si falta end_time se calcula desde service_duration
	2. Se valida contra el horario efectivo del staff (ausencias, overrides, sucursal)
	3. Se valida que no choca con otras citas activas del staff ese día
	"""

	def validate(self) -> None:
		"""
		Ejecuta:
		1. Validar campos requeridos
		2. Calcular end_time si es necesario
		3. Validar consistencia de horario
		4. Validar disponibilidad y colisiones (citas activas)
		"""
		self._validate_required_fields()
		self._calculate_end_time()
		self._validate_time_consistency()

		if self.status == AppointmentStatus.CANCELLED:
			return

		self._validate_availability_and_conflicts()

	# ===== VALIDATION METHODS =====

	def _validate_required_fields(self) -> None:
		if not self.staff:
			frappe.throw(_("Staff es requerido"))
		if not self.branch:
			frappe.throw(_("Branch es requerido"))
		if not self.date:
			frappe.throw(_("Date es requerido"))
		if not self.start_time:
			frappe.throw(_("Start Time es requerido"))

		if not self.status:
			self.status = AppointmentStatus.SCHEDULED
		elif self.status not in AppointmentStatus.ALL:
			frappe.throw(_(f"Status inválido: {self.status}"))

	def _calculate_end_time(self) -> None:
		"""Completa end_time con start_time + service_duration (o la duración por defecto)."""
		if self.end_time:
			return

		duration = cint(self.service_duration) or get_scheduling_settings().default_service_duration_minutes
		try:
			self.end_time = calculate_end_time(self.start_time, duration)
		except ValueError:
			frappe.throw(_(f"La cita termina después de medianoche ({self.start_time} + {duration} min)"))

	def _validate_time_consistency(self) -> None:
		"""Valida que start_time < end_time."""
		if to_minutes(self.start_time) >= to_minutes(self.end_time):
			frappe.throw(_("Start Time debe ser menor que End Time"))

	def _validate_availability_and_conflicts(self) -> None:
		target_date = getdate(self.date)
		snapshot = load_schedule_snapshot(
			self.staff,
			self.branch,
			target_date,
			use_date_assignments=True,
			exclude_appointment=self.name if not self.is_new() else None
		)
		staff_slots = resolve_working_hours(snapshot, self.staff, self.branch, get_scheduling_settings())

		if not staff_slots:
			frappe.throw(
				_(f"El staff no tiene disponibilidad en {target_date.strftime('%Y-%m-%d')} en esta sucursal")
			)

		if not validate_appointment_slot(self.start_time, self.end_time, staff_slots):
			frappe.throw(
				_(f"El horario {self.start_time}-{self.end_time} está fuera del horario del staff")
			)

		conflicts = detect_appointment_conflicts(self.start_time, self.end_time, snapshot.appointments)
		if conflicts:
			names = ", ".join(a.name or str(a.slot) for a in conflicts)
			frappe.throw(
				_(f"El staff ya tiene cita(s) en este horario: {names}")
			)
