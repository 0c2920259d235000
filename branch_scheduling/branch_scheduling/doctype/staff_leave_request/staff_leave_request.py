# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import getdate

from branch_scheduling.branch_scheduling.doctype.branch_scheduling_settings.branch_scheduling_settings import (
	get_scheduling_settings,
)
from branch_scheduling.branch_scheduling.scheduling.models import LeaveStatus
from branch_scheduling.branch_scheduling.scheduling.settings import initial_leave_status


class StaffLeaveRequest(Document):
	"""Solo las ausencias approved bloquean la disponibilidad del staff."""

	def before_insert(self) -> None:
		# Estado inicial según auto_approve_leave, salvo que venga explícito
		if not self.status:
			self.status = initial_leave_status(get_scheduling_settings())

	def validate(self) -> None:
		if not self.staff:
			frappe.throw(_("Staff es requerido"))

		if not self.start_date or not self.end_date:
			frappe.throw(_("Start Date y End Date son requeridos"))

		if getdate(self.start_date) > getdate(self.end_date):
			frappe.throw(_("Start Date no puede ser posterior a End Date"))

		if self.status and self.status not in LeaveStatus.ALL:
			frappe.throw(_(f"Status inválido: {self.status}"))
