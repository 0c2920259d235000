"""
Schedule Loaders

Reads schedule DocTypes and builds the read-only records the engine
consumes. This is the only scheduling module that talks to the database.
"""

import frappe
from frappe.utils import getdate
from datetime import date
from typing import Dict, List, Optional, Union

from .intervals import TimeSlot, normalize_slots, to_minutes
from .models import (
	Appointment,
	AppointmentStatus,
	DateAssignment,
	DateOverride,
	LeaveRequest,
	LeaveStatus,
	ScheduleSnapshot,
	WeeklyWorkingHours,
	weekly_hours_from_rows,
)
from .conflicts import LocationSnapshot, LocationWeeklyHours
from .working_hours import resolve_location_hours

SLOT_FIELDS = ["parent", "start_time", "end_time"]


def logger():
	return frappe.logger("branch_scheduling")


def _slot_rows_by_parent(child_doctype: str, parenttype: str, parents: List[str]) -> Dict[str, list]:
	"""
	Obtiene filas de la tabla hija agrupadas por documento padre.

	Args:
		child_doctype: "Schedule Time Slot" o "Weekly Time Slot"
		parenttype: DocType padre
		parents: nombres de los documentos padre

	Returns:
		dict: {parent_name: [rows ordenadas por idx]}
	"""
	if not parents:
		return {}

	rows = frappe.get_all(
		child_doctype,
		filters={"parent": ["in", parents], "parenttype": parenttype},
		fields=SLOT_FIELDS,
		order_by="idx asc"
	)

	grouped: Dict[str, list] = {}
	for row in rows:
		grouped.setdefault(row.parent, []).append(row)
	return grouped


def _slots(rows: list, context: str) -> tuple:
	slots = normalize_slots(rows, sort=False)
	if len(slots) != len(rows):
		logger().warning(
			f"{context}: {len(rows) - len(slots)} slot(s) malformados ignorados"
		)
	return tuple(slots)


def get_branch_name(branch: str) -> str:
	return frappe.db.get_value("Branch", branch, "branch_name") or branch


def get_staff_name(staff: str) -> str:
	return frappe.db.get_value("Staff Member", staff, "full_name") or staff


def load_weekly_hours(staff: str, branch: str) -> WeeklyWorkingHours:
	"""Weekly schedule of a staff member at a branch; all days closed if none is configured."""
	schedule_name = frappe.db.get_value(
		"Staff Branch Schedule",
		{"staff": staff, "branch": branch, "is_active": 1},
		"name"
	)
	if not schedule_name:
		return weekly_hours_from_rows([])

	rows = frappe.get_all(
		"Weekly Time Slot",
		filters={"parent": schedule_name, "parenttype": "Staff Branch Schedule"},
		fields=["weekday", "start_time", "end_time"],
		order_by="idx asc"
	)
	return weekly_hours_from_rows(rows)


def load_branch_weekly_hours(branch: str) -> Optional[WeeklyWorkingHours]:
	"""Opening hours of the branch, or None when the branch has none configured."""
	rows = frappe.get_all(
		"Weekly Time Slot",
		filters={"parent": branch, "parenttype": "Branch", "parentfield": "opening_hours"},
		fields=["weekday", "start_time", "end_time"],
		order_by="idx asc"
	)
	if not rows:
		return None
	return weekly_hours_from_rows(rows)


def _load_overrides(filters: dict) -> List[DateOverride]:
	records = frappe.get_all(
		"Schedule Date Override",
		filters=filters,
		fields=["name", "branch", "staff", "date", "override_type", "reason"],
		order_by="creation asc"
	)
	slot_rows = _slot_rows_by_parent(
		"Schedule Time Slot", "Schedule Date Override", [r.name for r in records]
	)

	return [
		DateOverride(
			date=getdate(record.date),
			override_type=record.override_type,
			slots=_slots(slot_rows.get(record.name, []), record.name),
			location_id=record.branch,
			staff_id=record.staff or None,
			reason=record.reason,
		)
		for record in records
	]


def load_staff_overrides(staff: str, branch: str, target_date: date) -> List[DateOverride]:
	return _load_overrides({"staff": staff, "branch": branch, "date": target_date})


def load_branch_overrides(branch: str, target_date: date) -> List[DateOverride]:
	return _load_overrides({"branch": branch, "date": target_date, "staff": ["is", "not set"]})


def load_date_overrides(branch: str, target_date: date, staff: Optional[str] = None) -> List[DateOverride]:
	"""Overrides of a staff member at a branch, or branch-level ones when staff is None."""
	if staff:
		return load_staff_overrides(staff, branch, target_date)
	return load_branch_overrides(branch, target_date)


def load_branch_hours(branch: str, target_date: Union[date, str]) -> Optional[List[TimeSlot]]:
	"""
	Horario de apertura de la sucursal en una fecha.

	Returns:
		None si la sucursal no tiene horario configurado, [] si está cerrada
	"""
	target_date = getdate(target_date)
	return resolve_location_hours(
		target_date,
		load_branch_weekly_hours(branch),
		load_branch_overrides(branch, target_date)
	)


def load_leave_requests(
	staff: str,
	target_date: Optional[date] = None,
	end_date: Optional[date] = None
) -> List[LeaveRequest]:
	"""
	Ausencias pending/approved del staff.

	Solo approved afecta disponibilidad; pending se carga para mostrarla.
	Con end_date se cargan las que tocan el rango [target_date, end_date].
	"""
	filters = {"staff": staff, "status": ["in", [LeaveStatus.PENDING, LeaveStatus.APPROVED]]}
	if target_date:
		filters["start_date"] = ["<=", end_date or target_date]
		filters["end_date"] = [">=", target_date]

	records = frappe.get_all(
		"Staff Leave Request",
		filters=filters,
		fields=["staff", "start_date", "end_date", "leave_type", "status"]
	)
	return [
		LeaveRequest(
			start_date=getdate(r.start_date),
			end_date=getdate(r.end_date),
			status=r.status,
			staff_id=r.staff,
			leave_type=r.leave_type,
		)
		for r in records
	]


def load_date_assignments(
	staff: str,
	target_date: date,
	exclude_name: Optional[str] = None
) -> List[DateAssignment]:
	"""All date assignments of a staff member on a date, at every branch."""
	filters = {"staff": staff, "date": target_date}
	if exclude_name:
		filters["name"] = ["!=", exclude_name]

	return _load_assignments(filters)


def _load_assignments(filters: dict) -> List[DateAssignment]:
	records = frappe.get_all(
		"Staff Date Assignment",
		filters=filters,
		fields=["name", "staff", "branch", "date", "reason"],
		order_by="creation asc"
	)
	slot_rows = _slot_rows_by_parent(
		"Schedule Time Slot", "Staff Date Assignment", [r.name for r in records]
	)

	return [
		DateAssignment(
			staff_id=record.staff,
			location_id=record.branch,
			date=getdate(record.date),
			slots=_slots(slot_rows.get(record.name, []), record.name),
			location_name=get_branch_name(record.branch),
			reason=record.reason,
		)
		for record in records
	]


def load_active_appointments(
	staff: str,
	target_date: date,
	exclude_name: Optional[str] = None
) -> List[Appointment]:
	"""Non-cancelled appointments of a staff member on a date (any branch)."""
	filters = {
		"staff": staff,
		"date": target_date,
		"status": ["!=", AppointmentStatus.CANCELLED],
	}
	if exclude_name:
		filters["name"] = ["!=", exclude_name]

	records = frappe.get_all(
		"Branch Appointment",
		filters=filters,
		fields=["name", "staff", "branch", "date", "start_time", "end_time", "status"],
		order_by="start_time asc"
	)

	appointments = []
	for r in records:
		start = to_minutes(r.start_time)
		end = to_minutes(r.end_time)
		if start >= end:
			logger().warning(f"Branch Appointment {r.name}: horario inválido ignorado")
			continue
		appointments.append(Appointment(
			staff_id=r.staff,
			location_id=r.branch,
			date=getdate(r.date),
			start=start,
			end=end,
			status=r.status,
			name=r.name,
		))
	return appointments


def load_schedule_snapshot(
	staff: str,
	branch: str,
	target_date: Union[date, str],
	use_date_assignments: bool = False,
	exclude_appointment: Optional[str] = None
) -> ScheduleSnapshot:
	"""
	Lee todo lo necesario para resolver (staff, sucursal, fecha).

	Args:
		staff: Staff Member
		branch: Branch
		target_date: fecha
		use_date_assignments: incluir Staff Date Assignment en la resolución
		exclude_appointment: cita a excluir (para ediciones)

	Returns:
		ScheduleSnapshot
	"""
	target_date = getdate(target_date)

	return ScheduleSnapshot(
		target_date=target_date,
		weekly_hours=load_weekly_hours(staff, branch),
		overrides=load_date_overrides(branch, target_date, staff),
		leave_requests=load_leave_requests(staff, target_date),
		date_assignments=(
			[a for a in load_date_assignments(staff, target_date) if a.location_id == branch]
			if use_date_assignments else None
		),
		location_overrides=load_date_overrides(branch, target_date),
		location_weekly_hours=load_branch_weekly_hours(branch),
		appointments=load_active_appointments(staff, target_date, exclude_appointment),
	)


def _other_schedule_branches(staff: str, exclude_branch: str) -> List[str]:
	return frappe.get_all(
		"Staff Branch Schedule",
		filters={"staff": staff, "is_active": 1, "branch": ["!=", exclude_branch]},
		pluck="branch",
		order_by="creation asc"
	)


def load_other_branch_weekly_hours(staff: str, exclude_branch: str) -> List[LocationWeeklyHours]:
	"""Weekly schedules of a staff member at every branch except exclude_branch."""
	return [
		LocationWeeklyHours(branch, get_branch_name(branch), load_weekly_hours(staff, branch))
		for branch in _other_schedule_branches(staff, exclude_branch)
	]


def load_other_branch_snapshots(
	staff: str,
	exclude_branch: str,
	target_date: Union[date, str]
) -> List[LocationSnapshot]:
	"""
	Snapshots del staff en las demás sucursales para una fecha.

	Incluye sucursales con horario semanal activo o con asignación ese día.
	"""
	target_date = getdate(target_date)
	branches = _other_schedule_branches(staff, exclude_branch)
	for assignment in load_date_assignments(staff, target_date):
		if assignment.location_id != exclude_branch and assignment.location_id not in branches:
			branches.append(assignment.location_id)

	return [
		LocationSnapshot(
			branch,
			get_branch_name(branch),
			load_schedule_snapshot(staff, branch, target_date, use_date_assignments=True)
		)
		for branch in branches
	]


def load_schedule_range_snapshot(
	staff: str,
	branch: str,
	start_date: Union[date, str],
	end_date: Union[date, str]
) -> ScheduleSnapshot:
	"""
	Snapshot que cubre un rango de fechas, para resolve_working_hours_range.

	Cada registro conserva su fecha y el resolver filtra por día, así que
	basta una consulta por DocType. No incluye citas.
	"""
	start_date = getdate(start_date)
	end_date = getdate(end_date)
	date_range = ["between", [start_date, end_date]]

	return ScheduleSnapshot(
		target_date=start_date,
		weekly_hours=load_weekly_hours(staff, branch),
		overrides=_load_overrides({"staff": staff, "branch": branch, "date": date_range}),
		leave_requests=load_leave_requests(staff, start_date, end_date),
		date_assignments=_load_assignments({"staff": staff, "branch": branch, "date": date_range}),
		location_overrides=_load_overrides({"branch": branch, "date": date_range, "staff": ["is", "not set"]}),
		location_weekly_hours=load_branch_weekly_hours(branch),
	)
