"""
Schedule API Endpoints

Whitelisted functions for the booking frontend and the back office.
Guest lookups (start times, available staff) are rate limited by IP.
"""

import json
import frappe
from frappe import _
from frappe.utils import cint, getdate
from typing import Any, Dict, List, Optional

from branch_scheduling.api.shared import (
	check_rate_limit,
	sanitize_string,
	validate_date_string,
	validate_docname,
	validate_positive_int,
	validate_time_slots,
	validate_time_string,
)
from branch_scheduling.branch_scheduling.doctype.branch_scheduling_settings.branch_scheduling_settings import (
	get_scheduling_settings,
)
from branch_scheduling.branch_scheduling.scheduling.conflicts import (
	detect_assignment_conflicts,
	detect_effective_conflicts,
	detect_weekly_conflicts,
	group_conflicts_by_day,
)
from branch_scheduling.branch_scheduling.scheduling.formatting import (
	format_conflict_details,
	format_conflict_message,
	format_weekly_conflict_message,
)
from branch_scheduling.branch_scheduling.scheduling.loaders import (
	get_staff_name,
	load_date_assignments,
	load_other_branch_snapshots,
	load_other_branch_weekly_hours,
	load_schedule_range_snapshot,
	load_schedule_snapshot,
	logger,
)
from branch_scheduling.branch_scheduling.scheduling.models import OverrideType, parse_weekly_hours
from branch_scheduling.branch_scheduling.scheduling.slots import (
	StaffCandidate,
	find_available_staff,
	get_bookable_start_times,
)
from branch_scheduling.branch_scheduling.scheduling.utilization import calculate_staff_utilization
from branch_scheduling.branch_scheduling.scheduling.working_hours import (
	resolve_effective_schedule,
	resolve_working_hours_range,
)


def _require(doctype: str, name: str) -> None:
	if not frappe.db.exists(doctype, name):
		frappe.throw(_(f"{doctype} '{name}' no existe"), frappe.DoesNotExistError)


def _parse_json_list(value: Any, field_name: str) -> List[Any]:
	if isinstance(value, str):
		try:
			value = json.loads(value)
		except ValueError:
			frappe.throw(_(f"Invalid {field_name}: expected a JSON list"), frappe.ValidationError)
	if not isinstance(value, list):
		frappe.throw(_(f"{field_name} must be a list"), frappe.ValidationError)
	return value


@frappe.whitelist(allow_guest=True, methods=["GET"])
def get_available_start_times(
	staff: str,
	branch: str,
	date: str,
	service_duration: Optional[int] = None,
	granularity: Optional[int] = None
) -> List[str]:
	"""
	Horas de inicio reservables de un staff en una sucursal y fecha.

	Rate limited: 30 requests per minute per IP.

	Args:
		staff: Staff Member
		branch: Branch
		date: fecha (YYYY-MM-DD)
		service_duration: minutos (default: Branch Scheduling Settings)
		granularity: paso en minutos (default: Branch Scheduling Settings)

	Returns:
		list[str]: ["09:00", "09:15", ...]; vacía si no hay disponibilidad

	Example:
		```javascript
		frappe.call({
			method: "branch_scheduling.api.schedule_api.get_available_start_times",
			args: {staff: "STAFF-0001", branch: "Centro", date: "2025-03-10", service_duration: 30},
		});
		```
	"""
	check_rate_limit("get_available_start_times", limit=30, seconds=60)

	staff = validate_docname(staff, "staff")
	branch = validate_docname(branch, "branch")
	date = validate_date_string(date, "date")
	if service_duration:
		service_duration = validate_positive_int(service_duration, "service_duration")
	if granularity:
		granularity = validate_positive_int(granularity, "granularity")

	try:
		_require("Staff Member", staff)
		_require("Branch", branch)

		snapshot = load_schedule_snapshot(staff, branch, getdate(date), use_date_assignments=True)
		return get_bookable_start_times(
			snapshot,
			service_duration=service_duration or None,
			staff_id=staff,
			location_id=branch,
			settings=get_scheduling_settings(),
			granularity=granularity or None,
		)

	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in get_available_start_times: {str(e)}", "API Error")
		frappe.throw(_("Error al obtener horarios disponibles"))


@frappe.whitelist(methods=["GET"])
def get_effective_hours(staff: str, branch: str, date: str) -> Dict[str, Any]:
	"""
	Horario efectivo del staff en la sucursal para una fecha.

	Returns:
		dict: {"date": "2025-03-10", "schedule_type": "regular",
		       "slots": [{"start": "09:00", "end": "17:00"}]}
	"""
	staff = validate_docname(staff, "staff")
	branch = validate_docname(branch, "branch")
	date = validate_date_string(date, "date")

	try:
		_require("Staff Member", staff)
		_require("Branch", branch)

		snapshot = load_schedule_snapshot(staff, branch, getdate(date), use_date_assignments=True)
		return resolve_effective_schedule(snapshot, staff, branch, get_scheduling_settings()).to_dict()

	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in get_effective_hours: {str(e)}", "API Error")
		frappe.throw(_("Error al obtener el horario efectivo"))


@frappe.whitelist(methods=["GET", "POST"])
def get_effective_availability(staff: str, branch: str, from_date: str, to_date: str) -> Dict[str, Any]:
	"""
	Disponibilidad efectiva día por día en un rango.

	Returns:
		dict: {"2025-03-10": [{"start": "09:00", "end": "17:00"}], ...} solo fechas disponibles
	"""
	staff = validate_docname(staff, "staff")
	branch = validate_docname(branch, "branch")
	start_date = getdate(validate_date_string(from_date, "from_date"))
	end_date = getdate(validate_date_string(to_date, "to_date"))

	if start_date > end_date:
		frappe.throw(_("from_date debe ser menor o igual que to_date"))
	if (end_date - start_date).days > 92:
		frappe.throw(_("El rango no puede superar 92 días"))

	try:
		snapshot = load_schedule_range_snapshot(staff, branch, start_date, end_date)
		availability = resolve_working_hours_range(
			start_date, end_date, snapshot, staff, branch, get_scheduling_settings()
		)
		return {
			day: [slot.to_dict() for slot in slots]
			for day, slots in availability.items()
		}

	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in get_effective_availability: {str(e)}", "API Error")
		frappe.throw(_("Error al obtener la disponibilidad"))


@frappe.whitelist(methods=["POST"])
def check_date_assignment_conflicts(
	staff: str,
	branch: str,
	date: str,
	time_slots: Any,
	include_schedules: Any = 0
) -> Dict[str, Any]:
	"""
	Verifica si una asignación propuesta choca con otras sucursales del staff.

	Se usa antes de guardar para mostrar el aviso de confirmación.
	Con include_schedules se compara contra el horario efectivo del staff en
	cada otra sucursal (semanal, overrides y ausencias) en vez de solo sus
	asignaciones puntuales.

	Returns:
		dict: {
			"has_conflicts": bool,
			"conflicts": [Conflict.to_dict(), ...],
			"message": "Sucursal B: 10:00-11:00 overlaps with 09:00-12:00",
			"details": mensaje detallado con duración de cada solapamiento
		}
	"""
	staff = validate_docname(staff, "staff")
	branch = validate_docname(branch, "branch")
	target_date = getdate(validate_date_string(date, "date"))
	proposed = validate_time_slots(time_slots)

	try:
		if cint(include_schedules):
			conflicts = detect_effective_conflicts(
				staff,
				get_staff_name(staff),
				target_date,
				branch,
				proposed,
				load_other_branch_snapshots(staff, branch, target_date),
				get_scheduling_settings()
			)
		else:
			conflicts = detect_assignment_conflicts(
				staff,
				get_staff_name(staff),
				target_date,
				branch,
				proposed,
				load_date_assignments(staff, target_date)
			)
		if conflicts:
			logger().info(f"{staff} {target_date}: {len(conflicts)} conflicto(s) de asignación")

		return {
			"has_conflicts": bool(conflicts),
			"conflicts": [conflict.to_dict() for conflict in conflicts],
			"message": format_conflict_message(conflicts),
			"details": format_conflict_details(conflicts),
		}

	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in check_date_assignment_conflicts: {str(e)}", "API Error")
		frappe.throw(_("Error al verificar conflictos"))


@frappe.whitelist(methods=["POST"])
def check_weekly_schedule_conflicts(staff: str, branch: str, weekly_hours: Any) -> Dict[str, Any]:
	"""
	Verifica un horario semanal propuesto contra los horarios del staff en otras sucursales.

	Args:
		weekly_hours: {"monday": {"closed": false, "slots": [{"start", "end"}]}, ...}

	Returns:
		dict: {"has_conflicts", "conflicts", "by_day", "message"}
	"""
	staff = validate_docname(staff, "staff")
	branch = validate_docname(branch, "branch")

	if isinstance(weekly_hours, str):
		try:
			weekly_hours = json.loads(weekly_hours)
		except ValueError:
			frappe.throw(_("Invalid weekly_hours: expected a JSON object"), frappe.ValidationError)
	if not isinstance(weekly_hours, dict):
		frappe.throw(_("weekly_hours must be an object"), frappe.ValidationError)

	try:
		conflicts = detect_weekly_conflicts(
			parse_weekly_hours(weekly_hours),
			load_other_branch_weekly_hours(staff, branch),
			branch
		)
		return {
			"has_conflicts": bool(conflicts),
			"conflicts": [conflict.to_dict() for conflict in conflicts],
			"by_day": {
				day: [conflict.to_dict() for conflict in day_conflicts]
				for day, day_conflicts in group_conflicts_by_day(conflicts).items()
			},
			"message": format_weekly_conflict_message(conflicts),
		}

	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in check_weekly_schedule_conflicts: {str(e)}", "API Error")
		frappe.throw(_("Error al verificar conflictos semanales"))


def _branch_staff(branch: str, target_date) -> List[str]:
	"""Staff con horario semanal activo o asignación en la sucursal esa fecha."""
	staff_ids = frappe.get_all(
		"Staff Branch Schedule",
		filters={"branch": branch, "is_active": 1},
		pluck="staff",
		order_by="creation asc"
	)
	assigned = frappe.get_all(
		"Staff Date Assignment",
		filters={"branch": branch, "date": target_date},
		pluck="staff",
		order_by="creation asc"
	)
	for staff in assigned:
		if staff not in staff_ids:
			staff_ids.append(staff)
	return staff_ids


@frappe.whitelist(allow_guest=True, methods=["GET", "POST"])
def get_available_staff(
	branch: str,
	date: str,
	start_time: str,
	service_duration: Optional[int] = None,
	staff_ids: Any = None
) -> List[str]:
	"""
	Staff que pueden atender una cita en la sucursal, fecha y hora dadas.

	Rate limited: 30 requests per minute per IP.

	Args:
		staff_ids: lista (o JSON) de Staff Member a evaluar; por defecto todo el
			staff con horario en la sucursal

	Returns:
		list[str]: ids de staff en el orden evaluado
	"""
	check_rate_limit("get_available_staff", limit=30, seconds=60)

	branch = validate_docname(branch, "branch")
	target_date = getdate(validate_date_string(date, "date"))
	start_time = validate_time_string(start_time, "start_time")

	settings = get_scheduling_settings()
	duration = (
		validate_positive_int(service_duration, "service_duration")
		if service_duration else settings.default_service_duration_minutes
	)

	if staff_ids:
		staff_ids = [validate_docname(s, "staff") for s in _parse_json_list(staff_ids, "staff_ids")]
	else:
		staff_ids = _branch_staff(branch, target_date)

	try:
		candidates = []
		for staff in staff_ids:
			snapshot = load_schedule_snapshot(staff, branch, target_date, use_date_assignments=True)
			candidates.append(StaffCandidate(
				staff_id=staff,
				open_intervals=tuple(resolve_effective_schedule(snapshot, staff, branch, settings).slots),
				appointments=tuple(snapshot.appointments),
			))

		return find_available_staff(start_time, duration, candidates)

	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in get_available_staff: {str(e)}", "API Error")
		frappe.throw(_("Error al buscar staff disponible"))


@frappe.whitelist(methods=["GET"])
def get_staff_utilization(staff: str, branch: str, date: str) -> Dict[str, Any]:
	"""
	Ocupación del staff en una fecha: minutos disponibles vs reservados.

	Returns:
		dict: calculate_staff_utilization() (status: underbooked | optimal | overbooked)
	"""
	staff = validate_docname(staff, "staff")
	branch = validate_docname(branch, "branch")
	target_date = getdate(validate_date_string(date, "date"))

	try:
		snapshot = load_schedule_snapshot(staff, branch, target_date, use_date_assignments=True)
		slots = resolve_effective_schedule(snapshot, staff, branch, get_scheduling_settings()).slots
		appointments = [a for a in snapshot.appointments if a.location_id == branch]
		return calculate_staff_utilization(staff, get_staff_name(staff), slots, appointments)

	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in get_staff_utilization: {str(e)}", "API Error")
		frappe.throw(_("Error al calcular la ocupación"))


@frappe.whitelist(methods=["POST"])
def upsert_date_override(
	branch: str,
	date: str,
	override_type: str,
	time_slots: Any = None,
	staff: Optional[str] = None,
	reason: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Crea o actualiza el override de una fecha (uno por sucursal/staff y fecha).

	Returns:
		dict: {"name": "SDO-0001", "created": True}
	"""
	branch = validate_docname(branch, "branch")
	date = validate_date_string(date, "date")
	staff = validate_docname(staff, "staff") if staff else None
	reason = sanitize_string(reason)

	slots = []
	if override_type == OverrideType.CUSTOM_HOURS:
		slots = validate_time_slots(time_slots)

	try:
		existing = frappe.db.get_value(
			"Schedule Date Override",
			{"branch": branch, "date": date, "staff": staff if staff else ["is", "not set"]},
			"name"
		)

		if existing:
			doc = frappe.get_doc("Schedule Date Override", existing)
		else:
			doc = frappe.new_doc("Schedule Date Override")
			doc.branch = branch
			doc.date = date
			doc.staff = staff

		doc.override_type = override_type
		doc.reason = reason
		doc.set("time_slots", [{"start_time": s.start_time, "end_time": s.end_time} for s in slots])
		doc.save()

		return {"name": doc.name, "created": not existing}

	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in upsert_date_override: {str(e)}", "API Error")
		frappe.throw(_("Error al guardar el override"))
