"""
Working-Hours Resolver

Computes the effective open intervals of a staff member at a branch on
one date, merging:
- Approved leave requests
- Staff date overrides (unavailable, custom hours)
- Ad-hoc date assignments
- Weekly recurring schedule
- Branch-level date overrides and opening hours (clamp)

Precedence is an ordered chain of rules; each rule returns a decision
or None ("no opinion") and the first decision wins.
"""

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .intervals import TimeSlot, intersect_intervals, merge_intervals, normalize_slots
from .models import (
	DateOverride,
	EffectiveSchedule,
	LeaveRequest,
	OverrideType,
	ScheduleSnapshot,
	ScheduleType,
	WeeklyWorkingHours,
	to_date,
	weekday_name,
)
from .settings import ASSIGNMENT_MODE_ADDITIVE, DEFAULT_SETTINGS, SchedulingSettings


@dataclass(frozen=True)
class ResolutionContext:
	snapshot: ScheduleSnapshot
	staff_id: Optional[str] = None
	location_id: Optional[str] = None
	settings: SchedulingSettings = DEFAULT_SETTINGS

	@property
	def target_date(self) -> date:
		return self.snapshot.target_date


@dataclass(frozen=True)
class RuleDecision:
	slots: List[TimeSlot]
	schedule_type: str


def _clean(slots: Iterable) -> List[TimeSlot]:
	# Touching slots stay separate so a booking never bridges two of them
	return merge_intervals(normalize_slots(slots), merge_adjacent=False)


def _same(expected: Optional[str], actual: Optional[str]) -> bool:
	"""A record matches when either side leaves the key unspecified."""
	return expected is None or actual is None or expected == actual


def is_on_leave(
	target_date: Union[date, str],
	leave_requests: Iterable[LeaveRequest],
	staff_id: Optional[str] = None
) -> bool:
	"""
	True si hay una ausencia aprobada que cubre la fecha (inclusive).

	Las ausencias pending o rejected no afectan la disponibilidad.
	"""
	target_date = to_date(target_date)
	return any(
		leave.is_approved and leave.covers(target_date) and _same(staff_id, leave.staff_id)
		for leave in leave_requests
	)


def find_staff_override(context: ResolutionContext) -> Optional[DateOverride]:
	"""First staff-scoped override for (staff, location, date), if any."""
	for override in context.snapshot.overrides:
		if override.is_location_scope:
			continue
		if override.date != context.target_date:
			continue
		if not _same(context.staff_id, override.staff_id):
			continue
		if not _same(context.location_id, override.location_id):
			continue
		return override
	return None


class ResolutionRule:
	"""Base rule. Subclasses return a RuleDecision or None."""

	name = "rule"

	def resolve(self, context: ResolutionContext) -> Optional[RuleDecision]:
		raise NotImplementedError


class ApprovedLeaveRule(ResolutionRule):
	name = "approved_leave"

	def resolve(self, context: ResolutionContext) -> Optional[RuleDecision]:
		if is_on_leave(context.target_date, context.snapshot.leave_requests, context.staff_id):
			return RuleDecision([], ScheduleType.UNAVAILABLE)
		return None


class StaffUnavailableRule(ResolutionRule):
	name = "staff_unavailable"

	def resolve(self, context: ResolutionContext) -> Optional[RuleDecision]:
		override = find_staff_override(context)
		if override and override.override_type == OverrideType.UNAVAILABLE:
			return RuleDecision([], ScheduleType.UNAVAILABLE)
		return None


class StaffCustomHoursRule(ResolutionRule):
	name = "staff_custom_hours"

	def resolve(self, context: ResolutionContext) -> Optional[RuleDecision]:
		override = find_staff_override(context)
		if override and override.override_type == OverrideType.CUSTOM_HOURS:
			# Reemplaza el horario semanal, no se combina
			return RuleDecision(_clean(override.slots), ScheduleType.CUSTOM)
		return None


class DateAssignmentRule(ResolutionRule):
	"""
	Ad-hoc assignment for (staff, location, date).

	Only consulted when the caller supplies date assignments. In
	"additive" mode the weekly slots of that day are merged in.
	"""

	name = "date_assignment"

	def resolve(self, context: ResolutionContext) -> Optional[RuleDecision]:
		assignments = context.snapshot.date_assignments
		if assignments is None:
			return None

		matching = [
			assignment for assignment in assignments
			if assignment.date == context.target_date
			and _same(context.staff_id, assignment.staff_id)
			and _same(context.location_id, assignment.location_id)
		]
		if not matching:
			return None

		slots = [slot for assignment in matching for slot in assignment.slots]
		if context.settings.date_assignment_mode == ASSIGNMENT_MODE_ADDITIVE:
			slots.extend(_weekly_slots(context))

		return RuleDecision(_clean(slots), ScheduleType.ASSIGNED)


class WeeklyScheduleRule(ResolutionRule):
	name = "weekly_schedule"

	def resolve(self, context: ResolutionContext) -> Optional[RuleDecision]:
		slots = _weekly_slots(context)
		if not slots:
			return RuleDecision([], ScheduleType.CLOSED)
		return RuleDecision(slots, ScheduleType.REGULAR)


def _weekly_slots(context: ResolutionContext) -> List[TimeSlot]:
	day = context.snapshot.weekly_hours.get(weekday_name(context.target_date))
	if not day or not day.is_open:
		return []
	return _clean(day.slots)


DEFAULT_RULES = (
	ApprovedLeaveRule(),
	StaffUnavailableRule(),
	StaffCustomHoursRule(),
	DateAssignmentRule(),
	WeeklyScheduleRule(),
)


def resolve_location_hours(
	target_date: Union[date, str],
	weekly_hours: Optional[WeeklyWorkingHours] = None,
	overrides: Iterable[DateOverride] = ()
) -> Optional[List[TimeSlot]]:
	"""
	Horario de apertura de la sucursal para una fecha.

	Prioridad: override de fecha > horario semanal.

	Returns:
		None si no hay datos (sin restricción), [] si está cerrada,
		o la lista de intervalos abiertos
	"""
	target_date = to_date(target_date)

	for override in overrides:
		if not override.is_location_scope or override.date != target_date:
			continue
		if override.override_type == OverrideType.CLOSED:
			return []
		if override.override_type == OverrideType.CUSTOM_HOURS:
			return _clean(override.slots)

	if weekly_hours is None:
		return None

	day = weekly_hours.get(weekday_name(target_date))
	if not day or not day.is_open:
		return []
	return _clean(day.slots)


def _location_overrides(snapshot: ScheduleSnapshot, location_id: Optional[str]) -> List[DateOverride]:
	"""Location-scoped overrides from either list of the snapshot."""
	candidates = list(snapshot.location_overrides)
	candidates.extend(o for o in snapshot.overrides if o.is_location_scope)
	return [o for o in candidates if _same(location_id, o.location_id)]


def resolve_effective_schedule(
	snapshot: ScheduleSnapshot,
	staff_id: Optional[str] = None,
	location_id: Optional[str] = None,
	settings: SchedulingSettings = DEFAULT_SETTINGS,
	rules: Optional[Sequence[ResolutionRule]] = None
) -> EffectiveSchedule:
	"""
	Resuelve el horario efectivo de un staff en una sucursal y fecha.

	Algoritmo:
		1. Recorrer las reglas en orden; la primera con decisión gana
		2. Obtener el horario de la sucursal (overrides + semanal)
		3. Si la sucursal tiene horario, intersectar (clamp)
		4. Retornar slots ordenados y disjuntos

	Args:
		snapshot: datos leídos por el caller para esa fecha
		staff_id: staff a resolver (None = no filtrar registros por staff)
		location_id: sucursal (None = no filtrar registros por sucursal)
		settings: configuración del motor
		rules: cadena de reglas (None = DEFAULT_RULES; [] = ninguna regla, cerrado)

	Returns:
		EffectiveSchedule
	"""
	context = ResolutionContext(snapshot, staff_id, location_id, settings)

	decision = RuleDecision([], ScheduleType.CLOSED)
	decided_by = None
	for rule in DEFAULT_RULES if rules is None else rules:
		result = rule.resolve(context)
		if result is not None:
			decision = result
			decided_by = rule.name
			break

	slots = decision.slots
	schedule_type = decision.schedule_type

	location_hours = resolve_location_hours(
		snapshot.target_date,
		snapshot.location_weekly_hours,
		_location_overrides(snapshot, location_id)
	)
	if location_hours is not None:
		if not location_hours:
			slots = []
			schedule_type = ScheduleType.CLOSED
		elif slots:
			slots = intersect_intervals(slots, location_hours)

	return EffectiveSchedule(
		date=snapshot.target_date,
		slots=tuple(slots),
		schedule_type=schedule_type,
		decided_by=decided_by,
	)


def resolve_working_hours(
	snapshot: ScheduleSnapshot,
	staff_id: Optional[str] = None,
	location_id: Optional[str] = None,
	settings: SchedulingSettings = DEFAULT_SETTINGS,
	rules: Optional[Sequence[ResolutionRule]] = None
) -> List[TimeSlot]:
	"""Effective open intervals for (staff, location, date). May be empty."""
	return list(resolve_effective_schedule(snapshot, staff_id, location_id, settings, rules).slots)


def get_schedule_type(
	snapshot: ScheduleSnapshot,
	staff_id: Optional[str] = None,
	location_id: Optional[str] = None,
	settings: SchedulingSettings = DEFAULT_SETTINGS
) -> str:
	return resolve_effective_schedule(snapshot, staff_id, location_id, settings).schedule_type


def resolve_working_hours_range(
	start_date: Union[date, str],
	end_date: Union[date, str],
	snapshot: ScheduleSnapshot,
	staff_id: Optional[str] = None,
	location_id: Optional[str] = None,
	settings: SchedulingSettings = DEFAULT_SETTINGS
) -> Dict[str, List[TimeSlot]]:
	"""
	Disponibilidad efectiva para un rango de fechas.

	Returns:
		dict: {"2025-03-10": [TimeSlot, ...], ...} solo fechas con disponibilidad
	"""
	start_date = to_date(start_date)
	end_date = to_date(end_date)

	result = {}
	current_date = start_date
	while current_date <= end_date:
		slots = resolve_working_hours(
			replace(snapshot, target_date=current_date), staff_id, location_id, settings
		)
		if slots:
			result[current_date.isoformat()] = slots
		current_date += timedelta(days=1)

	return result

