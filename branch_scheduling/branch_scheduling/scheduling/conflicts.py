"""
Conflict Detection Service

Detects when a staff member's proposed hours at one branch overlap the
hours they already hold at other branches:
- Date assignments (one calendar date)
- Effective schedules at other branches (resolver applied)
- Weekly recurring schedules (weekday by weekday)

Detection is advisory: results are data, the caller decides whether to
cancel or force-save.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .intervals import TimeSlot, contains, normalize_slots, overlaps
from .models import (
	WEEKDAYS,
	Conflict,
	ConflictPair,
	DateAssignment,
	LocationSlots,
	ScheduleSnapshot,
	WeeklyConflict,
	WeeklyWorkingHours,
	to_date,
)
from .settings import DEFAULT_SETTINGS, SchedulingSettings
from .working_hours import resolve_working_hours


@dataclass(frozen=True)
class LocationSnapshot:
	location_id: str
	location_name: str
	snapshot: ScheduleSnapshot


@dataclass(frozen=True)
class LocationWeeklyHours:
	location_id: str
	location_name: str
	weekly_hours: WeeklyWorkingHours


def _conflicting_pairs(
	proposed_slots: Sequence[TimeSlot],
	existing_slots: Sequence[TimeSlot]
) -> List[ConflictPair]:
	# Orden: slots propuestos en el orden recibido, luego los existentes
	return [
		ConflictPair(proposed=proposed, existing=existing)
		for proposed in proposed_slots
		for existing in existing_slots
		if overlaps(proposed, existing)
	]


def _group_by_location(locations: Iterable[LocationSlots]) -> List[LocationSlots]:
	"""Collapse repeated locations into one entry, keeping first-seen order."""
	grouped: Dict[str, LocationSlots] = {}
	for location in locations:
		current = grouped.get(location.location_id)
		if current is None:
			grouped[location.location_id] = location
		else:
			grouped[location.location_id] = LocationSlots(
				current.location_id,
				current.location_name,
				current.slots + tuple(location.slots),
			)
	return list(grouped.values())


def location_slots_from_assignments(
	assignments: Iterable[DateAssignment],
	target_date: Union[date, str],
	staff_id: Optional[str] = None
) -> List[LocationSlots]:
	"""Turn a staff member's date assignments into per-location slot sets."""
	target_date = to_date(target_date)
	return _group_by_location(
		LocationSlots(
			assignment.location_id,
			assignment.location_name or assignment.location_id,
			tuple(normalize_slots(assignment.slots, sort=False)),
		)
		for assignment in assignments
		if assignment.date == target_date and (staff_id is None or assignment.staff_id == staff_id)
	)


def detect_date_conflicts(
	staff_id: str,
	staff_name: str,
	target_date: Union[date, str],
	home_location_id: str,
	proposed_slots: Iterable,
	other_locations: Iterable[LocationSlots]
) -> List[Conflict]:
	"""
	Detecta solapamientos entre los slots propuestos y los de otras sucursales.

	Algoritmo:
		1. Descartar slots propuestos malformados (conservando el orden)
		2. Ignorar la sucursal propia (home_location_id)
		3. Producto cruzado propuesto x existente, quedarse con los que se solapan
		4. Agrupar por sucursal en un Conflict

	Args:
		staff_id: id del staff
		staff_name: nombre para mostrar
		target_date: fecha de la asignación
		home_location_id: sucursal donde se propone la asignación
		proposed_slots: slots propuestos (TimeSlot o dicts)
		other_locations: slots del staff en otras sucursales esa misma fecha

	Returns:
		list[Conflict]: vacía si no hay conflictos
	"""
	target_date = to_date(target_date)
	proposed = normalize_slots(proposed_slots, sort=False)
	if not proposed:
		return []

	conflicts = []
	for location in _group_by_location(other_locations):
		if location.location_id == home_location_id:
			continue

		pairs = _conflicting_pairs(proposed, normalize_slots(location.slots, sort=False))
		if pairs:
			conflicts.append(Conflict(
				subject_id=staff_id,
				subject_name=staff_name,
				date=target_date,
				location_id=location.location_id,
				location_name=location.location_name,
				conflicting_pairs=tuple(pairs),
			))

	return conflicts


def detect_assignment_conflicts(
	staff_id: str,
	staff_name: str,
	target_date: Union[date, str],
	home_location_id: str,
	proposed_slots: Iterable,
	existing_assignments: Iterable[DateAssignment]
) -> List[Conflict]:
	"""detect_date_conflicts() fed from the staff member's other date assignments."""
	others = location_slots_from_assignments(existing_assignments, target_date, staff_id)
	return detect_date_conflicts(staff_id, staff_name, target_date, home_location_id, proposed_slots, others)


def detect_effective_conflicts(
	staff_id: str,
	staff_name: str,
	target_date: Union[date, str],
	home_location_id: str,
	proposed_slots: Iterable,
	other_schedules: Iterable[LocationSnapshot],
	settings: SchedulingSettings = DEFAULT_SETTINGS
) -> List[Conflict]:
	"""
	Como detect_date_conflicts, pero resolviendo primero el horario efectivo
	del staff en cada otra sucursal (ausencias y overrides incluidos).
	"""
	others = [
		LocationSlots(
			other.location_id,
			other.location_name,
			tuple(resolve_working_hours(other.snapshot, staff_id, other.location_id, settings)),
		)
		for other in other_schedules
		if other.location_id != home_location_id
	]
	return detect_date_conflicts(staff_id, staff_name, target_date, home_location_id, proposed_slots, others)


def detect_weekly_conflicts(
	new_hours: WeeklyWorkingHours,
	existing_schedules: Iterable[LocationWeeklyHours],
	current_location_id: str
) -> List[WeeklyConflict]:
	"""
	Detecta conflictos entre un horario semanal propuesto y los horarios
	semanales del mismo staff en otras sucursales.

	Returns:
		list[WeeklyConflict]: ordenados por día (lunes..domingo) y luego por sucursal
	"""
	existing_schedules = list(existing_schedules)
	conflicts = []

	for day in WEEKDAYS:
		new_day = new_hours.get(day)
		if not new_day or not new_day.is_open:
			continue

		for existing in existing_schedules:
			if existing.location_id == current_location_id:
				continue

			existing_day = existing.weekly_hours.get(day)
			if not existing_day or not existing_day.is_open:
				continue

			pairs = _conflicting_pairs(new_day.slots, existing_day.slots)
			if pairs:
				conflicts.append(WeeklyConflict(
					day=day,
					location_id=existing.location_id,
					location_name=existing.location_name,
					conflicting_pairs=tuple(pairs),
				))

	return conflicts


def group_conflicts_by_day(conflicts: Iterable[WeeklyConflict]) -> Dict[str, List[WeeklyConflict]]:
	grouped: Dict[str, List[WeeklyConflict]] = {}
	for conflict in conflicts:
		grouped.setdefault(conflict.day, []).append(conflict)
	return grouped


def validate_against_location_hours(
	slots: Iterable[TimeSlot],
	location_hours: Optional[Sequence[TimeSlot]]
) -> Tuple[bool, Optional[str]]:
	"""
	Valida que los slots del staff caben en el horario de la sucursal.

	Args:
		slots: slots del staff
		location_hours: resultado de resolve_location_hours()
			([] = cerrada, None = sin horario definido)

	Returns:
		(valid, message)
	"""
	if location_hours is not None and not location_hours:
		return False, "Branch is closed on this date"

	if location_hours is None:
		return False, "Branch operating hours not defined for this date"

	for slot in slots:
		if not any(contains(open_slot, slot) for open_slot in location_hours):
			return False, f"Staff hours {slot.start_time}-{slot.end_time} exceed branch operating hours"

	return True, None
