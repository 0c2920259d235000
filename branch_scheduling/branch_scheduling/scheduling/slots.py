"""
Slot Generation Service

Generates bookable appointment start times, considering:
- Effective open intervals (working_hours.py)
- Service duration
- Existing non-cancelled appointments
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .intervals import MINUTES_PER_DAY, TimeSlot, TimeValue, contains, minutes_to_time, overlaps, to_minutes
from .models import Appointment, ScheduleSnapshot
from .settings import DEFAULT_SETTINGS, SchedulingSettings
from .working_hours import resolve_working_hours


def _busy_slots(appointments: Iterable) -> List[TimeSlot]:
	busy = []
	for appointment in appointments:
		if isinstance(appointment, Appointment):
			if not appointment.blocks:
				continue
			busy.append(appointment.slot)
		else:
			busy.append(appointment)
	return busy


def _check_positive(value: int, name: str) -> None:
	if value <= 0:
		raise ValueError(f"{name} must be greater than 0")


def available_time_slots(
	open_intervals: Sequence[TimeSlot],
	service_duration: int,
	granularity: int = DEFAULT_SETTINGS.slot_granularity_minutes,
	appointments: Iterable = ()
) -> List[TimeSlot]:
	"""
	Genera los slots [s, s+D) reservables.

	Algoritmo:
		1. Para cada intervalo abierto, recorrer inicios cada `granularity` minutos
		2. Aceptar s si [s, s+D) cabe completo en el intervalo
		3. Y si [s, s+D) no se solapa con ninguna cita existente
		4. Concatenar en orden cronológico

	Args:
		open_intervals: intervalos efectivos ordenados y disjuntos
		service_duration: duración del servicio (D) en minutos
		granularity: paso (G) en minutos
		appointments: citas existentes (Appointment o TimeSlot); las canceladas se ignoran

	Returns:
		list[TimeSlot]: puede estar vacía (sin disponibilidad, no es error)
	"""
	_check_positive(service_duration, "service_duration")
	_check_positive(granularity, "granularity")

	busy = _busy_slots(appointments)
	result = []

	for interval in sorted(open_intervals):
		start = interval.start
		# Un candidato nunca cruza al siguiente intervalo
		while start + service_duration <= interval.end:
			candidate = TimeSlot(start, start + service_duration)
			if contains(interval, candidate) and not any(overlaps(candidate, b) for b in busy):
				result.append(candidate)
			start += granularity

	return result


def generate_start_times(
	open_intervals: Sequence[TimeSlot],
	service_duration: int,
	granularity: int = DEFAULT_SETTINGS.slot_granularity_minutes,
	appointments: Iterable = ()
) -> List[str]:
	"""Bookable start times as "HH:MM" strings, in chronological order."""
	return [
		slot.start_time
		for slot in available_time_slots(open_intervals, service_duration, granularity, appointments)
	]


def get_bookable_start_times(
	snapshot: ScheduleSnapshot,
	service_duration: Optional[int] = None,
	staff_id: Optional[str] = None,
	location_id: Optional[str] = None,
	settings: SchedulingSettings = DEFAULT_SETTINGS,
	granularity: Optional[int] = None
) -> List[str]:
	"""
	Resolve effective hours and generate start times in one call.

	Appointments are taken from the snapshot, filtered to the staff member.
	"""
	open_intervals = resolve_working_hours(snapshot, staff_id, location_id, settings)
	if not open_intervals:
		return []

	appointments = [
		appointment for appointment in snapshot.appointments
		if staff_id is None or appointment.staff_id == staff_id
	]
	return generate_start_times(
		open_intervals,
		service_duration or settings.default_service_duration_minutes,
		granularity or settings.slot_granularity_minutes,
		appointments,
	)


def calculate_end_time(start_time: TimeValue, duration: int) -> str:
	"""
	End time "HH:MM" of a booking starting at start_time.

	Raises:
		ValueError: si la duración no es positiva o la cita pasa de medianoche
	"""
	_check_positive(duration, "duration")
	end = to_minutes(start_time) + duration
	if end > MINUTES_PER_DAY:
		raise ValueError(f"Booking ends after midnight ({minutes_to_time(end)})")
	return minutes_to_time(end)


def validate_appointment_slot(
	start_time: TimeValue,
	end_time: TimeValue,
	staff_slots: Iterable[TimeSlot]
) -> bool:
	"""True si la cita cabe completa dentro de algún slot del staff."""
	appointment = TimeSlot.from_times(start_time, end_time)
	return any(contains(slot, appointment) for slot in staff_slots)


def detect_appointment_conflicts(
	start_time: TimeValue,
	end_time: TimeValue,
	existing_appointments: Iterable[Appointment]
) -> List[Appointment]:
	"""Existing active appointments that overlap the proposed [start, end)."""
	proposed = TimeSlot.from_times(start_time, end_time)
	return [
		appointment for appointment in existing_appointments
		if appointment.blocks and overlaps(proposed, appointment.slot)
	]


@dataclass(frozen=True)
class StaffCandidate:
	staff_id: str
	open_intervals: Sequence[TimeSlot] = ()
	appointments: Sequence[Appointment] = field(default_factory=tuple)


def find_available_staff(
	start_time: TimeValue,
	service_duration: int,
	candidates: Iterable[StaffCandidate]
) -> List[str]:
	"""
	Staff que pueden atender una cita en start_time.

	Un staff califica si [start, start+D) cabe en alguno de sus intervalos
	y no choca con sus citas activas. Se respeta el orden de entrada.
	"""
	_check_positive(service_duration, "service_duration")
	start = to_minutes(start_time)
	requested = TimeSlot(start, start + service_duration)

	available = []
	for candidate in candidates:
		if not any(contains(slot, requested) for slot in candidate.open_intervals):
			continue
		if any(a.blocks and overlaps(requested, a.slot) for a in candidate.appointments):
			continue
		available.append(candidate.staff_id)
	return available
