"""
Scheduling Records

Read-only records consumed by the engine. The Frappe layer builds them
from DocType rows (see loaders.py); tests build them directly.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .intervals import TimeSlot, normalize_slots, overlap_minutes

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class OverrideType:
	CLOSED = "closed"
	UNAVAILABLE = "unavailable"
	CUSTOM_HOURS = "custom_hours"
	# Stored by the staff calendar; has no effect on resolution
	AVAILABLE = "available"

	STAFF_TYPES = (UNAVAILABLE, CUSTOM_HOURS, AVAILABLE)
	LOCATION_TYPES = (CLOSED, CUSTOM_HOURS)


class LeaveStatus:
	PENDING = "pending"
	APPROVED = "approved"
	REJECTED = "rejected"

	ALL = (PENDING, APPROVED, REJECTED)


class AppointmentStatus:
	SCHEDULED = "scheduled"
	IN_PROGRESS = "in_progress"
	COMPLETED = "completed"
	CANCELLED = "cancelled"
	NO_SHOW = "no_show"

	ALL = (SCHEDULED, IN_PROGRESS, COMPLETED, CANCELLED, NO_SHOW)


class ScheduleType:
	REGULAR = "regular"
	CUSTOM = "custom"
	ASSIGNED = "assigned"
	UNAVAILABLE = "unavailable"
	CLOSED = "closed"


def to_date(value: Union[date, str]) -> date:
	"""Accept a date or a YYYY-MM-DD string."""
	if isinstance(value, date):
		return value
	return date.fromisoformat(str(value).strip()[:10])


def weekday_name(target_date: date) -> str:
	return WEEKDAYS[target_date.weekday()]


@dataclass(frozen=True)
class DaySchedule:
	"""Horario de un día de la semana: cerrado o lista de slots."""

	closed: bool = True
	slots: Tuple[TimeSlot, ...] = ()

	@property
	def is_open(self) -> bool:
		return not self.closed and bool(self.slots)

	@classmethod
	def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DaySchedule":
		if not data:
			return cls()
		slots = tuple(normalize_slots(data.get("slots")))
		# Branch hours use a single open/close pair per day
		if not slots and data.get("open") and data.get("close"):
			slots = tuple(normalize_slots([data]))
		return cls(closed=bool(data.get("closed")), slots=slots)


WeeklyWorkingHours = Dict[str, DaySchedule]


def parse_weekly_hours(raw: Optional[Dict[str, Any]]) -> WeeklyWorkingHours:
	"""
	Convierte el JSON de horario semanal a {weekday: DaySchedule}.

	Las claves se normalizan a minúsculas ("Monday" -> "monday").
	Los días ausentes quedan cerrados.
	"""
	weekly = {day: DaySchedule() for day in WEEKDAYS}
	for key, value in (raw or {}).items():
		day = str(key).lower()
		if day not in weekly:
			continue
		weekly[day] = value if isinstance(value, DaySchedule) else DaySchedule.from_dict(value)
	return weekly


def weekly_hours_from_rows(rows: Iterable[Any]) -> WeeklyWorkingHours:
	"""
	Build weekly hours from child-table rows (weekday, start_time, end_time).

	Days without rows are closed; malformed rows are skipped.
	"""
	by_day: Dict[str, List[Any]] = {}
	for row in rows:
		weekday = row.get("weekday") if isinstance(row, dict) else getattr(row, "weekday", None)
		if weekday:
			by_day.setdefault(str(weekday).lower(), []).append(row)

	return parse_weekly_hours({
		day: DaySchedule(closed=False, slots=tuple(normalize_slots(day_rows)))
		for day, day_rows in by_day.items()
	})


@dataclass(frozen=True)
class DateOverride:
	"""
	Override for one calendar date.

	`staff_id` None means the override is scoped to the location alone.
	"""

	date: date
	override_type: str
	slots: Tuple[TimeSlot, ...] = ()
	location_id: Optional[str] = None
	staff_id: Optional[str] = None
	reason: Optional[str] = None

	@property
	def is_location_scope(self) -> bool:
		return self.staff_id is None


@dataclass(frozen=True)
class LeaveRequest:
	start_date: date
	end_date: date
	status: str = LeaveStatus.PENDING
	staff_id: Optional[str] = None
	leave_type: Optional[str] = None

	def covers(self, target_date: date) -> bool:
		return self.start_date <= target_date <= self.end_date

	@property
	def is_approved(self) -> bool:
		return self.status == LeaveStatus.APPROVED


@dataclass(frozen=True)
class DateAssignment:
	staff_id: str
	location_id: str
	date: date
	slots: Tuple[TimeSlot, ...] = ()
	location_name: Optional[str] = None
	reason: Optional[str] = None


@dataclass(frozen=True)
class Appointment:
	staff_id: str
	location_id: str
	date: date
	start: int
	end: int
	status: str = AppointmentStatus.SCHEDULED
	name: Optional[str] = None

	@property
	def slot(self) -> TimeSlot:
		return TimeSlot(self.start, self.end)

	@property
	def is_active(self) -> bool:
		return self.status != AppointmentStatus.CANCELLED

	@property
	def is_valid(self) -> bool:
		return self.start < self.end

	@property
	def blocks(self) -> bool:
		"""Active and well formed. Malformed bookings are skipped, never raised."""
		return self.is_active and self.is_valid


@dataclass(frozen=True)
class LocationSlots:
	"""The slots a worker holds at one location on the date being checked."""

	location_id: str
	location_name: str
	slots: Tuple[TimeSlot, ...] = ()


@dataclass(frozen=True)
class ConflictPair:
	proposed: TimeSlot
	existing: TimeSlot

	@property
	def overlap_minutes(self) -> int:
		return overlap_minutes(self.proposed, self.existing)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"proposed": self.proposed.to_dict(),
			"existing": self.existing.to_dict(),
			"overlap_minutes": self.overlap_minutes,
		}


@dataclass(frozen=True)
class Conflict:
	subject_id: str
	subject_name: str
	date: date
	location_id: str
	location_name: str
	conflicting_pairs: Tuple[ConflictPair, ...] = ()

	def to_dict(self) -> Dict[str, Any]:
		return {
			"subject_id": self.subject_id,
			"subject_name": self.subject_name,
			"date": self.date.isoformat(),
			"location_id": self.location_id,
			"location_name": self.location_name,
			"conflicting_pairs": [pair.to_dict() for pair in self.conflicting_pairs],
		}


@dataclass(frozen=True)
class WeeklyConflict:
	day: str
	location_id: str
	location_name: str
	conflicting_pairs: Tuple[ConflictPair, ...] = ()

	def to_dict(self) -> Dict[str, Any]:
		return {
			"day": self.day,
			"location_id": self.location_id,
			"location_name": self.location_name,
			"conflicting_pairs": [pair.to_dict() for pair in self.conflicting_pairs],
		}


@dataclass(frozen=True)
class EffectiveSchedule:
	"""Resultado del resolver: slots efectivos y la regla que decidió."""

	date: date
	slots: Tuple[TimeSlot, ...] = ()
	schedule_type: str = ScheduleType.CLOSED
	decided_by: Optional[str] = None

	@property
	def is_available(self) -> bool:
		return bool(self.slots)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"date": self.date.isoformat(),
			"schedule_type": self.schedule_type,
			"slots": [slot.to_dict() for slot in self.slots],
		}


@dataclass
class ScheduleSnapshot:
	"""
	Everything the resolver needs for one (staff, location, date).

	Built once per request by the caller; the engine never mutates it.
	"""

	target_date: date
	weekly_hours: WeeklyWorkingHours = field(default_factory=dict)
	overrides: List[DateOverride] = field(default_factory=list)
	leave_requests: List[LeaveRequest] = field(default_factory=list)
	date_assignments: Optional[List[DateAssignment]] = None
	location_overrides: List[DateOverride] = field(default_factory=list)
	location_weekly_hours: Optional[WeeklyWorkingHours] = None
	appointments: List[Appointment] = field(default_factory=list)
