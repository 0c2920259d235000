"""
Conflict Message Formatter

Renders conflict records as stable, human-readable text for the
confirmation prompt shown before force-saving an assignment.
"""

from datetime import date
from typing import Iterable

from .models import Conflict, ConflictPair, WeeklyConflict

PAIR_SEPARATOR = ", "
LOCATION_SEPARATOR = "\n"


def format_pair(pair: ConflictPair) -> str:
	return f"{pair.proposed.start_time}-{pair.proposed.end_time} overlaps with {pair.existing.start_time}-{pair.existing.end_time}"


def format_conflict_message(conflicts: Iterable[Conflict]) -> str:
	"""
	Mensaje resumido: una línea por sucursal.

	Example:
		"Branch A: 10:00-11:00 overlaps with 09:00-12:00"

	Returns:
		str: "" si no hay conflictos
	"""
	return LOCATION_SEPARATOR.join(
		f"{conflict.location_name}: " + PAIR_SEPARATOR.join(format_pair(p) for p in conflict.conflicting_pairs)
		for conflict in conflicts
		if conflict.conflicting_pairs
	)


def format_weekly_conflict_message(conflicts: Iterable[WeeklyConflict]) -> str:
	"""One line per (weekday, branch), e.g. "Monday at Branch A: 10:00-11:00 overlaps with 09:00-12:00"."""
	return LOCATION_SEPARATOR.join(
		f"{conflict.day.capitalize()} at {conflict.location_name}: "
		+ PAIR_SEPARATOR.join(format_pair(p) for p in conflict.conflicting_pairs)
		for conflict in conflicts
		if conflict.conflicting_pairs
	)


def format_overlap_duration(minutes: int) -> str:
	hours, mins = divmod(minutes, 60)
	if hours > 0:
		return f"{hours}h {mins}m"
	return f"{mins}m"


def _display_date(value: date) -> str:
	return f"{value:%b} {value.day}, {value.year}"


def format_conflict_details(conflicts: Iterable[Conflict]) -> str:
	"""
	Mensaje detallado: una línea por par en conflicto, con la duración del solapamiento.
	"""
	lines = []
	for conflict in conflicts:
		for pair in conflict.conflicting_pairs:
			lines.append(
				f"{conflict.subject_name} is already scheduled at {conflict.location_name} "
				f"on {_display_date(conflict.date)} from {pair.existing.start_time} to {pair.existing.end_time}. "
				f"Conflict duration: {format_overlap_duration(pair.overlap_minutes)}"
			)
	return "\n".join(lines)
