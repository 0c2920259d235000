"""
Interval Primitives

Half-open wall-clock intervals on a single civil date.
Times travel as zero-padded "HH:MM" strings at the edges and are
normalized to integer minutes since midnight internally.
"""

from dataclasses import dataclass
from datetime import time, timedelta
from typing import Any, Iterable, List, Optional, Union

MINUTES_PER_DAY = 24 * 60

TimeValue = Union[str, int, time, timedelta]


def to_minutes(value: TimeValue) -> int:
	"""
	Convierte un valor de tiempo a minutos desde medianoche.

	Args:
		value: "HH:MM", "HH:MM:SS", minutos (int), time o timedelta (desde medianoche)

	Returns:
		int: minutos desde medianoche (0..1440)

	Raises:
		ValueError: si el valor no se puede interpretar
	"""
	if isinstance(value, bool):
		raise ValueError(f"Cannot convert {type(value)} to minutes")
	if isinstance(value, int):
		minutes = value
	elif isinstance(value, time):
		minutes = value.hour * 60 + value.minute
	elif isinstance(value, timedelta):
		minutes = int(value.total_seconds() // 60)
	elif isinstance(value, str):
		parts = value.strip().split(":")
		if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
			raise ValueError(f"Invalid time '{value}'. Use HH:MM")
		hours, mins = int(parts[0]), int(parts[1])
		if mins > 59:
			raise ValueError(f"Invalid time '{value}'. Use HH:MM")
		minutes = hours * 60 + mins
	else:
		raise ValueError(f"Cannot convert {type(value)} to minutes")

	# 24:00 is accepted as end of day
	if minutes < 0 or minutes > MINUTES_PER_DAY:
		raise ValueError(f"Time out of range: {value}")

	return minutes


def minutes_to_time(minutes: int) -> str:
	"""Format minutes since midnight as zero-padded HH:MM."""
	hours, mins = divmod(minutes, 60)
	return f"{hours:02d}:{mins:02d}"


@dataclass(frozen=True, order=True)
class TimeSlot:
	"""
	Intervalo semiabierto [start, end) en minutos desde medianoche.

	Invariante: start < end. Los slots vacíos o invertidos se rechazan
	al construirlos; usar normalize_slots() para datos no confiables.
	"""

	start: int
	end: int

	def __post_init__(self) -> None:
		if self.start >= self.end:
			raise ValueError(
				f"TimeSlot start must be before end ({minutes_to_time(self.start)}-{minutes_to_time(self.end)})"
			)

	@classmethod
	def from_times(cls, start: TimeValue, end: TimeValue) -> "TimeSlot":
		return cls(to_minutes(start), to_minutes(end))

	@classmethod
	def from_dict(cls, data: Any) -> "TimeSlot":
		"""
		Build a slot from a mapping or row object.

		Accepts {"start", "end"}, {"start_time", "end_time"} and
		{"open", "close"} keys, the shapes stored by the schedule forms.
		"""
		for start_key, end_key in (("start", "end"), ("start_time", "end_time"), ("open", "close")):
			start = _field(data, start_key)
			end = _field(data, end_key)
			if start is not None and end is not None:
				return cls.from_times(start, end)
		raise ValueError(f"Cannot build TimeSlot from {data!r}")

	@property
	def start_time(self) -> str:
		return minutes_to_time(self.start)

	@property
	def end_time(self) -> str:
		return minutes_to_time(self.end)

	@property
	def duration(self) -> int:
		return self.end - self.start

	def to_dict(self) -> dict:
		return {"start": self.start_time, "end": self.end_time}

	def __str__(self) -> str:
		return f"{self.start_time}-{self.end_time}"


def _field(data: Any, key: str) -> Any:
	if isinstance(data, dict):
		return data.get(key)
	return getattr(data, key, None)


def overlaps(a: TimeSlot, b: TimeSlot) -> bool:
	"""
	True si los intervalos se solapan.

	Condición estricta: a.start < b.end AND b.start < a.end.
	Dos slots que solo se tocan (09:00-10:00 y 10:00-11:00) NO se solapan.
	"""
	return a.start < b.end and b.start < a.end


def contains(outer: TimeSlot, inner: TimeSlot) -> bool:
	"""True if `inner` lies fully inside `outer` (bounds inclusive)."""
	return outer.start <= inner.start and inner.end <= outer.end


def intersect(a: TimeSlot, b: TimeSlot) -> Optional[TimeSlot]:
	start = max(a.start, b.start)
	end = min(a.end, b.end)
	if end <= start:
		return None
	return TimeSlot(start, end)


def overlap_minutes(a: TimeSlot, b: TimeSlot) -> int:
	"""Duración del solapamiento en minutos (0 si no se solapan)."""
	shared = intersect(a, b)
	return shared.duration if shared else 0


def total_minutes(slots: Iterable[TimeSlot]) -> int:
	return sum(slot.duration for slot in slots)


def normalize_slots(raw_slots: Optional[Iterable[Any]], sort: bool = True) -> List[TimeSlot]:
	"""
	Convierte slots crudos a TimeSlot, descartando los malformados.

	Los datos vienen de formularios y pueden traer start >= end o
	valores vacíos; en vez de fallar, esos slots se ignoran.

	Args:
		raw_slots: iterable de TimeSlot, dicts o filas
		sort: ordenar por start (False conserva el orden de entrada)

	Returns:
		list[TimeSlot]: slots válidos
	"""
	if not raw_slots:
		return []

	result = []
	for raw in raw_slots:
		if isinstance(raw, TimeSlot):
			result.append(raw)
			continue
		try:
			result.append(TimeSlot.from_dict(raw))
		except ValueError:
			continue

	if sort:
		result.sort()
	return result


def merge_intervals(slots: Iterable[TimeSlot], merge_adjacent: bool = True) -> List[TimeSlot]:
	"""
	Une intervalos solapados (y adyacentes si merge_adjacent).

	Args:
		slots: intervalos en cualquier orden
		merge_adjacent: si False, 09:00-10:00 y 10:00-11:00 quedan separados

	Returns:
		list: intervalos ordenados y disjuntos
	"""
	ordered = sorted(slots)
	if not ordered:
		return []

	merged = [ordered[0]]
	for current in ordered[1:]:
		last = merged[-1]
		if current.start < last.end or (merge_adjacent and current.start == last.end):
			if current.end > last.end:
				merged[-1] = TimeSlot(last.start, current.end)
		else:
			merged.append(current)

	return merged


def intersect_intervals(xs: Iterable[TimeSlot], ys: Iterable[TimeSlot]) -> List[TimeSlot]:
	"""Intersection of two interval sets, merged and ordered."""
	left = merge_intervals(xs, merge_adjacent=False)
	right = merge_intervals(ys, merge_adjacent=False)
	result = []
	i = j = 0
	while i < len(left) and j < len(right):
		shared = intersect(left[i], right[j])
		if shared:
			result.append(shared)
		if left[i].end <= right[j].end:
			i += 1
		else:
			j += 1
	return result


def subtract_interval(interval: TimeSlot, block: TimeSlot) -> List[TimeSlot]:
	"""
	Resta un bloqueo de un intervalo.

	Returns:
		list: 0, 1 o 2 intervalos resultantes
	"""
	if not overlaps(interval, block):
		return [interval]

	result = []
	if block.start > interval.start:
		result.append(TimeSlot(interval.start, block.start))
	if block.end < interval.end:
		result.append(TimeSlot(block.end, interval.end))
	return result
