"""
Engine Settings

Business-configurable knobs for the scheduling engine. The site values
live in the Branch Scheduling Settings single DocType; this record is
what the engine receives.
"""

from dataclasses import dataclass

from .models import LeaveStatus

ASSIGNMENT_MODE_REPLACE = "replace"
ASSIGNMENT_MODE_ADDITIVE = "additive"
ASSIGNMENT_MODES = (ASSIGNMENT_MODE_REPLACE, ASSIGNMENT_MODE_ADDITIVE)


@dataclass(frozen=True)
class SchedulingSettings:
	"""
	Configuración del motor de agenda.

	Attributes:
		slot_granularity_minutes: paso entre horas de inicio candidatas
		default_service_duration_minutes: duración si el servicio no la define
		auto_approve_leave: las ausencias nuevas nacen "approved" en vez de "pending"
		date_assignment_mode: "replace" (la asignación reemplaza el horario semanal)
			o "additive" (unión de ambos)
	"""

	slot_granularity_minutes: int = 15
	default_service_duration_minutes: int = 30
	auto_approve_leave: bool = True
	date_assignment_mode: str = ASSIGNMENT_MODE_REPLACE

	def __post_init__(self) -> None:
		if self.slot_granularity_minutes <= 0:
			raise ValueError("slot_granularity_minutes must be greater than 0")
		if self.default_service_duration_minutes <= 0:
			raise ValueError("default_service_duration_minutes must be greater than 0")
		if self.date_assignment_mode not in ASSIGNMENT_MODES:
			raise ValueError(f"Unknown date_assignment_mode: {self.date_assignment_mode}")


DEFAULT_SETTINGS = SchedulingSettings()


def initial_leave_status(settings: SchedulingSettings = DEFAULT_SETTINGS) -> str:
	"""Status a newly created leave request starts in."""
	return LeaveStatus.APPROVED if settings.auto_approve_leave else LeaveStatus.PENDING
