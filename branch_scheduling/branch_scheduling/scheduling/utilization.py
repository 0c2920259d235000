"""
Staff Utilization

Booked time versus available time for one staff member on one date.
"""

from typing import Any, Dict, Iterable

from .intervals import TimeSlot, total_minutes
from .models import Appointment

UNDERBOOKED = "underbooked"
OPTIMAL = "optimal"
OVERBOOKED = "overbooked"


def utilization_status(percentage: int) -> str:
	if percentage < 50:
		return UNDERBOOKED
	if percentage > 90:
		return OVERBOOKED
	return OPTIMAL


def calculate_staff_utilization(
	staff_id: str,
	staff_name: str,
	available_slots: Iterable[TimeSlot],
	appointments: Iterable[Appointment]
) -> Dict[str, Any]:
	"""
	Calcula métricas de utilización.

	Las citas canceladas o con horario inválido no cuentan. Sin disponibilidad el porcentaje es 0.

	Returns:
		dict: {
			"staff_id", "staff_name",
			"total_available_minutes", "total_booked_minutes",
			"utilization_percentage", "appointment_count", "status"
		}
	"""
	active = [appointment for appointment in appointments if appointment.blocks]
	available = total_minutes(available_slots)
	booked = total_minutes(appointment.slot for appointment in active)

	percentage = int(booked * 100 / available + 0.5) if available > 0 else 0

	return {
		"staff_id": staff_id,
		"staff_name": staff_name,
		"total_available_minutes": available,
		"total_booked_minutes": booked,
		"utilization_percentage": percentage,
		"appointment_count": len(active),
		"status": utilization_status(percentage),
	}
