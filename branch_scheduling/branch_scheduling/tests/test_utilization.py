"""
Tests for scheduling/utilization.py
"""

import unittest
from datetime import date

from branch_scheduling.branch_scheduling.scheduling.intervals import TimeSlot
from branch_scheduling.branch_scheduling.scheduling.models import Appointment, AppointmentStatus
from branch_scheduling.branch_scheduling.scheduling.utilization import (
	OPTIMAL,
	OVERBOOKED,
	UNDERBOOKED,
	calculate_staff_utilization,
	utilization_status,
)


def booking(start, end, status=AppointmentStatus.SCHEDULED):
	s = TimeSlot.from_times(start, end)
	return Appointment("STAFF-0001", "BR-A", date(2025, 3, 10), s.start, s.end, status)


class TestUtilization(unittest.TestCase):

	def test_status_thresholds(self):
		self.assertEqual(utilization_status(49), UNDERBOOKED)
		self.assertEqual(utilization_status(50), OPTIMAL)
		self.assertEqual(utilization_status(90), OPTIMAL)
		self.assertEqual(utilization_status(91), OVERBOOKED)

	def test_calculation(self):
		result = calculate_staff_utilization(
			"STAFF-0001",
			"Ana",
			[TimeSlot.from_times("09:00", "12:00")],
			[
				booking("09:00", "10:00"),
				booking("10:00", "10:40"),
				booking("11:00", "12:00", AppointmentStatus.CANCELLED),
			]
		)
		self.assertEqual(result["total_available_minutes"], 180)
		self.assertEqual(result["total_booked_minutes"], 100)
		# 100 / 180 = 55.6%
		self.assertEqual(result["utilization_percentage"], 56)
		self.assertEqual(result["appointment_count"], 2)
		self.assertEqual(result["status"], OPTIMAL)

	def test_malformed_appointments_are_ignored(self):
		malformed = [
			Appointment("STAFF-0001", "BR-A", date(2025, 3, 10), 600, 600),
			Appointment("STAFF-0001", "BR-A", date(2025, 3, 10), 660, 600),
		]
		result = calculate_staff_utilization(
			"STAFF-0001",
			"Ana",
			[TimeSlot.from_times("09:00", "12:00")],
			malformed + [booking("09:00", "10:00")]
		)
		self.assertEqual(result["total_booked_minutes"], 60)
		self.assertEqual(result["appointment_count"], 1)

	def test_no_availability(self):
		result = calculate_staff_utilization("STAFF-0001", "Ana", [], [])
		self.assertEqual(result["utilization_percentage"], 0)
		self.assertEqual(result["status"], UNDERBOOKED)


if __name__ == "__main__":
	unittest.main()
