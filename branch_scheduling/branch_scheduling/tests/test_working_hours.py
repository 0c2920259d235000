"""
Tests for scheduling/working_hours.py

Tests the precedence chain of the working-hours resolver and the
branch-hours clamp.
"""

import unittest
from datetime import date

from branch_scheduling.branch_scheduling.scheduling.intervals import TimeSlot
from branch_scheduling.branch_scheduling.scheduling.models import (
	DateAssignment,
	DateOverride,
	DaySchedule,
	LeaveRequest,
	LeaveStatus,
	OverrideType,
	ScheduleSnapshot,
	ScheduleType,
	parse_weekly_hours,
)
from branch_scheduling.branch_scheduling.scheduling.settings import SchedulingSettings
from branch_scheduling.branch_scheduling.scheduling.working_hours import (
	get_schedule_type,
	is_on_leave,
	resolve_effective_schedule,
	resolve_location_hours,
	resolve_working_hours,
	resolve_working_hours_range,
)

# 2025-03-10 is a Monday
MONDAY = date(2025, 3, 10)
TUESDAY = date(2025, 3, 11)
STAFF = "STAFF-0001"
BRANCH = "BR-A"


def slot(start, end):
	return TimeSlot.from_times(start, end)


def weekly(**days):
	return parse_weekly_hours({
		day: {"closed": False, "slots": [{"start": s, "end": e} for s, e in ranges]}
		for day, ranges in days.items()
	})


def snapshot(**kwargs):
	kwargs.setdefault("target_date", MONDAY)
	kwargs.setdefault("weekly_hours", weekly(monday=[("09:00", "17:00")]))
	return ScheduleSnapshot(**kwargs)


class TestWeeklySchedule(unittest.TestCase):
	"""Tests for the weekly fallback."""

	def test_open_weekday_returns_weekly_slots(self):
		result = resolve_effective_schedule(snapshot(), STAFF, BRANCH)
		self.assertEqual(list(result.slots), [slot("09:00", "17:00")])
		self.assertEqual(result.schedule_type, ScheduleType.REGULAR)
		self.assertEqual(result.decided_by, "weekly_schedule")

	def test_closed_weekday_returns_empty(self):
		result = resolve_effective_schedule(snapshot(target_date=TUESDAY), STAFF, BRANCH)
		self.assertEqual(list(result.slots), [])
		self.assertEqual(result.schedule_type, ScheduleType.CLOSED)

	def test_closed_flag_wins_over_slots(self):
		hours = parse_weekly_hours({"monday": {"closed": True, "slots": [{"start": "09:00", "end": "17:00"}]}})
		self.assertEqual(resolve_working_hours(snapshot(weekly_hours=hours), STAFF, BRANCH), [])

	def test_weekday_keys_are_case_insensitive(self):
		hours = parse_weekly_hours({"Monday": DaySchedule(closed=False, slots=(slot("10:00", "12:00"),))})
		self.assertEqual(resolve_working_hours(snapshot(weekly_hours=hours)), [slot("10:00", "12:00")])

	def test_split_shift_stays_split_and_sorted(self):
		hours = weekly(monday=[("13:00", "17:00"), ("09:00", "12:00")])
		self.assertEqual(
			resolve_working_hours(snapshot(weekly_hours=hours), STAFF, BRANCH),
			[slot("09:00", "12:00"), slot("13:00", "17:00")]
		)

	def test_touching_slots_are_not_bridged(self):
		hours = weekly(monday=[("09:00", "12:00"), ("12:00", "15:00")])
		self.assertEqual(
			resolve_working_hours(snapshot(weekly_hours=hours)),
			[slot("09:00", "12:00"), slot("12:00", "15:00")]
		)


class TestPrecedence(unittest.TestCase):
	"""Tests for leave > overrides > assignments > weekly."""

	def _leave(self, status=LeaveStatus.APPROVED, start=MONDAY, end=MONDAY):
		return LeaveRequest(start_date=start, end_date=end, status=status, staff_id=STAFF)

	def test_approved_leave_dominates_everything(self):
		result = resolve_effective_schedule(
			snapshot(
				leave_requests=[self._leave(start=date(2025, 3, 8), end=MONDAY)],
				overrides=[DateOverride(MONDAY, OverrideType.CUSTOM_HOURS, (slot("10:00", "11:00"),), BRANCH, STAFF)],
				date_assignments=[DateAssignment(STAFF, BRANCH, MONDAY, (slot("08:00", "09:00"),))],
			),
			STAFF,
			BRANCH
		)
		self.assertEqual(list(result.slots), [])
		self.assertEqual(result.schedule_type, ScheduleType.UNAVAILABLE)
		self.assertEqual(result.decided_by, "approved_leave")

	def test_pending_and_rejected_leave_are_ignored(self):
		for status in (LeaveStatus.PENDING, LeaveStatus.REJECTED):
			result = resolve_working_hours(snapshot(leave_requests=[self._leave(status)]), STAFF, BRANCH)
			self.assertEqual(result, [slot("09:00", "17:00")], status)

	def test_leave_bounds_are_inclusive(self):
		leaves = [self._leave(start=date(2025, 3, 5), end=MONDAY)]
		self.assertTrue(is_on_leave(MONDAY, leaves))
		self.assertTrue(is_on_leave("2025-03-05", leaves))
		self.assertFalse(is_on_leave(TUESDAY, leaves))

	def test_leave_of_another_staff_is_ignored(self):
		leave = LeaveRequest(MONDAY, MONDAY, LeaveStatus.APPROVED, staff_id="STAFF-0002")
		self.assertEqual(
			resolve_working_hours(snapshot(leave_requests=[leave]), STAFF, BRANCH),
			[slot("09:00", "17:00")]
		)

	def test_unavailable_override(self):
		override = DateOverride(MONDAY, OverrideType.UNAVAILABLE, (), BRANCH, STAFF)
		result = resolve_effective_schedule(snapshot(overrides=[override]), STAFF, BRANCH)
		self.assertEqual(list(result.slots), [])
		self.assertEqual(result.schedule_type, ScheduleType.UNAVAILABLE)

	def test_custom_hours_replace_weekly(self):
		override = DateOverride(MONDAY, OverrideType.CUSTOM_HOURS, (slot("12:00", "14:00"),), BRANCH, STAFF)
		result = resolve_effective_schedule(snapshot(overrides=[override]), STAFF, BRANCH)
		self.assertEqual(list(result.slots), [slot("12:00", "14:00")])
		self.assertEqual(result.schedule_type, ScheduleType.CUSTOM)

	def test_custom_hours_on_closed_weekday(self):
		override = DateOverride(TUESDAY, OverrideType.CUSTOM_HOURS, (slot("10:00", "12:00"),), BRANCH, STAFF)
		self.assertEqual(
			resolve_working_hours(snapshot(target_date=TUESDAY, overrides=[override]), STAFF, BRANCH),
			[slot("10:00", "12:00")]
		)

	def test_override_for_other_date_or_branch_is_ignored(self):
		overrides = [
			DateOverride(TUESDAY, OverrideType.UNAVAILABLE, (), BRANCH, STAFF),
			DateOverride(MONDAY, OverrideType.UNAVAILABLE, (), "BR-B", STAFF),
		]
		self.assertEqual(
			resolve_working_hours(snapshot(overrides=overrides), STAFF, BRANCH),
			[slot("09:00", "17:00")]
		)

	def test_available_override_has_no_effect(self):
		override = DateOverride(MONDAY, OverrideType.AVAILABLE, (), BRANCH, STAFF)
		self.assertEqual(
			resolve_working_hours(snapshot(overrides=[override]), STAFF, BRANCH),
			[slot("09:00", "17:00")]
		)

	def test_date_assignment_replaces_weekly(self):
		assignment = DateAssignment(STAFF, BRANCH, MONDAY, (slot("07:00", "09:00"),))
		result = resolve_effective_schedule(snapshot(date_assignments=[assignment]), STAFF, BRANCH)
		self.assertEqual(list(result.slots), [slot("07:00", "09:00")])
		self.assertEqual(result.schedule_type, ScheduleType.ASSIGNED)

	def test_date_assignment_additive_mode(self):
		assignment = DateAssignment(STAFF, BRANCH, MONDAY, (slot("07:00", "09:00"),))
		settings = SchedulingSettings(date_assignment_mode="additive")
		self.assertEqual(
			resolve_working_hours(snapshot(date_assignments=[assignment]), STAFF, BRANCH, settings),
			[slot("07:00", "09:00"), slot("09:00", "17:00")]
		)

	def test_assignments_not_supplied_means_weekly(self):
		self.assertEqual(
			resolve_working_hours(snapshot(date_assignments=None), STAFF, BRANCH),
			[slot("09:00", "17:00")]
		)

	def test_empty_rule_chain_is_closed(self):
		result = resolve_effective_schedule(snapshot(), STAFF, BRANCH, rules=[])
		self.assertEqual(list(result.slots), [])
		self.assertEqual(result.schedule_type, ScheduleType.CLOSED)
		self.assertIsNone(result.decided_by)

	def test_get_schedule_type(self):
		override = DateOverride(MONDAY, OverrideType.CUSTOM_HOURS, (slot("12:00", "14:00"),), BRANCH, STAFF)
		self.assertEqual(get_schedule_type(snapshot(), STAFF, BRANCH), ScheduleType.REGULAR)
		self.assertEqual(get_schedule_type(snapshot(overrides=[override]), STAFF, BRANCH), ScheduleType.CUSTOM)


class TestBranchClamp(unittest.TestCase):
	"""Tests for branch opening hours limiting staff hours."""

	def test_location_closed_override_yields_empty(self):
		closed = DateOverride(MONDAY, OverrideType.CLOSED, (), BRANCH)
		result = resolve_effective_schedule(snapshot(location_overrides=[closed]), STAFF, BRANCH)
		self.assertEqual(list(result.slots), [])
		self.assertEqual(result.schedule_type, ScheduleType.CLOSED)

	def test_location_closed_beats_staff_custom_hours(self):
		closed = DateOverride(MONDAY, OverrideType.CLOSED, (), BRANCH)
		custom = DateOverride(MONDAY, OverrideType.CUSTOM_HOURS, (slot("10:00", "12:00"),), BRANCH, STAFF)
		self.assertEqual(
			resolve_working_hours(snapshot(location_overrides=[closed], overrides=[custom]), STAFF, BRANCH),
			[]
		)

	def test_branch_weekly_hours_clamp(self):
		branch_hours = parse_weekly_hours({"monday": {"open": "10:00", "close": "16:00"}})
		self.assertEqual(
			resolve_working_hours(snapshot(location_weekly_hours=branch_hours), STAFF, BRANCH),
			[slot("10:00", "16:00")]
		)

	def test_branch_custom_hours_clamp(self):
		custom = DateOverride(MONDAY, OverrideType.CUSTOM_HOURS, (slot("08:00", "12:00"),), BRANCH)
		self.assertEqual(
			resolve_working_hours(snapshot(location_overrides=[custom]), STAFF, BRANCH),
			[slot("09:00", "12:00")]
		)

	def test_location_override_in_staff_list_still_clamps(self):
		closed = DateOverride(MONDAY, OverrideType.CLOSED, (), BRANCH)
		result = resolve_effective_schedule(snapshot(overrides=[closed]), STAFF, BRANCH)
		self.assertEqual(list(result.slots), [])
		self.assertEqual(result.schedule_type, ScheduleType.CLOSED)

	def test_location_custom_hours_in_staff_list_still_clamps(self):
		custom = DateOverride(MONDAY, OverrideType.CUSTOM_HOURS, (slot("12:00", "20:00"),), BRANCH)
		self.assertEqual(
			resolve_working_hours(snapshot(overrides=[custom]), STAFF, BRANCH),
			[slot("12:00", "17:00")]
		)

	def test_no_branch_data_means_no_restriction(self):
		self.assertIsNone(resolve_location_hours(MONDAY))
		self.assertEqual(resolve_working_hours(snapshot(), STAFF, BRANCH), [slot("09:00", "17:00")])

	def test_resolve_location_hours(self):
		branch_hours = parse_weekly_hours({"monday": {"open": "10:00", "close": "16:00"}})
		self.assertEqual(resolve_location_hours(MONDAY, branch_hours), [slot("10:00", "16:00")])
		self.assertEqual(resolve_location_hours(TUESDAY, branch_hours), [])
		closed = DateOverride(MONDAY, OverrideType.CLOSED, (), BRANCH)
		self.assertEqual(resolve_location_hours(MONDAY, branch_hours, [closed]), [])


class TestProperties(unittest.TestCase):
	"""Output is sorted, disjoint, and resolution is idempotent."""

	def test_result_is_sorted_and_disjoint(self):
		override = DateOverride(
			MONDAY,
			OverrideType.CUSTOM_HOURS,
			(slot("14:00", "16:00"), slot("09:00", "11:00"), slot("10:00", "12:00")),
			BRANCH,
			STAFF
		)
		result = resolve_working_hours(snapshot(overrides=[override]), STAFF, BRANCH)
		self.assertEqual(result, [slot("09:00", "12:00"), slot("14:00", "16:00")])
		for current, following in zip(result, result[1:]):
			self.assertLessEqual(current.end, following.start)

	def test_idempotent(self):
		data = snapshot(leave_requests=[LeaveRequest(TUESDAY, TUESDAY, LeaveStatus.APPROVED, STAFF)])
		self.assertEqual(
			resolve_working_hours(data, STAFF, BRANCH),
			resolve_working_hours(data, STAFF, BRANCH)
		)

	def test_range(self):
		leave = LeaveRequest(date(2025, 3, 12), date(2025, 3, 12), LeaveStatus.APPROVED, STAFF)
		hours = weekly(monday=[("09:00", "17:00")], wednesday=[("09:00", "13:00")])
		result = resolve_working_hours_range(
			MONDAY,
			date(2025, 3, 17),
			snapshot(weekly_hours=hours, leave_requests=[leave]),
			STAFF,
			BRANCH
		)
		self.assertEqual(list(result.keys()), ["2025-03-10", "2025-03-17"])
		self.assertEqual(result["2025-03-17"], [slot("09:00", "17:00")])

	def test_range_with_dated_records(self):
		wednesday = date(2025, 3, 12)
		next_monday = date(2025, 3, 17)
		hours = weekly(monday=[("09:00", "17:00")], tuesday=[("09:00", "17:00")])
		data = snapshot(
			weekly_hours=hours,
			overrides=[DateOverride(TUESDAY, OverrideType.CUSTOM_HOURS, (slot("10:00", "12:00"),), BRANCH, STAFF)],
			date_assignments=[DateAssignment(STAFF, BRANCH, wednesday, (slot("14:00", "18:00"),))],
			location_overrides=[DateOverride(next_monday, OverrideType.CLOSED, (), BRANCH)],
		)
		result = resolve_working_hours_range(MONDAY, next_monday, data, STAFF, BRANCH)
		self.assertEqual(result, {
			"2025-03-10": [slot("09:00", "17:00")],
			"2025-03-11": [slot("10:00", "12:00")],
			"2025-03-12": [slot("14:00", "18:00")],
		})


if __name__ == "__main__":
	unittest.main()
