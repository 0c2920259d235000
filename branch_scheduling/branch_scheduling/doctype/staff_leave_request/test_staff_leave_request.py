# Copyright (c) 2026, Sebastian Ortiz Valencia and Contributors
# See license.txt

"""
Tests for Staff Leave Request DocType

Tests the initial status and date validation.
Runs with `bench run-tests`; skipped when no site is available.
"""

import unittest

import frappe
from frappe.tests.utils import FrappeTestCase

from branch_scheduling.branch_scheduling.doctype.branch_scheduling_settings.branch_scheduling_settings import (
	get_scheduling_settings,
)
from branch_scheduling.branch_scheduling.scheduling.models import LeaveStatus
from branch_scheduling.branch_scheduling.scheduling.settings import initial_leave_status

TEST_STAFF = "_Test Staff Leave"


class TestStaffLeaveRequest(FrappeTestCase):
	"""Tests for Staff Leave Request DocType."""

	@classmethod
	def setUpClass(cls):
		if not getattr(frappe.local, "site", None):
			raise unittest.SkipTest("no Frappe site")
		super().setUpClass()
		if not frappe.db.exists("DocType", "Staff Leave Request"):
			raise unittest.SkipTest("Staff Leave Request is not installed on this site")

	def tearDown(self):
		frappe.db.rollback()

	def _leave(self, status=None, start_date="2025-03-10", end_date="2025-03-12"):
		return frappe.get_doc({
			"doctype": "Staff Leave Request",
			"staff": TEST_STAFF,
			"start_date": start_date,
			"end_date": end_date,
			"status": status,
		})

	def test_status_defaults_from_settings(self):
		"""Test that a request without status gets the configured initial status."""
		doc = self._leave()
		doc.insert(ignore_permissions=True, ignore_links=True)

		self.assertEqual(doc.status, initial_leave_status(get_scheduling_settings()))

	def test_explicit_status_is_kept(self):
		"""Test that an explicit status is not replaced on insert."""
		doc = self._leave(status=LeaveStatus.REJECTED)
		doc.insert(ignore_permissions=True, ignore_links=True)

		self.assertEqual(doc.status, LeaveStatus.REJECTED)

	def test_start_after_end(self):
		"""Test that start_date cannot be after end_date."""
		doc = self._leave(start_date="2025-03-12", end_date="2025-03-10")
		with self.assertRaises(frappe.ValidationError):
			doc.insert(ignore_permissions=True, ignore_links=True)
