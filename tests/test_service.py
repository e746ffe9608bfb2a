"""Tests for the intake service independent of HTTP."""

from __future__ import annotations

import unittest
from datetime import datetime, timezone

from jose import jwt

from conftest import FakeClock, make_draft
from intake.accounts import AdminDirectory, hash_password
from intake.errors import (
    AccessDenied,
    ApplicationNotFound,
    InvalidCredentials,
    InvalidStatus,
    InvalidToken,
    InvalidTransition,
    MissingToken,
)
from intake.models import AdminAccount, ApplicationStatus, Principal
from intake.security import TokenIssuer
from intake.service import IntakeService, parse_decision
from intake.store import InMemoryApplicationStore


class IntakeServiceTests(unittest.TestCase):
    password = "correct horse battery staple"

    @classmethod
    def setUpClass(cls) -> None:
        cls.password_hash = hash_password(cls.password)

    def setUp(self) -> None:
        self.admin = AdminAccount(
            id=1,
            email="ops@example.com",
            name="Ops",
            password_hash=self.password_hash,
        )
        self.clock = FakeClock(datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc))
        self.store = InMemoryApplicationStore(clock=self.clock)
        self.service = IntakeService(
            store=self.store,
            directory=AdminDirectory([self.admin]),
            issuer=TokenIssuer("service-secret"),
            clock=self.clock,
        )
        self.principal = Principal(id=1, email="ops@example.com", role="admin")

    def test_login_issues_token_that_authorizes(self) -> None:
        result = self.service.login("ops@example.com", self.password)
        self.assertEqual(result.account, self.admin)
        self.assertGreater(result.expires_at, datetime.now(timezone.utc))

        principal = self.service.authorize(result.token)
        self.assertEqual(principal, self.principal)
        self.assertEqual(jwt.get_unverified_claims(result.token)["role"], "admin")

    def test_login_failure_logs_and_raises(self) -> None:
        with self.assertLogs("intake.service", level="WARNING") as captured:
            with self.assertRaises(InvalidCredentials):
                self.service.login("ops@example.com", "wrong")
        self.assertIn("Failed admin login attempt", captured.output[0])

        with self.assertRaises(InvalidCredentials):
            self.service.login("", "")

    def test_authorize_distinguishes_missing_and_invalid(self) -> None:
        with self.assertRaises(MissingToken):
            self.service.authorize(None)
        with self.assertRaises(MissingToken):
            self.service.authorize("   ")
        with self.assertRaises(InvalidToken):
            self.service.authorize("abc.def.ghi")

    def test_submit_stamps_pending_and_logs(self) -> None:
        with self.assertLogs("intake.service", level="INFO") as captured:
            application = self.service.submit(make_draft())
        self.assertEqual(application.id, 1)
        self.assertEqual(application.status, ApplicationStatus.PENDING)
        self.assertEqual(application.created_at, datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc))
        self.assertIsNone(application.updated_at)
        self.assertEqual(application.reference, "TIMV-000001")
        self.assertIn("Application received from Acme", captured.output[0])

    def test_identical_submissions_are_not_deduplicated(self) -> None:
        first = self.service.submit(make_draft())
        second = self.service.submit(make_draft())
        self.assertEqual((first.id, second.id), (1, 2))
        self.assertEqual(len(self.service.list_applications(self.principal)), 2)

    def test_update_status_sets_decision_and_timestamp(self) -> None:
        self.service.submit(make_draft())
        updated = self.service.update_status(self.principal, 1, "Approved")
        self.assertEqual(updated.status, ApplicationStatus.APPROVED)
        self.assertEqual(updated.updated_at, datetime(2024, 5, 1, 8, 1, tzinfo=timezone.utc))
        self.assertEqual(self.service.get_application(self.principal, 1).status, ApplicationStatus.APPROVED)

    def test_decided_applications_cannot_change(self) -> None:
        self.service.submit(make_draft())
        self.service.update_status(self.principal, 1, "rejected")

        with self.assertRaises(InvalidTransition):
            self.service.update_status(self.principal, 1, "approved")
        stored = self.service.get_application(self.principal, 1)
        self.assertEqual(stored.status, ApplicationStatus.REJECTED)

    def test_update_status_errors(self) -> None:
        self.service.submit(make_draft())
        with self.assertRaises(InvalidStatus):
            self.service.update_status(self.principal, 1, "pending")
        with self.assertRaises(ApplicationNotFound):
            self.service.update_status(self.principal, 5, "approved")
        with self.assertRaises(ApplicationNotFound):
            self.service.update_status(self.principal, 5, "archived")
        with self.assertRaises(ApplicationNotFound):
            self.service.get_application(self.principal, 5)

    def test_admin_operations_require_admin_principal(self) -> None:
        viewer = Principal(id=9, email="viewer@example.com", role="viewer")
        with self.assertRaises(AccessDenied):
            self.service.list_applications(viewer)
        with self.assertRaises(AccessDenied):
            self.service.stats(viewer)
        with self.assertRaises(AccessDenied):
            self.service.update_status(viewer, 1, "approved")

    def test_stats_partition_total(self) -> None:
        for name in ("A", "B", "C", "D"):
            self.service.submit(make_draft(company_name=name))
        self.service.update_status(self.principal, 1, "approved")
        self.service.update_status(self.principal, 2, "rejected")
        self.service.update_status(self.principal, 3, "approved")

        stats = self.service.stats(self.principal)
        self.assertEqual((stats.total, stats.pending, stats.approved, stats.rejected), (4, 1, 2, 1))
        self.assertEqual(
            stats.to_dict(),
            {"totalApplications": 4, "pending": 1, "approved": 2, "rejected": 1},
        )


class ParseDecisionTests(unittest.TestCase):
    def test_accepts_terminal_statuses(self) -> None:
        self.assertIs(parse_decision("approved"), ApplicationStatus.APPROVED)
        self.assertIs(parse_decision(" REJECTED "), ApplicationStatus.REJECTED)

    def test_rejects_everything_else(self) -> None:
        for value in ("pending", "done", None, 3):
            with self.subTest(value=value):
                with self.assertRaises(InvalidStatus):
                    parse_decision(value)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
