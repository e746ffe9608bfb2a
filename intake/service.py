"""Application intake and decisioning operations."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from .accounts import AdminDirectory
from .errors import (
    AccessDenied,
    ApplicationNotFound,
    InvalidCredentials,
    InvalidStatus,
    InvalidTransition,
)
from .models import (
    ADMIN_ROLE,
    Application,
    ApplicationDraft,
    ApplicationStats,
    ApplicationStatus,
    LoginResult,
    Principal,
)
from .security import TokenIssuer, ensure_role
from .store import ApplicationStore, Clock

logger = logging.getLogger("intake.service")

DECISIONS = frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_decision(value: object) -> ApplicationStatus:
    """Coerce a requested status into one of the terminal decisions."""

    try:
        status = ApplicationStatus(str(value).strip().lower())
    except ValueError as exc:
        raise InvalidStatus() from exc
    if status not in DECISIONS:
        raise InvalidStatus()
    return status


class IntakeService:
    """Authentication, submission and admin decisioning over a store."""

    def __init__(
        self,
        *,
        store: ApplicationStore,
        directory: AdminDirectory,
        issuer: TokenIssuer,
        clock: Clock = _utcnow,
    ) -> None:
        self._store = store
        self._directory = directory
        self._issuer = issuer
        self._clock = clock

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> LoginResult:
        account = self._directory.authenticate(email or "", password or "")
        if account is None:
            logger.warning("Failed admin login attempt for %s", email)
            raise InvalidCredentials()

        token, expires_at = self._issuer.issue(account)
        logger.info("Admin %s signed in", account.id)
        return LoginResult(token=token, account=account, expires_at=expires_at)

    def authenticate(self, token: Optional[str]) -> Principal:
        return self._issuer.verify(token)

    def authorize(self, token: Optional[str], role: str = ADMIN_ROLE) -> Principal:
        """Authenticate ``token`` and require ``role``."""

        return ensure_role(self.authenticate(token), role)

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------
    def submit(self, draft: ApplicationDraft) -> Application:
        application = self._store.append(draft)
        logger.info(
            "Application received from %s (id=%s, services=%d)",
            application.company_name,
            application.id,
            len(application.services),
        )
        return application

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------
    def list_applications(self, principal: Principal) -> List[Application]:
        self._require_admin(principal)
        return self._store.list()

    def get_application(self, principal: Principal, application_id: int) -> Application:
        self._require_admin(principal)
        application = self._store.find_by_id(application_id)
        if application is None:
            raise ApplicationNotFound()
        return application

    def update_status(
        self,
        principal: Principal,
        application_id: int,
        status: object,
    ) -> Application:
        self._require_admin(principal)
        updated_at = self._clock()

        def _apply(application: Application) -> None:
            decision = parse_decision(status)
            if application.status.is_decided:
                raise InvalidTransition(
                    f"Application {application.id} is already {application.status.value}"
                )
            application.status = decision
            application.updated_at = updated_at

        try:
            application = self._store.update(application_id, _apply)
        except KeyError as exc:
            raise ApplicationNotFound() from exc

        logger.info(
            "Admin %s marked application %s as %s",
            principal.id,
            application.id,
            application.status.value,
        )
        return application

    def stats(self, principal: Principal) -> ApplicationStats:
        self._require_admin(principal)
        applications = self._store.list()
        counts = {status: 0 for status in ApplicationStatus}
        for application in applications:
            counts[application.status] += 1
        return ApplicationStats(
            total=len(applications),
            pending=counts[ApplicationStatus.PENDING],
            approved=counts[ApplicationStatus.APPROVED],
            rejected=counts[ApplicationStatus.REJECTED],
        )

    @staticmethod
    def _require_admin(principal: Principal) -> None:
        if not principal.is_admin:
            raise AccessDenied()


__all__ = ["DECISIONS", "IntakeService", "parse_decision"]
