"""Domain models for the intake portal."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class ApplicationStatus(str, Enum):
    """Lifecycle state of a submitted application."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_decided(self) -> bool:
        return self is not ApplicationStatus.PENDING


class CompanyType(str, Enum):
    PTY = "PTY"
    NPC = "NPC"
    CC = "CC"
    NPO = "NPO"

    @property
    def label(self) -> str:
        return COMPANY_TYPE_LABELS[self]


class PaymentPlan(str, Enum):
    ANNUAL = "annual"
    MONTHLY = "monthly"


COMPANY_TYPE_LABELS: Dict[CompanyType, str] = {
    CompanyType.PTY: "Private Company (PTY)",
    CompanyType.NPC: "Non-Profit Company (NPC)",
    CompanyType.CC: "Close Corporation (CC)",
    CompanyType.NPO: "Non-Profit Organisation (NPO)",
}

DEFAULT_SERVICES: tuple[str, ...] = (
    "Company Registration",
    "CSD Registration",
    "COIDA Registration",
    "Annual Returns",
    "Director Changes",
    "Tax PIN Certificate",
    "Affidavit Certificate",
)

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class AdminAccount:
    """An administrator seeded at process start."""

    id: int
    email: str
    name: str
    password_hash: str
    role: str = ADMIN_ROLE


@dataclass(frozen=True)
class Principal:
    """Identity recovered from a verified token."""

    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


@dataclass(frozen=True)
class ApplicationDraft:
    """Fields supplied by the public form before an id is assigned."""

    company_name: str
    contact_person: str
    email: str
    phone: str
    company_type: CompanyType
    services: tuple[str, ...]
    payment_plan: PaymentPlan


@dataclass
class Application:
    """A business-registration request and its decision state."""

    id: int
    company_name: str
    contact_person: str
    email: str
    phone: str
    company_type: CompanyType
    services: List[str]
    payment_plan: PaymentPlan
    created_at: datetime
    status: ApplicationStatus = ApplicationStatus.PENDING
    updated_at: Optional[datetime] = None

    @property
    def reference(self) -> str:
        return f"TIMV-{self.id:06d}"

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "id": self.id,
            "companyName": self.company_name,
            "contactPerson": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "companyType": self.company_type.value,
            "services": list(self.services),
            "paymentPlan": self.payment_plan.value,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
        }
        if self.updated_at is not None:
            payload["updatedAt"] = self.updated_at.isoformat()
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Application":
        """Rebuild an application from its wire representation."""

        updated_at = payload.get("updatedAt")
        return cls(
            id=int(payload["id"]),
            company_name=str(payload["companyName"]),
            contact_person=str(payload["contactPerson"]),
            email=str(payload["email"]),
            phone=str(payload["phone"]),
            company_type=CompanyType(payload["companyType"]),
            services=[str(item) for item in payload.get("services", [])],
            payment_plan=PaymentPlan(payload["paymentPlan"]),
            created_at=datetime.fromisoformat(str(payload["createdAt"])),
            status=ApplicationStatus(payload.get("status", ApplicationStatus.PENDING.value)),
            updated_at=datetime.fromisoformat(str(updated_at)) if updated_at else None,
        )


@dataclass(frozen=True)
class ApplicationStats:
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalApplications": self.total,
            "pending": self.pending,
            "approved": self.approved,
            "rejected": self.rejected,
        }


@dataclass(frozen=True)
class LoginResult:
    token: str
    account: AdminAccount
    expires_at: datetime


__all__ = [
    "ADMIN_ROLE",
    "AdminAccount",
    "Application",
    "ApplicationDraft",
    "ApplicationStats",
    "ApplicationStatus",
    "COMPANY_TYPE_LABELS",
    "CompanyType",
    "DEFAULT_SERVICES",
    "LoginResult",
    "PaymentPlan",
    "Principal",
]
