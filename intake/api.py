"""JSON API for application intake and the admin dashboard."""
from __future__ import annotations

from typing import Callable, Dict, List, Set

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import IntakeError
from .models import ApplicationDraft, CompanyType, PaymentPlan, Principal
from .service import IntakeService


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""

    @field_validator("email", "password", mode="before")
    @classmethod
    def _coerce_blank(cls, value: object) -> str:
        return value if isinstance(value, str) else ""


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class ApplicationSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_name: str = Field(..., alias="companyName")
    contact_person: str = Field(..., alias="contactPerson")
    email: str
    phone: str
    company_type: CompanyType = Field(..., alias="companyType")
    services: List[str] = Field(..., min_length=1)
    payment_plan: PaymentPlan = Field(..., alias="paymentPlan")

    @field_validator("services", mode="before")
    @classmethod
    def _normalise_services(cls, value: object) -> List[str]:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            raise ValueError("services must be provided as a list of strings")
        normalised: List[str] = []
        seen: Set[str] = set()
        for item in value:
            if not isinstance(item, str):
                raise ValueError("services must contain only strings")
            stripped = item.strip()
            if not stripped or stripped in seen:
                continue
            normalised.append(stripped)
            seen.add(stripped)
        if not normalised:
            raise ValueError("Please select at least one service")
        return normalised

    def to_draft(self) -> ApplicationDraft:
        return ApplicationDraft(
            company_name=self.company_name,
            contact_person=self.contact_person,
            email=self.email,
            phone=self.phone,
            company_type=self.company_type,
            services=tuple(self.services),
            payment_plan=self.payment_plan,
        )


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    application_id: int = Field(..., alias="applicationId")


class StatusUpdateRequest(BaseModel):
    status: str


class StatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_applications: int = Field(..., alias="totalApplications")
    pending: int
    approved: int
    rejected: int


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(IntakeError)
    async def handle_intake_error(_: Request, exc: IntakeError):
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc)})


def create_api_router(
    service: IntakeService,
    *,
    current_admin: Callable[..., Principal],
) -> APIRouter:
    """Build the ``/api`` routes bound to ``service``."""

    router = APIRouter(prefix="/api")

    @router.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "OK", "message": "Server is running"}

    @router.post("/auth/login", response_model=LoginResponse)
    def login(request: LoginRequest) -> LoginResponse:
        result = service.login(request.email, request.password)
        account = result.account
        return LoginResponse(
            token=result.token,
            user=UserResponse(id=account.id, email=account.email, name=account.name, role=account.role),
        )

    @router.post(
        "/applications",
        status_code=status.HTTP_201_CREATED,
        response_model=SubmissionResponse,
    )
    def submit_application(request: ApplicationSubmission) -> SubmissionResponse:
        application = service.submit(request.to_draft())
        return SubmissionResponse(
            message="Application submitted successfully",
            application_id=application.id,
        )

    admin_router = APIRouter(prefix="/admin")

    @admin_router.get("/applications")
    def list_applications(principal: Principal = Depends(current_admin)) -> List[Dict[str, object]]:
        return [application.to_dict() for application in service.list_applications(principal)]

    @admin_router.get("/applications/{application_id}")
    def read_application(
        application_id: int,
        principal: Principal = Depends(current_admin),
    ) -> Dict[str, object]:
        return service.get_application(principal, application_id).to_dict()

    @admin_router.put("/applications/{application_id}")
    def update_application(
        application_id: int,
        request: StatusUpdateRequest,
        principal: Principal = Depends(current_admin),
    ) -> Dict[str, object]:
        application = service.update_status(principal, application_id, request.status)
        return {
            "message": "Application updated successfully",
            "application": application.to_dict(),
        }

    @admin_router.get("/stats", response_model=StatsResponse)
    def read_stats(principal: Principal = Depends(current_admin)) -> StatsResponse:
        stats = service.stats(principal)
        return StatsResponse(
            total_applications=stats.total,
            pending=stats.pending,
            approved=stats.approved,
            rejected=stats.rejected,
        )

    router.include_router(admin_router)
    return router


__all__ = [
    "ApplicationSubmission",
    "LoginRequest",
    "LoginResponse",
    "StatsResponse",
    "StatusUpdateRequest",
    "SubmissionResponse",
    "create_api_router",
    "register_error_handlers",
]
