"""Browser-facing views: the public application form and the admin dashboard."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import APIRouter, FastAPI, Form, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware

from .errors import AccessDenied, IntakeError, InvalidCredentials, InvalidToken, MissingToken
from .models import (
    COMPANY_TYPE_LABELS,
    ApplicationDraft,
    ApplicationStatus,
    CompanyType,
    PaymentPlan,
    Principal,
)
from .service import IntakeService
from .views import (
    ALL_STATUSES,
    csv_filename,
    export_csv,
    filter_applications,
    format_date,
    normalise_status_filter,
    paginate,
)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent / "static"
SESSION_COOKIE_NAME = "intake_session"

logger = logging.getLogger("intake.web")

_STATUS_PILLS = {
    ApplicationStatus.PENDING.value: "status-pill status-pill--pending",
    ApplicationStatus.APPROVED.value: "status-pill status-pill--approved",
    ApplicationStatus.REJECTED.value: "status-pill status-pill--rejected",
}


def _validate_form(
    *,
    company_name: str,
    contact_person: str,
    email: str,
    phone: str,
    company_type: str,
    services: List[str],
    payment_plan: str,
) -> Optional[str]:
    """Return the first problem with the submitted form, if any."""

    if not company_name.strip():
        return "Company name is required"
    if not contact_person.strip():
        return "Contact person is required"
    if not email.strip():
        return "Email is required"
    if not phone.strip():
        return "Phone number is required"
    if company_type not in {item.value for item in CompanyType}:
        return "Please choose a company type"
    if not [service for service in services if service.strip()]:
        return "Please select at least one service"
    if payment_plan not in {item.value for item in PaymentPlan}:
        return "Please choose a payment plan"
    return None


def register_ui_routes(
    app: FastAPI,
    service: IntakeService,
    *,
    session_secret: str,
    offered_services: tuple[str, ...],
    page_size: int = 10,
    secure_cookies: bool = False,
    session_max_age: int = 60 * 60 * 24,
) -> None:
    """Expose the HTML interface on the provided FastAPI app."""

    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret,
        session_cookie=SESSION_COOKIE_NAME,
        https_only=secure_cookies,
        same_site="lax",
        max_age=session_max_age,
    )

    if STATIC_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    templates.env.globals["format_date"] = format_date
    templates.env.globals["status_pills"] = _STATUS_PILLS
    templates.env.globals["company_type_labels"] = {
        key.value: label for key, label in COMPANY_TYPE_LABELS.items()
    }

    router = APIRouter(include_in_schema=False)

    def _flash(request: Request, message: str, *, category: str = "info") -> None:
        messages = request.session.get("flash_messages")
        if not isinstance(messages, list):
            messages = []
        messages.append({"message": message, "category": category})
        request.session["flash_messages"] = messages

    def _consume_flash(request: Request) -> List[Dict[str, str]]:
        messages = request.session.pop("flash_messages", [])
        if isinstance(messages, list):
            return messages
        return []

    def _current_principal(request: Request) -> Optional[Principal]:
        token = request.session.get("token")
        if not token:
            return None
        try:
            return service.authorize(token)
        except (MissingToken, InvalidToken, AccessDenied):
            request.session.pop("token", None)
            request.session.pop("user", None)
            _flash(request, "Session expired. Please login again.", category="error")
            return None

    def _redirect_to_login(request: Request) -> RedirectResponse:
        return RedirectResponse(request.url_for("admin_login"), status_code=status.HTTP_303_SEE_OTHER)

    def _render_form(
        request: Request,
        *,
        values: Optional[Dict[str, object]] = None,
        error: Optional[str] = None,
        reference: Optional[str] = None,
        status_code: int = status.HTTP_200_OK,
    ) -> HTMLResponse:
        form_values: Dict[str, object] = {
            "company_name": "",
            "contact_person": "",
            "email": "",
            "phone": "",
            "company_type": CompanyType.PTY.value,
            "services": [],
            "payment_plan": PaymentPlan.ANNUAL.value,
        }
        if values:
            form_values.update(values)
        return templates.TemplateResponse(
            request,
            "apply.html",
            {
                "values": form_values,
                "error": error,
                "reference": reference,
                "offered_services": offered_services,
                "company_types": list(CompanyType),
                "payment_plans": list(PaymentPlan),
            },
            status_code=status_code,
        )

    @router.get("/", response_class=HTMLResponse, name="public_form")
    async def public_form(request: Request):
        reference = request.session.pop("submitted_reference", None)
        return _render_form(request, reference=reference)

    @router.post("/apply", name="submit_form")
    def submit_form(
        request: Request,
        company_name: str = Form(""),
        contact_person: str = Form(""),
        email: str = Form(""),
        phone: str = Form(""),
        company_type: str = Form(CompanyType.PTY.value),
        services: List[str] = Form(default=[]),
        payment_plan: str = Form(PaymentPlan.ANNUAL.value),
    ):
        values: Dict[str, object] = {
            "company_name": company_name,
            "contact_person": contact_person,
            "email": email,
            "phone": phone,
            "company_type": company_type,
            "services": services,
            "payment_plan": payment_plan,
        }
        error = _validate_form(
            company_name=company_name,
            contact_person=contact_person,
            email=email,
            phone=phone,
            company_type=company_type,
            services=services,
            payment_plan=payment_plan,
        )
        if error is not None:
            return _render_form(request, values=values, error=error, status_code=status.HTTP_400_BAD_REQUEST)

        cleaned_services: List[str] = []
        for item in services:
            stripped = item.strip()
            if stripped and stripped not in cleaned_services:
                cleaned_services.append(stripped)

        application = service.submit(
            ApplicationDraft(
                company_name=company_name.strip(),
                contact_person=contact_person.strip(),
                email=email.strip(),
                phone=phone.strip(),
                company_type=CompanyType(company_type),
                services=tuple(cleaned_services),
                payment_plan=PaymentPlan(payment_plan),
            )
        )
        request.session["submitted_reference"] = application.reference
        return RedirectResponse(request.url_for("public_form"), status_code=status.HTTP_303_SEE_OTHER)

    @router.get("/admin/login", response_class=HTMLResponse, name="admin_login")
    async def login_form(request: Request):
        if _current_principal(request) is not None:
            return RedirectResponse(request.url_for("admin_dashboard"), status_code=status.HTTP_303_SEE_OTHER)
        return templates.TemplateResponse(
            request,
            "login.html",
            {"email": "", "error": None, "messages": _consume_flash(request)},
        )

    @router.post("/admin/login", name="admin_login_submit")
    def login_submit(request: Request, email: str = Form(""), password: str = Form("")):
        try:
            result = service.login(email, password)
        except InvalidCredentials:
            return templates.TemplateResponse(
                request,
                "login.html",
                {
                    "email": email,
                    "error": "Invalid email or password. Please try again.",
                    "messages": [],
                },
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        request.session["token"] = result.token
        request.session["user"] = {"id": result.account.id, "name": result.account.name}
        _flash(request, "Login successful!", category="success")
        return RedirectResponse(request.url_for("admin_dashboard"), status_code=status.HTTP_303_SEE_OTHER)

    @router.get("/admin/logout", name="admin_logout")
    async def logout(request: Request):
        request.session.clear()
        return _redirect_to_login(request)

    @router.get("/admin", response_class=HTMLResponse, name="admin_dashboard")
    def dashboard(
        request: Request,
        q: str = "",
        status_filter: str = Query(ALL_STATUSES, alias="status"),
        page: int = 1,
    ):
        principal = _current_principal(request)
        if principal is None:
            return _redirect_to_login(request)

        applications = service.list_applications(principal)
        stats = service.stats(principal)
        filtered = filter_applications(applications, q, status_filter)
        current_page = paginate(filtered, page, page_size)

        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "user": request.session.get("user"),
                "stats": stats,
                "page": current_page,
                "search": q,
                "status_filter": normalise_status_filter(status_filter),
                "statuses": [ALL_STATUSES, *(item.value for item in ApplicationStatus)],
                "total_count": len(applications),
                "messages": _consume_flash(request),
            },
        )

    @router.get("/admin/applications/{application_id}", response_class=HTMLResponse, name="admin_application")
    def application_detail(request: Request, application_id: int):
        principal = _current_principal(request)
        if principal is None:
            return _redirect_to_login(request)

        try:
            application = service.get_application(principal, application_id)
        except IntakeError as exc:
            _flash(request, str(exc), category="error")
            return RedirectResponse(request.url_for("admin_dashboard"), status_code=status.HTTP_303_SEE_OTHER)

        return templates.TemplateResponse(
            request,
            "application.html",
            {
                "user": request.session.get("user"),
                "application": application,
                "messages": _consume_flash(request),
            },
        )

    @router.post("/admin/applications/{application_id}/status", name="admin_update_status")
    def update_status(request: Request, application_id: int, decision: str = Form("")):
        principal = _current_principal(request)
        if principal is None:
            return _redirect_to_login(request)

        try:
            application = service.update_status(principal, application_id, decision)
        except IntakeError as exc:
            _flash(request, str(exc), category="error")
        else:
            _flash(
                request,
                f"Application {application.status.value} successfully!",
                category="success",
            )
        return RedirectResponse(request.url_for("admin_dashboard"), status_code=status.HTTP_303_SEE_OTHER)

    @router.get("/admin/export.csv", name="admin_export")
    def export(
        request: Request,
        q: str = "",
        status_filter: str = Query(ALL_STATUSES, alias="status"),
    ):
        principal = _current_principal(request)
        if principal is None:
            return _redirect_to_login(request)

        filtered = filter_applications(service.list_applications(principal), q, status_filter)
        logger.info("Admin %s exported %d application(s) to CSV", principal.id, len(filtered))
        return Response(
            content=export_csv(filtered),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{csv_filename()}"'},
        )

    app.include_router(router)


__all__ = ["SESSION_COOKIE_NAME", "register_ui_routes"]
