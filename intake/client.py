"""HTTP client for driving a running intake service from the command line."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from .models import Application, ApplicationStats
from .views import export_csv, filter_applications


class ClientError(RuntimeError):
    """Raised when the intake service rejects or fails a request."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("Service URL must not be empty")
    return cleaned.rstrip("/")


def _extract_error_message(payload: object, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return default


class IntakeClient:
    """Thin wrapper over the ``/api`` routes using a bearer token.

    An existing :class:`httpx.Client` may be supplied, which lets the console
    talk to an in-process application during tests.
    """

    def __init__(
        self,
        base_url: str,
        *,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = _normalize_base_url(base_url)
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=timeout)
        self._token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = kwargs.pop("headers", {})
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = self._http.request(method, f"{self._base_url}{path}", headers=headers, **kwargs)
        except httpx.RequestError as exc:
            raise ClientError(f"Failed to contact intake service: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = response.text

        if response.status_code >= 400:
            message = _extract_error_message(
                payload, f"Request failed with status {response.status_code}"
            )
            raise ClientError(message, status_code=response.status_code)
        return payload

    def login(self, email: str, password: str) -> Dict[str, Any]:
        payload = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        if not isinstance(payload, dict) or "token" not in payload:
            raise ClientError("Intake service returned an unexpected login response")
        self._token = str(payload["token"])
        return payload.get("user") or {}

    def list_applications(self, *, search: str = "", status: Optional[str] = None) -> List[Application]:
        payload = self._request("GET", "/api/admin/applications")
        if not isinstance(payload, list):
            raise ClientError("Intake service returned an unexpected application list")
        applications = [Application.from_dict(item) for item in payload]
        return filter_applications(applications, search, status)

    def get_application(self, application_id: int) -> Application:
        return Application.from_dict(self._request("GET", f"/api/admin/applications/{application_id}"))

    def update_status(self, application_id: int, status: str) -> Application:
        payload = self._request(
            "PUT",
            f"/api/admin/applications/{application_id}",
            json={"status": status},
        )
        return Application.from_dict(payload["application"])

    def stats(self) -> ApplicationStats:
        payload = self._request("GET", "/api/admin/stats")
        return ApplicationStats(
            total=int(payload["totalApplications"]),
            pending=int(payload["pending"]),
            approved=int(payload["approved"]),
            rejected=int(payload["rejected"]),
        )

    def export_csv(self, *, search: str = "", status: Optional[str] = None) -> str:
        return export_csv(self.list_applications(search=search, status=status))


__all__ = ["ClientError", "IntakeClient"]
