"""Application factory that serves both the JSON API and the browser UI."""
from __future__ import annotations

import logging
import os
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .accounts import AdminDirectory
from .api import create_api_router, register_error_handlers
from .config import DEFAULT_ADMIN_EMAIL, Settings, load_settings, resolve_config_path
from .security import BearerAuth, TokenIssuer, require_role
from .service import IntakeService
from .store import ApplicationStore, InMemoryApplicationStore
from .web import register_ui_routes

logger = logging.getLogger("intake.application")


def create_application(
    *,
    settings: Optional[Settings] = None,
    store: Optional[ApplicationStore] = None,
    include_web: bool = True,
) -> FastAPI:
    """Create the combined ASGI application."""

    if settings is None:
        settings = load_settings(resolve_config_path(os.getenv("INTAKE_CONFIG")))

    if settings.uses_default_admin:
        logger.warning(
            "The seeded administrator %s still uses the default password. "
            "Configure admins in the config file before exposing this service.",
            DEFAULT_ADMIN_EMAIL,
        )
    if include_web and not settings.secure_cookies:
        logger.warning(
            "Session cookies are not marked secure; set INTAKE_SESSION_SECURE=1 when serving over HTTPS."
        )

    issuer = TokenIssuer(settings.jwt_secret, ttl=timedelta(hours=settings.token_ttl_hours))
    service = IntakeService(
        store=store if store is not None else InMemoryApplicationStore(),
        directory=AdminDirectory(settings.admins),
        issuer=issuer,
    )
    current_admin = require_role(BearerAuth(issuer))

    app = FastAPI(title="Timvest Business Services Intake", version="1.0.0")
    app.state.settings = settings
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(create_api_router(service, current_admin=current_admin))

    if include_web:
        register_ui_routes(
            app,
            service,
            session_secret=settings.session_secret,
            offered_services=settings.services,
            page_size=settings.page_size,
            secure_cookies=settings.secure_cookies,
            session_max_age=settings.token_ttl_hours * 60 * 60,
        )

    return app


__all__ = ["create_application"]
