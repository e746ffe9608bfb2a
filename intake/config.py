"""Configuration management for the intake portal."""
from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import yaml

from .models import ADMIN_ROLE, DEFAULT_SERVICES, AdminAccount

logger = logging.getLogger("intake.config")

DEFAULT_ADMIN_EMAIL = "admin@timvest.co.za"
# bcrypt hash of the literal "password"; replace through configuration for any real deployment.
DEFAULT_ADMIN_PASSWORD_HASH = "$2a$10$92IXUNpkjO0rOQ5byMi.Ye4oKoEa3Ro9llC/.og/at2.uheWG/igi"
DEFAULT_TOKEN_TTL_HOURS = 24
DEFAULT_PAGE_SIZE = 10


def admin_from_dict(data: Mapping[str, object]) -> AdminAccount:
    """Create an :class:`AdminAccount` from raw configuration data."""
    required_fields = {"id", "email", "name", "password_hash"}
    missing = required_fields - data.keys()
    if missing:
        raise ValueError(f"Missing required admin configuration fields: {', '.join(sorted(missing))}")

    email = str(data["email"]).strip().lower()
    if not email:
        raise ValueError("Admin email must not be empty")

    return AdminAccount(
        id=int(data["id"]),  # type: ignore[arg-type]
        email=email,
        name=str(data["name"]),
        password_hash=str(data["password_hash"]),
        role=str(data.get("role", ADMIN_ROLE)),
    )


def default_admins() -> List[AdminAccount]:
    return [
        AdminAccount(
            id=1,
            email=DEFAULT_ADMIN_EMAIL,
            name="System Administrator",
            password_hash=DEFAULT_ADMIN_PASSWORD_HASH,
        )
    ]


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the service and the dashboard."""

    jwt_secret: str
    session_secret: str
    token_ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS
    page_size: int = DEFAULT_PAGE_SIZE
    secure_cookies: bool = False
    cors_origins: tuple[str, ...] = ("*",)
    services: tuple[str, ...] = DEFAULT_SERVICES
    admins: tuple[AdminAccount, ...] = field(default_factory=lambda: tuple(default_admins()))

    @property
    def uses_default_admin(self) -> bool:
        return any(admin.password_hash == DEFAULT_ADMIN_PASSWORD_HASH for admin in self.admins)


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _load_admins(raw: Iterable[Mapping[str, object]]) -> tuple[AdminAccount, ...]:
    admins = [admin_from_dict(item) for item in raw]
    seen: Dict[str, int] = {}
    for admin in admins:
        if admin.email in seen:
            raise ValueError(f"Duplicate admin email in configuration: {admin.email}")
        seen[admin.email] = admin.id
    return tuple(admins)


def _resolve_secret(value: Optional[str], name: str) -> str:
    if value:
        return value
    logger.warning(
        "%s is not configured; generated a random secret for this process. "
        "Issued tokens will not survive a restart.",
        name,
    )
    return secrets.token_urlsafe(32)


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from an optional YAML file and the environment."""
    env = os.environ if environ is None else environ

    raw: Dict[str, object] = {}
    if config_path is not None and config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
        if not isinstance(raw, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

    admins_raw = raw.get("admins")
    if admins_raw:
        admins = _load_admins(admins_raw)  # type: ignore[arg-type]
    else:
        admins = tuple(default_admins())

    services_raw = raw.get("services")
    services = tuple(str(item) for item in services_raw) if services_raw else DEFAULT_SERVICES  # type: ignore[union-attr]

    token_ttl = int(env.get("INTAKE_TOKEN_TTL_HOURS") or raw.get("token_ttl_hours") or DEFAULT_TOKEN_TTL_HOURS)
    if token_ttl <= 0:
        raise ValueError("token_ttl_hours must be positive")

    page_size = int(raw.get("page_size") or DEFAULT_PAGE_SIZE)  # type: ignore[arg-type]
    if page_size <= 0:
        raise ValueError("page_size must be positive")

    cors_env = env.get("INTAKE_CORS_ORIGINS")
    if cors_env:
        cors_origins = _split_csv(cors_env)
    else:
        cors_origins = tuple(str(item) for item in raw.get("cors_origins") or ("*",))  # type: ignore[union-attr]

    jwt_secret = _resolve_secret(env.get("INTAKE_JWT_SECRET") or raw.get("jwt_secret"), "INTAKE_JWT_SECRET")  # type: ignore[arg-type]
    session_secret = _resolve_secret(
        env.get("INTAKE_SESSION_SECRET") or raw.get("session_secret"),  # type: ignore[arg-type]
        "INTAKE_SESSION_SECRET",
    )

    return Settings(
        jwt_secret=jwt_secret,
        session_secret=session_secret,
        token_ttl_hours=token_ttl,
        page_size=page_size,
        secure_cookies=_env_flag(env.get("INTAKE_SESSION_SECURE"), False),
        cors_origins=cors_origins,
        services=services,
        admins=admins,
    )


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "intake.yaml").resolve(strict=False)
    return candidate


__all__ = [
    "DEFAULT_ADMIN_EMAIL",
    "DEFAULT_ADMIN_PASSWORD_HASH",
    "Settings",
    "admin_from_dict",
    "default_admins",
    "load_settings",
    "resolve_config_path",
]
