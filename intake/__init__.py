"""Timvest business-registration intake portal."""

from __future__ import annotations

from typing import Any

from .config import Settings, load_settings, resolve_config_path


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the combined web + API application."""

    from .application import create_application as _create_application

    return _create_application(*args, **kwargs)


__all__ = [
    "Settings",
    "create_app",
    "load_settings",
    "resolve_config_path",
]
