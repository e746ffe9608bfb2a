"""Administrator accounts and password verification."""
from __future__ import annotations

from typing import Dict, Iterable, Optional

from passlib.context import CryptContext

from .models import AdminAccount

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password must not be empty")
    return _pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        return False


def _normalise_email(email: str) -> str:
    return email.strip().lower()


class AdminDirectory:
    """Read-only lookup of the administrator accounts seeded at startup."""

    def __init__(self, accounts: Iterable[AdminAccount]) -> None:
        self._accounts: Dict[str, AdminAccount] = {}
        for account in accounts:
            key = _normalise_email(account.email)
            if key in self._accounts:
                raise ValueError(f"Duplicate admin email: {account.email}")
            self._accounts[key] = account

    def __len__(self) -> int:
        return len(self._accounts)

    def get_by_email(self, email: str) -> Optional[AdminAccount]:
        return self._accounts.get(_normalise_email(email))

    def get(self, account_id: int) -> Optional[AdminAccount]:
        for account in self._accounts.values():
            if account.id == account_id:
                return account
        return None

    def authenticate(self, email: str, password: str) -> Optional[AdminAccount]:
        """Return the matching account when ``password`` verifies, else ``None``."""

        account = self.get_by_email(email)
        if account is None:
            return None
        if not account.password_hash or not verify_password(password, account.password_hash):
            return None
        return account


__all__ = ["AdminDirectory", "hash_password", "verify_password"]
