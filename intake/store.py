"""Repository abstraction over submitted applications."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from .models import Application, ApplicationDraft

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _snapshot(application: Application) -> Application:
    return replace(application, services=list(application.services))


class ApplicationStore(ABC):
    """Storage seam for applications.

    Implementations assign identifiers, keep insertion order and hand out
    snapshots so callers cannot mutate stored records behind the store's back.
    """

    @abstractmethod
    def append(self, draft: ApplicationDraft) -> Application:
        """Persist a new pending application and return it."""

    @abstractmethod
    def list(self) -> List[Application]:
        """Return every application in insertion order."""

    @abstractmethod
    def find_by_id(self, application_id: int) -> Optional[Application]:
        ...

    @abstractmethod
    def update(
        self,
        application_id: int,
        mutate: Callable[[Application], None],
    ) -> Application:
        """Apply ``mutate`` to the stored record atomically.

        Raises :class:`KeyError` when no record matches. If ``mutate`` raises,
        the stored record is left untouched.
        """


class InMemoryApplicationStore(ApplicationStore):
    """Process-local store; contents are lost when the process exits."""

    def __init__(self, *, clock: Clock = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._applications: Dict[int, Application] = {}
        self._next_id = 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._applications)

    def append(self, draft: ApplicationDraft) -> Application:
        with self._lock:
            application = Application(
                id=self._next_id,
                company_name=draft.company_name,
                contact_person=draft.contact_person,
                email=draft.email,
                phone=draft.phone,
                company_type=draft.company_type,
                services=list(draft.services),
                payment_plan=draft.payment_plan,
                created_at=self._clock(),
            )
            self._applications[application.id] = application
            self._next_id += 1
            return _snapshot(application)

    def list(self) -> List[Application]:
        with self._lock:
            return [_snapshot(application) for application in self._applications.values()]

    def find_by_id(self, application_id: int) -> Optional[Application]:
        with self._lock:
            application = self._applications.get(application_id)
            return _snapshot(application) if application is not None else None

    def update(
        self,
        application_id: int,
        mutate: Callable[[Application], None],
    ) -> Application:
        with self._lock:
            current = self._applications.get(application_id)
            if current is None:
                raise KeyError(f"Unknown application {application_id}")
            candidate = _snapshot(current)
            mutate(candidate)
            self._applications[application_id] = candidate
            return _snapshot(candidate)


__all__ = ["ApplicationStore", "Clock", "InMemoryApplicationStore"]
