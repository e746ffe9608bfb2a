"""Pure presentation helpers for the admin dashboard.

Everything here derives state from a full list of applications: searching,
status filtering, pagination and CSV export never touch the store.
"""

from __future__ import annotations

import csv
import io
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Sequence

from .models import Application, ApplicationStatus

ALL_STATUSES = "all"

CSV_HEADERS = (
    "Company Name",
    "Contact Person",
    "Email",
    "Phone",
    "Company Type",
    "Payment Plan",
    "Status",
    "Applied Date",
)


def format_date(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%d %b %Y, %H:%M")


def normalise_status_filter(value: Optional[str]) -> str:
    """Map a raw query value onto ``"all"`` or a known status."""

    if value is None:
        return ALL_STATUSES
    cleaned = value.strip().lower()
    if cleaned in {status.value for status in ApplicationStatus}:
        return cleaned
    return ALL_STATUSES


def matches_search(application: Application, search: str) -> bool:
    term = search.strip().lower()
    if not term:
        return True
    return (
        term in application.company_name.lower()
        or term in application.contact_person.lower()
        or term in application.email.lower()
    )


def filter_applications(
    applications: Iterable[Application],
    search: str = "",
    status: Optional[str] = ALL_STATUSES,
) -> List[Application]:
    status_filter = normalise_status_filter(status)
    return [
        application
        for application in applications
        if matches_search(application, search)
        and (status_filter == ALL_STATUSES or application.status.value == status_filter)
    ]


@dataclass(frozen=True)
class Page:
    """A slice of a filtered result set."""

    items: List[Application]
    number: int
    size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.size) if self.total_items else 0

    @property
    def first_index(self) -> int:
        """1-based position of the first item shown, 0 when empty."""

        if not self.items:
            return 0
        return (self.number - 1) * self.size + 1

    @property
    def last_index(self) -> int:
        if not self.items:
            return 0
        return self.first_index + len(self.items) - 1

    @property
    def has_previous(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages

    @property
    def page_numbers(self) -> range:
        return range(1, self.total_pages + 1)


def paginate(items: Sequence[Application], page: int = 1, page_size: int = 10) -> Page:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    total_pages = math.ceil(len(items) / page_size)
    number = min(max(page, 1), max(total_pages, 1))
    start = (number - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        number=number,
        size=page_size,
        total_items=len(items),
    )


def export_csv(applications: Iterable[Application]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buffer.write(",".join(CSV_HEADERS) + "\n")
    for application in applications:
        writer.writerow(
            [
                application.company_name,
                application.contact_person,
                application.email,
                application.phone,
                application.company_type.value,
                application.payment_plan.value,
                application.status.value,
                format_date(application.created_at),
            ]
        )
    return buffer.getvalue().rstrip("\n")


def csv_filename(today: Optional[date] = None) -> str:
    day = today or datetime.now(timezone.utc).date()
    return f"applications-{day.isoformat()}.csv"


__all__ = [
    "ALL_STATUSES",
    "CSV_HEADERS",
    "Page",
    "csv_filename",
    "export_csv",
    "filter_applications",
    "format_date",
    "matches_search",
    "normalise_status_filter",
    "paginate",
]
