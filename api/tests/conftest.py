from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

from talentlist.services.views import APPLICATION_STATUS_ORDER

os.environ.setdefault("TL_OTEL_ENABLED", "false")

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_job(
    index: int,
    *,
    title: str | None = None,
    category_id: str | None = "cat-eng",
    skill_ids: list[str] | None = None,
    status: str = "OPEN",
    salary: int | None = None,
    deleted: bool = False,
    **extra: Any,
) -> dict[str, Any]:
    created_at = BASE_TIME + timedelta(minutes=index)
    row = {
        "id": f"job-{index:03d}",
        "title": title or f"Job {index:03d}",
        "description": f"Description for job {index}",
        "company": "Acme",
        "location": "Manila",
        "salary": salary,
        "manpower": 1,
        "status": status,
        "category_id": category_id,
        "category_name": category_id,
        "skill_ids": list(skill_ids or []),
        "applications_count": 0,
        "created_at": created_at,
        "deleted_at": created_at + timedelta(days=1) if deleted else None,
    }
    row.update(extra)
    return row


def make_application(
    index: int,
    *,
    job: dict[str, Any],
    applicant_id: str = "user-1",
    firstname: str = "Ana",
    lastname: str = "Reyes",
    email: str | None = None,
    status: str = "SUBMITTED",
) -> dict[str, Any]:
    return {
        "id": f"app-{index:03d}",
        "status": status,
        "submitted_at": BASE_TIME + timedelta(hours=index),
        "deleted_at": None,
        "job_id": job["id"],
        "job_title": job["title"],
        "job_company": job["company"],
        "job_location": job["location"],
        "applicant_id": applicant_id,
        "applicant_firstname": firstname,
        "applicant_lastname": lastname,
        "applicant_email": email or f"{firstname.lower()}@example.com",
        "status_rank": APPLICATION_STATUS_ORDER.index(status) + 1,
    }
