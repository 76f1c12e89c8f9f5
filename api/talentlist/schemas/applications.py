from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from talentlist.schemas.listing import ListMetaOut

ApplicationStatus = Literal[
    "SUBMITTED",
    "UNDER_REVIEW",
    "SHORTLISTED",
    "INTERVIEWED",
    "OFFERED",
    "HIRED",
    "REJECTED",
]


class ApplicationOut(BaseModel):
    id: str
    status: ApplicationStatus
    submitted_at: datetime
    job_id: str
    job_title: str
    job_company: str | None = None
    job_location: str | None = None
    applicant_id: str
    applicant_firstname: str | None = None
    applicant_lastname: str | None = None
    applicant_email: str | None = None


class ApplicationListOut(BaseModel):
    data: list[ApplicationOut]
    meta: ListMetaOut
