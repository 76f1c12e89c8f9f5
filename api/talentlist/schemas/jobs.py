from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from talentlist.schemas.listing import ListMetaOut

JobStatus = Literal["OPEN", "CLOSED", "FILLED"]


class JobOut(BaseModel):
    id: str
    title: str
    description: str | None = None
    company: str | None = None
    location: str | None = None
    salary: int | None = None
    manpower: int | None = None
    status: JobStatus = "OPEN"
    category_id: str | None = None
    category_name: str | None = None
    skill_ids: list[str] = Field(default_factory=list)
    applications_count: int = 0
    created_at: datetime
    deleted_at: datetime | None = None


class JobListOut(BaseModel):
    data: list[JobOut]
    meta: ListMetaOut


class RelatedJobsMetaOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pinned_id: str = Field(alias="pinnedId")
    limit: int


class RelatedJobsOut(BaseModel):
    data: list[JobOut]
    meta: RelatedJobsMetaOut
