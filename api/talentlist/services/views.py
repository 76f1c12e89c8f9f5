from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from talentlist.services.filters import FilterParam
from talentlist.services.predicates import FieldEquals, FieldIsNull, Not, Predicate, and_
from talentlist.services.sorting import SortField, SortSpec

JOB_STATUSES = frozenset({"OPEN", "CLOSED", "FILLED"})
# Declaration order of the application_status enum; the status sort follows it.
APPLICATION_STATUS_ORDER = ("SUBMITTED", "UNDER_REVIEW", "SHORTLISTED", "INTERVIEWED", "OFFERED", "HIRED", "REJECTED")
APPLICATION_STATUSES = frozenset(APPLICATION_STATUS_ORDER)

JOB_SEARCH_FIELDS = ("title", "description", "company", "location")


@dataclass(frozen=True, slots=True)
class ListView:
    """One list screen: which table it reads, how it sorts, searches and filters."""

    name: str
    table: str
    sort: SortSpec
    base: Predicate
    search_fields: tuple[str, ...]
    filter_params: Mapping[str, FilterParam] = field(default_factory=dict)
    tag_field: str | None = None
    category_field: str | None = None


_JOB_SORT = SortSpec(
    allowed={
        "createdAt": SortField("created_at", "desc"),
        "title": SortField("title"),
        "salary": SortField("salary"),
        "manpower": SortField("manpower"),
        "applications": SortField("applications_count"),
    },
    default_key="createdAt",
    recency_key="createdAt",
)

_JOB_FILTERS = {
    "categoryId": FilterParam("category_id"),
    "status": FilterParam("status", JOB_STATUSES),
}

_NOT_DELETED = FieldIsNull("deleted_at")

JOBS_VIEW = ListView(
    name="jobs",
    table="jobs",
    sort=_JOB_SORT,
    base=_NOT_DELETED,
    search_fields=JOB_SEARCH_FIELDS,
    filter_params=_JOB_FILTERS,
    tag_field="skill_ids",
    category_field="category_id",
)

ARCHIVED_JOBS_VIEW = ListView(
    name="archived_jobs",
    table="jobs",
    sort=SortSpec(
        allowed={key: value for key, value in _JOB_SORT.allowed.items() if key != "manpower"},
        default_key="createdAt",
        recency_key="createdAt",
    ),
    base=Not(_NOT_DELETED),
    search_fields=JOB_SEARCH_FIELDS,
    filter_params=_JOB_FILTERS,
)

FEED_VIEW = ListView(
    name="feed",
    table="jobs",
    sort=_JOB_SORT,
    base=and_(FieldEquals("status", "OPEN"), _NOT_DELETED),
    search_fields=JOB_SEARCH_FIELDS,
    filter_params={"categoryId": FilterParam("category_id")},
    tag_field="skill_ids",
    category_field="category_id",
)

APPLICATIONS_VIEW = ListView(
    name="applications",
    table="applications",
    sort=SortSpec(
        allowed={
            "submittedAt": SortField("submitted_at", "desc"),
            "applicant": SortField("applicant_lastname", then_by=("applicant_firstname",)),
            "email": SortField("applicant_email"),
            "jobTitle": SortField("job_title"),
            "status": SortField("status_rank"),
        },
        default_key="submittedAt",
        recency_key="submittedAt",
    ),
    base=_NOT_DELETED,
    search_fields=("applicant_firstname", "applicant_lastname", "applicant_email", "job_title", "job_company"),
    filter_params={
        "jobId": FilterParam("job_id"),
        "status": FilterParam("status", APPLICATION_STATUSES),
    },
)
