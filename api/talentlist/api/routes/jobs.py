from fastapi import APIRouter, Depends, Query

from talentlist.api.deps import build_list_request, raise_repository_error, run_list_query
from talentlist.core.auth import Principal
from talentlist.core.config import Settings, get_settings
from talentlist.core.security import get_optional_principal
from talentlist.schemas.jobs import JobListOut, JobOut, RelatedJobsMetaOut, RelatedJobsOut
from talentlist.schemas.listing import ListMetaOut
from talentlist.services.assembler import merge_pinned
from talentlist.services.cursors import get_cursor_codec
from talentlist.services.engine import ListQueryEngine
from talentlist.services.predicates import FieldEquals, FieldIsNull, and_
from talentlist.services.repository import RepositoryError, get_repository
from talentlist.services.sorting import RowOrder
from talentlist.services.views import JOBS_VIEW

router = APIRouter()

RELATED_ORDER = RowOrder(field="created_at", direction="desc", tie_break_direction="desc")


@router.get("", response_model=JobListOut)
async def list_jobs(
    q: str | None = Query(default=None),
    category_id: str | None = Query(default=None, alias="categoryId"),
    job_status: str | None = Query(default=None, alias="status"),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_dir: str | None = Query(default=None, alias="sortDir"),
    limit: str | None = Query(default=None),
    cursor: str | None = Query(default=None),
    page: str | None = Query(default=None),
    recommended: bool = Query(default=False),
    principal: Principal | None = Depends(get_optional_principal),
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
    codec=Depends(get_cursor_codec),
) -> JobListOut:
    request = build_list_request(
        settings,
        q=q,
        filters={"categoryId": category_id, "status": job_status},
        sort_by=sort_by,
        sort_dir=sort_dir,
        limit=limit,
        cursor=cursor,
        page=page,
    )
    engine = ListQueryEngine(JOBS_VIEW, repository, codec)
    result = await run_list_query(engine, request, principal=principal, recommended=recommended)
    return JobListOut(data=[JobOut(**row) for row in result.items], meta=ListMetaOut.from_result(result))


@router.get("/{job_id}/related", response_model=RelatedJobsOut)
async def list_related_jobs(
    job_id: str,
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> RelatedJobsOut:
    try:
        pinned = await repository.get_record("jobs", job_id)
        related: list[dict] = []
        if pinned.get("category_id"):
            predicate = and_(
                FieldIsNull("deleted_at"),
                FieldEquals("category_id", pinned["category_id"]),
            )
            related = await repository.fetch_rows(
                "jobs",
                predicate,
                RELATED_ORDER,
                limit=settings.related_jobs_limit,
            )
    except RepositoryError as exc:
        raise_repository_error(exc)

    rows = merge_pinned(pinned, related)
    return RelatedJobsOut(
        data=[JobOut(**row) for row in rows],
        meta=RelatedJobsMetaOut(pinned_id=str(pinned["id"]), limit=settings.related_jobs_limit),
    )
