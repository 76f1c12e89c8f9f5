from fastapi import APIRouter, Depends, Query

from talentlist.api.deps import build_list_request, run_list_query
from talentlist.core.config import Settings, get_settings
from talentlist.core.security import get_human_principal, require_scopes
from talentlist.schemas.applications import ApplicationListOut, ApplicationOut
from talentlist.schemas.listing import ListMetaOut
from talentlist.services.cursors import get_cursor_codec
from talentlist.services.engine import ListQueryEngine
from talentlist.services.repository import get_repository
from talentlist.services.views import APPLICATIONS_VIEW

router = APIRouter()


@router.get("", response_model=ApplicationListOut)
async def list_applications(
    q: str | None = Query(default=None),
    job_id: str | None = Query(default=None, alias="jobId"),
    application_status: str | None = Query(default=None, alias="status"),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_dir: str | None = Query(default=None, alias="sortDir"),
    limit: str | None = Query(default=None),
    cursor: str | None = Query(default=None),
    page: str | None = Query(default=None),
    principal=Depends(get_human_principal),
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
    codec=Depends(get_cursor_codec),
) -> ApplicationListOut:
    require_scopes(principal, {"applications:read"})

    request = build_list_request(
        settings,
        q=q,
        filters={"jobId": job_id, "status": application_status},
        sort_by=sort_by,
        sort_dir=sort_dir,
        limit=limit,
        cursor=cursor,
        page=page,
    )
    result = await run_list_query(ListQueryEngine(APPLICATIONS_VIEW, repository, codec), request)
    return ApplicationListOut(
        data=[ApplicationOut(**row) for row in result.items],
        meta=ListMetaOut.from_result(result),
    )
