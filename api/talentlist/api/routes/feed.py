from fastapi import APIRouter, Depends, Query

from talentlist.api.deps import build_list_request, run_list_query
from talentlist.core.auth import Principal
from talentlist.core.config import Settings, get_settings
from talentlist.core.security import get_optional_principal
from talentlist.schemas.jobs import JobListOut, JobOut
from talentlist.schemas.listing import ListMetaOut
from talentlist.services.cursors import get_cursor_codec
from talentlist.services.engine import ListQueryEngine
from talentlist.services.repository import get_repository
from talentlist.services.views import FEED_VIEW

router = APIRouter()


@router.get("", response_model=JobListOut)
async def get_feed(
    q: str | None = Query(default=None),
    category_id: str | None = Query(default=None, alias="categoryId"),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_dir: str | None = Query(default=None, alias="sortDir"),
    limit: str | None = Query(default=None),
    cursor: str | None = Query(default=None),
    page: str | None = Query(default=None),
    principal: Principal | None = Depends(get_optional_principal),
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
    codec=Depends(get_cursor_codec),
) -> JobListOut:
    request = build_list_request(
        settings,
        q=q,
        filters={"categoryId": category_id},
        sort_by=sort_by,
        sort_dir=sort_dir,
        limit=limit,
        cursor=cursor,
        page=page,
    )
    engine = ListQueryEngine(FEED_VIEW, repository, codec)
    result = await run_list_query(engine, request, principal=principal, recommended=True)
    return JobListOut(data=[JobOut(**row) for row in result.items], meta=ListMetaOut.from_result(result))
