from typing import Mapping, NoReturn

from fastapi import HTTPException, status as http_status

from talentlist.core.auth import Principal
from talentlist.core.config import Settings
from talentlist.services.engine import ListQueryEngine, ListRequest, ListResult
from talentlist.services.recommendation import load_caller_context
from talentlist.services.repository import (
    RepositoryError,
    RepositoryNotFoundError,
    RepositoryQueryError,
    RepositoryUnavailableError,
)


def build_list_request(
    settings: Settings,
    *,
    q: str | None,
    filters: Mapping[str, str | None],
    sort_by: str | None,
    sort_dir: str | None,
    limit: str | None,
    cursor: str | None,
    page: str | None,
) -> ListRequest:
    return ListRequest.from_query(
        q=q,
        filters=filters,
        sort_by=sort_by,
        sort_dir=sort_dir,
        limit=limit,
        cursor=cursor,
        page=page,
        default_limit=settings.list_default_limit,
        max_limit=settings.list_max_limit,
    )


async def run_list_query(
    engine: ListQueryEngine,
    request: ListRequest,
    *,
    principal: Principal | None = None,
    recommended: bool = False,
) -> ListResult:
    try:
        if not recommended:
            return await engine.list(request)
        caller_id = principal.actor_id if principal is not None else None
        caller = await load_caller_context(engine.repository, caller_id)
        return await engine.list(request, caller=caller)
    except RepositoryError as exc:
        raise_repository_error(exc)


def raise_repository_error(exc: RepositoryError) -> NoReturn:
    if isinstance(exc, RepositoryUnavailableError):
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if isinstance(exc, RepositoryNotFoundError):
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, RepositoryQueryError):
        raise HTTPException(status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    raise exc
