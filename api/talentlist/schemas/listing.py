from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from talentlist.services.engine import ListResult
from talentlist.services.paging import CursorPaging

SortDir = Literal["asc", "desc"]


class CursorPagingOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mode: Literal["cursor"] = "cursor"
    next_cursor: str | None = Field(default=None, alias="nextCursor")


class OffsetPagingOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mode: Literal["offset"] = "offset"
    page: int
    total: int
    total_pages: int = Field(alias="totalPages")
    has_more: bool = Field(alias="hasMore")


PagingOut = Annotated[Union[CursorPagingOut, OffsetPagingOut], Field(discriminator="mode")]


class ListMetaOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    limit: int
    sort_by: str = Field(alias="sortBy")
    sort_dir: SortDir = Field(alias="sortDir")
    paging: PagingOut

    @classmethod
    def from_result(cls, result: ListResult) -> "ListMetaOut":
        paging = result.paging
        if isinstance(paging, CursorPaging):
            paging_out: CursorPagingOut | OffsetPagingOut = CursorPagingOut(next_cursor=paging.next_cursor)
        else:
            paging_out = OffsetPagingOut(
                page=paging.page,
                total=paging.total,
                total_pages=paging.total_pages,
                has_more=paging.has_more,
            )
        return cls(
            limit=result.limit,
            sort_by=result.sort.key,
            sort_dir=result.sort.direction,
            paging=paging_out,
        )
