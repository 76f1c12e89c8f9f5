from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

import httpx

PagingMode = Literal["cursor", "offset"]


class ListClientError(Exception):
    """Raised when a list endpoint fails or answers with an unexpected envelope."""


@dataclass(frozen=True, slots=True)
class ListPage:
    items: list[dict[str, Any]]
    limit: int
    sort_by: str
    sort_dir: str
    mode: PagingMode
    next_cursor: str | None = None
    page: int = 1
    total: int | None = None
    total_pages: int = 1
    has_more: bool = False

    @classmethod
    def from_payload(cls, payload: Any) -> "ListPage":
        if not isinstance(payload, dict):
            raise ListClientError("list response must be a JSON object")
        data = payload.get("data")
        meta = payload.get("meta")
        if not isinstance(data, list) or not isinstance(meta, dict):
            raise ListClientError("list response is missing data or meta")
        paging = meta.get("paging")
        if not isinstance(paging, dict):
            raise ListClientError("list response is missing meta.paging")

        mode = paging.get("mode")
        try:
            common = {
                "items": [dict(item) for item in data],
                "limit": int(meta["limit"]),
                "sort_by": str(meta["sortBy"]),
                "sort_dir": str(meta["sortDir"]),
            }
            if mode == "cursor":
                return cls(mode="cursor", next_cursor=paging.get("nextCursor"), **common)
            if mode == "offset":
                return cls(
                    mode="offset",
                    page=int(paging["page"]),
                    total=int(paging["total"]),
                    total_pages=int(paging["totalPages"]),
                    has_more=bool(paging["hasMore"]),
                    **common,
                )
        except (KeyError, TypeError, ValueError) as exc:
            raise ListClientError(f"malformed list response: {exc}") from exc
        raise ListClientError(f"unknown paging mode: {mode!r}")


class ListClient:
    def __init__(
        self,
        base_url: str,
        *,
        bearer_token: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = {"Accept": "application/json"}
        if bearer_token:
            self.headers["Authorization"] = f"Bearer {bearer_token}"
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def fetch_page(self, path: str, params: Mapping[str, str]) -> ListPage:
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
            response = await client.get(
                f"{self.base_url}/{path.lstrip('/')}",
                params=dict(params),
                headers=self.headers,
            )
        if response.status_code != 200:
            raise ListClientError(f"list request failed: status={response.status_code} body={response.text[:200]}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise ListClientError("list response is not JSON") from exc
        return ListPage.from_payload(payload)
