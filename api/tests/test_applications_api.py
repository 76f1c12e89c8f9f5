from __future__ import annotations

from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

import talentlist.core.security as security
from conftest import make_application, make_job
from talentlist.core.config import get_settings
from talentlist.main import app
from talentlist.services.repository import get_repository
from talentlist.services.store import InMemoryRepository


@pytest.fixture
def repository() -> InMemoryRepository:
    nurse = make_job(1, title="Staff Nurse")
    welder = make_job(2, title="Welder")
    archived = make_job(3, title="Archived Cook", deleted=True)
    return InMemoryRepository(
        jobs=[nurse, welder, archived],
        applications=[
            make_application(1, job=nurse, applicant_id="u-1", firstname="Ana", lastname="Reyes"),
            make_application(2, job=welder, applicant_id="u-2", firstname="Ben", lastname="Cruz", status="HIRED"),
            make_application(3, job=nurse, applicant_id="u-3", firstname="Cora", lastname="Santos"),
        ],
    )


@pytest.fixture
def authz_client(repository: InMemoryRepository, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    monkeypatch.setenv("TL_SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("TL_SUPABASE_ANON_KEY", "anon-key")
    get_settings.cache_clear()
    app.dependency_overrides[get_repository] = lambda: repository

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    get_settings.cache_clear()


def _mock_supabase_user(monkeypatch: pytest.MonkeyPatch, user: dict[str, Any]) -> None:
    async def _fake_fetch(**_: Any) -> dict[str, Any]:
        return user

    monkeypatch.setattr(security, "_fetch_supabase_user", _fake_fetch)


def test_applications_require_bearer_token(authz_client: TestClient) -> None:
    assert authz_client.get("/applications").status_code == 401


def test_applications_deny_applicant_role(authz_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_supabase_user(monkeypatch, {"id": "u-1", "app_metadata": {"role": "applicant"}})

    response = authz_client.get("/applications", headers={"Authorization": "Bearer token"})
    assert response.status_code == 403


def test_user_metadata_cannot_grant_hr(authz_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_supabase_user(monkeypatch, {"id": "u-1", "user_metadata": {"role": "hr"}})

    response = authz_client.get("/applications", headers={"Authorization": "Bearer token"})
    assert response.status_code == 403


def test_applications_list_for_hr(authz_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_supabase_user(monkeypatch, {"id": "hr-1", "app_metadata": {"role": "hr"}})

    response = authz_client.get("/applications", headers={"Authorization": "Bearer token"})

    assert response.status_code == 200
    body = response.json()
    assert [row["id"] for row in body["data"]] == ["app-003", "app-002", "app-001"]
    assert body["meta"]["sortBy"] == "submittedAt"
    assert body["meta"]["paging"] == {"mode": "cursor", "nextCursor": None}


def test_applications_search_filter_and_sort(authz_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_supabase_user(monkeypatch, {"id": "admin-1", "app_metadata": {"roles": ["admin"]}})
    headers = {"Authorization": "Bearer token"}

    searched = authz_client.get("/applications", params={"q": "NURSE"}, headers=headers)
    assert [row["id"] for row in searched.json()["data"]] == ["app-003", "app-001"]

    by_status = authz_client.get("/applications", params={"status": "HIRED"}, headers=headers)
    assert [row["id"] for row in by_status.json()["data"]] == ["app-002"]

    by_applicant = authz_client.get("/applications", params={"sortBy": "applicant"}, headers=headers)
    assert [row["applicant_lastname"] for row in by_applicant.json()["data"]] == ["Cruz", "Reyes", "Santos"]
    assert by_applicant.json()["meta"]["paging"]["mode"] == "offset"


def test_archived_jobs_require_scope(authz_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_supabase_user(monkeypatch, {"id": "u-1"})
    headers = {"Authorization": "Bearer token"}

    assert authz_client.get("/archived-jobs", headers=headers).status_code == 403

    _mock_supabase_user(monkeypatch, {"id": "hr-1", "app_metadata": {"role": "hr"}})
    response = authz_client.get("/archived-jobs", headers=headers)

    assert response.status_code == 200
    assert [row["id"] for row in response.json()["data"]] == ["job-003"]


def test_unconfigured_auth_is_unavailable(authz_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TL_SUPABASE_URL")
    get_settings.cache_clear()

    response = authz_client.get("/applications", headers={"Authorization": "Bearer token"})
    assert response.status_code == 503


def _ordering_repository() -> InMemoryRepository:
    job = make_job(1, title="Line Cook")
    people = [
        ("Zed", "Smith", "SHORTLISTED"),
        ("Al", "Smithe", "HIRED"),
        ("Amy", "Smith", "REJECTED"),
        ("Bo", "Adams", "SUBMITTED"),
        ("Cy", "Young", "OFFERED"),
    ]
    return InMemoryRepository(
        jobs=[job],
        applications=[
            make_application(index, job=job, applicant_id=f"u-{index}", firstname=first, lastname=last, status=status)
            for index, (first, last, status) in enumerate(people, start=1)
        ],
    )


@pytest.mark.parametrize("repository", [_ordering_repository()])
def test_applicant_sort_is_lastname_then_firstname(authz_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_supabase_user(monkeypatch, {"id": "hr-1", "app_metadata": {"role": "hr"}})
    headers = {"Authorization": "Bearer token"}

    ascending = authz_client.get("/applications", params={"sortBy": "applicant", "sortDir": "asc"}, headers=headers)
    descending = authz_client.get("/applications", params={"sortBy": "applicant", "sortDir": "desc"}, headers=headers)

    names = [(row["applicant_lastname"], row["applicant_firstname"]) for row in ascending.json()["data"]]
    assert names == [("Adams", "Bo"), ("Smith", "Amy"), ("Smith", "Zed"), ("Smithe", "Al"), ("Young", "Cy")]
    assert [row["id"] for row in descending.json()["data"]] == ["app-005", "app-002", "app-001", "app-003", "app-004"]


@pytest.mark.parametrize("repository", [_ordering_repository()])
def test_status_sort_follows_workflow_order(authz_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_supabase_user(monkeypatch, {"id": "hr-1", "app_metadata": {"role": "hr"}})

    response = authz_client.get(
        "/applications",
        params={"sortBy": "status", "sortDir": "asc"},
        headers={"Authorization": "Bearer token"},
    )

    assert response.status_code == 200
    assert [row["status"] for row in response.json()["data"]] == [
        "SUBMITTED",
        "SHORTLISTED",
        "OFFERED",
        "HIRED",
        "REJECTED",
    ]
