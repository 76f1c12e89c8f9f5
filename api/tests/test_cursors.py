from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from talentlist.services.cursors import CursorCodec, InvalidCursorError
from talentlist.services.sorting import select_strategy
from talentlist.services.views import JOBS_VIEW

CODEC = CursorCodec("test-signing-key")
RECENT = select_strategy(JOBS_VIEW.sort, "createdAt", "desc")


def test_cursor_carries_sort_value_and_tie_break_id() -> None:
    created_at = datetime(2025, 3, 1, 9, 30, tzinfo=timezone(timedelta(hours=8)))
    token = CODEC.encode({"id": "job-7", "created_at": created_at}, RECENT)

    cursor = CODEC.decode(token, RECENT)

    assert cursor.sort_key == "createdAt"
    assert cursor.sort_dir == "desc"
    assert cursor.tie_break_id == "job-7"
    assert cursor.sort_value == created_at
    assert cursor.sort_value.utcoffset() == timedelta(hours=8)


def test_cursor_is_url_safe_and_opaque() -> None:
    token = CODEC.encode({"id": "job-7", "created_at": datetime(2025, 3, 1, tzinfo=timezone.utc)}, RECENT)

    assert "job-7" not in token
    assert all(ch.isalnum() or ch in "-_." for ch in token)


def test_cursor_from_another_sort_is_rejected() -> None:
    token = CODEC.encode({"id": "job-7", "created_at": datetime(2025, 3, 1, tzinfo=timezone.utc)}, RECENT)
    ascending = select_strategy(JOBS_VIEW.sort, "createdAt", "asc")

    with pytest.raises(InvalidCursorError):
        CODEC.decode(token, ascending)


@pytest.mark.parametrize("token", ["", "garbage", "abc.def", "%%%.###", "eyJrIjoxfQ"])
def test_malformed_cursor_is_rejected(token: str) -> None:
    with pytest.raises(InvalidCursorError):
        CODEC.decode(token, RECENT)


def test_tampered_or_foreign_cursor_is_rejected() -> None:
    token = CODEC.encode({"id": "job-7", "created_at": datetime(2025, 3, 1, tzinfo=timezone.utc)}, RECENT)
    body, _, signature = token.partition(".")

    with pytest.raises(InvalidCursorError):
        CODEC.decode(f"{body}x.{signature}", RECENT)
    with pytest.raises(InvalidCursorError):
        CursorCodec("another-key").decode(token, RECENT)
