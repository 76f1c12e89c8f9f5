from __future__ import annotations

from typing import Any, Iterable, Mapping


def merge_pinned(
    pinned: Mapping[str, Any] | None,
    related: Iterable[Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Pinned record first, then related records whose id was not seen yet."""
    merged: dict[str, dict[str, Any]] = {}
    if pinned is not None:
        merged[str(pinned["id"])] = dict(pinned)
    for record in related:
        record_id = str(record["id"])
        if record_id not in merged:
            merged[record_id] = dict(record)
    return list(merged.values())
