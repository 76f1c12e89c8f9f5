#!/usr/bin/env python3
"""Emit deterministic SQL that seeds demo categories, skill tags and jobs."""

from __future__ import annotations

import argparse
import random
import uuid
from datetime import datetime, timedelta, timezone

_NAMESPACE = uuid.UUID("6f1c2a52-5b7e-4c1f-9d55-2f4a8f0c7e10")

CATEGORIES: dict[str, list[str]] = {
    "Hospitality": ["Housekeeping", "Front Desk", "Food Handling"],
    "Logistics": ["Forklift Operation", "Inventory", "Dispatching"],
    "Technology": ["Python", "SQL", "Frontend"],
    "Healthcare": ["Patient Care", "Phlebotomy", "Medical Records"],
}
COMPANIES = ["Visondyna", "MetroCorp", "Acme Services", "BrightHire", "HarborWorks"]
LOCATIONS = ["Angeles City, Pampanga", "Clark Freeport Zone", "Mabalacat City", "San Fernando City"]
TITLES = {
    "Hospitality": ["Housekeeping Attendant", "Front Desk Associate", "Food Service Crew"],
    "Logistics": ["Warehouse Assistant", "Forklift Operator", "Dispatcher"],
    "Technology": ["Junior Frontend Developer", "Data Entry Clerk", "Backend Developer"],
    "Healthcare": ["Staff Nurse", "Phlebotomist", "Medical Records Clerk"],
}
STATUSES = ["OPEN", "OPEN", "OPEN", "CLOSED", "FILLED"]


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def _stable_id(*parts: object) -> str:
    return str(uuid.uuid5(_NAMESPACE, ":".join(str(part) for part in parts)))


def render_sql(*, jobs: int, seed: int, archived_ratio: float, start: datetime) -> str:
    rng = random.Random(seed)
    lines = [
        "-- Demo data for the list query service",
        f"-- seed={seed} jobs={jobs}",
        "",
        "begin;",
        "",
    ]

    skill_ids: dict[str, list[str]] = {}
    for category, skills in CATEGORIES.items():
        category_id = _stable_id("category", category)
        lines.append(
            f"insert into categories (id, name) values ({_quote_sql(category_id)}::uuid, {_quote_sql(category)}) "
            "on conflict (id) do nothing;"
        )
        skill_ids[category] = []
        for skill in skills:
            skill_id = _stable_id("skill", skill)
            skill_ids[category].append(skill_id)
            lines.append(
                "insert into skill_tags (id, name, category_id) values "
                f"({_quote_sql(skill_id)}::uuid, {_quote_sql(skill)}, {_quote_sql(category_id)}::uuid) "
                "on conflict (id) do nothing;"
            )
    lines.append("")

    category_names = list(CATEGORIES)
    for index in range(jobs):
        category = rng.choice(category_names)
        job_id = _stable_id("job", seed, index)
        created_at = start + timedelta(minutes=37 * index)
        deleted_at = "null"
        if rng.random() < archived_ratio:
            deleted_at = f"{_quote_sql((created_at + timedelta(days=30)).isoformat())}::timestamptz"
        salary = "null" if rng.random() < 0.1 else str(rng.randrange(15_000, 90_000, 500))

        lines.append(
            "insert into jobs (id, title, description, company, location, salary, manpower, status, "
            "category_id, created_at, deleted_at) values ("
            f"{_quote_sql(job_id)}::uuid, "
            f"{_quote_sql(rng.choice(TITLES[category]))}, "
            f"{_quote_sql(f'Demo opening #{index + 1} in {category.lower()}.')}, "
            f"{_quote_sql(rng.choice(COMPANIES))}, "
            f"{_quote_sql(rng.choice(LOCATIONS))}, "
            f"{salary}, "
            f"{rng.randint(1, 10)}, "
            f"{_quote_sql(rng.choice(STATUSES))}::job_status, "
            f"{_quote_sql(_stable_id('category', category))}::uuid, "
            f"{_quote_sql(created_at.isoformat())}::timestamptz, "
            f"{deleted_at}"
            ") on conflict (id) do nothing;"
        )
        for skill_id in rng.sample(skill_ids[category], k=rng.randint(1, len(skill_ids[category]))):
            lines.append(
                "insert into job_skill_tags (job_id, skill_tag_id) values "
                f"({_quote_sql(job_id)}::uuid, {_quote_sql(skill_id)}::uuid) on conflict do nothing;"
            )

    lines.extend(["", "commit;", ""])
    return "\n".join(lines)


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL that seeds demo list data.")
    parser.add_argument("--jobs", type=int, default=100, help="Number of jobs to generate")
    parser.add_argument("--seed", type=int, default=7, help="Random seed; same seed gives the same SQL")
    parser.add_argument(
        "--archived-ratio",
        type=float,
        default=0.1,
        help="Fraction of jobs emitted as soft-deleted",
    )
    parser.add_argument(
        "--start",
        default="2025-01-06T08:00:00+00:00",
        help="ISO timestamp of the oldest job",
    )
    args = parser.parse_args()

    if args.jobs < 0:
        parser.error("--jobs must be >= 0")
    if not 0.0 <= args.archived_ratio <= 1.0:
        parser.error("--archived-ratio must be between 0 and 1")

    start = datetime.fromisoformat(args.start)
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)

    print(render_sql(jobs=args.jobs, seed=args.seed, archived_ratio=args.archived_ratio, start=start))


if __name__ == "__main__":
    main()
