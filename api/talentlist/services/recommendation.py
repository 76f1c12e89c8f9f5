"""Recommendation candidate filter.

A caller's skills and application history narrow the candidate set; nothing
is scored or reordered. Records the caller already applied to are always
excluded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from talentlist.services.predicates import FieldIn, FieldOverlaps, Not, Predicate, and_, or_
from talentlist.services.views import ListView


@dataclass(frozen=True, slots=True)
class CallerContext:
    caller_id: str | None = None
    skill_ids: frozenset[str] = field(default_factory=frozenset)
    implied_category_ids: frozenset[str] = field(default_factory=frozenset)
    applied_category_ids: frozenset[str] = field(default_factory=frozenset)
    excluded_record_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def anonymous(cls) -> "CallerContext":
        return cls()


@dataclass(frozen=True, slots=True)
class CandidateFilter:
    include: Predicate | None
    exclude_ids: frozenset[str]

    def exclusion(self) -> Predicate | None:
        if not self.exclude_ids:
            return None
        return Not(FieldIn("id", self.exclude_ids))

    def narrowed(self, base: Predicate) -> Predicate:
        return and_(base, self.include, self.exclusion())

    def fallback(self, base: Predicate) -> Predicate:
        return and_(base, self.exclusion())


NO_NARROWING = CandidateFilter(include=None, exclude_ids=frozenset())


def build_candidate_filter(context: CallerContext, view: ListView) -> CandidateFilter:
    if not context.caller_id:
        return NO_NARROWING

    preferred_category_ids = context.implied_category_ids | context.applied_category_ids

    ors: list[Predicate] = []
    if context.skill_ids and view.tag_field:
        ors.append(FieldOverlaps(view.tag_field, context.skill_ids))
    if preferred_category_ids and view.category_field:
        ors.append(FieldIn(view.category_field, preferred_category_ids))

    include = or_(*ors) if ors else None
    return CandidateFilter(include=include, exclude_ids=context.excluded_record_ids)


async def load_caller_context(repository: Any, caller_id: str | None) -> CallerContext:
    if not caller_id:
        return CallerContext.anonymous()
    profile = await repository.load_caller_profile(caller_id)
    return CallerContext(
        caller_id=caller_id,
        skill_ids=frozenset(profile.skill_ids),
        implied_category_ids=frozenset(profile.skill_category_ids),
        applied_category_ids=frozenset(profile.applied_category_ids),
        excluded_record_ids=frozenset(profile.applied_job_ids),
    )
