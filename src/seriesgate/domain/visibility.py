"""Apply access decisions to paper queries."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from seriesgate.domain.model import PaperStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from seriesgate.domain.entitlement import Entitlement
    from seriesgate.domain.model import Alternates, Paper, PaperType
    from seriesgate.domain.ports.persistence import PaperRepository


@dataclass(frozen=True, slots=True)
class PaperQuery:
    group: str | None = None
    subject: str | None = None
    series_instance: str | None = None
    paper_type: PaperType | None = None


@dataclass(frozen=True, slots=True)
class PaperSummary:
    total: int
    by_group: dict[str, int] = field(default_factory=dict[str, int])
    by_subject: dict[str, int] = field(default_factory=dict[str, int])
    by_paper_type: dict[str, int] = field(default_factory=dict[str, int])
    by_group_subject: dict[str, int] = field(default_factory=dict[str, int])


def _sort_key(paper: Paper) -> tuple[str, str, int, float]:
    return (paper.subject, paper.paper_type.value, paper.paper_number, paper.created_at.timestamp())


def visible_papers(
    papers: PaperRepository,
    entitlement: Entitlement,
    alternates: Alternates,
    query: PaperQuery | None = None,
) -> list[Paper]:
    if not entitlement.has_access or not alternates.references:
        return []

    subject_filter = entitlement.subject_filter()
    if subject_filter is not None and not subject_filter:
        return []

    query = query or PaperQuery()
    if query.subject is not None and not entitlement.allows(query.subject):
        return []

    found = papers.find(
        alternates.references,
        status=PaperStatus.PUBLISHED,
        group=query.group,
        subject=query.subject,
        series_instance=query.series_instance,
        paper_type=query.paper_type,
        subjects=subject_filter,
    )
    return sorted(found, key=_sort_key)


def public_papers(
    papers: PaperRepository,
    alternates: Alternates,
    query: PaperQuery | None = None,
) -> list[Paper]:
    if not alternates.references:
        return []
    query = query or PaperQuery()
    found = papers.find(
        alternates.references,
        status=PaperStatus.PUBLISHED,
        group=query.group,
        subject=query.subject,
        series_instance=query.series_instance,
        paper_type=query.paper_type,
    )
    return sorted(found, key=_sort_key)


def group_by_subject(papers: Iterable[Paper]) -> dict[str, list[Paper]]:
    grouped: dict[str, list[Paper]] = {}
    for paper in papers:
        grouped.setdefault(paper.subject, []).append(paper)
    return grouped


def summarize(papers: Sequence[Paper]) -> PaperSummary:
    published = [paper for paper in papers if paper.is_published]
    return PaperSummary(
        total=len(published),
        by_group=dict(Counter(paper.group for paper in published)),
        by_subject=dict(Counter(paper.subject for paper in published)),
        by_paper_type=dict(Counter(paper.paper_type.value for paper in published)),
        by_group_subject=dict(
            Counter(f"{paper.group}-{paper.subject}" for paper in published)
        ),
    )


def paper_summary(papers: PaperRepository, alternates: Alternates) -> PaperSummary:
    if not alternates.references:
        return PaperSummary(total=0)
    return summarize(papers.find(alternates.references, status=PaperStatus.PUBLISHED))
