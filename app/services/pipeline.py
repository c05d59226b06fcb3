"""Deduplication, filtering and normalization of TMDB listing items."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Iterable, cast

from pydantic import ValidationError

from ..config import Settings
from ..models import (
    Artwork,
    CatalogEntry,
    CollectionGroup,
    MediaKind,
    QualityThresholds,
    SourceItem,
)
from ..utils import build_image_url, release_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterPolicy:
    """Which inclusion filters a job applies on top of identity, dedup and adult."""

    language: str | None = None
    require_release_date: bool = True
    require_poster: bool = True
    min_year: int | None = None

    @classmethod
    def for_catalog(cls, settings: Settings) -> "FilterPolicy":
        return cls(
            language=settings.original_language,
            require_release_date=True,
            require_poster=True,
            min_year=settings.min_year,
        )

    @classmethod
    def for_listing(cls, settings: Settings) -> "FilterPolicy":
        # Upcoming and airing lists legitimately hold future dates.
        return cls(
            language=settings.original_language,
            require_release_date=False,
            require_poster=False,
        )


@dataclass(slots=True)
class JobReport:
    """Outcome of one job: what was written and how many items survived."""

    job: str
    total: int
    counts: dict[str, int] = field(default_factory=dict)
    outputs: list[Path] = field(default_factory=list)
    rejections: dict[str, int] = field(default_factory=dict)


def quality_thresholds(settings: Settings) -> QualityThresholds:
    return QualityThresholds(
        min_vote_count=settings.min_vote_count,
        min_rating=settings.min_rating,
        min_popularity=settings.min_popularity,
        min_collection_size=settings.min_collection_size,
    )


def parse_items(raw_items: Iterable[Any], rejections: Counter[str]) -> list[SourceItem]:
    """Validate raw listing dictionaries, counting any that cannot be parsed."""

    items: list[SourceItem] = []
    for raw in raw_items:
        try:
            items.append(SourceItem.model_validate(raw))
        except ValidationError:
            rejections["malformed"] += 1
    return items


@dataclass
class ItemFilter:
    """Run-scoped dedup set plus the ordered inclusion filters."""

    policy: FilterPolicy
    today: date = field(default_factory=date.today)
    seen_ids: set[int] = field(default_factory=set)
    rejections: Counter[str] = field(default_factory=Counter)

    def rejection_reason(self, item: SourceItem) -> str | None:
        """Return why ``item`` is excluded, or ``None`` when it passes."""

        if not item.id or not item.title.strip():
            return "missing_identity"
        if item.id in self.seen_ids:
            return "duplicate"
        if item.adult:
            return "adult"
        if self.policy.language and item.original_language != self.policy.language:
            return "language"
        if self.policy.require_release_date:
            released = item.release_date
            if released is None:
                return "release_date"
            if released > self.today or released.year > self.today.year:
                return "future_release"
            if self.policy.min_year is not None and released.year < self.policy.min_year:
                return "before_min_year"
        if self.policy.require_poster and not item.poster_path:
            return "missing_poster"
        return None

    def accept(self, item: SourceItem) -> bool:
        """Apply every filter, recording the id when the item is admitted."""

        reason = self.rejection_reason(item)
        if reason is not None:
            self.rejections[reason] += 1
            return False
        self.seen_ids.add(cast(int, item.id))
        return True


@dataclass
class CatalogRun:
    """State owned by one playlist build: dedup set, entries and counters."""

    settings: Settings
    kind: MediaKind
    policy: FilterPolicy
    today: date = field(default_factory=date.today)
    entries: list[CatalogEntry] = field(default_factory=list)
    admitted_groups: dict[int, str] = field(default_factory=dict)
    rejected_groups: int = 0
    filter: ItemFilter = field(init=False)

    def __post_init__(self) -> None:
        self.filter = ItemFilter(policy=self.policy, today=self.today)

    @property
    def rejections(self) -> Counter[str]:
        return self.filter.rejections

    def parse_items(self, raw_items: Iterable[Any]) -> list[SourceItem]:
        return parse_items(raw_items, self.rejections)

    def admit(
        self,
        item: SourceItem,
        *,
        category_id: str,
        category_name: str,
        collection_id: int | None = None,
    ) -> CatalogEntry | None:
        """Filter ``item`` and append its normalized entry when it passes."""

        if not self.filter.accept(item):
            return None
        entry = self._normalize(
            item,
            category_id=category_id,
            category_name=category_name,
            collection_id=collection_id,
        )
        self.entries.append(entry)
        return entry

    def admit_all(
        self, items: Iterable[SourceItem], *, category_id: str, category_name: str
    ) -> int:
        count = 0
        for item in items:
            if self.admit(item, category_id=category_id, category_name=category_name):
                count += 1
        return count

    def admit_group(self, group: CollectionGroup, thresholds: QualityThresholds) -> int:
        """Gate a collection as a unit, then admit its members.

        Quality is judged on the whole group; once the group passes, members
        are only held to the item filters, not to the quality threshold.
        """

        quality = group.measure(self.settings.original_language, thresholds)
        if not quality.admits(thresholds.min_collection_size):
            self.rejected_groups += 1
            self.rejections["group_quality"] += quality.total
            logger.debug(
                "Collection %s (%s) rejected: %s",
                group.collection_name,
                group.collection_id,
                quality,
            )
            return 0

        count = 0
        for member in group.members:
            entry = self.admit(
                member,
                category_id=str(group.collection_id),
                category_name=group.collection_name,
                collection_id=group.collection_id,
            )
            if entry is not None:
                count += 1
        if count:
            self.admitted_groups[group.collection_id] = group.collection_name
        return count

    def _normalize(
        self,
        item: SourceItem,
        *,
        category_id: str,
        category_name: str,
        collection_id: int | None,
    ) -> CatalogEntry:
        settings = self.settings
        year = item.year
        if collection_id is None:
            display_name = f"{item.title} ({year})"
        else:
            display_name = item.title
        if self.kind == "movie":
            playback_url = (
                f"{settings.server_url_placeholder}/play.php?movieId={item.id}&type=movies"
            )
        else:
            playback_url = (
                f"{settings.server_url_placeholder}/play.php?seriesId={item.id}&type=series"
            )
        return CatalogEntry(
            sequence_number=len(self.entries) + 1,
            kind=self.kind,
            title=item.title,
            display_name=display_name,
            stream_or_series_id=cast(int, item.id),
            category_id=category_id,
            category_name=category_name,
            artwork=Artwork(
                poster=build_image_url(item.poster_path, settings.image_base_url),
                backdrop=build_image_url(item.backdrop_path, settings.image_base_url),
            ),
            rating=item.vote_average,
            year=year,
            release_date=item.release_or_air_date,
            added=release_timestamp(item.release_date),
            plot=item.overview,
            playback_url=playback_url,
            collection_id=collection_id,
        )

    def finalize(self) -> list[CatalogEntry]:
        """Return entries sorted by category then year, renumbered from 1."""

        ordered = sorted(self.entries, key=lambda entry: (entry.category_name, entry.year))
        return [entry.renumbered(index) for index, entry in enumerate(ordered, start=1)]

    def category_counts(self) -> dict[str, int]:
        counts = Counter(entry.category_name for entry in self.entries)
        return dict(sorted(counts.items()))

    def log_rejections(self) -> None:
        if self.rejections:
            logger.info(
                "Rejected items: %s",
                ", ".join(f"{reason}={count}" for reason, count in sorted(self.rejections.items())),
            )
