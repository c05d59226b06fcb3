"""Snapshot the standard TMDB movie and series lists to JSON files."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Mapping

from ..catalog_lists import MOVIE_LISTS, SERIES_LISTS, ListDefinition, select_lists
from ..config import Settings
from ..models import SourceItem
from ..output import write_json
from .pipeline import FilterPolicy, ItemFilter, JobReport, parse_items
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

MOVIE_LISTS_DIR = "movie_lists"
SERIES_LISTS_DIR = "series_lists"


async def fetch_list(
    settings: Settings,
    client: TMDBClient,
    definition: ListDefinition,
    *,
    today: date,
) -> tuple[list[SourceItem], ItemFilter]:
    """Page through one list, keeping items that pass the listing filters.

    Each list owns its dedup set since every list is written to its own file.
    """

    item_filter = ItemFilter(policy=FilterPolicy.for_listing(settings), today=today)
    params = {
        **client.listing_params(original_language=True),
        **definition.query_params(today, settings.latest_window_days),
    }
    page_cap = definition.page_cap or settings.max_pages

    kept: list[SourceItem] = []
    async for results in client.iter_pages(definition.endpoint, params, page_cap):
        for item in parse_items(results, item_filter.rejections):
            if item_filter.accept(item):
                kept.append(item)
    return kept, item_filter


async def build_movie_lists(
    settings: Settings,
    client: TMDBClient,
    output_dir: Path,
    *,
    today: date | None = None,
    now: datetime | None = None,
) -> JobReport:
    """Fetch the selected movie lists and write one snapshot per list."""

    today = today or date.today()
    generated_at = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    target_dir = output_dir / MOVIE_LISTS_DIR
    definitions = select_lists(MOVIE_LISTS, settings.movie_list_keys)
    logger.info("Lists to fetch: %s", ", ".join(d.key for d in definitions))

    summary: dict[str, int] = {}
    outputs: list[Path] = []
    rejections: dict[str, int] = {}
    unique_ids: set[int] = set()
    for definition in definitions:
        logger.info("Fetching %s...", definition.name)
        movies, item_filter = await fetch_list(settings, client, definition, today=today)
        payload = {
            "list_type": definition.key,
            "list_name": definition.name,
            "total_movies": len(movies),
            "updated_at": generated_at,
            "movies": [movie.to_snapshot("movie") for movie in movies],
        }
        outputs.append(write_json(target_dir / definition.filename, payload))
        logger.info("Saved %s movies to %s", len(movies), definition.filename)
        summary[definition.key] = len(movies)
        unique_ids.update(movie.id for movie in movies if movie.id)
        _merge_counts(rejections, item_filter.rejections)

    outputs.append(
        write_json(
            target_dir / "summary.json",
            {
                "updated_at": generated_at,
                "lists": summary,
                "total_unique_movies": len(unique_ids),
            },
        )
    )
    return JobReport(
        job="movie-lists",
        total=len(unique_ids),
        counts=summary,
        outputs=outputs,
        rejections=rejections,
    )


async def build_series_lists(
    settings: Settings,
    client: TMDBClient,
    output_dir: Path,
    *,
    today: date | None = None,
    now: datetime | None = None,
) -> JobReport:
    """Fetch the selected series lists, most popular first within each list."""

    today = today or date.today()
    generated_at = (now or datetime.now()).astimezone().isoformat(timespec="seconds")
    target_dir = output_dir / SERIES_LISTS_DIR
    definitions = select_lists(SERIES_LISTS, settings.series_list_keys)

    summary: dict[str, int] = {}
    outputs: list[Path] = []
    rejections: dict[str, int] = {}
    unique_ids: set[int] = set()
    for definition in definitions:
        logger.info("Fetching: %s...", definition.description or definition.name)
        series, item_filter = await fetch_list(settings, client, definition, today=today)
        _merge_counts(rejections, item_filter.rejections)
        if not series:
            logger.warning("No series fetched for %s", definition.key)
            continue

        series.sort(key=lambda show: show.popularity, reverse=True)
        payload = {
            "list_name": definition.key,
            "description": definition.description,
            "total_count": len(series),
            "fetched_at": generated_at,
            "series": [show.to_snapshot("series") for show in series],
        }
        outputs.append(write_json(target_dir / definition.filename, payload))
        logger.info("Saved %s series to %s", len(series), definition.filename)
        summary[definition.key] = len(series)
        unique_ids.update(show.id for show in series if show.id)

    outputs.append(
        write_json(
            target_dir / "index.json",
            {
                "updated_at": generated_at,
                "lists": summary,
                "total_unique_series": len(unique_ids),
            },
        )
    )
    return JobReport(
        job="series-lists",
        total=len(unique_ids),
        counts=summary,
        outputs=outputs,
        rejections=rejections,
    )


def _merge_counts(target: dict[str, int], counts: Mapping[str, int]) -> None:
    for reason, count in counts.items():
        target[reason] = target.get(reason, 0) + count
