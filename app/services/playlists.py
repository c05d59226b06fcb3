"""Build the categorised movie and TV playlists served to IPTV apps."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Mapping

from ..catalog_lists import (
    MOVIE_PLAYLIST_LANES,
    SERIES_PLAYLIST_LANES,
    CategoryLane,
    genre_lanes,
    network_lanes,
)
from ..config import Settings
from ..output import build_summary, render_m3u, write_json, write_text
from .pipeline import CatalogRun, FilterPolicy, JobReport
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

MOVIE_PLAYLIST_FILENAME = "playlist.json"
MOVIE_M3U_FILENAME = "playlist.m3u8"
MOVIE_SUMMARY_FILENAME = "playlist_summary.json"
TV_PLAYLIST_FILENAME = "tv_playlist.json"
TV_SUMMARY_FILENAME = "tv_playlist_summary.json"


async def fill_lane(
    run: CatalogRun,
    client: TMDBClient,
    lane: CategoryLane,
    base_params: Mapping[str, str],
    page_cap: int,
) -> int:
    """Page through one lane and admit its items under the lane's category."""

    params = {**base_params, **lane.extra_params}
    added = 0
    async for results in client.iter_pages(lane.endpoint, params, page_cap):
        added += run.admit_all(
            run.parse_items(results),
            category_id=lane.category_id,
            category_name=lane.name,
        )
    logger.info("  Added %s %s titles", added, lane.name)
    return added


async def build_movie_playlist(
    settings: Settings,
    client: TMDBClient,
    output_dir: Path,
    *,
    today: date | None = None,
    now: datetime | None = None,
) -> JobReport:
    """Combine the headline movie lanes and every genre into one playlist."""

    run = CatalogRun(
        settings=settings,
        kind="movie",
        policy=FilterPolicy.for_catalog(settings),
        today=today or date.today(),
    )
    base_params = {
        **client.listing_params(original_language=True),
        "with_origin_country": settings.region,
    }

    for lane in MOVIE_PLAYLIST_LANES:
        logger.info("Fetching %s movies...", lane.name)
        await fill_lane(run, client, lane, base_params, settings.endpoint_max_pages)

    genres = await client.fetch_genres("movie")
    if genres:
        logger.info("Found %s genres", len(genres))
    else:
        logger.warning("Could not fetch movie genres")
    for lane in genre_lanes("movie", genres):
        logger.info("Fetching %s movies...", lane.name)
        await fill_lane(run, client, lane, base_params, settings.max_pages)

    entries = run.finalize()
    run.log_rejections()
    counts = run.category_counts()
    outputs = [
        write_json(
            output_dir / MOVIE_PLAYLIST_FILENAME,
            [entry.to_stream_record() for entry in entries],
        ),
        write_text(output_dir / MOVIE_M3U_FILENAME, render_m3u(entries)),
        write_json(
            output_dir / MOVIE_SUMMARY_FILENAME,
            build_summary(counts, generated_at=now or datetime.now()),
        ),
    ]
    return JobReport(
        job="movie-playlist",
        total=len(entries),
        counts=counts,
        outputs=outputs,
        rejections=dict(run.rejections),
    )


async def build_tv_playlist(
    settings: Settings,
    client: TMDBClient,
    output_dir: Path,
    *,
    today: date | None = None,
    now: datetime | None = None,
) -> JobReport:
    """Combine headline series lanes, streaming networks and genres."""

    generated_at = now or datetime.now()
    run = CatalogRun(
        settings=settings,
        kind="series",
        policy=FilterPolicy.for_catalog(settings),
        today=today or date.today(),
    )
    base_params = client.listing_params(original_language=True)

    for lane in SERIES_PLAYLIST_LANES:
        logger.info("Fetching %s series...", lane.name)
        await fill_lane(run, client, lane, base_params, settings.endpoint_max_pages)

    logger.info("Fetching series by network...")
    for lane in network_lanes():
        await fill_lane(run, client, lane, base_params, settings.network_max_pages)

    genres = await client.fetch_genres("series")
    if genres:
        logger.info("Found %s genres", len(genres))
    else:
        logger.warning("Could not fetch TV genres")
    for lane in genre_lanes("series", genres):
        logger.info("Fetching %s series...", lane.name)
        await fill_lane(run, client, lane, base_params, settings.max_pages)

    entries = run.finalize()
    run.log_rejections()
    counts = run.category_counts()
    last_modified = generated_at.strftime("%Y-%m-%d %H:%M:%S")
    outputs = [
        write_json(
            output_dir / TV_PLAYLIST_FILENAME,
            [entry.to_series_record(last_modified) for entry in entries],
        ),
        write_json(
            output_dir / TV_SUMMARY_FILENAME,
            build_summary(counts, generated_at=generated_at),
        ),
    ]
    return JobReport(
        job="tv-playlist",
        total=len(entries),
        counts=counts,
        outputs=outputs,
        rejections=dict(run.rejections),
    )
