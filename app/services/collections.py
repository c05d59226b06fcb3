"""Build a movie playlist out of every qualifying TMDB collection."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Iterable

from ..catalog_lists import COLLECTION_SEARCH_TERMS
from ..config import Settings
from ..models import CollectionGroup
from ..output import build_summary, write_json
from .pipeline import CatalogRun, FilterPolicy, JobReport, quality_thresholds
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

PLAYLIST_FILENAME = "collections_playlist.json"
LIST_FILENAME = "collections_list.json"
SUMMARY_FILENAME = "collections_summary.json"


async def build_collections(
    settings: Settings,
    client: TMDBClient,
    output_dir: Path,
    *,
    terms: Iterable[str] = COLLECTION_SEARCH_TERMS,
    today: date | None = None,
    now: datetime | None = None,
) -> JobReport:
    """Search collections, gate each one on quality and write the playlist."""

    run = CatalogRun(
        settings=settings,
        kind="movie",
        policy=FilterPolicy.for_catalog(settings),
        today=today or date.today(),
    )
    thresholds = quality_thresholds(settings)

    logger.info("Starting TMDB collections fetch")
    collection_names = await client.search_collections(
        terms, settings.collection_search_max_pages
    )
    total_collections = len(collection_names)
    logger.info("Found %s unique collections", total_collections)

    for index, (collection_id, search_name) in enumerate(collection_names.items(), start=1):
        payload = await client.fetch_detail(f"/collection/{collection_id}")
        parts = payload.get("parts") if payload else None
        if not isinstance(parts, list):
            await asyncio.sleep(settings.failure_backoff_seconds)
            continue

        group = CollectionGroup(
            collection_id=collection_id,
            collection_name=str(payload.get("name") or search_name),
            members=run.parse_items(parts),
        )
        run.admit_group(group, thresholds)

        if index % 100 == 0:
            logger.info(
                "Progress: %s/%s collections, %s movies found",
                index,
                total_collections,
                len(run.entries),
            )
        await asyncio.sleep(settings.detail_delay_seconds)

    entries = run.finalize()
    logger.info(
        "Found %s movies in %s collections (%s collections rejected on quality)",
        len(entries),
        len(run.admitted_groups),
        run.rejected_groups,
    )
    run.log_rejections()

    collections_list = sorted(
        ({"id": collection_id, "name": name} for collection_id, name in run.admitted_groups.items()),
        key=lambda collection: collection["name"],
    )
    counts = run.category_counts()
    outputs = [
        write_json(
            output_dir / PLAYLIST_FILENAME,
            [entry.to_stream_record() for entry in entries],
            pretty=False,
        ),
        write_json(output_dir / LIST_FILENAME, collections_list),
        write_json(
            output_dir / SUMMARY_FILENAME,
            build_summary(
                counts,
                generated_at=now or datetime.now(),
                collections=len(collections_list),
                rejected_collections=run.rejected_groups,
            ),
        ),
    ]
    return JobReport(
        job="collections",
        total=len(entries),
        counts=counts,
        outputs=outputs,
        rejections=dict(run.rejections),
    )
