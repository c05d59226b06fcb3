"""Utilities for paging through The Movie Database (TMDB) listings."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterable, Mapping

import httpx

from ..config import Settings
from ..models import MediaKind

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ListingPage:
    """One page of a TMDB listing and the reported page count."""

    page: int
    results: list[dict[str, Any]]
    total_pages: int = 1


class TMDBClient:
    """Client responsible for fetching TMDB listings one page at a time."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client

    def listing_params(self, *, original_language: bool) -> dict[str, str]:
        """Return the region and content suppression parameters for listings."""

        params = {"region": self._settings.region, "include_adult": "false"}
        if original_language:
            params["with_original_language"] = self._settings.original_language
        return params

    async def _get_json(self, endpoint: str, params: Mapping[str, Any]) -> Any | None:
        query = {
            "api_key": self._settings.api_key,
            "language": self._settings.language,
            **params,
        }
        try:
            response = await self._client.get(endpoint, params=query)
        except httpx.HTTPError as exc:
            logger.warning("TMDB request to %s failed: %s", endpoint, exc.__class__.__name__)
            return None
        if response.status_code >= 400:
            logger.warning(
                "TMDB request to %s failed with status %s", endpoint, response.status_code
            )
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("Unexpected non-JSON TMDB response from %s", endpoint)
            return None

    async def fetch_page(
        self, endpoint: str, params: Mapping[str, Any], page: int
    ) -> ListingPage | None:
        """Fetch a single listing page, returning ``None`` on any failure."""

        data = await self._get_json(endpoint, {**params, "page": page})
        if not isinstance(data, dict):
            return None
        results = data.get("results")
        if not isinstance(results, list):
            logger.warning("TMDB response from %s page %s has no results list", endpoint, page)
            return None
        try:
            total_pages = int(data.get("total_pages") or 1)
        except (TypeError, ValueError):
            total_pages = 1
        return ListingPage(
            page=page,
            results=[entry for entry in results if isinstance(entry, dict)],
            total_pages=total_pages,
        )

    async def fetch_detail(
        self, endpoint: str, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """Fetch a single TMDB object such as ``/collection/{id}``."""

        data = await self._get_json(endpoint, params or {})
        if not isinstance(data, dict):
            return None
        return data

    async def iter_pages(
        self, endpoint: str, params: Mapping[str, Any], page_cap: int
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield the results of each page until the listing is exhausted.

        Pagination ends at the reported ``total_pages``, on an empty page or
        after ``page_cap`` requests. Failed pages are skipped after a short
        backoff; ``max_consecutive_failures`` failures in a row end the walk.
        """

        settings = self._settings
        failures = 0
        for page in range(1, page_cap + 1):
            if page > 1:
                await asyncio.sleep(settings.page_delay_seconds)

            listing = await self.fetch_page(endpoint, params, page)
            if listing is None:
                failures += 1
                if failures >= settings.max_consecutive_failures:
                    logger.warning(
                        "Giving up on %s after %s consecutive failed pages",
                        endpoint,
                        failures,
                    )
                    return
                logger.info("Skipping page %s of %s", page, endpoint)
                await asyncio.sleep(settings.failure_backoff_seconds)
                continue

            failures = 0
            if not listing.results:
                return
            logger.debug(
                "Fetched %s page %s/%s (%s results)",
                endpoint,
                page,
                listing.total_pages,
                len(listing.results),
            )
            yield listing.results
            if page >= listing.total_pages:
                return

    async def fetch_genres(self, kind: MediaKind) -> list[tuple[int, str]]:
        """Return ``(id, name)`` pairs from the TMDB genre list."""

        endpoint = "/genre/movie/list" if kind == "movie" else "/genre/tv/list"
        data = await self.fetch_detail(endpoint)
        if not data:
            return []
        genres: list[tuple[int, str]] = []
        for genre in data.get("genres") or []:
            if not isinstance(genre, dict):
                continue
            genre_id = genre.get("id")
            genre_name = genre.get("name")
            if isinstance(genre_id, int) and genre_name:
                genres.append((genre_id, str(genre_name)))
        return genres

    async def search_collections(
        self, terms: Iterable[str], page_cap: int
    ) -> dict[int, str]:
        """Return unique collection ids, in discovery order, mapped to their names."""

        collections: dict[int, str] = {}
        for term in terms:
            logger.info("Searching collections starting with '%s'", term)
            async for results in self.iter_pages(
                "/search/collection", {"query": term}, page_cap
            ):
                for collection in results:
                    collection_id = collection.get("id")
                    if not isinstance(collection_id, int) or collection_id in collections:
                        continue
                    collections[collection_id] = str(collection.get("name") or "Unknown")
        return collections
