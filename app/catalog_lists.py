"""Fixed TMDB list and playlist lane definitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Mapping, Sequence, TypeVar

from .models import MediaKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StandardList:
    """A plain TMDB list endpoint such as ``movie/popular``."""

    key: str
    name: str
    endpoint: str
    filename: str
    kind: MediaKind
    description: str = ""
    page_cap: int | None = None

    def query_params(self, today: date, window_days: int) -> dict[str, str]:
        return {}


@dataclass(frozen=True)
class DiscoverList(StandardList):
    """A ``discover`` query restricted to a trailing release window."""

    extra_params: Mapping[str, str] = field(default_factory=dict)
    date_field: str = "release_date"

    def query_params(self, today: date, window_days: int) -> dict[str, str]:
        params = dict(self.extra_params)
        params[f"{self.date_field}.gte"] = (today - timedelta(days=window_days)).isoformat()
        params[f"{self.date_field}.lte"] = today.isoformat()
        return params


ListDefinition = StandardList | DiscoverList


@dataclass(frozen=True)
class CategoryLane:
    """One playlist category fed by a paginated endpoint."""

    category_id: str
    name: str
    endpoint: str
    extra_params: Mapping[str, str] = field(default_factory=dict)


MOVIE_LISTS: tuple[ListDefinition, ...] = (
    StandardList(
        key="now_playing",
        name="Now Playing",
        endpoint="/movie/now_playing",
        filename="now_playing_movies.json",
        kind="movie",
    ),
    StandardList(
        key="popular",
        name="Popular",
        endpoint="/movie/popular",
        filename="popular_movies.json",
        kind="movie",
    ),
    StandardList(
        key="top_rated",
        name="Top Rated",
        endpoint="/movie/top_rated",
        filename="top_rated_movies.json",
        kind="movie",
    ),
    StandardList(
        key="upcoming",
        name="Upcoming",
        endpoint="/movie/upcoming",
        filename="upcoming_movies.json",
        kind="movie",
    ),
    DiscoverList(
        key="latest_releases",
        name="Latest Releases",
        endpoint="/discover/movie",
        filename="latest_releases_movies.json",
        kind="movie",
        # 4=Digital, 5=Physical, 6=TV
        extra_params={"with_release_type": "4|5|6", "sort_by": "popularity.desc"},
        date_field="release_date",
    ),
)


SERIES_LISTS: tuple[ListDefinition, ...] = (
    StandardList(
        key="airing_today",
        name="Airing Today",
        endpoint="/tv/airing_today",
        filename="airing_today_series.json",
        kind="series",
        description="TV series airing today",
    ),
    StandardList(
        key="on_the_air",
        name="On The Air",
        endpoint="/tv/on_the_air",
        filename="on_the_air_series.json",
        kind="series",
        description="TV series airing in the next 7 days",
    ),
    StandardList(
        key="popular",
        name="Popular",
        endpoint="/tv/popular",
        filename="popular_series.json",
        kind="series",
        description="Popular TV series",
    ),
    StandardList(
        key="top_rated",
        name="Top Rated",
        endpoint="/tv/top_rated",
        filename="top_rated_series.json",
        kind="series",
        description="Top rated TV series",
    ),
    DiscoverList(
        key="latest_releases",
        name="Latest Releases",
        endpoint="/discover/tv",
        filename="latest_releases_series.json",
        kind="series",
        description="Latest releases (Digital, Physical, Premiere)",
        extra_params={
            "sort_by": "first_air_date.desc",
            "with_status": "0|2|3",
            "with_type": "0|1|2|3|4|5|6",
        },
        date_field="first_air_date",
    ),
)


MOVIE_PLAYLIST_LANES: tuple[CategoryLane, ...] = (
    CategoryLane(
        category_id="999992",
        name="Now Playing",
        endpoint="/movie/now_playing",
        extra_params={"with_release_type": "4|5|6"},
    ),
    CategoryLane(
        category_id="999991",
        name="Popular",
        endpoint="/movie/popular",
        extra_params={"with_release_type": "4|5|6"},
    ),
)


SERIES_PLAYLIST_LANES: tuple[CategoryLane, ...] = (
    CategoryLane(category_id="88883", name="On The Air", endpoint="/tv/on_the_air"),
    CategoryLane(category_id="88882", name="Top Rated", endpoint="/tv/top_rated"),
    CategoryLane(category_id="88881", name="Popular", endpoint="/tv/popular"),
)


TV_NETWORKS: tuple[tuple[str, int], ...] = (
    ("Apple TV+", 2552),
    ("Discovery", 64),
    ("Disney+", 2739),
    ("HBO", 49),
    ("History", 65),
    ("Hulu", 453),
    ("Investigation", 244),
    ("Lifetime", 34),
    ("Netflix", 213),
    ("Oxygen", 132),
    ("Amazon Prime", 1024),
    ("Paramount+", 4330),
    ("Peacock", 3353),
)


COLLECTION_SEARCH_TERMS: tuple[str, ...] = (
    *"abcdefghijklmnopqrstuvwxyz",
    *"0123456789",
    "the ",
    "star ",
    "super ",
    "dark ",
    "night ",
    "dead ",
    "final ",
    "last ",
)


def network_lanes() -> list[CategoryLane]:
    """Return one discover lane per tracked TV network."""

    return [
        CategoryLane(
            category_id=f"99999{network_id}",
            name=name,
            endpoint="/discover/tv",
            extra_params={"with_networks": str(network_id), "sort_by": "popularity.desc"},
        )
        for name, network_id in TV_NETWORKS
    ]


def genre_lanes(kind: MediaKind, genres: Iterable[tuple[int, str]]) -> list[CategoryLane]:
    """Return one discover lane per genre reported by TMDB."""

    endpoint = "/discover/movie" if kind == "movie" else "/discover/tv"
    lanes: list[CategoryLane] = []
    for genre_id, genre_name in genres:
        params = {"with_genres": str(genre_id), "sort_by": "popularity.desc"}
        if kind == "movie":
            params["with_release_type"] = "4|5|6"
        lanes.append(
            CategoryLane(
                category_id=str(genre_id),
                name=genre_name,
                endpoint=endpoint,
                extra_params=params,
            )
        )
    return lanes


_Definition = TypeVar("_Definition", bound=StandardList)


def select_lists(
    definitions: Sequence[_Definition], keys: Sequence[str] | None
) -> list[_Definition]:
    """Return the definitions for ``keys`` in request order.

    ``None`` selects every definition. Unknown keys are logged and skipped.
    """

    if keys is None:
        return list(definitions)
    by_key = {definition.key: definition for definition in definitions}
    selected: list[_Definition] = []
    for key in keys:
        definition = by_key.get(key)
        if definition is None:
            logger.warning("Unknown list '%s', skipping", key)
            continue
        selected.append(definition)
    return selected
