"""Pydantic models describing upstream listings and playlist entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .utils import extract_year, parse_release_date

MediaKind = Literal["movie", "series"]


class SourceItem(BaseModel):
    """A raw movie or series record as returned by a TMDB listing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int | None = None
    title: str = Field(default="", validation_alias=AliasChoices("title", "name"))
    original_title: str = Field(
        default="", validation_alias=AliasChoices("original_title", "original_name")
    )
    original_language: str = ""
    release_or_air_date: str = Field(
        default="",
        validation_alias=AliasChoices(
            "release_date", "first_air_date", "release_or_air_date"
        ),
    )
    poster_path: str | None = None
    backdrop_path: str | None = None
    overview: str = ""
    adult: bool = False
    vote_average: float = 0.0
    vote_count: int = 0
    popularity: float = 0.0
    genre_ids: tuple[int, ...] = ()
    origin_country: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # TMDB sends explicit nulls for missing fields; let the defaults apply.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @property
    def release_date(self) -> date | None:
        return parse_release_date(self.release_or_air_date)

    @property
    def year(self) -> str:
        return extract_year(self.release_or_air_date)

    def meets_quality(self, thresholds: "QualityThresholds") -> bool:
        """Return whether the item clears the compound vote/rating/popularity bar."""

        return (
            self.vote_count >= thresholds.min_vote_count
            and self.vote_average >= thresholds.min_rating
            and self.popularity >= thresholds.min_popularity
        )

    def to_snapshot(self, kind: MediaKind) -> dict[str, object]:
        """Return the trimmed record stored in list snapshot files."""

        if kind == "movie":
            return {
                "id": self.id,
                "title": self.title,
                "original_title": self.original_title or self.title,
                "overview": self.overview,
                "release_date": self.release_or_air_date,
                "poster_path": self.poster_path or "",
                "backdrop_path": self.backdrop_path or "",
                "vote_average": self.vote_average,
                "vote_count": self.vote_count,
                "popularity": self.popularity,
                "genre_ids": list(self.genre_ids),
                "adult": self.adult,
                "original_language": self.original_language,
            }
        return {
            "id": self.id,
            "name": self.title,
            "original_name": self.original_title,
            "overview": self.overview,
            "first_air_date": self.release_or_air_date,
            "poster_path": self.poster_path or "",
            "backdrop_path": self.backdrop_path or "",
            "vote_average": self.vote_average,
            "vote_count": self.vote_count,
            "popularity": self.popularity,
            "genre_ids": list(self.genre_ids),
            "origin_country": list(self.origin_country),
            "original_language": self.original_language,
            "adult": self.adult,
        }


@dataclass(frozen=True)
class QualityThresholds:
    """Compound bar used to decide whether a collection is worth including."""

    min_vote_count: int
    min_rating: float
    min_popularity: float
    min_collection_size: int


@dataclass(frozen=True)
class GroupQuality:
    """Aggregate measurements of a collection taken before admitting members."""

    total: int
    target_language: int
    qualified: int

    def admits(self, min_collection_size: int) -> bool:
        return (
            self.total >= min_collection_size
            and self.target_language * 2 >= self.total
            and self.qualified >= min_collection_size
        )


class CollectionGroup(BaseModel):
    """Movies sharing a TMDB collection, gated as a unit."""

    collection_id: int
    collection_name: str
    members: list[SourceItem] = Field(default_factory=list)

    def measure(self, target_language: str, thresholds: QualityThresholds) -> GroupQuality:
        return GroupQuality(
            total=len(self.members),
            target_language=sum(
                1 for member in self.members if member.original_language == target_language
            ),
            qualified=sum(1 for member in self.members if member.meets_quality(thresholds)),
        )


class Artwork(BaseModel):
    model_config = ConfigDict(frozen=True)

    poster: str = ""
    backdrop: str = ""


class CatalogEntry(BaseModel):
    """A normalized playlist entry produced from an admitted source item."""

    model_config = ConfigDict(frozen=True)

    sequence_number: int = Field(ge=1)
    kind: MediaKind
    title: str
    display_name: str
    stream_or_series_id: int
    category_id: str
    category_name: str
    artwork: Artwork = Field(default_factory=Artwork)
    rating: float = 0.0
    year: str = ""
    release_date: str = ""
    added: int = 0
    plot: str = ""
    playback_url: str
    collection_id: int | None = None

    @property
    def rating_5based(self) -> float:
        return self.rating / 2

    def renumbered(self, sequence_number: int) -> "CatalogEntry":
        return self.model_copy(update={"sequence_number": sequence_number})

    def to_stream_record(self) -> dict[str, object]:
        """Return the IPTV VOD stream record used by movie playlists."""

        record: dict[str, object] = {
            "num": self.sequence_number,
            "name": self.display_name,
            "stream_type": "movie",
            "stream_id": self.stream_or_series_id,
            "stream_icon": self.artwork.poster,
            "rating": self.rating,
            "rating_5based": self.rating_5based,
            "added": self.added,
            "category_id": self.category_id,
            "category_name": self.category_name,
            "year": self.year,
            "container_extension": "mp4",
            "custom_sid": "",
            "direct_source": self.playback_url,
            "plot": self.plot,
            "backdrop_path": self.artwork.backdrop,
            "group": self.category_name,
        }
        if self.collection_id is not None:
            record["collection_id"] = self.collection_id
            record["collection_name"] = self.category_name
        return record

    def to_series_record(self, last_modified: str) -> dict[str, object]:
        """Return the IPTV series record used by TV playlists."""

        return {
            "num": self.sequence_number,
            "name": self.display_name,
            "series_id": self.stream_or_series_id,
            "cover": self.artwork.poster,
            "plot": self.plot,
            "cast": "",
            "director": "",
            "genre": self.category_name,
            "releaseDate": self.release_date,
            "last_modified": last_modified,
            "rating": self.rating,
            "rating_5based": self.rating_5based,
            "backdrop_path": [self.artwork.backdrop],
            "youtube_trailer": "",
            "episode_run_time": "",
            "category_id": self.category_id,
            "group": self.category_name,
        }
