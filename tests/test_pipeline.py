"""Tests for the dedup, filter and finalization pipeline."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from app.config import Settings
from app.models import CollectionGroup, SourceItem
from app.services.pipeline import CatalogRun, FilterPolicy, quality_thresholds

TODAY = date(2024, 6, 1)


def build_settings(**overrides: Any) -> Settings:
    """Return a settings object with defaults suitable for tests."""

    base = {"TMDB_API_KEY": "test-key"}
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


def build_run(kind: str = "movie", policy: FilterPolicy | None = None, **overrides: Any) -> CatalogRun:
    settings = build_settings(**overrides)
    return CatalogRun(
        settings=settings,
        kind=kind,  # type: ignore[arg-type]
        policy=policy or FilterPolicy.for_catalog(settings),
        today=TODAY,
    )


def movie(movie_id: int | None, title: str = "Movie", **overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": movie_id,
        "title": title,
        "original_language": "en",
        "release_date": "2020-01-01",
        "poster_path": f"/{movie_id}.jpg",
        "adult": False,
        "vote_average": 7.0,
        "vote_count": 500,
        "popularity": 20.0,
    }
    data.update(overrides)
    return data


def admit(run: CatalogRun, raw: list[dict[str, Any]], category: str = "Popular") -> int:
    return run.admit_all(run.parse_items(raw), category_id=category.lower(), category_name=category)


def test_duplicates_across_categories_are_admitted_once() -> None:
    run = build_run()

    admit(run, [movie(1), movie(2), movie(1, "Again")], "Popular")
    admit(run, [movie(2), movie(3)], "Action")

    ids = [entry.stream_or_series_id for entry in run.finalize()]
    assert sorted(ids) == [1, 2, 3]
    assert len(ids) == len(set(ids))
    assert run.rejections["duplicate"] == 2


def test_missing_poster_excludes_even_highly_rated_items() -> None:
    run = build_run()

    admit(run, [movie(7, poster_path=None, vote_average=10, vote_count=99999), movie(8, poster_path="")])

    assert run.entries == []
    assert run.rejections["missing_poster"] == 2


def test_rejected_item_does_not_claim_its_identifier() -> None:
    run = build_run()

    admit(run, [movie(7, poster_path=None), movie(7, poster_path="/later.jpg")])

    assert [entry.stream_or_series_id for entry in run.entries] == [7]


def test_identity_adult_and_language_filters() -> None:
    run = build_run()

    admit(
        run,
        [
            movie(None),
            movie(0),
            movie(4, title="  "),
            movie(5, adult=True),
            movie(6, original_language="fr"),
            {"id": "oops", "title": "Broken"},
        ],
    )

    assert run.entries == []
    assert run.rejections["missing_identity"] == 3
    assert run.rejections["adult"] == 1
    assert run.rejections["language"] == 1
    assert run.rejections["malformed"] == 1


def test_future_release_is_excluded() -> None:
    run = build_run()
    next_year = (TODAY + timedelta(days=365)).isoformat()
    later_this_year = date(TODAY.year, 12, 1).isoformat()

    admit(run, [movie(1, release_date=next_year, vote_average=10), movie(2, release_date=later_this_year)])

    assert run.entries == []
    assert run.rejections["future_release"] == 2


def test_release_date_required_and_year_floor_applied() -> None:
    run = build_run(MIN_YEAR=2000)

    admit(
        run,
        [
            movie(1, release_date=""),
            movie(2, release_date="1995-05-05"),
            movie(3, release_date="2000-01-01"),
        ],
    )

    assert [entry.stream_or_series_id for entry in run.entries] == [3]
    assert run.rejections["release_date"] == 1
    assert run.rejections["before_min_year"] == 1


def test_listing_policy_keeps_future_and_posterless_items() -> None:
    settings = build_settings()
    run = build_run(policy=FilterPolicy.for_listing(settings))

    admit(run, [movie(1, release_date="2030-01-01", poster_path=None), movie(2, release_date="")])

    assert [entry.stream_or_series_id for entry in run.entries] == [1, 2]


def test_normalization_of_movie_entry() -> None:
    run = build_run()

    admit(run, [movie(5, "Arrival", vote_average=7.5, release_date="2016-11-11", backdrop_path=None, overview="Linguistics.")])

    entry = run.entries[0]
    assert entry.sequence_number == 1
    assert entry.display_name == "Arrival (2016)"
    assert entry.year == "2016"
    assert entry.rating_5based == 3.75
    assert entry.artwork.poster == "https://image.tmdb.org/t/p/original/5.jpg"
    assert entry.artwork.backdrop == ""
    assert entry.playback_url == "[[SERVER_URL]]/play.php?movieId=5&type=movies"
    assert entry.plot == "Linguistics."
    assert entry.added > 0


def test_normalization_of_series_entry() -> None:
    run = build_run(kind="series", SERVER_URL_PLACEHOLDER="{{HOST}}")

    admit(run, [{"id": 9, "name": "Severance", "original_language": "en", "first_air_date": "2022-02-18", "poster_path": "/s.jpg"}], "Drama")

    entry = run.entries[0]
    assert entry.kind == "series"
    assert entry.display_name == "Severance (2022)"
    assert entry.playback_url == "{{HOST}}/play.php?seriesId=9&type=series"


def test_provisional_numbers_follow_arrival_order() -> None:
    run = build_run()

    admit(run, [movie(1), movie(2)], "Zeta")
    admit(run, [movie(3)], "Alpha")

    assert [entry.sequence_number for entry in run.entries] == [1, 2, 3]


def test_finalize_sorts_by_category_then_year_and_renumbers() -> None:
    run = build_run()

    admit(run, [movie(1, release_date="2019-01-01"), movie(2, release_date="2001-01-01")], "Popular")
    admit(run, [movie(3, release_date="2010-01-01")], "Action")
    admit(run, [movie(4, release_date="2005-01-01")], "action")

    entries = run.finalize()

    assert [entry.stream_or_series_id for entry in entries] == [3, 2, 1, 4]
    assert [entry.sequence_number for entry in entries] == [1, 2, 3, 4]


def test_finalize_is_stable_for_equal_keys() -> None:
    run = build_run()

    admit(run, [movie(30, "C"), movie(10, "A"), movie(20, "B")], "Popular")

    assert [entry.stream_or_series_id for entry in run.finalize()] == [30, 10, 20]


def test_empty_year_sorts_before_dated_entries() -> None:
    settings = build_settings()
    run = build_run(policy=FilterPolicy.for_listing(settings))

    admit(run, [movie(1, release_date="1980-01-01"), movie(2, release_date="")], "Popular")

    assert [entry.stream_or_series_id for entry in run.finalize()] == [2, 1]


def test_renumbering_is_dense() -> None:
    run = build_run()

    admit(run, [movie(i, release_date=f"{2000 + i % 7}-01-01") for i in range(1, 40)], "Mixed")
    admit(run, [movie(i) for i in range(20, 60)], "Other")

    entries = run.finalize()
    assert [entry.sequence_number for entry in entries] == list(range(1, len(entries) + 1))
    assert len(entries) == 59


def _group(collection_id: int, members: list[dict[str, Any]]) -> CollectionGroup:
    return CollectionGroup(
        collection_id=collection_id,
        collection_name=f"Collection {collection_id}",
        members=[SourceItem.model_validate(member) for member in members],
    )


def test_group_with_too_few_quality_members_is_excluded_entirely() -> None:
    run = build_run(MIN_COLLECTION_SIZE=2)
    group = _group(
        10,
        [
            movie(1, vote_count=1000),
            movie(2, vote_count=3),
            movie(3, vote_average=2.0),
        ],
    )

    added = run.admit_group(group, quality_thresholds(run.settings))

    assert added == 0
    assert run.entries == []
    assert run.rejected_groups == 1
    assert run.admitted_groups == {}


def test_admitted_group_keeps_members_below_quality_threshold() -> None:
    run = build_run(MIN_COLLECTION_SIZE=2)
    group = _group(
        10,
        [
            movie(1, release_date="2001-01-01"),
            movie(2, release_date="2002-01-01"),
            movie(3, release_date="2003-01-01", vote_count=2, popularity=0.1),
        ],
    )

    added = run.admit_group(group, quality_thresholds(run.settings))

    assert added == 3
    assert run.admitted_groups == {10: "Collection 10"}
    entry = run.entries[0]
    assert entry.display_name == entry.title
    assert entry.category_id == "10"
    assert entry.collection_id == 10


def test_group_needs_half_target_language_members() -> None:
    run = build_run(MIN_COLLECTION_SIZE=2)
    group = _group(
        11,
        [
            movie(1),
            movie(2, original_language="ja"),
            movie(3, original_language="ja"),
            movie(4, original_language="ja"),
        ],
    )

    assert run.admit_group(group, quality_thresholds(run.settings)) == 0


def test_admitted_group_still_applies_item_filters_and_dedup() -> None:
    run = build_run(MIN_COLLECTION_SIZE=2)
    thresholds = quality_thresholds(run.settings)
    run.admit_group(_group(1, [movie(1), movie(2)]), thresholds)

    added = run.admit_group(
        _group(2, [movie(2), movie(3), movie(4, poster_path=None), movie(5, original_language="de")]),
        thresholds,
    )

    assert added == 1
    assert [entry.stream_or_series_id for entry in run.finalize()] == [1, 2, 3]


def test_group_without_surviving_members_is_not_listed() -> None:
    run = build_run(MIN_COLLECTION_SIZE=2)
    thresholds = quality_thresholds(run.settings)
    run.admit_group(_group(1, [movie(1), movie(2)]), thresholds)

    run.admit_group(_group(2, [movie(1), movie(2)]), thresholds)

    assert run.admitted_groups == {1: "Collection 1"}


def test_category_counts() -> None:
    run = build_run()

    admit(run, [movie(1), movie(2)], "Popular")
    admit(run, [movie(3)], "Action")

    assert run.category_counts() == {"Action": 1, "Popular": 2}


def test_admitted_item_records_its_identifier() -> None:
    run = build_run()

    entry = run.admit(SourceItem.model_validate(movie(42)), category_id="1", category_name="Popular")

    assert entry is not None
    assert entry.stream_or_series_id == 42
    assert run.filter.seen_ids == {42}
