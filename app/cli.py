"""Command line interface running the TMDB playlist jobs."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Sequence

import httpx
import typer
from pydantic import ValidationError

from .config import Settings
from .services.collections import build_collections
from .services.lists import build_movie_lists, build_series_lists
from .services.pipeline import JobReport
from .services.playlists import build_movie_playlist, build_tv_playlist
from .services.tmdb import TMDBClient

logger = logging.getLogger(__name__)

Job = Callable[[Settings, TMDBClient, Path], Awaitable[JobReport]]

JOBS: dict[str, Job] = {
    "collections": build_collections,
    "movie-lists": build_movie_lists,
    "series-lists": build_series_lists,
    "movie-playlist": build_movie_playlist,
    "tv-playlist": build_tv_playlist,
}

app = typer.Typer(
    help="Build IPTV playlists and list snapshots from TMDB listings.",
    no_args_is_help=True,
)


def _output_dir_option() -> Any:
    return typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory receiving the generated files (defaults to OUTPUT_DIR).",
    )


def load_settings(output_dir: Optional[Path] = None) -> Settings:
    """Load settings, exiting with status 1 on invalid or missing configuration."""

    try:
        settings = Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        typer.echo(f"Error: invalid configuration\n{exc}", err=True)
        raise typer.Exit(code=1) from exc

    if output_dir is not None:
        settings = settings.model_copy(update={"output_dir": str(output_dir)})
    if not settings.api_key:
        typer.echo(
            "Error: TMDB API key not set. Set TMDB_API_KEY or SECRET_API_KEY "
            "environment variable.",
            err=True,
        )
        raise typer.Exit(code=1)
    return settings


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    # Request lines would leak the API key into the progress log.
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run_jobs(settings: Settings, names: Sequence[str]) -> list[JobReport]:
    """Run the named jobs one after another over a single HTTP client."""

    output_dir = Path(settings.output_dir)
    reports: list[JobReport] = []
    async with httpx.AsyncClient(
        base_url=str(settings.tmdb_api_url),
        timeout=httpx.Timeout(settings.request_timeout_seconds, connect=10.0),
        headers={"Accept": "application/json"},
    ) as http_client:
        client = TMDBClient(settings, http_client)
        for name in names:
            logger.info("=== %s ===", name)
            reports.append(await JOBS[name](settings, client, output_dir))
    return reports


def _execute(names: Sequence[str], output_dir: Optional[Path]) -> None:
    settings = load_settings(output_dir)
    configure_logging(settings.log_level)
    reports = asyncio.run(run_jobs(settings, names))
    for report in reports:
        typer.echo(f"{report.job}: {report.total} titles")
        for label, count in report.counts.items():
            typer.echo(f"  {label}: {count}")
        for path in report.outputs:
            typer.echo(f"  wrote {path}")


@app.command()
def collections(output_dir: Optional[Path] = _output_dir_option()) -> None:
    """Build the playlist of every quality-gated TMDB collection."""

    _execute(["collections"], output_dir)


@app.command("movie-lists")
def movie_lists(output_dir: Optional[Path] = _output_dir_option()) -> None:
    """Snapshot now playing, popular, top rated, upcoming and latest movies."""

    _execute(["movie-lists"], output_dir)


@app.command("series-lists")
def series_lists(output_dir: Optional[Path] = _output_dir_option()) -> None:
    """Snapshot airing today, on the air, popular, top rated and latest series."""

    _execute(["series-lists"], output_dir)


@app.command("movie-playlist")
def movie_playlist(output_dir: Optional[Path] = _output_dir_option()) -> None:
    """Build playlist.json and playlist.m3u8 from headline lanes and genres."""

    _execute(["movie-playlist"], output_dir)


@app.command("tv-playlist")
def tv_playlist(output_dir: Optional[Path] = _output_dir_option()) -> None:
    """Build tv_playlist.json from headline lanes, networks and genres."""

    _execute(["tv-playlist"], output_dir)


@app.command("all")
def run_all(output_dir: Optional[Path] = _output_dir_option()) -> None:
    """Run every job in sequence."""

    _execute(list(JOBS), output_dir)
