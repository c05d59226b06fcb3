"""Module executed when running ``python -m tmdbplaylist``."""

from __future__ import annotations

from app.cli import app


def main() -> None:
    """Run the playlist command line app."""

    app(prog_name="tmdbplaylist")


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
