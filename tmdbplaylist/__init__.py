"""Compatibility shim exposing the playlist command line app."""

from __future__ import annotations

from app.cli import app

__all__ = ["app"]
