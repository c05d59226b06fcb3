"""TMDB playlist builder package."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["cli"]


def __getattr__(name: str) -> Any:
    if name in __all__:
        return import_module("app.cli")
    raise AttributeError(f"module 'app' has no attribute {name}")
