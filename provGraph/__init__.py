"""Package metadata."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("provGraph")
except PackageNotFoundError:  # pragma: no cover - package not installed
    __version__ = "0.3.0"

__all__ = ["__version__"]
