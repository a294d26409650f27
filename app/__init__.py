"""Core application package for the top-down analysis engine."""

from importlib import metadata


def get_version() -> str:
    """Return the installed package version."""
    try:
        return metadata.version("tda-engine")
    except metadata.PackageNotFoundError:  # pragma: no cover
        return "0.0.0"


__all__ = ["get_version"]
