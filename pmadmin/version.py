from __future__ import annotations

import os
from importlib import metadata
from pathlib import Path

_DEFAULT_VERSION = "0.0.0-dev"
_DISTRIBUTION_NAME = "pm-admin"


def _read_version_file() -> str | None:
    version_path = Path(__file__).resolve().parent.parent / "VERSION"
    try:
        value = version_path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return value or None


def get_version() -> str:
    """Resolve the running version.

    Order: ``PMADMIN_VERSION`` env var, installed distribution metadata, then a
    ``VERSION`` file next to the package.
    """
    env_version = os.getenv("PMADMIN_VERSION")
    if env_version:
        return env_version.strip()

    try:
        return metadata.version(_DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        pass

    return _read_version_file() or _DEFAULT_VERSION


__version__ = get_version()


__all__ = ["get_version", "__version__"]
