"""Version of the Groups API distribution."""

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION_NAME = "groups-api"

# src/api/infrastructure/version.py -> repository root
_PYPROJECT = Path(__file__).resolve().parents[3] / "pyproject.toml"


def _read_pyproject_version(path: Path) -> str:
    with open(path, "rb") as f:
        return tomllib.load(f)["project"]["version"]


def get_version() -> str:
    """Installed distribution version, or the checkout's pyproject version."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return _read_pyproject_version(_PYPROJECT)


__version__ = get_version()
