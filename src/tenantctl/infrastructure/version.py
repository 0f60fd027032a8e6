"""Version of the installed tenantctl distribution."""

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION = "tenantctl"
PYPROJECT = Path(__file__).parents[3] / "pyproject.toml"


def get_version() -> str:
    """Return the distribution version.

    Source checkouts that were never installed read it from pyproject.toml;
    "unknown" is returned when neither source is available.
    """
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        pass

    try:
        with PYPROJECT.open("rb") as f:
            return tomllib.load(f)["project"]["version"]
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        return "unknown"


__version__ = get_version()
