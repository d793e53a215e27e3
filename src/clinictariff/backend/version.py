"""Report the clinictariff version from package metadata or the source tree."""

from __future__ import annotations

import re
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Final

PACKAGE_NAME: Final = "clinictariff"

_PYPROJECT = Path(__file__).resolve().parents[3] / "pyproject.toml"
_SECTION = re.compile(r"^\[(?P<name>[^\]]+)\]\s*$")
_VERSION = re.compile(r"""^version\s*=\s*["'](?P<version>[^"']+)["']""")


@lru_cache(maxsize=1)
def get_project_version() -> str:
    """Return the installed distribution version.

    Source checkouts used without an install (tests, the validation script)
    have no distribution metadata, so the ``[project]`` table of
    ``pyproject.toml`` is consulted instead.
    """

    try:
        return metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        return version_from_pyproject(_PYPROJECT)


def version_from_pyproject(path: Path) -> str:
    if not path.is_file():
        raise RuntimeError(f"Unable to locate project metadata at {path}")

    in_project = False
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        section = _SECTION.match(line)
        if section:
            in_project = section.group("name") == "project"
            continue
        if in_project:
            match = _VERSION.match(line)
            if match:
                return match.group("version")

    raise RuntimeError(f"No [project] version declared in {path.name}")


__all__ = ["PACKAGE_NAME", "get_project_version", "version_from_pyproject"]
