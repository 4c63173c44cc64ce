"""Locate ``ogfetch.toml`` the way git locates ``.git``."""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "ogfetch.toml"
CONFIG_ENV_VAR = "OGFETCH_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file in effect for *start* (default: cwd).

    ``OGFETCH_CONFIG`` short-circuits the search; if it names a missing
    file there is no config. Otherwise the first ``ogfetch.toml`` found in
    *start* or any ancestor wins.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
