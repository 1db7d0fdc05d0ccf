# -*- coding: utf-8 -*-
"""
ensrank._common
===============

Small shared helpers: JSON ranking configuration and output directories.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Union

from .errors import InvalidConfiguration

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create the output directory for ranking tables if needed."""
    p = Path(p).expanduser().resolve()
    p.mkdir(parents=True, exist_ok=True)
    return p


def load_json(path: PathLike) -> dict:
    """
    Read a ranking configuration file.

    The top level must be a JSON object (sections "io", "rank", "logging").
    """
    p = Path(path).expanduser().resolve()
    if not p.exists():
        raise InvalidConfiguration(f"Config file not found: {p}")
    with open(p, "r", encoding="utf-8") as f:
        try:
            cfg = json.load(f)
        except json.JSONDecodeError as err:
            raise InvalidConfiguration(f"{p}: malformed JSON ({err})") from err
    if not isinstance(cfg, dict):
        raise InvalidConfiguration(f"{p}: top level must be an object, got {type(cfg).__name__}.")
    return cfg


def as_config(config: Union[dict, str, Path]) -> dict:
    """Accept a config dict as-is, or load it from a JSON path."""
    if isinstance(config, dict):
        return config
    if isinstance(config, (str, Path)):
        return load_json(config)
    raise InvalidConfiguration(f"config must be dict | path-to-json, got {type(config).__name__}")
