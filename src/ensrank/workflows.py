# -*- coding: utf-8 -*-

"""
workflows
=========

Config-driven batch ranking.

Config schema (example):
{
  "io": {
    "table_path": "/path/to/series.csv",
    "out_csv": "/path/to/out/rank_all.csv",
    "columns": {"dataset": "product", "date": "time", "value": "pr"}
  },
  "rank": {
    "method": "all",
    "ensemble": "median",
    "n_jobs": 1,
    "time_range": ["1991-01-01", "2012-12-31"]
  },
  "logging": {"level": "INFO"}
}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd

from ._common import PathLike, as_config, ensure_dir, load_json
from .ensemble import as_table
from .errors import InvalidConfiguration
from .ranking import rank_repres

logger = logging.getLogger(__name__)

__all__ = ["RankConfig", "load_table", "select_period", "rank_from_config"]


@dataclass
class RankConfig:
    cfg: dict

    @staticmethod
    def from_json(path: PathLike) -> "RankConfig":
        return RankConfig(cfg=load_json(path))


def load_table(path: PathLike, columns: Optional[dict] = None) -> pd.DataFrame:
    """
    Read an observation table from CSV.
    """
    p = Path(path).expanduser()
    if not p.exists():
        raise FileNotFoundError(f"Observation table not found: {p}")
    return as_table(pd.read_csv(p), columns=columns)


def select_period(data: pd.DataFrame, time_range: Sequence[str]) -> pd.DataFrame:
    """
    Keep rows with ``time_range[0] <= date <= time_range[1]``.
    """
    if len(time_range) != 2:
        raise InvalidConfiguration(f"time_range needs [start, end], got {list(time_range)}")
    start, end = (pd.Timestamp(t) for t in time_range)
    out = data[(data["date"] >= start) & (data["date"] <= end)]
    logger.info("Period %s to %s: %d of %d rows kept.", start.date(), end.date(), len(out), len(data))
    return out.reset_index(drop=True)


def rank_from_config(config: Union[RankConfig, dict, str, PathLike]) -> pd.DataFrame:
    """
    Load the table named in the config, rank it, and optionally write a CSV.
    """
    cfg = config.cfg if isinstance(config, RankConfig) else as_config(config)

    lvl = (cfg.get("logging", {}) or {}).get("level", "INFO")
    logging.getLogger().setLevel(getattr(logging, str(lvl).upper(), logging.INFO))

    io = cfg.get("io") or {}
    if "table_path" not in io:
        raise InvalidConfiguration("config['io']['table_path'] is required.")
    rcfg = cfg.get("rank", {}) or {}

    data = load_table(io["table_path"], columns=io.get("columns"))
    if rcfg.get("time_range"):
        data = select_period(data, rcfg["time_range"])

    df = rank_repres(
        data,
        method=rcfg.get("method", "all"),
        ensemble=rcfg.get("ensemble", "median"),
        n_jobs=rcfg.get("n_jobs"),
    )

    out_csv = io.get("out_csv")
    if out_csv:
        ensure_dir(Path(out_csv).expanduser().parent)
        df.to_csv(out_csv, index=False)
        logger.info("Representativeness ranking saved to: %s", out_csv)

    return df
