# -*- coding: utf-8 -*-

"""
ensemble
========

Observation table handling and the ensemble reference series:

- as_table       : normalize caller input into a (dataset, date, value) table
- build_ensemble : reduce all datasets to one value per date (mean / median)
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Union

import numpy as np
import pandas as pd
import xarray as xr

from .errors import InvalidConfiguration, InvalidInput

logger = logging.getLogger(__name__)

__all__ = [
    "TABLE_COLUMNS",
    "ENSEMBLE_FUNCS",
    "as_table",
    "build_ensemble",
]

TABLE_COLUMNS = ("dataset", "date", "value")

ENSEMBLE_FUNCS = ("mean", "median")


def _series_to_frame(name: str, s: Union[pd.Series, xr.DataArray], time_dim: str) -> pd.DataFrame:
    if isinstance(s, xr.DataArray):
        if time_dim not in s.dims:
            raise InvalidInput(f"DataArray for dataset '{name}' has no '{time_dim}' dimension.")
        if s.ndim != 1:
            raise InvalidInput(
                f"DataArray for dataset '{name}' must be 1D along '{time_dim}', got dims {s.dims}."
            )
        s = s.to_series()
    return pd.DataFrame(
        {
            "dataset": str(name),
            "date": pd.to_datetime(s.index),
            "value": np.asarray(s.values, dtype=float),
        }
    )


def as_table(
    obj,
    *,
    columns: Optional[Mapping[str, str]] = None,
    dataset_dim: str = "realization",
    time_dim: str = "time",
) -> pd.DataFrame:
    """
    Normalize input into an observation table with columns dataset, date, value.

    Parameters
    ----------
    obj : pd.DataFrame, mapping or xr.DataArray
        - DataFrame with the three fields (renamed through ``columns`` if needed)
        - mapping of dataset name -> pd.Series / 1D xr.DataArray indexed by time
        - 2D DataArray with dims (dataset_dim, time_dim)
    columns : mapping, optional
        Maps the standard names ("dataset", "date", "value") to the column
        names actually used in a DataFrame input.
    dataset_dim, time_dim : str
        Dimension names for DataArray input.

    Returns
    -------
    pd.DataFrame
        A new table; the input object is left untouched.
    """
    if isinstance(obj, pd.DataFrame):
        cols = dict(zip(TABLE_COLUMNS, TABLE_COLUMNS))
        if columns:
            cols.update(columns)
        missing = [c for c in cols.values() if c not in obj.columns]
        if missing:
            raise InvalidInput(
                f"Observation table is missing column(s) {missing}. Available: {list(obj.columns)}"
            )
        df = obj[[cols["dataset"], cols["date"], cols["value"]]].copy()
        df.columns = list(TABLE_COLUMNS)

    elif isinstance(obj, xr.DataArray):
        if dataset_dim not in obj.dims or time_dim not in obj.dims:
            raise InvalidInput(
                f"DataArray must have dims ('{dataset_dim}', '{time_dim}'), got {obj.dims}."
            )
        frames = [
            _series_to_frame(str(name), obj.sel({dataset_dim: name}), time_dim)
            for name in obj[dataset_dim].values
        ]
        df = pd.concat(frames, ignore_index=True)

    elif isinstance(obj, Mapping):
        if not obj:
            raise InvalidInput("Empty mapping of datasets.")
        df = pd.concat(
            [_series_to_frame(name, s, time_dim) for name, s in obj.items()],
            ignore_index=True,
        )

    else:
        raise InvalidInput(f"Unsupported observation table type: {type(obj).__name__}")

    df["dataset"] = df["dataset"].astype(str)
    df["date"] = pd.to_datetime(df["date"])
    df["value"] = pd.to_numeric(df["value"], errors="coerce").astype(float)
    return df.reset_index(drop=True)


def build_ensemble(data: pd.DataFrame, ensemble: str = "median") -> pd.DataFrame:
    """
    Ensemble reference series: one value per distinct date, ignoring missing values.

    A date where every dataset is missing keeps a NaN ensemble value.

    Returns
    -------
    pd.DataFrame
        Columns ``date``, ``ensemble``; sorted by date ascending.
    """
    if ensemble not in ENSEMBLE_FUNCS:
        raise InvalidConfiguration(
            f"Unknown ensemble function '{ensemble}'. Choose from {list(ENSEMBLE_FUNCS)}."
        )

    grouped = data.groupby("date", sort=True)["value"]
    series = grouped.mean() if ensemble == "mean" else grouped.median()

    out = series.rename("ensemble").reset_index()
    n_missing = int(out["ensemble"].isna().sum())
    if n_missing:
        logger.warning("Ensemble %s undefined at %d date(s): all values missing.", ensemble, n_missing)
    logger.info("Built %s ensemble over %d dates from %d datasets.",
                ensemble, len(out), data["dataset"].nunique())
    return out
