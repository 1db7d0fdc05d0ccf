# -*- coding: utf-8 -*-

"""
ranking
=======

Ensemble representativeness ranking.

``rank_repres`` builds the ensemble series, scores every dataset with the
requested metric and either ranks the result (single metric) or joins all
registered metrics side by side (``method="all"``).
"""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from .ensemble import ENSEMBLE_FUNCS, as_table, build_ensemble
from .errors import InvalidConfiguration, InvalidInput
from .metrics import SCORE_COLUMN
from .registry import available_metrics, get_metric

logger = logging.getLogger(__name__)

__all__ = ["rank_repres", "combine_metrics"]


def combine_metrics(
    data: pd.DataFrame,
    ensemble: pd.DataFrame,
    n_jobs: Optional[int] = None,
) -> pd.DataFrame:
    """
    Run every registered metric and inner-join the score columns on ``dataset``.

    A dataset that fails any metric is dropped. A metric whose ensemble
    statistic is degenerate yields no rows, which empties the table.
    The result is not sorted.
    """
    out = None
    for name in available_metrics():
        metric = get_metric(name)
        try:
            scores = metric.score(data, ensemble, skip_invalid=True, n_jobs=n_jobs)
        except InvalidInput as err:
            logger.warning("[%s] no dataset scored: %s", name, err)
            scores = pd.DataFrame(columns=["dataset", SCORE_COLUMN])
        scores = scores.rename(columns={SCORE_COLUMN: metric.column})
        out = scores if out is None else out.merge(scores, on="dataset", how="inner")

    dropped = set(data["dataset"].unique()) - set(out["dataset"])
    if dropped:
        logger.warning("Datasets missing from the combined table: %s", sorted(dropped))
    return out.reset_index(drop=True)


def rank_repres(
    data,
    method: str = "all",
    ensemble: str = "median",
    n_jobs: Optional[int] = None,
) -> pd.DataFrame:
    """
    Rank the members of a dataset ensemble by representativeness.

    Parameters
    ----------
    data : pd.DataFrame or mapping or xr.DataArray
        Observation table with fields dataset, date, value (anything accepted
        by :func:`ensrank.ensemble.as_table`).
    method : str, default "all"
        One of "mean", "var", "slope", "kge", "tss", "kld" or "all".
    ensemble : str, default "median"
        Central tendency of the ensemble series: "mean" or "median".
    n_jobs : int, optional
        Workers for the per-dataset KLD computation (joblib semantics).

    Returns
    -------
    pd.DataFrame
        Single metric: columns dataset, repres_metric, sorted descending.
        "all": columns dataset, mean, variance, slope, kge, tss, kld, unsorted.

    Examples
    --------
    >>> ranked = rank_repres(df[df["date"].dt.year.between(1991, 2012)], method="kge")
    """
    if ensemble not in ENSEMBLE_FUNCS:
        raise InvalidConfiguration(
            f"Unknown ensemble function '{ensemble}'. Choose from {list(ENSEMBLE_FUNCS)}."
        )
    metric = None if method == "all" else get_metric(method)

    table = as_table(data)
    ens = build_ensemble(table, ensemble)

    if metric is None:
        return combine_metrics(table, ens, n_jobs=n_jobs)

    scores = metric.score(table, ens, n_jobs=n_jobs)
    ranked = scores.sort_values(SCORE_COLUMN, ascending=False, kind="mergesort")
    logger.info("Ranked %d datasets by %s (ensemble %s).", len(ranked), method, ensemble)
    return ranked.reset_index(drop=True)
