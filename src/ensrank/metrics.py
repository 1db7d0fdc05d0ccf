# -*- coding: utf-8 -*-

"""
metrics
=======

Representativeness metrics of a dataset against the ensemble series.

Every metric maps a dataset to a higher-is-better score, clamped at 0:

- mean  : 1 - |(mean_d - mean_e) / mean_e|
- var   : 1 - |(var_d - var_e) / var_e|
- slope : 1 - |(slope_d - slope_e) / slope_e|   (OLS trend, per day)
- kge   : Kling-Gupta efficiency over the common dates
- tss   : Taylor skill score over the common dates
- kld   : 1 - Kullback-Leibler divergence between kernel densities

The built-in metrics are registered in :mod:`ensrank.registry` on import.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from sklearn.linear_model import LinearRegression

from .density import density_interpolant, kl_divergence
from .errors import InvalidInput, NumericIndeterminate
from .registry import register_metric

logger = logging.getLogger(__name__)

__all__ = [
    "Metric",
    "RelativeErrorMetric",
    "MeanMetric",
    "VarianceMetric",
    "SlopeMetric",
    "KGEMetric",
    "TSSMetric",
    "KLDMetric",
    "SCORE_COLUMN",
]

SCORE_COLUMN = "repres_metric"

# ensemble statistics below this fraction of their natural scale count as zero
ZERO_TOLERANCE = 1e-10


def _finite(values) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    return arr[np.isfinite(arr)]


def _require_points(arr: np.ndarray, what: str, min_points: int = 2) -> None:
    if arr.size < min_points:
        raise InvalidInput(f"{what}: {arr.size} valid observation(s), need at least {min_points}.")


def _days(dates) -> np.ndarray:
    """Dates as float days since 1970-01-01."""
    idx = pd.DatetimeIndex(pd.to_datetime(dates))
    return np.asarray((idx - pd.Timestamp("1970-01-01")) / pd.Timedelta(days=1), dtype=float)


def clamp(score: float) -> float:
    """Negative scores mean no similarity; NaN is passed through."""
    return float(np.maximum(score, 0.0))


class Metric:
    """
    Shared pipeline: ensemble-level reference -> per-dataset score -> clamp.

    Subclasses implement ``reference`` (raises InvalidInput when the ensemble
    itself is degenerate, which aborts the whole metric) and ``dataset_score``
    (raises InvalidInput for one bad dataset).
    """

    name: str = ""
    column: str = ""

    def reference(self, ensemble: pd.DataFrame) -> Any:
        raise NotImplementedError

    def dataset_score(self, group: pd.DataFrame, ref: Any) -> float:
        raise NotImplementedError

    def _safe_score(
        self, dataset: str, group: pd.DataFrame, ref: Any, skip_invalid: bool
    ) -> Optional[Tuple[str, float]]:
        try:
            return dataset, clamp(self.dataset_score(group, ref))
        except InvalidInput as err:
            if not skip_invalid:
                raise type(err)(f"[{self.name}] dataset '{dataset}': {err}") from err
            logger.warning("[%s] dataset '%s' dropped: %s", self.name, dataset, err)
            return None

    def _iter_scores(self, groups, ref, skip_invalid: bool, n_jobs: Optional[int]) -> Iterable:
        return (self._safe_score(name, grp, ref, skip_invalid) for name, grp in groups)

    def score(
        self,
        data: pd.DataFrame,
        ensemble: pd.DataFrame,
        *,
        skip_invalid: bool = False,
        n_jobs: Optional[int] = None,
    ) -> pd.DataFrame:
        """
        Score every dataset of ``data`` against ``ensemble``.

        Returns
        -------
        pd.DataFrame
            Columns ``dataset``, ``repres_metric`` in first-appearance order.
        """
        ref = self.reference(ensemble)
        groups = data.groupby("dataset", sort=False)
        rows = [r for r in self._iter_scores(groups, ref, skip_invalid, n_jobs) if r is not None]
        return pd.DataFrame(rows, columns=["dataset", SCORE_COLUMN])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


# ========== Relative-error metrics ==========

class RelativeErrorMetric(Metric):
    """Score = 1 - |(S - E) / E| for a scalar statistic S of each dataset."""

    def statistic(self, values: np.ndarray, dates: pd.Series) -> float:
        raise NotImplementedError

    def scale(self, values: np.ndarray, dates: pd.Series) -> float:
        """Magnitude the statistic is compared against when testing for zero."""
        return float(np.max(np.abs(_finite(values))))

    def reference(self, ensemble: pd.DataFrame) -> float:
        values = ensemble["ensemble"].to_numpy(dtype=float)
        e = self.statistic(values, ensemble["date"])
        if np.isclose(e, 0.0, rtol=0.0, atol=ZERO_TOLERANCE * self.scale(values, ensemble["date"])):
            raise InvalidInput(f"[{self.name}] ensemble statistic is zero; relative error undefined.")
        return e

    def dataset_score(self, group: pd.DataFrame, ref: float) -> float:
        s = self.statistic(group["value"].to_numpy(dtype=float), group["date"])
        return 1.0 - abs((s - ref) / ref)


class MeanMetric(RelativeErrorMetric):
    name = "mean"
    column = "mean"

    def statistic(self, values, dates) -> float:
        v = _finite(values)
        _require_points(v, "mean")
        return float(np.mean(v))


class VarianceMetric(RelativeErrorMetric):
    name = "var"
    column = "variance"

    def statistic(self, values, dates) -> float:
        v = _finite(values)
        _require_points(v, "variance")
        return float(np.var(v, ddof=1))

    def scale(self, values, dates) -> float:
        return super().scale(values, dates) ** 2


class SlopeMetric(RelativeErrorMetric):
    name = "slope"
    column = "slope"

    def statistic(self, values, dates) -> float:
        t = _days(dates)
        m = np.isfinite(values) & np.isfinite(t)
        _require_points(values[m], "slope")
        if np.unique(t[m]).size < 2:
            raise InvalidInput("slope: all observations share one date.")
        lr = LinearRegression()
        lr.fit(t[m].reshape(-1, 1), values[m])
        return float(lr.coef_[0])

    def scale(self, values, dates) -> float:
        t = _days(dates)
        m = np.isfinite(values) & np.isfinite(t)
        return float(np.max(np.abs(values[m])) / np.ptp(t[m]))


# ========== Metrics over the common dates ==========

def _joined_moments(group: pd.DataFrame, ensemble: pd.DataFrame) -> dict:
    """
    Inner-join a dataset with the ensemble on date, drop incomplete pairs,
    and return means, standard deviations and Pearson r.
    """
    joined = group[["date", "value"]].merge(ensemble, on="date", how="inner")
    joined = joined[np.isfinite(joined["value"]) & np.isfinite(joined["ensemble"])]
    d = joined["value"].to_numpy(dtype=float)
    e = joined["ensemble"].to_numpy(dtype=float)
    _require_points(d, "common dates")

    sd_d = float(np.std(d, ddof=1))
    sd_e = float(np.std(e, ddof=1))
    if sd_e <= ZERO_TOLERANCE * np.max(np.abs(e)):
        raise InvalidInput("ensemble standard deviation is zero over the common dates.")
    if sd_d <= ZERO_TOLERANCE * np.max(np.abs(d)):
        raise InvalidInput("dataset standard deviation is zero; correlation undefined.")

    return {
        "mean_d": float(np.mean(d)),
        "mean_e": float(np.mean(e)),
        "sd_d": sd_d,
        "sd_e": sd_e,
        "r": float(np.corrcoef(d, e)[0, 1]),
        "scale_d": float(np.max(np.abs(d))),
        "scale_e": float(np.max(np.abs(e))),
    }


class _JoinedMetric(Metric):
    def reference(self, ensemble: pd.DataFrame) -> pd.DataFrame:
        _require_points(_finite(ensemble["ensemble"]), f"[{self.name}] ensemble")
        return ensemble


class KGEMetric(_JoinedMetric):
    name = "kge"
    column = "kge"

    def dataset_score(self, group, ref) -> float:
        m = _joined_moments(group, ref)
        if (abs(m["mean_d"]) <= ZERO_TOLERANCE * m["scale_d"]
                or abs(m["mean_e"]) <= ZERO_TOLERANCE * m["scale_e"]):
            raise InvalidInput("zero mean; variability ratio undefined.")
        alpha = (m["sd_d"] / m["mean_d"]) / (m["sd_e"] / m["mean_e"])
        beta = m["mean_d"] / m["mean_e"]
        return 1.0 - np.sqrt((m["r"] - 1.0) ** 2 + (alpha - 1.0) ** 2 + (beta - 1.0) ** 2)


class TSSMetric(_JoinedMetric):
    name = "tss"
    column = "tss"

    def dataset_score(self, group, ref) -> float:
        m = _joined_moments(group, ref)
        a = m["sd_d"] / m["sd_e"]
        return 2.0 * (1.0 + m["r"]) / (a + 1.0 / a) ** 2


# ========== Kullback-Leibler divergence ==========

class KLDMetric(Metric):
    """
    KLD between the dataset density P and the ensemble density Q.

    Each dataset is independent, so the loop fans out over a joblib pool
    that lives only for the duration of the call.
    """

    name = "kld"
    column = "kld"

    def reference(self, ensemble: pd.DataFrame) -> dict:
        e = _finite(ensemble["ensemble"])
        uniq = np.unique(e)
        if uniq.size < 2:
            raise InvalidInput(f"[{self.name}] ensemble has fewer than two distinct values.")
        return {"q": density_interpolant(e), "min_gap": float(np.min(np.diff(uniq)))}

    def dataset_score(self, group, ref) -> float:
        v = _finite(group["value"])
        x = np.unique(v)
        if x.size < 2:
            raise InvalidInput("fewer than two distinct values.")
        p = density_interpolant(v)
        e = min(float(np.min(np.diff(x))), ref["min_gap"]) / 2.0
        try:
            kl = max(kl_divergence(p, ref["q"], x, e, v.size), 0.0)
        except NumericIndeterminate as err:
            # no overlap with the ensemble density: no similarity
            logger.warning("[%s] %s Scored 0.", self.name, err)
            return 0.0
        return 1.0 - kl

    def _iter_scores(self, groups, ref, skip_invalid, n_jobs) -> List:
        with Parallel(n_jobs=n_jobs) as parallel:
            return parallel(
                delayed(self._safe_score)(name, grp, ref, skip_invalid) for name, grp in groups
            )


for _metric in (MeanMetric(), VarianceMetric(), SlopeMetric(), KGEMetric(), TSSMetric(), KLDMetric()):
    register_metric(_metric.name, _metric)
