# -*- coding: utf-8 -*-

"""
density
=======

Kernel density helpers used by the KLD representativeness metric:

- bw_nrd0             : Silverman's rule-of-thumb bandwidth
- density_interpolant : Gaussian KDE on a regular grid + linear interpolation
- kl_divergence       : discrete Kullback-Leibler estimator between two interpolants
"""

from __future__ import annotations

import logging
from typing import Callable

import numpy as np
from scipy import stats

from .errors import InvalidInput, NumericIndeterminate

logger = logging.getLogger(__name__)

__all__ = ["bw_nrd0", "density_interpolant", "kl_divergence"]


def bw_nrd0(sample) -> float:
    """
    Silverman's rule of thumb: 0.9 * min(sd, IQR/1.34) * n^(-1/5).
    """
    x = np.asarray(sample, dtype=float)
    x = x[np.isfinite(x)]
    if x.size < 2:
        raise InvalidInput("Bandwidth needs at least two finite values.")

    hi = np.std(x, ddof=1)
    q75, q25 = np.percentile(x, [75, 25])
    lo = min(hi, (q75 - q25) / 1.34)
    # fall back when the spread estimate collapses to zero
    if not lo:
        lo = hi or abs(x[0]) or 1.0
    return float(0.9 * lo * x.size ** -0.2)


def density_interpolant(sample, n: int = 512, cut: float = 3.0) -> Callable[[np.ndarray], np.ndarray]:
    """
    Build a linear interpolant of the Gaussian kernel density of ``sample``.

    The density is evaluated on ``n`` equally spaced points spanning
    ``[min - cut * bw, max + cut * bw]``; the returned function gives NaN
    outside that grid.

    Parameters
    ----------
    sample : array-like
        1D sample; non-finite values are dropped.
    n : int
        Number of grid points.
    cut : float
        Grid extension beyond the data range, in bandwidths.

    Returns
    -------
    callable
        f(x) -> density values at x.
    """
    x = np.asarray(sample, dtype=float)
    x = x[np.isfinite(x)]
    if np.unique(x).size < 2:
        raise InvalidInput("Density estimation needs at least two distinct finite values.")

    bw = bw_nrd0(x)
    kde = stats.gaussian_kde(x, bw_method=bw / np.std(x, ddof=1))

    grid = np.linspace(x.min() - cut * bw, x.max() + cut * bw, n)
    dens = kde(grid)

    def _interp(points) -> np.ndarray:
        return np.interp(np.asarray(points, dtype=float), grid, dens, left=np.nan, right=np.nan)

    return _interp


def kl_divergence(p: Callable, q: Callable, x, e: float, n: int) -> float:
    """
    Discrete KL estimator.

        KL = sum(log((P(x) - P(x - e)) / (Q(x) - Q(x - e)))) / n

    Terms that are not finite (zero or undefined density differences,
    points outside either support) are left out of the sum.
    Raises NumericIndeterminate when no finite term remains.
    """
    x = np.asarray(x, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        terms = np.log((p(x) - p(x - e)) / (q(x) - q(x - e)))

    finite = np.isfinite(terms)
    n_excluded = int((~finite).sum())
    if n_excluded:
        logger.debug("KLD: %d of %d terms not finite, excluded.", n_excluded, terms.size)
    if not finite.any():
        raise NumericIndeterminate("KLD: every density-difference ratio is undefined.")

    return float(terms[finite].sum() / n)
