from __future__ import annotations

import numpy as np
import pandas as pd
import pytest


def _table(values: dict, start: str = "2000-01-01", freq: str = "D") -> pd.DataFrame:
    frames = []
    for name, vals in values.items():
        frames.append(
            pd.DataFrame(
                {
                    "dataset": name,
                    "date": pd.date_range(start, periods=len(vals), freq=freq),
                    "value": np.asarray(vals, dtype=float),
                }
            )
        )
    return pd.concat(frames, ignore_index=True)


@pytest.fixture
def make_table():
    return _table


@pytest.fixture
def three_datasets() -> pd.DataFrame:
    """Two identical small datasets and one ten times larger."""
    return _table({"A": [1, 2, 3], "B": [1, 2, 3], "C": [10, 20, 30]})


@pytest.fixture
def random() -> np.random.Generator:
    return np.random.default_rng(seed=2025)


@pytest.fixture
def yearly_ensemble(random) -> pd.DataFrame:
    """Five noisy precipitation-like yearly series sharing a trend."""
    years = 30
    base = 800 + 3.0 * np.arange(years)
    values = {
        f"prod{i}": base * (1 + 0.05 * i) + random.normal(0, 40 + 10 * i, years)
        for i in range(5)
    }
    return _table(values, start="1991-01-01", freq="YS")
