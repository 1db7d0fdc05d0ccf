from __future__ import annotations

import json

import pandas as pd
import pytest

from ensrank.errors import InvalidConfiguration
from ensrank.workflows import RankConfig, load_table, rank_from_config, select_period


@pytest.fixture
def table_csv(tmp_path, yearly_ensemble):
    path = tmp_path / "series.csv"
    yearly_ensemble.rename(columns={"dataset": "product", "date": "time", "value": "pr"}).to_csv(
        path, index=False
    )
    return path


def _config(table_csv, tmp_path, **rank):
    return {
        "io": {
            "table_path": str(table_csv),
            "out_csv": str(tmp_path / "out" / "rank.csv"),
            "columns": {"dataset": "product", "date": "time", "value": "pr"},
        },
        "rank": rank,
        "logging": {"level": "WARNING"},
    }


class TestLoadTable:
    def test_columns_mapped(self, table_csv):
        df = load_table(table_csv, columns={"dataset": "product", "date": "time", "value": "pr"})
        assert list(df.columns) == ["dataset", "date", "value"]
        assert pd.api.types.is_datetime64_any_dtype(df["date"])

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_table(tmp_path / "nope.csv")


class TestSelectPeriod:
    def test_inclusive(self, yearly_ensemble):
        out = select_period(yearly_ensemble, ["1995-01-01", "2004-01-01"])
        assert out["date"].min() == pd.Timestamp("1995-01-01")
        assert out["date"].max() == pd.Timestamp("2004-01-01")
        assert len(out) == 10 * 5

    def test_bad_range(self, yearly_ensemble):
        with pytest.raises(InvalidConfiguration):
            select_period(yearly_ensemble, ["1995-01-01"])


class TestRankFromConfig:
    def test_all_written(self, table_csv, tmp_path):
        df = rank_from_config(_config(table_csv, tmp_path, method="all", ensemble="median"))
        written = pd.read_csv(tmp_path / "out" / "rank.csv")
        assert list(written.columns) == list(df.columns)
        assert len(written) == 5

    def test_json_and_dataclass(self, table_csv, tmp_path):
        cfg = _config(table_csv, tmp_path, method="kge", time_range=["1991-01-01", "2012-12-31"])
        path = tmp_path / "config.json"
        path.write_text(json.dumps(cfg), encoding="utf-8")

        from_path = rank_from_config(str(path))
        from_obj = rank_from_config(RankConfig.from_json(path))
        pd.testing.assert_frame_equal(from_path, from_obj)
        assert list(from_path.columns) == ["dataset", "repres_metric"]
        assert from_path["repres_metric"].is_monotonic_decreasing

    def test_missing_table_path(self):
        with pytest.raises(InvalidConfiguration):
            rank_from_config({"rank": {"method": "mean"}})

    def test_bad_method(self, table_csv, tmp_path):
        with pytest.raises(InvalidConfiguration):
            rank_from_config(_config(table_csv, tmp_path, method="bogus"))

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{\"io\": ", encoding="utf-8")
        with pytest.raises(InvalidConfiguration, match="malformed"):
            rank_from_config(path)

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(InvalidConfiguration, match="object"):
            RankConfig.from_json(path)
