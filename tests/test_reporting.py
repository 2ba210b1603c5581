"""
Tests for figures and the command-line run.
"""

import numpy as np
import pandas as pd
import pytest

from main import load_series, main
from var_contrib.exceptions import InvalidInputError
from var_contrib.diagnostics import invariance_diagnostics
from var_contrib.engine import run_var_contribution_engine
from var_contrib.statistics import decompose_covariance
from var_contrib.visualization import (
    build_contribution_figure,
    plot_contribution_comparison,
    plot_correlation_heatmap,
    plot_invariance_diagnostics,
    plot_pnl_tail,
)


@pytest.fixture
def engine_results(small_market):
    params, allocation = small_market
    return run_var_contribution_engine(params, allocation, num_simulations=2000, seed=0)


class TestVisualization:

    def test_panels_share_analytical_y_range(self):
        fig = build_contribution_figure(
            np.array([-1.0, 0.5, 2.0]), np.array([-3.0, 4.0, 0.0]),
            np.array([-1.1, 0.4, 2.1]), naive_mse=5.0, refined_mse=0.01,
        )
        axes = fig.axes
        assert len(axes) == 3
        assert axes[1].get_ylim() == axes[0].get_ylim()
        assert axes[2].get_ylim() == axes[0].get_ylim()
        assert axes[0].get_xlim() == (0.0, 4.0)
        assert axes[0].get_title() == "analytical: error = 0"
        assert axes[1].get_title().startswith("naive: error = 5")

    def test_figures_written(self, engine_results, small_market, tmp_path):
        params, _ = small_market
        _, correlation = decompose_covariance(params.cov_matrix)
        diag = invariance_diagnostics(pd.Series(engine_results.portfolio_pnl[:500]))

        paths = [
            plot_contribution_comparison(engine_results, output_dir=str(tmp_path)),
            plot_pnl_tail(engine_results, output_dir=str(tmp_path)),
            plot_correlation_heatmap(correlation, ["A", "B", "C"], output_dir=str(tmp_path)),
            *plot_invariance_diagnostics(diag, output_dir=str(tmp_path)),
        ]
        assert len(paths) == 5
        for path in paths:
            assert (tmp_path / path.split("/")[-1]).exists()


class TestMain:

    def test_run_without_plots(self, tmp_path, capsys):
        code = main(["--assets", "4", "--simulations", "4000",
                     "--output-dir", str(tmp_path), "--no-plots"])
        assert code == 0
        table = pd.read_csv(tmp_path / "tables" / "var_comparison.csv")
        assert table["Method"].tolist() == ["analytical", "naive", "refined"]
        assert "PHASE 3" in capsys.readouterr().out

    def test_invalid_input_reported(self, tmp_path):
        code = main(["--assets", "3", "--simulations", "1001",
                     "--output-dir", str(tmp_path), "--no-plots"])
        assert code == 1

    def test_series_csv(self, tmp_path):
        csv_path = tmp_path / "series.csv"
        rng = np.random.default_rng(1)
        pd.DataFrame(
            {"value": rng.standard_normal(300)},
            index=pd.bdate_range("2021-01-01", periods=300),
        ).to_csv(csv_path)
        code = main(["--assets", "3", "--simulations", "2000", "--series-csv", str(csv_path),
                     "--output-dir", str(tmp_path), "--no-plots"])
        assert code == 0

    def test_non_numeric_series_csv_reported(self, tmp_path, caplog):
        csv_path = tmp_path / "series.csv"
        pd.DataFrame(
            {"ticker": ["AAA", "BBB", "CCC", "DDD", "EEE"]},
            index=pd.bdate_range("2021-01-01", periods=5),
        ).to_csv(csv_path)
        code = main(["--assets", "3", "--simulations", "2000", "--series-csv", str(csv_path),
                     "--output-dir", str(tmp_path), "--no-plots"])
        assert code == 1
        assert "series csv" in caplog.text


class TestLoadSeries:

    def test_numeric_column_loaded(self, tmp_path):
        csv_path = tmp_path / "series.csv"
        pd.DataFrame(
            {"value": ["1.5", "2.5", None, "4.0"]},
            index=pd.bdate_range("2021-01-01", periods=4),
        ).to_csv(csv_path)
        series = load_series(str(csv_path))
        assert series.tolist() == [1.5, 2.5, 4.0]
        assert isinstance(series.index, pd.DatetimeIndex)

    def test_text_column_rejected(self, tmp_path):
        csv_path = tmp_path / "series.csv"
        pd.DataFrame(
            {"value": ["1.0", "n/a-ish", "3.0", "4.0"]},
            index=pd.bdate_range("2021-01-01", periods=4),
        ).to_csv(csv_path)
        with pytest.raises(InvalidInputError, match="not numeric") as excinfo:
            load_series(str(csv_path))
        assert excinfo.value.context == "series csv"
