"""
Unit tests for the Student-t market model and scenario sampler.
"""

import logging
import numpy as np
import pytest
from scipy import stats

from var_contrib.exceptions import InvalidInputError
from var_contrib.market_model import MarketParameters, simulate_student_t_scenarios
from var_contrib.statistics import (
    compute_portfolio_statistics,
    decompose_covariance,
    generate_random_market,
    validate_covariance_matrix,
)


class TestMarketParameters:
    """Constructor-time validation of market parameters."""

    def test_valid_parameters(self, small_market):
        params, _ = small_market
        assert params.n_assets == 3
        assert params.degrees_of_freedom == 7.0

    def test_non_psd_covariance_rejected(self):
        with pytest.raises(InvalidInputError, match="positive semi-definite"):
            MarketParameters(np.zeros(2), np.array([[1.0, 2.0], [2.0, 1.0]]), 5.0)

    def test_asymmetric_covariance_rejected(self):
        with pytest.raises(InvalidInputError):
            MarketParameters(np.zeros(2), np.array([[1.0, 0.5], [0.0, 1.0]]), 5.0)

    def test_shape_mismatch_rejected(self):
        with pytest.raises(InvalidInputError, match="shape"):
            MarketParameters(np.zeros(3), np.eye(2), 5.0)

    @pytest.mark.parametrize("dof", [0.0, -3.0])
    def test_non_positive_dof_rejected(self, dof):
        with pytest.raises(InvalidInputError, match="degrees of freedom"):
            MarketParameters(np.zeros(2), np.eye(2), dof)

    def test_error_carries_context(self):
        with pytest.raises(InvalidInputError) as excinfo:
            MarketParameters(np.zeros(2), np.eye(2), -1.0)
        assert excinfo.value.context == "market parameters"
        assert isinstance(excinfo.value, ValueError)

    def test_arrays_are_frozen_copies(self):
        mean = np.array([0.1, 0.2])
        params = MarketParameters(mean, np.eye(2), 5.0)
        mean[0] = 99.0
        assert params.mean_vector[0] == 0.1
        with pytest.raises(ValueError):
            params.cov_matrix[0, 0] = 2.0


class TestStatistics:
    """Covariance helpers."""

    def test_validate_covariance(self):
        assert validate_covariance_matrix(np.eye(3))
        assert not validate_covariance_matrix(np.array([[1.0, 2.0], [2.0, 1.0]]))

    def test_small_relative_asymmetry_rejected(self):
        skewed = np.array([[1.0, 0.5], [0.5 + 1e-7, 1.0]])
        assert not validate_covariance_matrix(skewed)
        with pytest.raises(InvalidInputError, match="symmetric"):
            MarketParameters(np.zeros(2), skewed, 5.0)

    def test_rounding_noise_accepted(self):
        noisy = np.array([[4.0e6, 1.0e6], [1.0e6 + 1e-6, 9.0e6]])
        assert validate_covariance_matrix(noisy)
        assert validate_covariance_matrix(np.array([[1.0, 0.5], [0.5 + 1e-13, 1.0]]))
        assert not validate_covariance_matrix(np.empty((0, 0)))

    def test_decompose_covariance(self, small_market):
        params, _ = small_market
        std_devs, correlation = decompose_covariance(params.cov_matrix)
        np.testing.assert_allclose(std_devs, [0.20, 0.15, 0.30])
        np.testing.assert_allclose(np.diag(correlation), 1.0)
        np.testing.assert_allclose(
            correlation * np.outer(std_devs, std_devs), params.cov_matrix, atol=1e-14
        )

    def test_decompose_zero_variance_rejected(self):
        with pytest.raises(InvalidInputError, match="strictly positive"):
            decompose_covariance(np.diag([1.0, 0.0]))

    def test_portfolio_statistics(self, small_market):
        params, allocation = small_market
        port = compute_portfolio_statistics(params.mean_vector, params.cov_matrix, allocation)
        assert port["portfolio_mean"] == pytest.approx(0.125)
        assert port["portfolio_std"] == pytest.approx(np.sqrt(port["portfolio_variance"]))

    def test_random_market_is_psd(self):
        mean, cov, allocation = generate_random_market(40, seed=1)
        assert mean.shape == (40,) and allocation.shape == (40,)
        assert validate_covariance_matrix(cov)


class TestScenarioSampler:
    """Tests for the symmetrised multivariate-t sampler."""

    def test_shape(self, small_market):
        params, _ = small_market
        scenarios = simulate_student_t_scenarios(params, 1000, seed=1)
        assert scenarios.shape == (1000, 3)

    def test_symmetrised_halves(self, small_market):
        params, _ = small_market
        scenarios = simulate_student_t_scenarios(params, 1000, seed=1)
        deviations = scenarios - params.mean_vector
        np.testing.assert_allclose(deviations[:500], -deviations[500:], atol=1e-12)

    def test_sample_mean_equals_location(self, small_market):
        params, _ = small_market
        scenarios = simulate_student_t_scenarios(params, 10_000, seed=3)
        np.testing.assert_allclose(scenarios.mean(axis=0), params.mean_vector, atol=1e-12)

    def test_symmetrisation_beats_plain_sample(self, small_market):
        """Mean deviation of symmetrised draws is smaller than unsymmetrised."""
        params, _ = small_market
        std_devs, correlation = decompose_covariance(params.cov_matrix)
        size = 2000
        sym_err, plain_err = [], []
        for seed in range(5):
            scenarios = simulate_student_t_scenarios(params, size, seed=seed)
            sym_err.append(np.abs(scenarios.mean(axis=0) - params.mean_vector).mean())

            plain = stats.multivariate_t(
                loc=np.zeros(3), shape=correlation, df=params.degrees_of_freedom
            ).rvs(size=size, random_state=np.random.default_rng(seed + 100))
            plain = params.mean_vector + plain * std_devs
            plain_err.append(np.abs(plain.mean(axis=0) - params.mean_vector).mean())

        assert np.mean(sym_err) < np.mean(plain_err)

    def test_marginal_scale_and_correlation(self, small_market):
        """Marginals follow t_ν scaled by √Σ_ii; correlation is preserved."""
        params, _ = small_market
        nu = params.degrees_of_freedom
        scenarios = simulate_student_t_scenarios(params, 200_000, seed=11)

        expected_std = np.sqrt(np.diag(params.cov_matrix) * nu / (nu - 2))
        np.testing.assert_allclose(scenarios.std(axis=0), expected_std, rtol=0.05)

        _, correlation = decompose_covariance(params.cov_matrix)
        np.testing.assert_allclose(
            np.corrcoef(scenarios, rowvar=False), correlation, atol=0.02
        )

    def test_reproducible_with_seed(self, small_market):
        params, _ = small_market
        first = simulate_student_t_scenarios(params, 100, seed=5)
        second = simulate_student_t_scenarios(params, 100, seed=5)
        np.testing.assert_array_equal(first, second)

    @pytest.mark.parametrize("num_simulations", [999, 0, -4])
    def test_invalid_simulation_count(self, small_market, num_simulations):
        params, _ = small_market
        with pytest.raises(InvalidInputError, match="even"):
            simulate_student_t_scenarios(params, num_simulations)

    def test_single_asset(self):
        params = MarketParameters(np.array([0.5]), np.array([[4.0]]), 5.0)
        scenarios = simulate_student_t_scenarios(params, 10, seed=0)
        assert scenarios.shape == (10, 1)

    def test_zero_variance_asset_rejected(self):
        params = MarketParameters(np.zeros(2), np.diag([1.0, 0.0]), 5.0)
        with pytest.raises(InvalidInputError):
            simulate_student_t_scenarios(params, 100)

    def test_infinite_variance_dof_logged(self, caplog):
        params = MarketParameters(np.zeros(2), np.eye(2), degrees_of_freedom=1.5)
        with caplog.at_level(logging.WARNING, logger="var_contrib.market_model"):
            scenarios = simulate_student_t_scenarios(params, 100, seed=0)

        assert scenarios.shape == (100, 2)
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "infinite variance" in warnings[0].getMessage()

    def test_finite_variance_dof_not_logged(self, small_market, caplog):
        params, _ = small_market
        with caplog.at_level(logging.WARNING, logger="var_contrib.market_model"):
            simulate_student_t_scenarios(params, 100, seed=0)
        assert not caplog.records
