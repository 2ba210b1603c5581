"""Shared fixtures for the VaR contribution tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from var_contrib.market_model import MarketParameters
from var_contrib.statistics import generate_random_market


@pytest.fixture
def small_market():
    """Three-asset Student-t market with a fixed allocation."""
    mean_vector = np.array([0.10, 0.05, 0.00])
    std_devs = np.array([0.20, 0.15, 0.30])
    correlation = np.array([[1.0, 0.3, -0.2],
                            [0.3, 1.0, 0.4],
                            [-0.2, 0.4, 1.0]])
    cov_matrix = correlation * np.outer(std_devs, std_devs)
    params = MarketParameters(mean_vector, cov_matrix, degrees_of_freedom=7.0)
    allocation = np.array([1.0, 0.5, -0.3])
    return params, allocation


@pytest.fixture
def random_market():
    """Ten-asset random market as drawn by the demonstration run."""
    mean_vector, cov_matrix, allocation = generate_random_market(10, seed=7)
    return MarketParameters(mean_vector, cov_matrix, degrees_of_freedom=7.0), allocation
