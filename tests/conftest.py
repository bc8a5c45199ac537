"""
Pytest configuration and shared fixtures for rgmcmc tests.
"""

import pytest
import numpy as np
import jax
import jax.numpy as jnp
import jax.random as random

# Double precision for every test; fit_rgm enables it as well by default
jax.config.update("jax_enable_x64", True)

from rgmcmc.mcmc.config import build_rgm_data, initialize_chain_state
from rgmcmc.mcmc.types import Hyperparams
from rgmcmc.mcmc.utils import clean_config
from rgmcmc.simulate import simulate_rgm_data


@pytest.fixture
def rng_seed():
    """Default RNG seed for reproducible tests."""
    return 42


@pytest.fixture
def true_A():
    """Sparse 3-gene interaction matrix with a nonsingular I - A."""
    return np.array([
        [0.0, 0.5, 0.0],
        [0.0, 0.0, -0.5],
        [0.4, 0.0, 0.0],
    ])


@pytest.fixture
def true_B():
    """One instrument per gene."""
    return np.diag([2.0, -2.0, 2.0])


@pytest.fixture
def small_xy(true_A, true_B):
    """(X, Y) with n=100, p=3, k=3."""
    return simulate_rgm_data(seed=7, n=100, A=true_A, B=true_B, sigma=0.5)


@pytest.fixture
def hyper():
    """Default hyperparameters in float64."""
    return Hyperparams.from_config(clean_config({}), dtype=jnp.float64)


def make_data(X, Y, D=None):
    """Build RGMData with an all-ones mask unless D is given."""
    if D is None:
        D = np.ones((Y.shape[1], X.shape[1]))
    return build_rgm_data(X, Y, np.asarray(D, dtype=np.float64), dtype=jnp.float64)


@pytest.fixture
def small_data(small_xy):
    """RGMData for the small simulated dataset with a full mask."""
    X, Y = small_xy
    return make_data(X, Y)


@pytest.fixture
def small_state(small_data, hyper, true_A, true_B):
    """Chain state started at the generating A and B."""
    return initialize_chain_state(random.PRNGKey(0), small_data, hyper, A0=true_A, B0=true_B)
