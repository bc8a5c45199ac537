"""
Synthetic data from a reciprocal graphical model.

Generates (X, Y) with known A and B for checking that the sampler
recovers them:

    x_i ~ Uniform(x_low, x_high)^k
    y_i = (I_p - A)^{-1} (B x_i + e_i),   e_i ~ N(0, diag(sigma))
"""

import jax.numpy as jnp
import jax.random as random
import numpy as np


def simulate_rgm_data(seed, n, A, B, sigma, x_low=0.0, x_high=5.0):
    """
    Draw n observations from the structural model Y = Y A^T + X B^T + E.

    Args:
        seed: Integer seed for jax.random
        n: Number of observations
        A: (p, p) gene-gene interactions with zero diagonal
        B: (p, k) gene-covariate interactions
        sigma: Residual variance, scalar or length-p vector
        x_low, x_high: Range of the uniform covariates

    Returns:
        (X, Y) as float64 numpy arrays of shapes (n, k) and (n, p)

    Raises:
        ValueError: If shapes disagree or I_p - A is singular
    """
    A = np.asarray(A, dtype=np.float64)
    B = np.asarray(B, dtype=np.float64)
    p, k = B.shape
    if A.shape != (p, p):
        raise ValueError(f"A should have shape ({p}, {p}), got {A.shape}")

    sigma = np.broadcast_to(np.asarray(sigma, dtype=np.float64), (p,))
    if np.any(sigma <= 0):
        raise ValueError("sigma must be positive")

    structure = np.eye(p) - A
    if abs(np.linalg.det(structure)) < 1e-12:
        raise ValueError("I - A is singular; the model has no reduced form")

    # Draws follow the active JAX precision (float64 once x64 is enabled)
    x_key, e_key = random.split(random.PRNGKey(seed))
    X = random.uniform(x_key, (n, k), minval=x_low, maxval=x_high)
    E = random.normal(e_key, (n, p)) * jnp.sqrt(jnp.asarray(sigma))
    # Row form of y_i = (I - A)^{-1} (B x_i + e_i)
    Y = jnp.linalg.solve(jnp.asarray(structure), (X @ jnp.asarray(B).T + E).T).T

    return np.asarray(X, dtype=np.float64), np.asarray(Y, dtype=np.float64)
