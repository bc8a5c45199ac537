"""
Full-Conditional (Gibbs) Samplers.

Closed-form conjugate draws for the parameters whose full conditional is
available analytically:
- sample_rho: Beta draw for the A inclusion probability
- sample_psi: Beta draw for the B inclusion probability
- sample_tau: Inverse-Gamma draw for the slab variance of one A entry
- sample_eta: Inverse-Gamma draw for the slab variance of one B entry
- sample_sigma_inv: Gamma draw for every residual precision at once

Every function takes an explicit JAX key and returns only the draw; key
management is the caller's responsibility.

Parameterization conventions:
    Gamma(shape, rate) draws are random.gamma(key, shape) / rate
    InvGamma(shape, rate) draws are rate / random.gamma(key, shape)
"""

import jax.numpy as jnp
import jax.random as random


def sample_rho(key, gamma, a_rho, b_rho):
    """
    Draw rho | gamma ~ Beta(a_rho + #active, b_rho + #inactive).

    Only the p * (p - 1) off-diagonal indicators are counted.

    Args:
        key: JAX random key
        gamma: Inclusion indicators for A (p, p)
        a_rho, b_rho: Beta prior parameters

    Returns:
        Scalar draw in (0, 1)
    """
    p = gamma.shape[0]
    n_active = jnp.sum(gamma) - jnp.trace(gamma)
    n_inactive = p * (p - 1) - n_active
    return random.beta(key, a_rho + n_active, b_rho + n_inactive, dtype=gamma.dtype)


def sample_psi(key, phi, D, a_psi, b_psi):
    """
    Draw psi | phi ~ Beta(a_psi + #active, b_psi + #inactive).

    Counts are restricted to the d positions where D is nonzero, so an
    all-zero mask leaves psi distributed as its prior.

    Args:
        key: JAX random key
        phi: Inclusion indicators for B (p, k)
        D: Structural mask (p, k)
        a_psi, b_psi: Beta prior parameters

    Returns:
        Scalar draw in (0, 1)
    """
    allowed = D != 0
    d = jnp.sum(allowed)
    n_active = jnp.sum(jnp.where(allowed, phi, 0.0))
    n_inactive = d - n_active
    return random.beta(key, a_psi + n_active, b_psi + n_inactive, dtype=phi.dtype)


def _sample_slab_variance(key, value, indicator, shape, rate, nu):
    # value ~ N(0, s * v) with s = 1 (slab) or nu (spike) and v ~ InvGamma(shape, rate)
    scale = jnp.where(indicator > 0, 1.0, nu)
    post_shape = shape + 0.5
    post_rate = rate + value ** 2 / (2.0 * scale)
    return post_rate / random.gamma(key, post_shape, dtype=jnp.result_type(value))


def sample_tau(key, a, gamma, a_tau, b_tau, nu_1):
    """
    Draw the slab variance of one A entry from its Inverse-Gamma conditional.

    Args:
        key: JAX random key
        a: Current value of A[j, l]
        gamma: Current indicator gamma[j, l]
        a_tau, b_tau: Inverse-Gamma prior parameters
        nu_1: Spike-to-slab variance ratio

    Returns:
        Positive scalar draw
    """
    return _sample_slab_variance(key, a, gamma, a_tau, b_tau, nu_1)


def sample_eta(key, b, phi, a_eta, b_eta, nu_2):
    """Draw the slab variance of one B entry; same form as sample_tau."""
    return _sample_slab_variance(key, b, phi, a_eta, b_eta, nu_2)


def sample_sigma_inv(key, n, sum_sq, a_sigma, b_sigma):
    """
    Draw all residual precisions given the per-gene residual sums of squares.

    The residual variance of gene j is InvGamma(a_sigma + n/2, b_sigma + SS_j/2),
    so its reciprocal is Gamma with the same shape and rate. Genes are
    conditionally independent given A and B, so the draw is vectorized.

    Args:
        key: JAX random key
        n: Number of samples
        sum_sq: Residual sum of squares for each gene (p,)
        a_sigma, b_sigma: Inverse-Gamma prior parameters

    Returns:
        Precision vector (p,)
    """
    shape = a_sigma + 0.5 * n
    rate = b_sigma + 0.5 * sum_sq
    return random.gamma(key, shape, shape=sum_sq.shape, dtype=sum_sq.dtype) / rate
