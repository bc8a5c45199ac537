"""
MCMC Sampling Functions.

Metropolis-within-Gibbs updaters for the interaction matrices:
- log_spike_slab_prior: Joint log prior of a (magnitude, indicator) pair
- metropolis_a_gamma_step: Joint MH step for one entry of A and gamma
- metropolis_b_phi_step: Joint MH step for one entry of B and phi
- update_interactions: Coordinatewise pass over all off-diagonal A entries
- update_covariate_effects: Coordinatewise pass over all B entries allowed by D

Each joint move proposes a' ~ N(a, prop_var) and an indicator drawn
uniformly from {0, 1}. Both proposals are symmetric, so the Hastings
ratio reduces to the target ratio.
"""

import numpy as np
import jax
import jax.numpy as jnp
import jax.random as random

from .conditionals import sample_tau, sample_eta
from .likelihood import LOG_2PI, log_abs_det_structure


def log_spike_slab_prior(value, indicator, slab_var, nu, incl_prob):
    """
    log N(value; 0, s * slab_var) + log Bernoulli(indicator; incl_prob).

    s is 1 for an included entry (slab) and nu for an excluded one (spike).
    """
    var = slab_var * jnp.where(indicator > 0, 1.0, nu)
    log_normal = -0.5 * (LOG_2PI + jnp.log(var) + value ** 2 / var)
    log_bernoulli = jnp.where(indicator > 0, jnp.log(incl_prob), jnp.log1p(-incl_prob))
    return log_normal + log_bernoulli


def _propose_pair(key, current, prop_var):
    """Random-walk magnitude and uniform indicator proposal."""
    value_key, indicator_key = random.split(key)
    noise = random.normal(value_key, dtype=jnp.result_type(current))
    proposed_value = current + jnp.sqrt(prop_var) * noise
    proposed_indicator = random.bernoulli(indicator_key, 0.5).astype(jnp.result_type(current))
    return proposed_value, proposed_indicator


def _accept(key, log_ratio):
    """Accept with probability min(1, exp(log_ratio)); NaN ratios reject."""
    safe_ratio = jnp.where(jnp.isnan(log_ratio), -jnp.inf, log_ratio)
    log_uniform = jnp.log(random.uniform(key, dtype=jnp.result_type(log_ratio)))
    return log_uniform < safe_ratio


def metropolis_a_gamma_step(key, A, j, l, B, X, Y, sigma_inv, gamma, tau, rho, nu_1, prop_var_a):
    """
    Joint Metropolis step for (A[j, l], gamma[j, l]).

    Only row j of the structural residual and the determinant of I_p - A
    depend on A[j, l], so the likelihood ratio is computed from those alone.
    A proposal that makes I_p - A singular has zero density and is rejected.

    Args:
        key: JAX random key
        A: Current interaction matrix (p, p), with every earlier entry of
           this sweep already updated
        j, l: Entry being updated (j != l)
        B: Current covariate effects (p, k)
        X, Y: Data matrices
        sigma_inv: Residual precisions (p,)
        gamma: Current indicator gamma[j, l]
        tau: Slab variance tau[j, l]
        rho: Prior inclusion probability
        nu_1: Spike-to-slab variance ratio
        prop_var_a: Random-walk proposal variance

    Returns:
        (value, indicator, accepted): the new or retained pair and a 0/1 flag
    """
    proposal_key, accept_key = random.split(key)
    n = Y.shape[0]
    a = A[j, l]
    a_prop, gamma_prop = _propose_pair(proposal_key, a, prop_var_a)

    # Row j residual: y_j - Y A[j]^T - X B[j]^T; moving A[j, l] by delta shifts it by -delta * Y[:, l]
    resid = Y[:, j] - Y @ A[j] - X @ B[j]
    resid_prop = resid - (a_prop - a) * Y[:, l]
    A_prop = A.at[j, l].set(a_prop)

    log_lik_ratio = (
        n * (log_abs_det_structure(A_prop) - log_abs_det_structure(A))
        - 0.5 * sigma_inv[j] * (jnp.sum(resid_prop ** 2) - jnp.sum(resid ** 2))
    )
    log_prior_ratio = (
        log_spike_slab_prior(a_prop, gamma_prop, tau, nu_1, rho)
        - log_spike_slab_prior(a, gamma, tau, nu_1, rho)
    )

    accept = _accept(accept_key, log_lik_ratio + log_prior_ratio)
    new_a = jnp.where(accept, a_prop, a)
    new_gamma = jnp.where(accept, gamma_prop, gamma)
    return new_a, new_gamma, accept.astype(A.dtype)


def metropolis_b_phi_step(key, B, j, l, X, mult_mat_y, sigma_inv, phi, eta, psi, nu_2, prop_var_b):
    """
    Joint Metropolis step for (B[j, l], phi[j, l]).

    Args:
        key: JAX random key
        B: Current covariate effects (p, k)
        j, l: Entry being updated (D[j, l] != 0)
        X: Covariates (n, k)
        mult_mat_y: (I_p - A) Y^T for the A of the current sweep (p, n)
        sigma_inv: Residual precisions (p,)
        phi: Current indicator phi[j, l]
        eta: Slab variance eta[j, l]
        psi: Prior inclusion probability
        nu_2: Spike-to-slab variance ratio
        prop_var_b: Random-walk proposal variance

    Returns:
        (value, indicator, accepted)
    """
    proposal_key, accept_key = random.split(key)
    b = B[j, l]
    b_prop, phi_prop = _propose_pair(proposal_key, b, prop_var_b)

    resid = mult_mat_y[j] - X @ B[j]
    resid_prop = resid - (b_prop - b) * X[:, l]

    log_lik_ratio = -0.5 * sigma_inv[j] * (jnp.sum(resid_prop ** 2) - jnp.sum(resid ** 2))
    log_prior_ratio = (
        log_spike_slab_prior(b_prop, phi_prop, eta, nu_2, psi)
        - log_spike_slab_prior(b, phi, eta, nu_2, psi)
    )

    accept = _accept(accept_key, log_lik_ratio + log_prior_ratio)
    new_b = jnp.where(accept, b_prop, b)
    new_phi = jnp.where(accept, phi_prop, phi)
    return new_b, new_phi, accept.astype(B.dtype)


def offdiagonal_entries(p):
    """Row-major (j, l) pairs with j != l, shape (p * (p - 1), 2)."""
    rows, cols = np.nonzero(~np.eye(p, dtype=bool))
    return np.stack([rows, cols], axis=1).astype(np.int32)


def all_entries(p, k):
    """Row-major (j, l) pairs of a (p, k) matrix, shape (p * k, 2)."""
    rows, cols = np.nonzero(np.ones((p, k), dtype=bool))
    return np.stack([rows, cols], axis=1).astype(np.int32)


def update_interactions(key, state, rho, data, hyper):
    """
    One coordinatewise pass over every off-diagonal entry of A.

    For each entry in row-major order: draw tau[j, l], then run the joint
    (A, gamma) Metropolis step. Entries are visited sequentially because each
    step reads the A already updated by the earlier steps of the pass.

    Args:
        key: JAX random key
        state: ChainState at the start of the pass
        rho: Inclusion probability drawn earlier in this sweep
        data: RGMData
        hyper: Hyperparams

    Returns:
        A, gamma, tau: Updated matrices (p, p)
        accepted: Per-entry acceptance flags, flattened row-major (p * p,)
    """
    p = data.p
    entries = offdiagonal_entries(p)

    def scan_body(carry, entry):
        A, gamma, tau, current_key = carry
        j, l = entry[0], entry[1]
        current_key, tau_key, mh_key = random.split(current_key, 3)

        tau_jl = sample_tau(tau_key, A[j, l], gamma[j, l], hyper.a_tau, hyper.b_tau, hyper.nu_1)
        a_jl, gamma_jl, accepted = metropolis_a_gamma_step(
            mh_key, A, j, l, state.B, data.X, data.Y, state.sigma_inv,
            gamma[j, l], tau_jl, rho, hyper.nu_1, hyper.prop_var_a
        )

        A = A.at[j, l].set(a_jl)
        gamma = gamma.at[j, l].set(gamma_jl)
        tau = tau.at[j, l].set(tau_jl)
        return (A, gamma, tau, current_key), accepted

    (A, gamma, tau, _), accepts = jax.lax.scan(
        scan_body,
        (state.A, state.gamma, state.tau, key),
        jnp.asarray(entries)
    )

    flat_idx = entries[:, 0] * p + entries[:, 1]
    accepted = jnp.zeros(p * p, dtype=state.A.dtype).at[flat_idx].set(accepts)
    return A, gamma, tau, accepted


def update_covariate_effects(key, state, psi, mult_mat_y, data, hyper):
    """
    One coordinatewise pass over every entry of B allowed by the mask D.

    Entries are visited in row-major order; where D[j, l] == 0 the entry is
    skipped and B, phi, eta keep their (zero) values.

    Args:
        key: JAX random key
        state: ChainState holding B, phi, eta and sigma_inv for this pass
        psi: Inclusion probability drawn earlier in this sweep
        mult_mat_y: (I_p - A) Y^T computed after this sweep's A pass (p, n)
        data: RGMData
        hyper: Hyperparams

    Returns:
        B, phi, eta: Updated matrices (p, k)
        accepted: Per-entry acceptance flags, flattened row-major (p * k,)
    """
    entries = all_entries(data.p, data.k)

    def scan_body(carry, entry):
        B, phi, eta, current_key = carry
        j, l = entry[0], entry[1]
        current_key, step_key = random.split(current_key)

        def do_update(step_key):
            eta_key, mh_key = random.split(step_key)
            eta_jl = sample_eta(eta_key, B[j, l], phi[j, l], hyper.a_eta, hyper.b_eta, hyper.nu_2)
            b_jl, phi_jl, accepted = metropolis_b_phi_step(
                mh_key, B, j, l, data.X, mult_mat_y, state.sigma_inv,
                phi[j, l], eta_jl, psi, hyper.nu_2, hyper.prop_var_b
            )
            return b_jl, phi_jl, eta_jl, accepted

        def skip_update(step_key):
            return B[j, l], phi[j, l], eta[j, l], jnp.zeros((), dtype=B.dtype)

        b_jl, phi_jl, eta_jl, accepted = jax.lax.cond(
            data.D[j, l] != 0,
            do_update,
            skip_update,
            step_key
        )

        B = B.at[j, l].set(b_jl)
        phi = phi.at[j, l].set(phi_jl)
        eta = eta.at[j, l].set(eta_jl)
        return (B, phi, eta, current_key), accepted

    (B, phi, eta, _), accepts = jax.lax.scan(
        scan_body,
        (state.B, state.phi, state.eta, key),
        jnp.asarray(entries)
    )
    return B, phi, eta, accepts
