"""
MCMC Sweep and Scan Body.

This module contains the per-iteration logic:
- rgm_sweep: One full Gibbs/Metropolis sweep over every parameter family
- mcmc_scan_body: One scan step (key bookkeeping + sweep + record)

Update order inside a sweep (each step reads the output of the previous):
    1. rho | gamma
    2. psi | phi, D
    3. for each off-diagonal (j, l): tau[j, l], then joint (A, gamma)[j, l]
    4. mult_mat_y = (I_p - A) Y^T
    5. for each (j, l) with D[j, l] != 0: eta[j, l], then joint (B, phi)[j, l]
    6. residuals = mult_mat_y - B X^T
    7. sigma_inv | residuals
    8. log-likelihood of the updated (A, B, sigma_inv)
"""

import jax.numpy as jnp
import jax.random as random
from typing import Dict, Tuple

from .types import ChainState, Hyperparams, RGMData
from .conditionals import sample_rho, sample_psi, sample_sigma_inv
from .sampling import update_interactions, update_covariate_effects
from .likelihood import log_likelihood


def rgm_sweep(state: ChainState, key, data: RGMData, hyper: Hyperparams) -> Tuple[ChainState, Dict]:
    """
    Run one MCMC iteration.

    Args:
        state: Chain state from the previous iteration
        key: JAX random key reserved for this iteration
        data: RGMData
        hyper: Hyperparams

    Returns:
        new_state: Updated ChainState
        record: Per-iteration snapshot (flattened row-major matrices,
                scalars, acceptance flags) for the trace buffers
    """
    rho_key, psi_key, a_key, b_key, sigma_key = random.split(key, 5)
    p = data.p

    rho = sample_rho(rho_key, state.gamma, hyper.a_rho, hyper.b_rho)
    psi = sample_psi(psi_key, state.phi, data.D, hyper.a_psi, hyper.b_psi)

    A, gamma, tau, accept_a = update_interactions(a_key, state, rho, data, hyper)

    mult_mat_y = (jnp.eye(p, dtype=A.dtype) - A) @ data.Y.T

    B, phi, eta, accept_b = update_covariate_effects(b_key, state, psi, mult_mat_y, data, hyper)

    resid = mult_mat_y - B @ data.X.T
    sigma_inv = sample_sigma_inv(
        sigma_key, data.n, jnp.sum(resid ** 2, axis=1), hyper.a_sigma, hyper.b_sigma
    )

    ll = log_likelihood(A, B, data.X, data.Y, sigma_inv)

    new_state = ChainState(
        A=A, B=B, gamma=gamma, phi=phi, tau=tau, eta=eta,
        rho=rho, psi=psi, sigma_inv=sigma_inv,
    )
    record = {
        'A': A.reshape(-1),
        'gamma': gamma.reshape(-1),
        'B': B.reshape(-1),
        'phi': phi.reshape(-1),
        'log_likelihood': ll,
        'rho': rho,
        'psi': psi,
        'sigma_inv': sigma_inv,
        'accept_a': accept_a,
        'accept_b': accept_b,
    }
    return new_state, record


def mcmc_scan_body(carry, _, data: RGMData, hyper: Hyperparams):
    """
    One iteration of the MCMC scan.

    A fresh subkey is split off the carried key every iteration, so the
    random stream of iteration i does not depend on how many iterations
    follow it or on how the run is chunked.

    Carry tuple structure (2 elements):
        0: state - ChainState
        1: key - JAX random key for the remainder of the chain
    """
    state, key = carry
    key, sweep_key = random.split(key)
    new_state, record = rgm_sweep(state, sweep_key, data, hyper)
    return (new_state, key), record
