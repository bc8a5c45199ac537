"""
MCMC Configuration and Initialization.

This module handles setting up an RGM run:
- gen_rng_keys: Generate JAX random keys
- configure_rgm_system: Main configuration entry point
- build_rgm_data: Move validated inputs onto the device
- initialize_chain_state: Starting values for every latent parameter

Configuration is split into two parts:
- config: Serializable dict (cleaned by clean_config) that can be saved with results
- runtime_ctx: JAX-dependent objects that exist only during execution
"""

import jax
import jax.numpy as jnp
import jax.random as random
import numpy as np
from typing import Dict, Tuple, Any, Optional

from .utils import clean_config
from .types import ChainState, Hyperparams, RGMData, RunParams

import logging
logger = logging.getLogger('rgmcmc')


def gen_rng_keys(rng_seed: int) -> Tuple[Any, Any]:
    """Generate JAX random keys from seed.

    Returns:
        (master_key, init_key): master_key drives the chain, init_key the starting values
    """
    mkey = jax.random.PRNGKey(rng_seed)
    master_key, init_key = random.split(mkey, 2)
    return master_key, init_key


def configure_rgm_system(rgm_config: Dict[str, Any]) -> Tuple[Dict[str, Any], Hyperparams, RunParams, Dict[str, Any]]:
    """
    Configure the sampler from a config dict.

    Args:
        rgm_config: Input configuration dict (hyperparameters, niter, rng_seed, ...)

    Returns:
        config: Cleaned config with every default filled in
        hyper: Hyperparams pytree in the selected precision
        run_params: RunParams (chain length, chunk size, burn-in)
        runtime_ctx: Dict with JAX keys and dtype
    """
    config = clean_config(dict(rgm_config))

    # Configure JAX precision
    if config['use_double']:
        jax.config.update("jax_enable_x64", True)
        jnp_float_dtype = jnp.float64
    else:
        logger.warning("Running in single precision; small Gamma shapes may underflow")
        jax.config.update("jax_enable_x64", False)
        jnp_float_dtype = jnp.float32

    master_key, init_key = gen_rng_keys(config['rng_seed'])

    hyper = Hyperparams.from_config(config, dtype=jnp_float_dtype)
    run_params = RunParams(
        NITER=int(config['niter']),
        CHUNK_SIZE=int(min(config['chunk_size'], config['niter'])),
        BURN_IN=int(config['burn_in']),
    )
    runtime_ctx = {
        'jnp_float_dtype': jnp_float_dtype,
        'master_key': master_key,
        'init_key': init_key,
    }
    return config, hyper, run_params, runtime_ctx


def build_rgm_data(X: np.ndarray, Y: np.ndarray, D: np.ndarray, dtype=jnp.float64) -> RGMData:
    """Convert validated host arrays to an RGMData pytree."""
    return RGMData(
        X=jnp.asarray(X, dtype=dtype),
        Y=jnp.asarray(Y, dtype=dtype),
        D=jnp.asarray(D, dtype=dtype),
    )


def initialize_chain_state(
    init_key,
    data: RGMData,
    hyper: Hyperparams,
    A0: Optional[np.ndarray] = None,
    B0: Optional[np.ndarray] = None,
    indicators_from_start: bool = False,
) -> ChainState:
    """
    Draw starting values for every latent parameter.

    sigma_inv ~ Gamma(a_sigma, rate b_sigma)
    rho ~ Beta(a_rho, b_rho), psi ~ Beta(a_psi, b_psi)
    gamma ~ Bernoulli(rho) off the diagonal, phi ~ Bernoulli(psi) where D != 0
    tau ~ InvGamma(a_tau, b_tau) off the diagonal, eta ~ InvGamma(a_eta, b_eta) where D != 0

    A and B start at A0 and B0 * D when given, otherwise they are drawn from
    the spike-and-slab prior implied by the indicators and slab variances.
    With indicators_from_start, given starting values also fix the
    starting indicators: an entry is included exactly when its starting
    magnitude is nonzero. Otherwise the indicators keep their prior draws.

    Args:
        init_key: JAX random key for initialization
        data: RGMData
        hyper: Hyperparams
        A0: Optional (p, p) starting A with zero diagonal
        B0: Optional (p, k) starting B
        indicators_from_start: Set gamma/phi from the nonzero pattern of A0/B0

    Returns:
        ChainState satisfying every structural invariant
    """
    dtype = data.Y.dtype
    p, k = data.p, data.k
    keys = random.split(init_key, 9)

    off_diagonal = ~jnp.eye(p, dtype=bool)
    allowed = data.D != 0

    sigma_inv = random.gamma(keys[0], hyper.a_sigma, shape=(p,), dtype=dtype) / hyper.b_sigma
    rho = random.beta(keys[1], hyper.a_rho, hyper.b_rho, dtype=dtype)
    psi = random.beta(keys[2], hyper.a_psi, hyper.b_psi, dtype=dtype)

    gamma = jnp.where(off_diagonal, random.bernoulli(keys[3], rho, (p, p)), 0).astype(dtype)
    phi = jnp.where(allowed, random.bernoulli(keys[4], psi, (p, k)), 0).astype(dtype)

    tau = jnp.where(
        off_diagonal,
        hyper.b_tau / random.gamma(keys[5], hyper.a_tau, shape=(p, p), dtype=dtype),
        0.0
    )
    eta = jnp.where(
        allowed,
        hyper.b_eta / random.gamma(keys[6], hyper.a_eta, shape=(p, k), dtype=dtype),
        0.0
    )

    if A0 is not None:
        A = jnp.asarray(A0, dtype=dtype)
        if indicators_from_start:
            gamma = jnp.where(off_diagonal & (A != 0), 1.0, 0.0).astype(dtype)
    else:
        prior_var = tau * jnp.where(gamma > 0, 1.0, hyper.nu_1)
        A = jnp.where(off_diagonal, jnp.sqrt(prior_var) * random.normal(keys[7], (p, p), dtype=dtype), 0.0)

    if B0 is not None:
        B = jnp.where(allowed, jnp.asarray(B0, dtype=dtype), 0.0)
        if indicators_from_start:
            phi = jnp.where(B != 0, 1.0, 0.0).astype(dtype)
    else:
        prior_var = eta * jnp.where(phi > 0, 1.0, hyper.nu_2)
        B = jnp.where(allowed, jnp.sqrt(prior_var) * random.normal(keys[8], (p, k), dtype=dtype), 0.0)

    return ChainState(
        A=A,
        B=B,
        gamma=gamma,
        phi=phi,
        tau=tau,
        eta=eta,
        rho=rho,
        psi=psi,
        sigma_inv=sigma_inv,
    )
