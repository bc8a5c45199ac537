"""
MCMC Backend - Top-level RGM fitting entry point.

This module provides fit_rgm(), which wires validation, configuration,
initialization, the chain driver and the posterior summary together.
For lower-level control (custom starting states, several chains from one
compiled kernel) use config.initialize_chain_state and single_run.run_chain
directly.
"""

import jax
from datetime import datetime
from typing import Dict, Any, Optional

from .config import configure_rgm_system, build_rgm_data, initialize_chain_state
from .compile import compile_mcmc_kernel, benchmark_mcmc_sampler
from .diagnostics import summarize_log_likelihood
from .single_run import run_chain
from .utils import clean_config
from ..error_handling import (
    validate_rgm_inputs,
    validate_rgm_config,
    diagnose_chain_issues,
    print_diagnostics,
)
from ..history_processing import summarize_traces
from ..settings import MIN_NITER

import logging
logger = logging.getLogger('rgmcmc')

__all__ = [
    'fit_rgm',
]


def _handle_benchmarking(num_chunks, state, key, data, hyper, chunk_size) -> Optional[float]:
    """Time the compiled kernel when requested; returns seconds per iteration or None."""
    if num_chunks <= 0:
        return None
    logger.info(f"Benchmarking {num_chunks} chunk(s) of {chunk_size} iterations...")
    compiled_chunk, _ = compile_mcmc_kernel(state, key, data, hyper, chunk_size)
    timing = benchmark_mcmc_sampler(compiled_chunk, state, key, data, hyper, chunk_size,
                                    num_chunks=num_chunks)
    return timing['avg_time']


def fit_rgm(
    X,
    Y,
    A0=None,
    B0=None,
    D=None,
    config: Optional[Dict[str, Any]] = None,
    min_niter: int = MIN_NITER,
    **overrides,
) -> Dict[str, Any]:
    """
    Fit a reciprocal graphical model by Metropolis-within-Gibbs sampling.

    Args:
        X: n x k covariate matrix
        Y: n x p expression matrix
        A0: Optional p x p starting gene-gene matrix (zero diagonal)
        B0: Optional p x k starting gene-covariate matrix
        D: Optional p x k binary mask of allowed gene-covariate edges
        config: Configuration dict (hyperparameters, niter, rng_seed, ...)
        min_niter: Shortest accepted chain
        **overrides: Config entries given as keywords, applied over config

    Returns:
        results: Dict containing:
            - A: (p, p) thresholded posterior mean of A
            - B: (p, k) thresholded posterior mean of B
            - LL: Log-likelihood trace, one entry per iteration
            - gamma_prob: (p, p) posterior inclusion probabilities of A entries
            - phi_prob: (p, k) posterior inclusion probabilities of B entries
            - trace: Full ChainTrace
            - diagnostics: Dict with issues/warnings/info, timing and LL summary
            - mcmc_config: Clean serializable config dict (no JAX types)

    Raises:
        ValueError: If the inputs or the configuration are invalid
        ChainDivergenceError: If the chain produces a non-finite log-likelihood
    """
    # --- 1. VALIDATE CONFIGURATION ---
    rgm_config = clean_config(dict(config or {}, **overrides))
    logger.info("Validating RGM configuration...")
    try:
        validate_rgm_config(rgm_config, min_niter=min_niter)
        logger.info("Configuration is valid\n")
    except ValueError as e:
        logger.info(f"Invalid configuration:\n{e}")
        raise

    # --- 2. VALIDATE INPUTS ---
    logger.info("Validating inputs...")
    try:
        X, Y, A0, B0, D = validate_rgm_inputs(X, Y, A0, B0, D)
        logger.info("Validation passed")
    except ValueError as e:
        logger.info(f"[FAIL] Validation failed:\n{e}")
        raise

    # --- 3. CONFIGURE SYSTEM ---
    rgm_config, hyper, run_params, runtime_ctx = configure_rgm_system(rgm_config)
    data = build_rgm_data(X, Y, D, dtype=runtime_ctx['jnp_float_dtype'])

    logger.info(f"Starting RGM sampling at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info(f"JAX backend: {jax.default_backend()}")
    logger.info(f"Data: n={data.n}, p={data.p}, k={data.k}, allowed B entries={int(D.sum())}")
    logger.info(f"Iterations: {run_params.NITER} (burn-in {run_params.BURN_IN}, "
                f"chunk size {run_params.CHUNK_SIZE})")

    # --- 4. INITIALIZE CHAIN ---
    init_state = initialize_chain_state(
        runtime_ctx['init_key'], data, hyper, A0=A0, B0=B0,
        indicators_from_start=bool(rgm_config['indicators_from_start']),
    )
    master_key = runtime_ctx['master_key']

    # --- 5. HANDLE BENCHMARKING ---
    avg_time = _handle_benchmarking(
        int(rgm_config['benchmark']), init_state, master_key, data, hyper, run_params.CHUNK_SIZE
    )

    # --- 6. RUN MCMC ITERATIONS ---
    _, trace = run_chain(
        master_key, data, hyper, init_state,
        niter=run_params.NITER,
        chunk_size=run_params.CHUNK_SIZE,
        avg_time=avg_time,
    )

    # --- 7. SUMMARIZE ---
    summary = summarize_traces(trace, data.p, data.k, burn_in=run_params.BURN_IN)

    diagnostics = diagnose_chain_issues(trace)
    diagnostics['log_likelihood'] = summarize_log_likelihood(trace.log_likelihood)
    diagnostics['avg_time'] = avg_time
    print_diagnostics(diagnostics)

    return {
        **summary,
        'trace': trace,
        'diagnostics': diagnostics,
        'mcmc_config': rgm_config,
    }
