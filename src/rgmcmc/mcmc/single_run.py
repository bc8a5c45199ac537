"""
MCMC Single Run - Chain driver for one RGM chain.

This module provides run_chain() and its helper functions:
- _chunk_schedule: Split niter into full chunks plus a remainder
- _compile_kernels: Compile one kernel per distinct chunk length
- _run_mcmc_iterations: Execute the main sampling loop into host buffers
"""

import jax
import numpy as np
import time
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional, Tuple

from .types import ChainState, ChainTrace, Hyperparams, RGMData, allocate_trace
from .compile import compile_mcmc_kernel
from .diagnostics import print_acceptance_summary
from ..error_handling import check_chunk_finite
from ..settings import DEFAULT_CHUNK_SIZE

import logging
logger = logging.getLogger('rgmcmc')

__all__ = [
    'run_chain',
]


# =============================================================================
# RUN_CHAIN HELPER FUNCTIONS
# =============================================================================

def _chunk_schedule(niter: int, chunk_size: int) -> List[int]:
    """
    Chunk lengths covering niter iterations.

    Example:
        _chunk_schedule(1200, 500) -> [500, 500, 200]
    """
    num_full, remainder = divmod(niter, chunk_size)
    schedule = [chunk_size] * num_full
    if remainder:
        schedule.append(remainder)
    return schedule


def _compile_kernels(
    schedule: List[int],
    state: ChainState,
    key,
    data: RGMData,
    hyper: Hyperparams,
) -> Tuple[Dict[int, Any], float]:
    """Compile (or fetch from cache) one kernel per distinct chunk length."""
    kernels = {}
    total_compile_time = 0.0
    for length in sorted(set(schedule), reverse=True):
        kernels[length], compile_time = compile_mcmc_kernel(state, key, data, hyper, length)
        total_compile_time += compile_time
    return kernels, total_compile_time


def _run_mcmc_iterations(
    kernels: Dict[int, Any],
    schedule: List[int],
    state: ChainState,
    key,
    data: RGMData,
    hyper: Hyperparams,
    trace: ChainTrace,
    avg_time: Optional[float] = None,
) -> Tuple[ChainState, float]:
    """
    Execute the main MCMC sampling loop.

    After every chunk the records are copied to host, checked for
    divergence and written into the trace buffers.

    Args:
        kernels: Compiled kernels keyed by chunk length
        schedule: Chunk lengths in execution order
        state: Initial ChainState
        key: Master random key of the chain
        data: RGMData
        hyper: Hyperparams
        trace: Pre-allocated ChainTrace, filled in place
        avg_time: Estimated time per iteration (for progress estimate)

    Returns:
        final_state: ChainState after the last iteration
        wall_time: Total wall clock time for sampling

    Raises:
        ChainDivergenceError: If a chunk produced a non-finite log-likelihood
            or residual precision
    """
    logger.info("\n--- MCMC RUN ---")

    total_iterations = sum(schedule)
    if avg_time:
        compute_time_sec = avg_time * total_iterations
        finish_time = datetime.now() + timedelta(seconds=compute_time_sec)
        logger.info(f"Estimated computation time: {timedelta(seconds=int(compute_time_sec))}")
        logger.info(f"Estimated completion: {finish_time.strftime('%Y-%m-%d %I:%M:%S %p')}")

    start_run_time = time.perf_counter()
    num_chunks = len(schedule)
    start = 0

    for i, length in enumerate(schedule):
        state, key, records = kernels[length](state, key, data, hyper)
        records_host = jax.device_get(records)
        check_chunk_finite(records_host, start)
        trace.store_chunk(records_host, start)
        start += length
        if i % max(1, num_chunks // 10) == 0:
            logger.info(f"  Chunk {i+1}/{num_chunks} (iteration {start}/{total_iterations})...")

    jax.block_until_ready(state)
    wall_time = time.perf_counter() - start_run_time
    return state, wall_time


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def run_chain(
    key,
    data: RGMData,
    hyper: Hyperparams,
    init_state: ChainState,
    niter: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    avg_time: Optional[float] = None,
) -> Tuple[ChainState, ChainTrace]:
    """
    Run one chain of niter sweeps and collect the full trace.

    The random stream of iteration i depends only on key and i, so the
    first m columns of the trace are identical for every niter >= m and
    for every chunk_size.

    Args:
        key: JAX random key driving the chain
        data: RGMData
        hyper: Hyperparams
        init_state: Starting ChainState
        niter: Number of sweeps
        chunk_size: Sweeps per compiled scan call
        avg_time: Optional benchmark estimate (seconds per iteration)

    Returns:
        final_state: ChainState after the last sweep
        trace: ChainTrace with one column per sweep

    Raises:
        ValueError: If niter or chunk_size is not positive
        ChainDivergenceError: If the chain produces a non-finite log-likelihood
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

    trace = allocate_trace(niter, data.p, data.k, dtype=np.dtype(data.Y.dtype))
    schedule = _chunk_schedule(niter, min(chunk_size, niter))

    kernels, compile_time = _compile_kernels(schedule, init_state, key, data, hyper)
    if compile_time > 0:
        logger.info(f"Total compile time: {compile_time:.2f}s")

    final_state, wall_time = _run_mcmc_iterations(
        kernels, schedule, init_state, key, data, hyper, trace, avg_time
    )

    print_acceptance_summary(trace, data.D)

    logger.info(f"\n--- MCMC Run Summary ---")
    logger.info(f"  Total Wall Time: {timedelta(seconds=int(wall_time))} ({wall_time:.2f}s)")

    return final_state, trace
