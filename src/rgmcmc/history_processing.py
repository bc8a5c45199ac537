"""
History processing utilities for RGM chain output.

This module provides functions for:
- Applying burn-in filtering to trace buffers
- Averaging the post-burn-in traces into point estimates
- Thresholding the magnitudes on their posterior inclusion probabilities
"""

import numpy as np

from .settings import BURN_IN_DISCARD, INCLUSION_THRESHOLD

import logging
logger = logging.getLogger('rgmcmc')


def apply_burnin(buffer, burn_in=BURN_IN_DISCARD):
    """
    Drop the first burn_in iterations (burn-in removal).

    Args:
        buffer: Trace buffer with iterations on the last axis, (..., niter)
        burn_in: Number of leading iterations to discard

    Returns:
        View of the buffer without the discarded columns, (..., niter - burn_in)

    Raises:
        ValueError: If burn_in is negative or leaves no iterations
    """
    niter = buffer.shape[-1]
    if burn_in < 0 or burn_in >= niter:
        raise ValueError(
            f"burn_in={burn_in} must be in [0, {niter}) for a trace of {niter} iterations"
        )
    return buffer[..., burn_in:]


def summarize_traces(trace, p, k, burn_in=BURN_IN_DISCARD, threshold=INCLUSION_THRESHOLD):
    """
    Posterior point estimates of A and B from a finished chain.

    Each flattened trace row is averaged over the kept iterations and
    reshaped row-major back to its matrix. An averaged magnitude is
    zeroed where its averaged inclusion indicator is below threshold.

    Args:
        trace: ChainTrace from run_chain
        p: Number of genes
        k: Number of covariates
        burn_in: Number of leading iterations to discard
        threshold: Minimum posterior inclusion probability for a kept entry

    Returns:
        Dict with:
            A: (p, p) thresholded posterior mean of A
            B: (p, k) thresholded posterior mean of B
            gamma_prob: (p, p) posterior inclusion probabilities of A entries
            phi_prob: (p, k) posterior inclusion probabilities of B entries
            LL: Full (un-burned) log-likelihood trace
    """
    n_kept = trace.niter - burn_in
    logger.info(f"Burn-in filter: dropped {burn_in} iterations, kept {max(n_kept, 0)}")

    a_mean = np.mean(apply_burnin(trace.A, burn_in), axis=1).reshape(p, p)
    gamma_prob = np.mean(apply_burnin(trace.gamma, burn_in), axis=1).reshape(p, p)
    b_mean = np.mean(apply_burnin(trace.B, burn_in), axis=1).reshape(p, k)
    phi_prob = np.mean(apply_burnin(trace.phi, burn_in), axis=1).reshape(p, k)

    A = np.where(gamma_prob >= threshold, a_mean, 0.0)
    B = np.where(phi_prob >= threshold, b_mean, 0.0)

    return {
        'A': A,
        'B': B,
        'gamma_prob': gamma_prob,
        'phi_prob': phi_prob,
        'LL': trace.log_likelihood.copy(),
    }
