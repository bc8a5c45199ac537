"""
MCMC Diagnostics.

Run-time diagnostics for a finished RGM chain:
- print_acceptance_summary: Log joint-move acceptance rates for A and B
- summarize_log_likelihood: Running maximum and head/tail variance of the LL trace
"""

from typing import Dict

import numpy as np

import logging
logger = logging.getLogger('rgmcmc')

# Acceptance rates below this fraction are reported as low
LOW_ACCEPTANCE_RATE = 0.10


def _log_rates(label: str, rates: np.ndarray, labels: list) -> None:
    logger.info(f"\n--- {label} Acceptance Rates ({len(rates)} entries) ---")
    logger.info(f"  Mean: {np.mean(rates):.1%}  Median: {np.median(rates):.1%}  "
                f"Min: {np.min(rates):.1%}  Max: {np.max(rates):.1%}")

    low_rate_mask = rates < LOW_ACCEPTANCE_RATE
    if np.any(low_rate_mask):
        low_count = int(np.sum(low_rate_mask))
        low_labels = [lbl for lbl, is_low in zip(labels, low_rate_mask) if is_low]
        logger.warning(f"  WARNING: {low_count} entr{'y' if low_count == 1 else 'ies'} "
                       f"have acceptance rate < {LOW_ACCEPTANCE_RATE:.0%}")
        if low_count <= 10:
            logger.warning(f"    Low entries: {', '.join(low_labels)}")


def print_acceptance_summary(trace, D) -> None:
    """
    Log summary statistics for the joint Metropolis acceptance rates.

    Only entries that are actually updated are reported: the off-diagonal
    entries of A and the entries of B allowed by D.

    Args:
        trace: ChainTrace with accumulated acceptance counts
        D: (p, k) structural mask
    """
    niter = trace.iterations_done
    if niter == 0:
        return

    D = np.asarray(D)
    p, k = D.shape

    rates_a = trace.accept_a.reshape(p, p) / niter
    off_diagonal = ~np.eye(p, dtype=bool)
    if np.any(off_diagonal):
        labels_a = [f"A[{j},{l}]" for j, l in zip(*np.nonzero(off_diagonal))]
        _log_rates("A/gamma", rates_a[off_diagonal], labels_a)

    rates_b = trace.accept_b.reshape(p, k) / niter
    allowed = D != 0
    if np.any(allowed):
        labels_b = [f"B[{j},{l}]" for j, l in zip(*np.nonzero(allowed))]
        _log_rates("B/phi", rates_b[allowed], labels_b)


def summarize_log_likelihood(log_likelihood: np.ndarray, window: int = 1000) -> Dict[str, float]:
    """
    Convergence summary of a log-likelihood trace.

    Compares the spread of the first and last `window` iterations; a
    stabilized chain has a tail variance well below its head variance.

    Args:
        log_likelihood: (niter,) log-likelihood trace
        window: Number of iterations in the head and tail windows

    Returns:
        Dict with 'final', 'max', 'head_var', 'tail_var' and 'var_ratio'
        (tail_var / head_var, inf when the head is constant)
    """
    ll = np.asarray(log_likelihood, dtype=np.float64)
    if ll.size == 0:
        raise ValueError("log-likelihood trace is empty")

    window = max(1, min(window, ll.size))
    head_var = float(np.var(ll[:window]))
    tail_var = float(np.var(ll[-window:]))
    var_ratio = tail_var / head_var if head_var > 0 else float('inf')

    return {
        'final': float(ll[-1]),
        'max': float(np.max(ll)),
        'head_var': head_var,
        'tail_var': tail_var,
        'var_ratio': var_ratio,
    }
