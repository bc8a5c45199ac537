"""
Results I/O utilities for saving and loading fitted RGM output.

This module provides functions for:
- Saving the posterior summaries (and optionally the full traces) to .npz
- Loading them back into a results dict
"""

from typing import Any, Dict, Optional

import numpy as np
from pathlib import Path

import logging
logger = logging.getLogger('rgmcmc')

# Point estimates and traces written by save_results
_SUMMARY_KEYS = ('A', 'B', 'LL', 'gamma_prob', 'phi_prob')
_TRACE_KEYS = ('A', 'gamma', 'B', 'phi', 'log_likelihood', 'rho', 'psi',
               'sigma_inv', 'accept_a', 'accept_b')


def save_results(filepath: str, results: Dict[str, Any], metadata: Optional[Dict[str, Any]] = None,
                 save_trace: bool = False) -> None:
    """
    Save a fit_rgm results dict to disk.

    Args:
        filepath: Path to save results (.npz file)
        results: Dict returned by fit_rgm
        metadata: Optional dict of additional metadata
        save_trace: Also write the full per-iteration trace buffers

    Saves:
        - Thresholded A and B, inclusion probabilities, log-likelihood trace
        - The cleaned sampler configuration
        - Trace buffers prefixed with 'trace_' when save_trace is set
    """
    payload = {key: np.asarray(results[key]) for key in _SUMMARY_KEYS}
    payload['mcmc_config'] = results.get('mcmc_config', {})

    if save_trace:
        trace = results['trace']
        for key in _TRACE_KEYS:
            payload[f'trace_{key}'] = np.asarray(getattr(trace, key))
        payload['trace_iterations_done'] = int(trace.iterations_done)

    if metadata:
        payload['metadata'] = metadata

    filepath = Path(filepath)
    np.savez_compressed(filepath, **payload)
    logger.info(f"Results saved to {filepath}")


def load_results(filepath: str) -> Dict[str, Any]:
    """
    Load results saved by save_results.

    Args:
        filepath: Path to results file (.npz)

    Returns:
        Dict with A, B, LL, gamma_prob, phi_prob and mcmc_config; plus
        'trace' (a dict of arrays) and 'metadata' when they were saved.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Results not found: {filepath}")

    # Copy arrays to avoid keeping memory-mapped file references
    with np.load(filepath, allow_pickle=True) as data:
        results = {key: data[key].copy() for key in _SUMMARY_KEYS}
        results['mcmc_config'] = data['mcmc_config'].item()

        if 'trace_log_likelihood' in data:
            results['trace'] = {key: data[f'trace_{key}'].copy() for key in _TRACE_KEYS}
            results['trace']['iterations_done'] = int(data['trace_iterations_done'])

        if 'metadata' in data:
            results['metadata'] = data['metadata'].item()

    return results
