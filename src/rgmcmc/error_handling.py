"""
Error Handling and Validation Utilities for the RGM sampler

This module provides validation functions and diagnostic tools for RGM fits.
Validation collects every problem before raising, so one call reports all
of them.
"""

import numbers
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .settings import MIN_NITER, SHAPE_RATE_KEYS, VARIANCE_KEYS

import logging
logger = logging.getLogger('rgmcmc')


class ChainDivergenceError(FloatingPointError):
    """Raised when the chain produces a non-finite log-likelihood or precision."""


def _as_numeric_matrix(name: str, value: Any, errors: list) -> Optional[np.ndarray]:
    """Convert to a 2-D float array, recording a problem instead of raising."""
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError):
        errors.append(f"All the entries of {name} should be numeric")
        return None
    if arr.ndim != 2:
        errors.append(f"{name} should be a 2-D matrix, got {arr.ndim} dimension(s)")
        return None
    if not np.all(np.isfinite(arr)):
        errors.append(f"All the entries of {name} should be finite")
        return None
    return arr


def _is_whole_number(value: Any) -> bool:
    """True for ints and integral-valued floats such as 10000.0 (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return bool(np.isfinite(value)) and value == round(value)


def validate_rgm_inputs(
    X: Any,
    Y: Any,
    A0: Any = None,
    B0: Any = None,
    D: Any = None,
) -> Tuple[np.ndarray, np.ndarray, Optional[np.ndarray], Optional[np.ndarray], np.ndarray]:
    """
    Validates the data matrices and optional starting values.

    Args:
        X: n x k covariate matrix
        Y: n x p expression matrix
        A0: Optional p x p starting gene-gene matrix with zero diagonal
        B0: Optional p x k starting gene-covariate matrix
        D: Optional p x k binary mask; all ones when omitted

    Returns:
        (X, Y, A0, B0, D) as float64 numpy arrays, with D filled in

    Raises:
        ValueError: If any input is malformed
    """
    errors = []

    X = _as_numeric_matrix('X', X, errors)
    Y = _as_numeric_matrix('Y', Y, errors)
    if X is None or Y is None:
        raise ValueError("Invalid RGM inputs:\n  " + "\n  ".join(errors))

    n, p = Y.shape
    k = X.shape[1]

    if X.shape[0] != n:
        errors.append(
            f"Number of datapoints for both node values and covariate values should be same "
            f"(X has {X.shape[0]} rows, Y has {n})"
        )
    if p < 1 or k < 1:
        errors.append(f"X and Y need at least one column each, got k={k}, p={p}")

    if D is None:
        D = np.ones((p, k))
    else:
        D = _as_numeric_matrix('D', D, errors)
        if D is not None:
            if D.shape != (p, k):
                errors.append(f"D should have shape ({p}, {k}), got {D.shape}")
            if not np.all((D == 0) | (D == 1)):
                errors.append("All the entries of the indicator matrix D should be either 0 or 1")

    if A0 is not None:
        A0 = _as_numeric_matrix('A0', A0, errors)
        if A0 is not None:
            if A0.shape != (p, p):
                errors.append(f"A0 should have shape ({p}, {p}), got {A0.shape}")
            elif np.any(np.diag(A0) != 0):
                errors.append("A0 should have all diagonal entries equal to 0")

    if B0 is not None:
        B0 = _as_numeric_matrix('B0', B0, errors)
        if B0 is not None and B0.shape != (p, k):
            errors.append(f"B0 should have shape ({p}, {k}), got {B0.shape}")

    if errors:
        raise ValueError("Invalid RGM inputs:\n  " + "\n  ".join(errors))

    return X, Y, A0, B0, D


def validate_rgm_config(rgm_config: Dict[str, Any], min_niter: int = MIN_NITER) -> None:
    """
    Validates that the (cleaned) configuration is sensible.

    Args:
        rgm_config: Configuration dict after clean_config
        min_niter: Shortest accepted chain

    Raises:
        ValueError: If configuration is invalid
    """
    errors = []

    for key in SHAPE_RATE_KEYS:
        value = rgm_config.get(key)
        if not isinstance(value, numbers.Real) or isinstance(value, bool) or not value > 0:
            errors.append(f"{key} must be a positive number, got {value!r}")

    for key in VARIANCE_KEYS:
        value = rgm_config.get(key)
        if not isinstance(value, numbers.Real) or isinstance(value, bool) or not value > 0:
            errors.append(f"{key} must be a positive variance, got {value!r}")

    niter = rgm_config.get('niter')
    if not _is_whole_number(niter):
        errors.append(f"niter must be an integer, got {niter!r}")
    elif niter < min_niter:
        errors.append(f"niter must be >= {min_niter}, got {niter}")
    else:
        burn_in = rgm_config.get('burn_in', 0)
        if not _is_whole_number(burn_in):
            errors.append(f"burn_in must be an integer, got {burn_in!r}")
        elif burn_in < 0 or burn_in >= niter:
            errors.append(f"burn_in must be in [0, niter), got {burn_in}")

    if 'chunk_size' in rgm_config:
        chunk_size = rgm_config['chunk_size']
        if not _is_whole_number(chunk_size):
            errors.append(f"chunk_size must be an integer, got {chunk_size!r}")
        elif chunk_size < 1:
            errors.append("chunk_size must be >= 1")

    if errors:
        raise ValueError("Invalid RGM configuration:\n  " + "\n  ".join(errors))


def check_chunk_finite(records: Dict[str, np.ndarray], start: int) -> None:
    """
    Abort the run if a chunk produced a non-finite log-likelihood or precision.

    Args:
        records: Host copy of one chunk of scan records
        start: Global iteration index of the first record

    Raises:
        ChainDivergenceError: Naming the first bad iteration
    """
    ll = np.asarray(records['log_likelihood'])
    sigma_inv = np.asarray(records['sigma_inv'])
    bad = ~np.isfinite(ll) | ~np.all(np.isfinite(sigma_inv) & (sigma_inv > 0), axis=1)
    if np.any(bad):
        first = start + int(np.argmax(bad))
        raise ChainDivergenceError(
            f"Chain diverged at iteration {first}: "
            f"log-likelihood={ll[first - start]}, sigma_inv={sigma_inv[first - start]}"
        )


def diagnose_chain_issues(trace, diagnostics: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Analyzes a finished ChainTrace to identify common issues.

    Args:
        trace: ChainTrace from run_chain
        diagnostics: Existing diagnostics dict to extend

    Returns:
        diagnostics: Dictionary with issues, warnings, and info
    """
    diagnostics = (diagnostics or {}) | {
        'issues': [],
        'warnings': [],
        'info': []
    }

    niter = trace.iterations_done
    if niter == 0:
        diagnostics['issues'].append("Trace is empty - chain did not run")
        return diagnostics

    for name in ('A', 'B', 'log_likelihood', 'sigma_inv'):
        if not np.all(np.isfinite(getattr(trace, name)[..., :niter])):
            diagnostics['issues'].append(
                f"{name} trace contains NaN or Inf values - sampler became unstable"
            )

    updated_a = trace.accept_a > 0
    p = int(round(np.sqrt(trace.accept_a.shape[0])))
    n_frozen_a = p * (p - 1) - int(np.sum(updated_a))
    if n_frozen_a > 0:
        diagnostics['warnings'].append(
            f"{n_frozen_a} off-diagonal A entr{'y' if n_frozen_a == 1 else 'ies'} never accepted a move"
        )

    diagnostics['info'].append(f"Iterations: {niter}")
    diagnostics['info'].append(f"Genes: {p}, covariate slots: {trace.accept_b.shape[0]}")
    diagnostics['info'].append(
        f"Final log-likelihood: {trace.log_likelihood[niter - 1]:.4f}"
    )

    return diagnostics


def print_diagnostics(diagnostics: Dict[str, Any]) -> None:
    """Pretty-print diagnostics from diagnose_chain_issues."""
    if diagnostics['issues']:
        logger.error("\n[ERROR] ISSUES:")
        for issue in diagnostics['issues']:
            logger.error(f"  - {issue}")

    if diagnostics['warnings']:
        logger.warning("\n[WARN] WARNINGS:")
        for warning in diagnostics['warnings']:
            logger.warning(f"  - {warning}")

    if diagnostics['info']:
        logger.info("\n[INFO] INFO:")
        for info in diagnostics['info']:
            logger.info(f"  - {info}")

    if not diagnostics['issues'] and not diagnostics['warnings']:
        logger.info("\n[OK] No issues detected")
