"""
Results I/O Tests

Tests saving and loading of fit_rgm output:
- Summaries and config survive a save/load cycle
- Optional trace buffers and metadata
- Missing files

Run with: pytest tests/test_results_io.py -v
"""

import os
import tempfile

import numpy as np
import pytest

from rgmcmc.results_io import save_results, load_results
from rgmcmc.mcmc.types import allocate_trace
from rgmcmc.mcmc.utils import clean_config


def _make_results(niter=20, p=2, k=3):
    rng = np.random.default_rng(1)
    trace = allocate_trace(niter, p, k)
    trace.A[:] = rng.normal(size=trace.A.shape)
    trace.log_likelihood[:] = rng.normal(size=niter)
    trace.accept_b[:] = np.arange(p * k)
    trace.iterations_done = niter
    return {
        'A': rng.normal(size=(p, p)),
        'B': rng.normal(size=(p, k)),
        'LL': trace.log_likelihood.copy(),
        'gamma_prob': rng.uniform(size=(p, p)),
        'phi_prob': rng.uniform(size=(p, k)),
        'trace': trace,
        'diagnostics': {'issues': [], 'warnings': [], 'info': []},
        'mcmc_config': clean_config({'niter': niter}),
    }


# ============================================================================
# SAVE/LOAD TESTS
# ============================================================================

class TestResultsIO:
    """Results written with save_results come back from load_results."""

    def test_summaries_and_config(self):
        results = _make_results()
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'fit.npz')
            save_results(path, results)
            loaded = load_results(path)

        for key in ('A', 'B', 'LL', 'gamma_prob', 'phi_prob'):
            np.testing.assert_array_equal(loaded[key], results[key])
        assert loaded['mcmc_config'] == results['mcmc_config']
        assert 'trace' not in loaded
        assert 'metadata' not in loaded

    def test_trace_and_metadata(self):
        results = _make_results()
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'fit.npz')
            save_results(path, results, metadata={'dataset': 'sim'}, save_trace=True)
            loaded = load_results(path)

        trace = results['trace']
        np.testing.assert_array_equal(loaded['trace']['A'], trace.A)
        np.testing.assert_array_equal(loaded['trace']['accept_b'], trace.accept_b)
        assert loaded['trace']['iterations_done'] == 20
        assert loaded['metadata'] == {'dataset': 'sim'}

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(FileNotFoundError):
                load_results(os.path.join(tmpdir, 'missing.npz'))
