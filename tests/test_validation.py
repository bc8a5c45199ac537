"""
Validation and Error Handling Tests

Tests input/config validation, divergence detection and the trace
diagnostics:
- Every malformed input is reported in one ValueError
- Config defaults, aliases and limits
- Non-finite chunks raise ChainDivergenceError
- Post-run diagnostics

Run with: pytest tests/test_validation.py -v
"""

import logging

import numpy as np
import pytest

from rgmcmc.error_handling import (
    ChainDivergenceError,
    validate_rgm_inputs,
    validate_rgm_config,
    check_chunk_finite,
    diagnose_chain_issues,
    print_diagnostics,
)
from rgmcmc.mcmc.types import allocate_trace
from rgmcmc.mcmc.utils import clean_config
from rgmcmc.settings import HYPERPARAMETER_DEFAULTS, MIN_NITER


@pytest.fixture
def xy():
    rng = np.random.default_rng(0)
    return rng.normal(size=(20, 2)), rng.normal(size=(20, 3))


# ============================================================================
# INPUT VALIDATION TESTS
# ============================================================================

class TestValidateInputs:
    """Shape, type and value checks on X, Y, A0, B0 and D."""

    def test_valid_inputs_and_default_mask(self, xy):
        X, Y = xy
        X_out, Y_out, A0, B0, D = validate_rgm_inputs(X, Y)
        assert X_out.dtype == np.float64
        assert A0 is None and B0 is None
        np.testing.assert_array_equal(D, np.ones((3, 2)))

    def test_accepts_nested_lists(self):
        X = [[1.0, 2.0], [3.0, 4.0]]
        Y = [[1.0], [2.0]]
        X_out, Y_out, _, _, D = validate_rgm_inputs(X, Y)
        assert X_out.shape == (2, 2)
        assert D.shape == (1, 2)

    def test_row_mismatch(self, xy):
        X, Y = xy
        with pytest.raises(ValueError, match="Number of datapoints"):
            validate_rgm_inputs(X[:10], Y)

    def test_non_numeric(self, xy):
        _, Y = xy
        X = np.array([["a", "b"]] * 20)
        with pytest.raises(ValueError, match="numeric"):
            validate_rgm_inputs(X, Y)

    def test_non_finite(self, xy):
        X, Y = xy
        Y = Y.copy()
        Y[0, 0] = np.nan
        with pytest.raises(ValueError, match="finite"):
            validate_rgm_inputs(X, Y)

    def test_mask_must_be_binary(self, xy):
        X, Y = xy
        D = np.ones((3, 2))
        D[1, 1] = 0.5
        with pytest.raises(ValueError, match="either 0 or 1"):
            validate_rgm_inputs(X, Y, D=D)

    def test_mask_shape(self, xy):
        X, Y = xy
        with pytest.raises(ValueError, match="D should have shape"):
            validate_rgm_inputs(X, Y, D=np.ones((2, 3)))

    def test_a0_diagonal(self, xy):
        X, Y = xy
        A0 = np.zeros((3, 3))
        A0[2, 2] = 1.0
        with pytest.raises(ValueError, match="diagonal"):
            validate_rgm_inputs(X, Y, A0=A0)

    def test_start_value_shapes(self, xy):
        X, Y = xy
        with pytest.raises(ValueError) as excinfo:
            validate_rgm_inputs(X, Y, A0=np.zeros((2, 2)), B0=np.zeros((3, 3)))
        message = str(excinfo.value)
        assert "A0 should have shape" in message
        assert "B0 should have shape" in message

    def test_one_dimensional_input(self, xy):
        X, _ = xy
        with pytest.raises(ValueError, match="2-D"):
            validate_rgm_inputs(X, np.zeros(20))


# ============================================================================
# CONFIG VALIDATION TESTS
# ============================================================================

class TestValidateConfig:
    """Hyperparameter positivity and chain length limits."""

    def test_defaults_are_valid(self):
        config = clean_config({})
        validate_rgm_config(config)
        for key, value in HYPERPARAMETER_DEFAULTS.items():
            assert config[key] == value
        assert config['niter'] == MIN_NITER

    def test_legacy_proposal_aliases(self):
        config = clean_config({'Prop_varA': 0.5, 'Prop_VarB': 0.25})
        assert config['prop_var_a'] == 0.5
        assert config['prop_var_b'] == 0.25
        assert 'Prop_varA' not in config

    def test_niter_below_minimum(self):
        with pytest.raises(ValueError, match="niter must be >="):
            validate_rgm_config(clean_config({'niter': MIN_NITER - 1}))

    def test_niter_not_integer(self):
        with pytest.raises(ValueError, match="niter must be an integer"):
            validate_rgm_config(clean_config({'niter': 10000.5}))

    def test_integral_float_niter_accepted(self):
        validate_rgm_config(clean_config({'niter': float(MIN_NITER), 'burn_in': 2999.0}))

    @pytest.mark.parametrize("key", ['burn_in', 'chunk_size'])
    def test_non_numeric_run_settings_collected(self, key):
        with pytest.raises(ValueError, match=f"{key} must be an integer") as exc_info:
            validate_rgm_config(clean_config({key: 'many', 'a_tau': -1.0}))
        assert "a_tau" in str(exc_info.value)

    def test_min_niter_override(self):
        validate_rgm_config(clean_config({'niter': 200, 'burn_in': 50}), min_niter=100)

    @pytest.mark.parametrize("key,value", [
        ('a_tau', -1.0), ('b_sigma', 0.0), ('a_rho', 'x'), ('nu_1', 0.0), ('prop_var_b', -0.1),
    ])
    def test_non_positive_hyperparameter(self, key, value):
        with pytest.raises(ValueError, match=key):
            validate_rgm_config(clean_config({key: value}))

    def test_burnin_must_leave_iterations(self):
        with pytest.raises(ValueError, match="burn_in"):
            validate_rgm_config(clean_config({'niter': MIN_NITER, 'burn_in': MIN_NITER}))

    def test_chunk_size(self):
        with pytest.raises(ValueError, match="chunk_size"):
            validate_rgm_config(clean_config({'chunk_size': 0}))

    def test_all_errors_reported(self):
        with pytest.raises(ValueError) as excinfo:
            validate_rgm_config(clean_config({'a_tau': -1.0, 'b_tau': -1.0, 'niter': 5}))
        message = str(excinfo.value)
        assert "a_tau" in message and "b_tau" in message and "niter" in message


# ============================================================================
# DIVERGENCE TESTS
# ============================================================================

class TestChunkFinite:
    """A non-finite chunk aborts the run."""

    def _records(self, length=5, p=2):
        return {
            'log_likelihood': np.full(length, -10.0),
            'sigma_inv': np.ones((length, p)),
        }

    def test_finite_chunk_passes(self):
        check_chunk_finite(self._records(), start=0)

    def test_nan_log_likelihood(self):
        records = self._records()
        records['log_likelihood'][3] = np.nan
        with pytest.raises(ChainDivergenceError, match="iteration 103"):
            check_chunk_finite(records, start=100)

    def test_zero_precision(self):
        records = self._records()
        records['sigma_inv'][1, 0] = 0.0
        with pytest.raises(ChainDivergenceError, match="iteration 1"):
            check_chunk_finite(records, start=0)

    def test_is_floating_point_error(self):
        assert issubclass(ChainDivergenceError, FloatingPointError)


# ============================================================================
# TRACE DIAGNOSTICS TESTS
# ============================================================================

class TestDiagnoseChainIssues:
    """Issues, warnings and info for a finished trace."""

    def _trace(self, niter=10, p=2, k=1):
        trace = allocate_trace(niter, p, k)
        trace.iterations_done = niter
        trace.accept_a[:] = [0, 3, 4, 0]
        return trace

    def test_healthy_trace(self):
        diagnostics = diagnose_chain_issues(self._trace())
        assert diagnostics['issues'] == []
        assert diagnostics['warnings'] == []
        assert any("Iterations: 10" in info for info in diagnostics['info'])

    def test_non_finite_trace(self):
        trace = self._trace()
        trace.log_likelihood[4] = np.inf
        diagnostics = diagnose_chain_issues(trace)
        assert any("log_likelihood" in issue for issue in diagnostics['issues'])

    def test_frozen_entries(self):
        trace = self._trace()
        trace.accept_a[:] = 0
        diagnostics = diagnose_chain_issues(trace)
        assert any("2 off-diagonal A entries" in w for w in diagnostics['warnings'])

    def test_empty_trace(self):
        trace = allocate_trace(10, 2, 1)
        diagnostics = diagnose_chain_issues(trace)
        assert diagnostics['issues']

    def test_existing_diagnostics_are_kept(self):
        diagnostics = diagnose_chain_issues(self._trace(), {'avg_time': 0.1})
        assert diagnostics['avg_time'] == 0.1

    def test_print_diagnostics_logs(self, caplog):
        trace = self._trace()
        trace.accept_a[:] = 0
        with caplog.at_level(logging.INFO, logger='rgmcmc'):
            print_diagnostics(diagnose_chain_issues(trace))
        assert "WARNINGS" in caplog.text
        assert "never accepted" in caplog.text
