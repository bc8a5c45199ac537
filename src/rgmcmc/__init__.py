"""
rgmcmc - Bayesian Reciprocal Graphical Models by MCMC

Public API:
    Fitting:
        fit_rgm - Validate inputs, run the sampler and summarize the posterior
        run_chain - Run one chain from an explicit starting state
        initialize_chain_state - Starting values drawn from the priors

    Configuration:
        configure_rgm_system - Clean a config dict into hyperparameters and keys
        clean_config - Fill in default hyperparameters and run settings
        MIN_NITER, BURN_IN_DISCARD, INCLUSION_THRESHOLD - Policy constants

    Validation & Diagnostics:
        validate_rgm_inputs - Check data matrices, mask and starting values
        validate_rgm_config - Check hyperparameters and chain length
        ChainDivergenceError - Raised when the chain stops being finite
        diagnose_chain_issues - Inspect a finished trace

    Post-processing:
        summarize_traces - Burn-in, average and threshold the traces
        apply_burnin - Drop the leading iterations of a trace buffer
        save_results - Save fit_rgm output to .npz
        load_results - Load saved output

    Simulation:
        simulate_rgm_data - Draw (X, Y) from known A and B

Example:
    import numpy as np
    from rgmcmc import fit_rgm, simulate_rgm_data

    A = np.array([[0.0, 0.4, 0.0], [0.0, 0.0, -0.4], [0.3, 0.0, 0.0]])
    B = np.diag([3.0, -3.0, 3.0])
    X, Y = simulate_rgm_data(seed=500, n=500, A=A, B=B, sigma=0.5)

    results = fit_rgm(X, Y, A0=A, B0=B, D=np.eye(3))
    A_hat, B_hat, LL = results['A'], results['B'], results['LL']
"""
# CRITICAL: Import jax_config FIRST to set environment variables before JAX loads
from . import jax_config  # noqa: F401

# Import mcmc subpackage to register the pytree types
from . import mcmc as _mcmc  # noqa: F401

from .settings import (
    MIN_NITER,
    BURN_IN_DISCARD,
    INCLUSION_THRESHOLD,
    DEFAULT_CHUNK_SIZE,
    HYPERPARAMETER_DEFAULTS,
)
from .error_handling import (
    ChainDivergenceError,
    validate_rgm_inputs,
    validate_rgm_config,
    diagnose_chain_issues,
    print_diagnostics,
)
from .history_processing import apply_burnin, summarize_traces
from .results_io import save_results, load_results
from .simulate import simulate_rgm_data

# Main MCMC entry points
from .mcmc import (
    fit_rgm,
    run_chain,
    configure_rgm_system,
    initialize_chain_state,
    clean_config,
    ChainTrace,
)
