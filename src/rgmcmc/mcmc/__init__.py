"""
MCMC Subpackage - Core RGM sampling implementation.

This package contains the core MCMC sampling logic:
- backend: Top-level entry point (fit_rgm)
- single_run: Chain driver (run_chain) and helpers
- compile: Kernel compilation and caching
- config: Configuration and initialization
- diagnostics: Acceptance-rate and log-likelihood summaries
- conditionals: Conjugate full-conditional draws
- likelihood: Structural-equation log-likelihood
- sampling: Joint Metropolis updaters for (A, gamma) and (B, phi)
- scan: One full sweep and the JAX scan body
- types: Core data structures (RGMData, Hyperparams, ChainState, ChainTrace)
- utils: Config cleaning
"""

# Import types first (needed by other modules)
from .types import (
    RGMData,
    Hyperparams,
    ChainState,
    RunParams,
    ChainTrace,
    allocate_trace,
)

# Import main entry points
from .backend import fit_rgm
from .single_run import run_chain

# Import commonly used functions
from .config import (
    configure_rgm_system,
    build_rgm_data,
    initialize_chain_state,
    gen_rng_keys,
)
from .diagnostics import print_acceptance_summary, summarize_log_likelihood
from .compile import compile_mcmc_kernel, benchmark_mcmc_sampler
from .likelihood import log_likelihood
from .scan import rgm_sweep
from .utils import clean_config

__all__ = [
    # Main entry points
    'fit_rgm',
    'run_chain',
    # Types
    'RGMData',
    'Hyperparams',
    'ChainState',
    'RunParams',
    'ChainTrace',
    'allocate_trace',
    # Config
    'configure_rgm_system',
    'build_rgm_data',
    'initialize_chain_state',
    'gen_rng_keys',
    'clean_config',
    # Sweep
    'rgm_sweep',
    'log_likelihood',
    # Diagnostics
    'print_acceptance_summary',
    'summarize_log_likelihood',
    # Compile
    'compile_mcmc_kernel',
    'benchmark_mcmc_sampler',
]
