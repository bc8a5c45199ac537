"""
MCMC Data Structures and Type Definitions.

This module contains the core data structures used by the sampler:
- RGMData: Observed covariates, expressions and structural mask
- Hyperparams: Prior and proposal hyperparameters
- ChainState: Every latent parameter of one Markov chain
- RunParams: Immutable run parameters (chain length, chunking)
- ChainTrace: Pre-sized host buffers holding the per-iteration snapshots
- allocate_trace: Factory function for ChainTrace
"""

import jax
import jax.numpy as jnp
import numpy as np
from dataclasses import dataclass, fields
from typing import Dict


@dataclass(frozen=True)
class RGMData:
    """
    Observed data for a reciprocal graphical model.

    Registered as a JAX pytree so it can be passed as a traced argument
    to the compiled sweep. Shapes are static under tracing, so the
    dimension properties are plain Python ints even inside jit.
    """
    X: jnp.ndarray  # (n, k) - covariate observations
    Y: jnp.ndarray  # (n, p) - expression observations
    D: jnp.ndarray  # (p, k) - structural mask, entries in {0, 1}

    @property
    def n(self) -> int:
        return self.Y.shape[0]

    @property
    def p(self) -> int:
        return self.Y.shape[1]

    @property
    def k(self) -> int:
        return self.X.shape[1]


def _rgm_data_flatten(data):
    return (data.X, data.Y, data.D), None


def _rgm_data_unflatten(aux_data, children):
    X, Y, D = children
    return RGMData(X=X, Y=Y, D=D)


jax.tree_util.register_pytree_node(RGMData, _rgm_data_flatten, _rgm_data_unflatten)


@dataclass(frozen=True)
class Hyperparams:
    """
    Prior and proposal hyperparameters.

    All fields are pytree children (traced), so refitting with different
    hyperparameter values reuses the compiled kernel.
    """
    a_tau: float
    b_tau: float
    a_rho: float
    b_rho: float
    nu_1: float
    a_eta: float
    b_eta: float
    a_psi: float
    b_psi: float
    nu_2: float
    a_sigma: float
    b_sigma: float
    prop_var_a: float
    prop_var_b: float

    @classmethod
    def from_config(cls, config: Dict, dtype=jnp.float64) -> 'Hyperparams':
        """Build from a cleaned config dict, ignoring unrelated keys."""
        return cls(**{f.name: jnp.asarray(config[f.name], dtype=dtype) for f in fields(cls)})


def _hyperparams_flatten(hyper):
    return tuple(getattr(hyper, f.name) for f in fields(Hyperparams)), None


def _hyperparams_unflatten(aux_data, children):
    return Hyperparams(*children)


jax.tree_util.register_pytree_node(Hyperparams, _hyperparams_flatten, _hyperparams_unflatten)


@dataclass(frozen=True)
class ChainState:
    """
    Full latent state of the chain after one sweep.

    Invariants maintained by the updaters:
        diag(A) == diag(gamma) == diag(tau) == 0
        B, phi, eta are zero wherever D == 0
        gamma, phi take values in {0, 1} (stored as floats)
    """
    A: jnp.ndarray          # (p, p) - gene-gene interaction magnitudes
    B: jnp.ndarray          # (p, k) - gene-covariate interaction magnitudes
    gamma: jnp.ndarray      # (p, p) - inclusion indicators for A
    phi: jnp.ndarray        # (p, k) - inclusion indicators for B
    tau: jnp.ndarray        # (p, p) - slab variances for A
    eta: jnp.ndarray        # (p, k) - slab variances for B
    rho: jnp.ndarray        # () - prior inclusion probability for gamma
    psi: jnp.ndarray        # () - prior inclusion probability for phi
    sigma_inv: jnp.ndarray  # (p,) - residual precision per gene equation


def _chain_state_flatten(state):
    children = (
        state.A, state.B, state.gamma, state.phi, state.tau, state.eta,
        state.rho, state.psi, state.sigma_inv,
    )
    return children, None


def _chain_state_unflatten(aux_data, children):
    (A, B, gamma, phi, tau, eta, rho, psi, sigma_inv) = children
    return ChainState(
        A=A,
        B=B,
        gamma=gamma,
        phi=phi,
        tau=tau,
        eta=eta,
        rho=rho,
        psi=psi,
        sigma_inv=sigma_inv,
    )


jax.tree_util.register_pytree_node(ChainState, _chain_state_flatten, _chain_state_unflatten)


@dataclass(frozen=True)
class RunParams:
    """
    Immutable run parameters.

    Kept out of the traced arguments: CHUNK_SIZE determines the scan length
    of the compiled kernel.
    """
    NITER: int
    CHUNK_SIZE: int
    BURN_IN: int


@dataclass
class ChainTrace:
    """
    Host-side trace buffers, sized once before the run.

    Matrix parameters are stored one column per iteration, flattened in
    row-major order: entry (j, l) of a (p, m) matrix is row j * m + l.
    """
    A: np.ndarray               # (p*p, niter)
    gamma: np.ndarray           # (p*p, niter)
    B: np.ndarray               # (p*k, niter)
    phi: np.ndarray             # (p*k, niter)
    log_likelihood: np.ndarray  # (niter,)
    rho: np.ndarray             # (niter,)
    psi: np.ndarray             # (niter,)
    sigma_inv: np.ndarray       # (p, niter)
    accept_a: np.ndarray        # (p*p,) - accepted joint moves per A entry
    accept_b: np.ndarray        # (p*k,) - accepted joint moves per B entry
    iterations_done: int = 0

    @property
    def niter(self) -> int:
        return self.log_likelihood.shape[0]

    def store_chunk(self, records: Dict[str, np.ndarray], start: int) -> None:
        """Copy one chunk of scan records (leading axis = iteration) into the buffers."""
        length = records['log_likelihood'].shape[0]
        stop = start + length
        self.A[:, start:stop] = records['A'].T
        self.gamma[:, start:stop] = records['gamma'].T
        self.B[:, start:stop] = records['B'].T
        self.phi[:, start:stop] = records['phi'].T
        self.log_likelihood[start:stop] = records['log_likelihood']
        self.rho[start:stop] = records['rho']
        self.psi[start:stop] = records['psi']
        self.sigma_inv[:, start:stop] = records['sigma_inv'].T
        self.accept_a += records['accept_a'].sum(axis=0).astype(self.accept_a.dtype)
        self.accept_b += records['accept_b'].sum(axis=0).astype(self.accept_b.dtype)
        self.iterations_done = stop


def allocate_trace(niter: int, p: int, k: int, dtype=np.float64) -> ChainTrace:
    """
    Pre-allocate every trace buffer for a run of niter iterations.

    Args:
        niter: Number of sweeps the chain will run
        p: Number of genes
        k: Number of covariates
        dtype: Floating point dtype of the buffers

    Returns:
        ChainTrace with zero-filled buffers and zero acceptance counts
    """
    if niter < 1:
        raise ValueError(f"niter must be >= 1, got {niter}")

    return ChainTrace(
        A=np.zeros((p * p, niter), dtype=dtype),
        gamma=np.zeros((p * p, niter), dtype=dtype),
        B=np.zeros((p * k, niter), dtype=dtype),
        phi=np.zeros((p * k, niter), dtype=dtype),
        log_likelihood=np.zeros(niter, dtype=dtype),
        rho=np.zeros(niter, dtype=dtype),
        psi=np.zeros(niter, dtype=dtype),
        sigma_inv=np.zeros((p, niter), dtype=dtype),
        accept_a=np.zeros(p * p, dtype=np.int64),
        accept_b=np.zeros(p * k, dtype=np.int64),
    )
