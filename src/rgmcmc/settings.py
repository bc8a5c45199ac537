"""
Sampler policy constants and hyperparameter defaults.

The burn-in window and the minimum chain length are fixed policy choices:
the reference convergence behavior was tuned against them, so they are kept
as named constants instead of being derived from the chain.

To add a new hyperparameter:
1. Add its default to HYPERPARAMETER_DEFAULTS
2. Add a field with the same name to mcmc.types.Hyperparams
3. Add its positivity rule to error_handling.validate_rgm_config
"""

# Shortest chain accepted by fit_rgm
MIN_NITER = 10000

# Number of leading trace columns dropped before averaging.
# Column 2999 (the 3000th iteration) is the first one kept.
BURN_IN_DISCARD = 2999

# Averaged inclusion indicators below this value zero out the entry
INCLUSION_THRESHOLD = 0.5

# Iterations per compiled scan call; bounds device memory for the records
DEFAULT_CHUNK_SIZE = 500

# Prior and proposal defaults
HYPERPARAMETER_DEFAULTS = {
    'a_tau': 0.1,       # Inverse-Gamma shape, slab variance of A
    'b_tau': 0.1,       # Inverse-Gamma rate, slab variance of A
    'a_rho': 0.5,       # Beta prior on the A inclusion probability
    'b_rho': 0.5,
    'nu_1': 0.0001,     # Spike-to-slab variance ratio for A
    'a_eta': 0.1,       # Inverse-Gamma shape, slab variance of B
    'b_eta': 0.1,       # Inverse-Gamma rate, slab variance of B
    'a_psi': 0.5,       # Beta prior on the B inclusion probability
    'b_psi': 0.5,
    'nu_2': 0.0001,     # Spike-to-slab variance ratio for B
    'a_sigma': 0.1,     # Inverse-Gamma shape, residual variances
    'b_sigma': 0.1,     # Inverse-Gamma rate, residual variances
    'prop_var_a': 0.1,  # Random-walk proposal variance for A entries
    'prop_var_b': 0.1,  # Random-walk proposal variance for B entries
}

# Hyperparameters that parameterize a Beta or Inverse-Gamma prior
SHAPE_RATE_KEYS = (
    'a_tau', 'b_tau', 'a_rho', 'b_rho', 'a_eta', 'b_eta',
    'a_psi', 'b_psi', 'a_sigma', 'b_sigma',
)

# Hyperparameters that are variances or variance ratios
VARIANCE_KEYS = ('nu_1', 'nu_2', 'prop_var_a', 'prop_var_b')
