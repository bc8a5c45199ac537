from ..settings import HYPERPARAMETER_DEFAULTS, MIN_NITER, BURN_IN_DISCARD, DEFAULT_CHUNK_SIZE


def clean_config(rgm_config):
    """
    Cleans the config dict and sets defaults.
    All config keys use lowercase with underscores.

    Accepts the legacy argument spellings Prop_varA / Prop_VarB as
    aliases for prop_var_a / prop_var_b.
    """
    if 'Prop_varA' in rgm_config:
        rgm_config.setdefault('prop_var_a', rgm_config.pop('Prop_varA'))
    if 'Prop_VarB' in rgm_config:
        rgm_config.setdefault('prop_var_b', rgm_config.pop('Prop_VarB'))

    for key, default in HYPERPARAMETER_DEFAULTS.items():
        rgm_config.setdefault(key, default)

    # Define run defaults (all lowercase)
    rgm_config.setdefault('niter', MIN_NITER)
    rgm_config.setdefault('burn_in', BURN_IN_DISCARD)
    rgm_config.setdefault('chunk_size', DEFAULT_CHUNK_SIZE)
    rgm_config.setdefault('rng_seed', 42)
    rgm_config.setdefault('use_double', True)
    rgm_config.setdefault('benchmark', 0)
    rgm_config.setdefault('indicators_from_start', False)

    return rgm_config
