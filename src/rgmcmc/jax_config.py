"""
JAX Configuration - MUST be imported before any JAX imports.

This module sets environment variables for JAX configuration including:
- Persistent compilation cache directory
- Minimum compile time threshold for caching
- CUDA/XLA log verbosity
"""
import os
from pathlib import Path

# Suppress CUDA/XLA C++ warnings; must be set before JAX import
os.environ.setdefault('TF_CPP_MIN_LOG_LEVEL', '2')

# --- PERSISTENT COMPILATION CACHE ---
# The sweep kernel is recompiled for every (n, p, k, chunk length) combination,
# so cross-session caching saves most of the start-up time on repeated fits
_JAX_CACHE_DIR = Path.home() / ".cache" / "jax" / "rgmcmc_cache"
_JAX_CACHE_DIR.mkdir(parents=True, exist_ok=True)
os.environ.setdefault("JAX_COMPILATION_CACHE_DIR", str(_JAX_CACHE_DIR))
os.environ.setdefault("JAX_PERSISTENT_CACHE_MIN_COMPILE_TIME_SECS", "1.0")
