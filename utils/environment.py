# utils/environment.py
import os

import numpy as np


def resolve_n_jobs(n_jobs=None) -> int:
    """
    Number of worker processes for fold fitting.

    None/0/1 -> 1 (in-process). Negative values follow the joblib convention
    (-1 = all cores) but are clamped to the cores actually present.
    """
    cores = os.cpu_count() or 1
    if not n_jobs:
        return 1
    n_jobs = int(n_jobs)
    if n_jobs < 0:
        n_jobs = max(1, cores + 1 + n_jobs)
    n = min(n_jobs, cores)
    print("n_jobs=", n)
    return n


def rng(seed=None) -> np.random.Generator:
    return np.random.default_rng(seed)
