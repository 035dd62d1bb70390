from __future__ import annotations

import numpy as np
import pytest


@pytest.fixture(autouse=True)
def _seed_numpy_rng():
    """Ensure deterministic noise generation for reproducible tests."""
    np.random.seed(0)
