"""Stand-in for learned "deep" features.

No network is trained or run. The vector is drawn from a fixed-seed
generator, so it is reproducible but carries no information about the image.
It is reported in the authenticity summary only and never hashed.
"""
from typing import Optional, Tuple

import numpy as np

from .types import PixelBuffer

FEATURE_VECTOR_SIZE = 256


class SimulatedFeatureSource:
    """Returns the same pseudo-random vector for every image."""

    def __init__(self, size: int = FEATURE_VECTOR_SIZE, seed: int = 42, scale: float = 0.5):
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        self.size = size
        self.seed = seed
        self.scale = scale

    def features(self, buffer: Optional[PixelBuffer] = None) -> Tuple[float, ...]:
        """Gaussian vector, mean 0 and std ``scale``. ``buffer`` is ignored."""
        rng = np.random.default_rng(self.seed)
        return tuple(float(v) for v in rng.normal(0.0, self.scale, self.size))
