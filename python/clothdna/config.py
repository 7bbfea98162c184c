"""Pinned extraction settings for ClothDNA."""
from dataclasses import dataclass

import cv2

from .types import ContrastPolicy, HashPolicy

SCHEMA_VERSION = "1.0"


@dataclass
class ExtractorConfig:
    """Every constant the fingerprint depends on.

    Changing any value changes the hashes produced, so records built with
    different settings must not be compared.
    """

    # Preprocessing. Both sides are forced to image_size, which distorts
    # non-square sources.
    image_size: int = 224
    interpolation: int = cv2.INTER_LINEAR

    # Colour histogram
    histogram_bins: int = 32

    # Structure: Canny thresholds and Sobel aperture
    canny_low: float = 50.0
    canny_high: float = 150.0
    sobel_ksize: int = 3

    # ORB keypoint detector, OpenCV defaults written out
    orb_features: int = 500
    orb_scale_factor: float = 1.2
    orb_levels: int = 8
    orb_edge_threshold: int = 31
    orb_fast_threshold: int = 20

    # Serialization
    precision: int = 8
    schema_version: str = SCHEMA_VERSION

    hash_policy: HashPolicy = HashPolicy.AUDIT_TRAIL
    contrast_policy: ContrastPolicy = ContrastPolicy.ZERO

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If any parameter is invalid.
        """
        if self.image_size <= 0:
            msg = f"image_size must be positive, got {self.image_size}"
            raise ValueError(msg)
        if not 0 < self.histogram_bins <= 256:
            msg = f"histogram_bins must be in 1..256, got {self.histogram_bins}"
            raise ValueError(msg)
        if not 0 <= self.canny_low <= self.canny_high:
            msg = f"canny thresholds must satisfy 0 <= low <= high, got {self.canny_low}/{self.canny_high}"
            raise ValueError(msg)
        if self.sobel_ksize not in (1, 3, 5, 7):
            msg = f"sobel_ksize must be 1, 3, 5 or 7, got {self.sobel_ksize}"
            raise ValueError(msg)
        if self.orb_features <= 0:
            msg = f"orb_features must be positive, got {self.orb_features}"
            raise ValueError(msg)
        if not 0 <= self.precision <= 15:
            msg = f"precision must be in 0..15, got {self.precision}"
            raise ValueError(msg)
        if not self.schema_version:
            raise ValueError("schema_version must not be empty")
