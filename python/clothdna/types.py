"""Type definitions for ClothDNA."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np


class HashPolicy(Enum):
    """Whether the wall-clock timestamp takes part in the hashed bytes."""
    AUDIT_TRAIL = "audit"
    CONTENT_FINGERPRINT = "content"


class ContrastPolicy(Enum):
    """What to do when the grayscale mean is zero."""
    ZERO = "zero"
    RAISE = "raise"


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Normalized RGB image, height x width x 3, uint8.

    The wrapped array is made read-only on construction.
    """
    pixels: np.ndarray

    def __post_init__(self):
        self.pixels.setflags(write=False)

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def dimensions(self) -> Tuple[int, int, int]:
        """(rows, cols, channels), the order recorded in a DigitalDNA."""
        return (self.height, self.width, self.channels)


@dataclass(frozen=True)
class FeatureRecord:
    """Traditional computer-vision descriptors of one image."""
    color_means: Tuple[float, float, float]
    color_means_hsv: Tuple[float, float, float]
    color_histogram: Tuple[float, ...]
    keypoint_count: int
    edge_density: float
    gradient_mean: float
    gradient_std: float
    brightness_mean: float
    brightness_std: float
    contrast: float

    @property
    def scalar_count(self) -> int:
        """Number of scalar values carried by the record."""
        return len(self.color_means) + len(self.color_means_hsv) + len(self.color_histogram) + 7


@dataclass(frozen=True)
class DigitalDNA:
    """Fingerprint of one physical item, built once per extraction."""
    item_id: str
    timestamp_utc: str
    schema_version: str
    image_dimensions: Tuple[int, int, int]
    features: FeatureRecord


@dataclass(frozen=True)
class FeatureSummary:
    """Aggregate, non-reversible view of a DigitalDNA's features."""
    traditional_feature_count: int
    deep_feature_count: int
    avg_deep_feature: float
    image_size: Tuple[int, int, int]


@dataclass(frozen=True)
class SignatureInfo:
    """Information about a signature over an authenticity record."""
    algorithm: str
    public_key: str
    signature: str
    timestamp: str
    signer: str


@dataclass(frozen=True)
class AuthenticityRecord:
    """Publishable summary binding an item id to its DNA hash."""
    item_id: str
    hash_hex: str
    timestamp_utc: str
    feature_summary: FeatureSummary
    signature: Optional[SignatureInfo] = None


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of comparing a freshly computed hash to an expected one."""
    is_authentic: bool
    computed_hash: str
    expected_hash: str


@dataclass(frozen=True)
class ProcessingResult:
    """Everything produced by registering one item."""
    dna: DigitalDNA
    hash_hex: str
    record: AuthenticityRecord
    deep_features: Tuple[float, ...] = field(default_factory=tuple)
