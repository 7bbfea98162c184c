"""
Traditional computer-vision descriptors for cloth fingerprinting.

Every statistic here has to come out bit-identical for the same pixels on
any machine, because the hash of the whole record depends on it. To get
there:

- colour conversions use OpenCV's fixed-point uint8 paths (BT.601 luma for
  grayscale, 0..179 hue for HSV);
- means and variances of integer planes are computed from exact integer
  sums, then divided once;
- floating-point reductions go through :func:`math.fsum`, which is exactly
  rounded and so independent of summation order;
- every result is rounded to the serializer's decimal precision.
"""
import logging
import math
from typing import Optional, Tuple

import cv2
import numpy as np

from .config import ExtractorConfig
from .errors import DegenerateContrastError
from .types import ContrastPolicy, FeatureRecord, PixelBuffer

logger = logging.getLogger(__name__)


class FeatureExtractor:
    """Pure function from a :class:`PixelBuffer` to a :class:`FeatureRecord`."""

    def __init__(self, config: Optional[ExtractorConfig] = None):
        self.config = config or ExtractorConfig()

    def extract(self, buffer: PixelBuffer) -> FeatureRecord:
        """Compute all descriptors for ``buffer``.

        Raises:
            DegenerateContrastError: If the grayscale mean is zero and the
                contrast policy is ``RAISE``
        """
        rgb = buffer.pixels
        gray = cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY)
        hsv = cv2.cvtColor(rgb, cv2.COLOR_RGB2HSV)

        brightness_mean, brightness_std = self._integer_mean_std(gray)
        gradient_mean, gradient_std = self._gradient_stats(gray)

        q = self._quantize
        record = FeatureRecord(
            color_means=tuple(q(m) for m in self._channel_means(rgb)),
            color_means_hsv=tuple(q(m) for m in self._channel_means(hsv)),
            color_histogram=tuple(q(c) for c in self._color_histogram(rgb)),
            keypoint_count=self._count_keypoints(gray),
            edge_density=q(self._edge_density(gray)),
            gradient_mean=q(gradient_mean),
            gradient_std=q(gradient_std),
            brightness_mean=q(brightness_mean),
            brightness_std=q(brightness_std),
            contrast=q(self._contrast(brightness_mean, brightness_std)),
        )
        logger.debug(
            "Extracted features: %d keypoints, edge density %.4f",
            record.keypoint_count, record.edge_density,
        )
        return record

    def _quantize(self, value: float) -> float:
        return round(float(value), self.config.precision)

    @staticmethod
    def _channel_means(img: np.ndarray) -> Tuple[float, float, float]:
        """Per-channel arithmetic mean from exact integer sums."""
        n = img.shape[0] * img.shape[1]
        sums = img.reshape(-1, 3).sum(axis=0, dtype=np.int64)
        return tuple(int(s) / n for s in sums)

    def _color_histogram(self, rgb: np.ndarray) -> list:
        """Channel-major R, G, B histograms over [0, 256).

        Bin ``i`` holds values ``v`` with ``floor(v * bins / 256) == i``, so
        each bin is left-inclusive and the last one ends at 255.
        """
        bins = self.config.histogram_bins
        counts = []
        for channel in range(3):
            plane = rgb[:, :, channel].astype(np.int32).ravel()
            idx = (plane * bins) >> 8
            counts.extend(float(c) for c in np.bincount(idx, minlength=bins))
        return counts

    def _count_keypoints(self, gray: np.ndarray) -> int:
        # Only the count is kept; locations and descriptors are discarded.
        cfg = self.config
        orb = cv2.ORB_create(
            nfeatures=cfg.orb_features,
            scaleFactor=cfg.orb_scale_factor,
            nlevels=cfg.orb_levels,
            edgeThreshold=cfg.orb_edge_threshold,
            firstLevel=0,
            WTA_K=2,
            scoreType=cv2.ORB_HARRIS_SCORE,
            patchSize=31,
            fastThreshold=cfg.orb_fast_threshold,
        )
        keypoints = orb.detect(gray, None)
        return len(keypoints)

    def _edge_density(self, gray: np.ndarray) -> float:
        edges = cv2.Canny(
            gray, self.config.canny_low, self.config.canny_high,
            apertureSize=3, L2gradient=False,
        )
        return int(np.count_nonzero(edges)) / edges.size

    def _gradient_stats(self, gray: np.ndarray) -> Tuple[float, float]:
        """Mean and population std of the Sobel gradient magnitude.

        Sobel responses of a uint8 plane are small integers, exact in
        float64, so the squared magnitude is exact and each square root is
        correctly rounded.
        """
        k = self.config.sobel_ksize
        grad_x = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=k, borderType=cv2.BORDER_REFLECT_101)
        grad_y = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=k, borderType=cv2.BORDER_REFLECT_101)
        grad_mag = np.sqrt(grad_x * grad_x + grad_y * grad_y).ravel()

        n = grad_mag.size
        mean = math.fsum(grad_mag) / n
        deviations = grad_mag - mean
        std = math.sqrt(math.fsum(deviations * deviations) / n)
        return mean, std

    @staticmethod
    def _integer_mean_std(plane: np.ndarray) -> Tuple[float, float]:
        values = plane.astype(np.int64).ravel()
        n = values.size
        s1 = int(values.sum())
        s2 = int((values * values).sum())
        variance = (n * s2 - s1 * s1) / (n * n)
        return s1 / n, math.sqrt(variance)

    def _contrast(self, mean: float, std: float) -> float:
        if mean == 0:
            if self.config.contrast_policy is ContrastPolicy.RAISE:
                raise DegenerateContrastError("Contrast is undefined for a zero brightness mean")
            return 0.0
        return std / mean
