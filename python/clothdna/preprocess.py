"""Image decoding and size normalization."""
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Union

import cv2
import numpy as np

from .config import ExtractorConfig
from .errors import DecodeError, EmptyImageError
from .types import PixelBuffer

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, str, Path, BinaryIO]


class ImagePreprocessor:
    """Turns raw image input into a fixed-size RGB :class:`PixelBuffer`.

    Decoding is done by OpenCV, resizing uses the configured interpolation
    (bilinear by default) straight to ``image_size x image_size``. There is
    no cropping and no aspect-ratio preservation, so a 100x50 photo comes out
    stretched. That is a known lossy step, kept because every record must
    share one shape.
    """

    def __init__(self, config: Optional[ExtractorConfig] = None):
        self.config = config or ExtractorConfig()

    def load(self, source: ImageSource) -> PixelBuffer:
        """Decode ``source`` and normalize it.

        Args:
            source: Encoded image bytes, a filesystem path, or a binary file
                object positioned at the start of the image.

        Returns:
            PixelBuffer of ``image_size x image_size x 3`` in RGB order

        Raises:
            DecodeError: If the data cannot be read or parsed as an image
            EmptyImageError: If the decoded image has zero pixels
        """
        return self.from_bgr(self.decode(source))

    def decode(self, source: ImageSource) -> np.ndarray:
        """Decode ``source`` to an OpenCV BGR array without resizing."""
        data = self._read_bytes(source)
        if not data:
            raise DecodeError("Image data is empty")

        nparr = np.frombuffer(data, np.uint8)
        try:
            img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        except cv2.error as e:
            raise DecodeError(f"Failed to decode image data: {e}") from e

        if img is None:
            logger.error("Failed to decode image data (%d bytes)", len(data))
            raise DecodeError("Could not parse input as an image")
        return img

    def from_rgb(self, rgb: np.ndarray) -> PixelBuffer:
        """Normalize an already decoded RGB array."""
        self._check_shape(rgb)
        return self.from_bgr(cv2.cvtColor(np.ascontiguousarray(rgb, dtype=np.uint8), cv2.COLOR_RGB2BGR))

    def from_bgr(self, bgr: np.ndarray) -> PixelBuffer:
        """Normalize an OpenCV BGR array: resize, then reorder to RGB."""
        self._check_shape(bgr)
        size = self.config.image_size
        resized = cv2.resize(
            np.ascontiguousarray(bgr, dtype=np.uint8),
            (size, size),
            interpolation=self.config.interpolation,
        )
        rgb = cv2.cvtColor(resized, cv2.COLOR_BGR2RGB)
        logger.debug("Normalized %s image to %s", bgr.shape[:2], rgb.shape)
        return PixelBuffer(rgb)

    @staticmethod
    def _check_shape(img: np.ndarray) -> None:
        if img.ndim != 3 or img.shape[2] != 3:
            raise DecodeError(f"Expected a 3-channel image, got shape {img.shape}")
        if img.size == 0:
            raise EmptyImageError(f"Image has zero pixels (shape {img.shape})")

    @staticmethod
    def _read_bytes(source: ImageSource) -> bytes:
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)
        if isinstance(source, (str, Path)):
            try:
                return Path(source).read_bytes()
            except OSError as e:
                raise DecodeError(f"Could not load image: {source}") from e
        if hasattr(source, "read"):
            data = source.read()
            if not isinstance(data, (bytes, bytearray)):
                raise DecodeError(
                    f"File object returned {type(data).__name__}, open it in binary mode"
                )
            return bytes(data)
        raise DecodeError(f"Unsupported image source type: {type(source).__name__}")
