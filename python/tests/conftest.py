"""Shared pytest fixtures for ClothDNA tests."""

import io
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest
from PIL import Image

from clothdna import ClothAuthenticator, CryptoUtils
from clothdna.config import ExtractorConfig
from clothdna.features import FeatureExtractor
from clothdna.preprocess import ImagePreprocessor


def encode_png(rgb: np.ndarray) -> bytes:
    """Lossless PNG encoding of an RGB uint8 array."""
    buf = io.BytesIO()
    Image.fromarray(rgb.astype(np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def textured_rgb(w: int = 224, h: int = 224, seed: int = 7) -> np.ndarray:
    """Woven-looking pattern: stripes, a gradient and fixed-seed noise."""
    rng = np.random.default_rng(seed)
    y, x = np.mgrid[0:h, 0:w]
    weave = ((x // 6 + y // 6) % 2) * 90
    r = (x * 255 // max(w - 1, 1)) * 0.5 + weave
    g = (y * 255 // max(h - 1, 1)) * 0.5 + (x % 12) * 8
    b = 60 + weave // 2 + (y % 9) * 10
    img = np.stack([r, g, b], axis=-1) + rng.integers(-12, 13, (h, w, 3))
    return np.clip(img, 0, 255).astype(np.uint8)


class StepClock:
    """Deterministic clock advancing by ``step`` on every call."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2024, 3, 15, 10, 30, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


# ---------------------------------------------------------------------------
# Crypto fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def key_pair():
    """Generate a reusable RSA key pair (session-scoped for speed)."""
    public_key, private_key = CryptoUtils.generate_key_pair()
    return public_key, private_key


# ---------------------------------------------------------------------------
# Pipeline fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config():
    return ExtractorConfig()


@pytest.fixture()
def preprocessor(config):
    return ImagePreprocessor(config)


@pytest.fixture()
def extractor(config):
    return FeatureExtractor(config)


@pytest.fixture()
def clock():
    return StepClock()


@pytest.fixture()
def authenticator(clock):
    """Fresh ClothAuthenticator with a deterministic clock."""
    return ClothAuthenticator(clock=clock)


# ---------------------------------------------------------------------------
# Sample images
# ---------------------------------------------------------------------------


@pytest.fixture()
def cloth_rgb():
    return textured_rgb()


@pytest.fixture()
def cloth_png(cloth_rgb):
    """224x224 lossless textured image."""
    return encode_png(cloth_rgb)


@pytest.fixture()
def other_cloth_png():
    return encode_png(textured_rgb(seed=99))


@pytest.fixture()
def black_png():
    return encode_png(np.zeros((224, 224, 3), dtype=np.uint8))


@pytest.fixture()
def sample_jpeg_bytes():
    """Minimal synthetic JPEG buffer (gradient image)."""
    img = Image.new("RGB", (64, 64))
    pixels = img.load()
    for y in range(64):
        for x in range(64):
            pixels[x, y] = (x * 4, y * 4, 128)
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=90)
    return buf.getvalue()
