"""
ClothDNA - Python Implementation

Reproducible digital fingerprints ("DNA") of physical cloth items from
photographs, hashed for later authenticity verification.
"""

from .pipeline import ClothAuthenticator
from .types import (
    PixelBuffer,
    FeatureRecord,
    DigitalDNA,
    FeatureSummary,
    SignatureInfo,
    AuthenticityRecord,
    VerificationResult,
    ProcessingResult,
    HashPolicy,
    ContrastPolicy,
)
from .errors import (
    ClothDNAError,
    DecodeError,
    EmptyImageError,
    DegenerateContrastError,
    SerializationError,
    StorageError,
)
from .config import ExtractorConfig
from .crypto import CryptoUtils
from .preprocess import ImagePreprocessor
from .features import FeatureExtractor
from .dna import DNABuilder
from .serializer import CanonicalSerializer
from .verify import HashVerifier
from .repository import RecordRepository, InMemoryRecordRepository, JsonRecordStore
from .simulated import SimulatedFeatureSource

__version__ = "1.0.0"
__all__ = [
    "ClothAuthenticator",
    "PixelBuffer",
    "FeatureRecord",
    "DigitalDNA",
    "FeatureSummary",
    "SignatureInfo",
    "AuthenticityRecord",
    "VerificationResult",
    "ProcessingResult",
    "HashPolicy",
    "ContrastPolicy",
    "ClothDNAError",
    "DecodeError",
    "EmptyImageError",
    "DegenerateContrastError",
    "SerializationError",
    "StorageError",
    "ExtractorConfig",
    "CryptoUtils",
    "ImagePreprocessor",
    "FeatureExtractor",
    "DNABuilder",
    "CanonicalSerializer",
    "HashVerifier",
    "RecordRepository",
    "InMemoryRecordRepository",
    "JsonRecordStore",
    "SimulatedFeatureSource",
]
