"""Main ClothDNA implementation.

Wires the pipeline together: image -> pixels -> features -> DNA ->
canonical bytes -> hash -> record / verdict.
"""
import concurrent.futures
import logging
from typing import Dict, Mapping, Optional, Union

from . import runtime
from .config import ExtractorConfig
from .dna import Clock, DNABuilder
from .errors import ClothDNAError
from .features import FeatureExtractor
from .preprocess import ImagePreprocessor, ImageSource
from .repository import InMemoryRecordRepository, RecordRepository
from .serializer import CanonicalSerializer
from .simulated import SimulatedFeatureSource
from .types import DigitalDNA, ProcessingResult, VerificationResult
from .verify import HashVerifier

logger = logging.getLogger(__name__)


class ClothAuthenticator:
    """Registers cloth items and verifies them later from a new photo."""

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        repository: Optional[RecordRepository] = None,
        clock: Optional[Clock] = None,
        simulated_source: Optional[SimulatedFeatureSource] = None,
        max_workers: int = 1,
    ):
        """Initialize the pipeline.

        Args:
            config: Extraction settings, validated here
            repository: Where registered records are kept; a fresh
                in-memory repository by default
            clock: Returns the current aware UTC datetime
            simulated_source: Optional stand-in for learned features,
                summarized in records but never hashed
            max_workers: Threads used by :meth:`process_batch`
        """
        self.config = config or ExtractorConfig()
        self.config.validate()
        runtime.initialize()

        self.repository = repository if repository is not None else InMemoryRecordRepository()
        self.simulated_source = simulated_source
        self.max_workers = max(1, max_workers)

        self.preprocessor = ImagePreprocessor(self.config)
        self.extractor = FeatureExtractor(self.config)
        self.builder = DNABuilder(self.config.schema_version, clock)
        self.serializer = CanonicalSerializer(self.config.precision)
        self.verifier = HashVerifier(self.serializer, self.config.hash_policy)

    def create_dna(
        self,
        image: ImageSource,
        item_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> DigitalDNA:
        """Extract a new DigitalDNA from ``image``.

        Raises:
            DecodeError: If the image cannot be parsed
            EmptyImageError: If the image has no pixels
            DegenerateContrastError: Under ``ContrastPolicy.RAISE`` for a
                black image
        """
        buffer = self.preprocessor.load(image)
        features = self.extractor.extract(buffer)
        return self.builder.build(buffer.dimensions, features, item_id, timestamp)

    def process(
        self,
        image: ImageSource,
        item_id: Optional[str] = None,
        private_key: Optional[str] = None,
        signer: str = "unknown",
    ) -> ProcessingResult:
        """Register an item: extract, hash, summarize, store.

        Args:
            image: Photo of the item
            item_id: Caller-chosen id; generated from the clock if omitted
            private_key: PEM key used to sign the authenticity record
            signer: Signer name recorded with the signature

        Returns:
            ProcessingResult with the DNA, its hash and the stored record
        """
        buffer = self.preprocessor.load(image)
        features = self.extractor.extract(buffer)
        dna = self.builder.build(buffer.dimensions, features, item_id)

        deep_features = self.simulated_source.features(buffer) if self.simulated_source else ()
        hash_hex = self.verifier.hash_dna(dna)
        record = self.verifier.create_record(dna, deep_features, hash_hex)
        if private_key is not None:
            record = self.verifier.sign_record(record, private_key, signer)

        self.repository.put(record, dna)
        logger.info("Registered %s with hash %.16s...", dna.item_id, hash_hex)

        return ProcessingResult(
            dna=dna,
            hash_hex=hash_hex,
            record=record,
            deep_features=tuple(deep_features),
        )

    def process_batch(
        self,
        images: Mapping[str, ImageSource],
        max_workers: Optional[int] = None,
    ) -> Dict[str, Union[ProcessingResult, ClothDNAError]]:
        """Register many items; a bad image only fails its own entry.

        Args:
            images: Item id -> image source
            max_workers: Overrides the instance setting for this call

        Returns:
            Item id -> ProcessingResult, or the ClothDNAError that item raised
        """
        workers = max(1, max_workers or self.max_workers)
        results: Dict[str, Union[ProcessingResult, ClothDNAError]] = {}

        def run(item_id: str, image: ImageSource) -> Union[ProcessingResult, ClothDNAError]:
            try:
                return self.process(image, item_id)
            except ClothDNAError as e:
                logger.warning("Failed to process %s: %s", item_id, e)
                return e

        if workers > 1:
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {
                    item_id: executor.submit(run, item_id, image)
                    for item_id, image in images.items()
                }
                for item_id, future in futures.items():
                    results[item_id] = future.result()
        else:
            for item_id, image in images.items():
                results[item_id] = run(item_id, image)

        return results

    def verify(
        self,
        image: ImageSource,
        expected_hash: str,
        item_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> VerificationResult:
        """Re-derive a hash from a new photo and compare it.

        Under audit-trail hashing the original ``item_id`` and ``timestamp``
        must be supplied to reproduce a stored hash; use :meth:`verify_item`
        to take them from the repository. Nothing is stored.
        """
        candidate = self.create_dna(image, item_id, timestamp)
        result = self.verifier.verify(candidate, expected_hash)
        logger.info("Verification of %s: authentic=%s", candidate.item_id, result.is_authentic)
        return result

    def verify_item(self, image: ImageSource, item_id: str) -> VerificationResult:
        """Verify ``image`` against the record registered under ``item_id``."""
        record = self.repository.get(item_id)
        if record is None:
            logger.warning("No record registered for %s", item_id)
            candidate = self.create_dna(image, item_id)
            return VerificationResult(
                is_authentic=False,
                computed_hash=self.verifier.hash_dna(candidate),
                expected_hash="",
            )
        return self.verify(image, record.hash_hex, record.item_id, record.timestamp_utc)
