"""Hashing and authenticity verification of DigitalDNA records."""
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from .crypto import CryptoUtils
from .serializer import CanonicalSerializer
from .types import (
    AuthenticityRecord,
    DigitalDNA,
    FeatureSummary,
    HashPolicy,
    SignatureInfo,
    VerificationResult,
)

logger = logging.getLogger(__name__)

SIGNATURE_ALGORITHM = "RSA-SHA256"


class HashVerifier:
    """Hashes canonical DNA bytes and compares against an expected hash.

    With ``HashPolicy.AUDIT_TRAIL`` the record's timestamp is part of the
    hashed bytes, so the same photo registered at two instants hashes
    differently. ``HashPolicy.CONTENT_FINGERPRINT`` blanks the timestamp
    before hashing.
    """

    def __init__(
        self,
        serializer: Optional[CanonicalSerializer] = None,
        policy: HashPolicy = HashPolicy.AUDIT_TRAIL,
    ):
        self.serializer = serializer or CanonicalSerializer()
        self.policy = policy

    @staticmethod
    def compute_hash(data: bytes) -> str:
        """SHA-256 of ``data`` as 64 lowercase hex characters."""
        return CryptoUtils.hash_content(data)

    def canonical_bytes(self, dna: DigitalDNA) -> bytes:
        """The exact bytes that :meth:`hash_dna` digests."""
        return self.serializer.serialize(
            dna, include_timestamp=self.policy is HashPolicy.AUDIT_TRAIL
        )

    def hash_dna(self, dna: DigitalDNA) -> str:
        return self.compute_hash(self.canonical_bytes(dna))

    def verify(self, candidate: DigitalDNA, expected_hash: str) -> VerificationResult:
        """Compare the hash of ``candidate`` with ``expected_hash``.

        The comparison is exact and case-sensitive. A mismatch, including a
        malformed expected hash, is reported in the result, never raised.
        """
        computed = self.hash_dna(candidate)
        is_authentic = computed == expected_hash
        if not is_authentic:
            logger.info(
                "Hash mismatch for %s: expected %.16s..., computed %.16s...",
                candidate.item_id, expected_hash, computed,
            )
        return VerificationResult(
            is_authentic=is_authentic,
            computed_hash=computed,
            expected_hash=expected_hash,
        )

    def create_record(
        self,
        dna: DigitalDNA,
        deep_features: Sequence[float] = (),
        hash_hex: Optional[str] = None,
    ) -> AuthenticityRecord:
        """Derive the publishable record for ``dna``.

        The summary holds counts and aggregates only, never the feature
        vector itself.
        """
        summary = FeatureSummary(
            traditional_feature_count=dna.features.scalar_count,
            deep_feature_count=len(deep_features),
            avg_deep_feature=sum(deep_features) / len(deep_features) if deep_features else 0.0,
            image_size=dna.image_dimensions,
        )
        return AuthenticityRecord(
            item_id=dna.item_id,
            hash_hex=hash_hex or self.hash_dna(dna),
            timestamp_utc=dna.timestamp_utc,
            feature_summary=summary,
        )

    def sign_record(self, record: AuthenticityRecord, private_key: str, signer: str) -> AuthenticityRecord:
        """Return a copy of ``record`` carrying an RSA-SHA256 signature."""
        payload = self._signing_payload(record)
        signature = SignatureInfo(
            algorithm=SIGNATURE_ALGORITHM,
            public_key=CryptoUtils.get_public_key_from_private_key(private_key),
            signature=CryptoUtils.sign_content(payload, private_key),
            timestamp=datetime.now(timezone.utc).isoformat(),
            signer=signer,
        )
        return AuthenticityRecord(
            item_id=record.item_id,
            hash_hex=record.hash_hex,
            timestamp_utc=record.timestamp_utc,
            feature_summary=record.feature_summary,
            signature=signature,
        )

    def verify_record_signature(self, record: AuthenticityRecord, public_key: Optional[str] = None) -> bool:
        """Check the record's signature.

        Args:
            record: Signed record
            public_key: Trusted PEM key; defaults to the key embedded in the
                signature, which only proves integrity, not origin

        Returns:
            False if the record is unsigned or the signature does not match
        """
        sig = record.signature
        if sig is None or sig.algorithm != SIGNATURE_ALGORITHM:
            return False
        return CryptoUtils.verify_signature(
            self._signing_payload(record),
            sig.signature,
            public_key or sig.public_key,
        )

    def _signing_payload(self, record: AuthenticityRecord) -> str:
        return CryptoUtils.canonical_json(
            self.serializer.record_to_dict(record, include_signature=False)
        )
