"""Cryptographic utilities for ClothDNA."""
import base64
import hashlib
import json
from typing import Tuple

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa, padding
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm

HASH_HEX_LENGTH = 64
_HEX_DIGITS = frozenset("0123456789abcdef")


class CryptoUtils:
    """Utility class for cryptographic operations."""

    @staticmethod
    def hash_content(content: bytes) -> str:
        """Generate SHA-256 hash of content as 64 lowercase hex characters."""
        return hashlib.sha256(content).hexdigest()

    @staticmethod
    def is_hash_hex(value: str) -> bool:
        """True if ``value`` looks like a digest produced by :meth:`hash_content`."""
        return (
            isinstance(value, str)
            and len(value) == HASH_HEX_LENGTH
            and all(c in _HEX_DIGITS for c in value)
        )

    @staticmethod
    def generate_key_pair() -> Tuple[str, str]:
        """Generate RSA key pair.

        Returns:
            Tuple of (public_key_pem, private_key_pem)
        """
        private_key = rsa.generate_private_key(
            public_exponent=65537,
            key_size=2048
        )

        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        ).decode()

        public_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        ).decode()

        return public_pem, private_pem

    @staticmethod
    def get_public_key_from_private_key(private_key_pem: str) -> str:
        """Extract the PEM public key matching a PEM private key."""
        private_key = serialization.load_pem_private_key(
            private_key_pem.encode(),
            password=None
        )
        return private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        ).decode()

    @staticmethod
    def sign_content(content: str, private_key_pem: str) -> str:
        """Sign content with private key.

        Args:
            content: Content to sign
            private_key_pem: Private key in PEM format

        Returns:
            Base64-encoded RSA-SHA256 signature
        """
        private_key = serialization.load_pem_private_key(
            private_key_pem.encode(),
            password=None
        )

        signature = private_key.sign(
            content.encode(),
            padding.PKCS1v15(),
            hashes.SHA256()
        )
        return base64.b64encode(signature).decode()

    @staticmethod
    def verify_signature(content: str, signature: str, public_key_pem: str) -> bool:
        """Verify signature with public key.

        Args:
            content: Original content
            signature: Base64-encoded signature
            public_key_pem: Public key in PEM format

        Returns:
            True if signature is valid, False otherwise
        """
        try:
            public_key = serialization.load_pem_public_key(public_key_pem.encode())
            signature_bytes = base64.b64decode(signature, validate=True)

            public_key.verify(
                signature_bytes,
                content.encode(),
                padding.PKCS1v15(),
                hashes.SHA256()
            )
            return True
        except (InvalidSignature, UnsupportedAlgorithm, ValueError, TypeError):
            return False

    @staticmethod
    def canonical_json(data: dict) -> str:
        """Create canonical JSON representation for signing."""
        return json.dumps(data, sort_keys=True, separators=(',', ':'))
