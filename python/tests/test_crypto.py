"""Tests for CryptoUtils."""

import pytest

from clothdna.crypto import CryptoUtils


class TestHashing:
    def test_hash_content_deterministic(self):
        h1 = CryptoUtils.hash_content(b"hello")
        h2 = CryptoUtils.hash_content(b"hello")
        assert h1 == h2

    def test_hash_content_different_inputs(self):
        h1 = CryptoUtils.hash_content(b"hello")
        h2 = CryptoUtils.hash_content(b"world")
        assert h1 != h2

    def test_hash_content_returns_hex(self):
        h = CryptoUtils.hash_content(b"data")
        assert len(h) == 64  # SHA-256 hex = 64 chars
        assert all(c in "0123456789abcdef" for c in h)


class TestHashFormat:
    def test_valid(self):
        assert CryptoUtils.is_hash_hex(CryptoUtils.hash_content(b"x"))

    @pytest.mark.parametrize("value", [
        "",
        "abc",
        "A" * 64,
        "g" * 64,
        "0" * 63,
        "0" * 65,
        None,
    ])
    def test_invalid(self, value):
        assert not CryptoUtils.is_hash_hex(value)


class TestKeyPair:
    def test_generate_key_pair(self, key_pair):
        public_key, private_key = key_pair
        assert "BEGIN PUBLIC KEY" in public_key
        assert "BEGIN PRIVATE KEY" in private_key

    def test_extract_public_key(self, key_pair):
        public_key, private_key = key_pair
        extracted = CryptoUtils.get_public_key_from_private_key(private_key)
        assert extracted == public_key


class TestSigning:
    def test_sign_and_verify(self, key_pair):
        public_key, private_key = key_pair
        content = "record to sign"
        signature = CryptoUtils.sign_content(content, private_key)
        assert CryptoUtils.verify_signature(content, signature, public_key)

    def test_verify_wrong_content(self, key_pair):
        public_key, private_key = key_pair
        signature = CryptoUtils.sign_content("original", private_key)
        assert not CryptoUtils.verify_signature("tampered", signature, public_key)

    def test_verify_invalid_signature(self, key_pair):
        public_key, _ = key_pair
        assert not CryptoUtils.verify_signature("msg", "badsig", public_key)

    def test_verify_invalid_public_key(self, key_pair):
        _, private_key = key_pair
        signature = CryptoUtils.sign_content("msg", private_key)
        assert not CryptoUtils.verify_signature("msg", signature, "not a key")


class TestCanonicalJson:
    def test_sorted_keys(self):
        j = CryptoUtils.canonical_json({"b": 2, "a": 1})
        assert j == '{"a":1,"b":2}'

    def test_no_spaces(self):
        j = CryptoUtils.canonical_json({"key": "value"})
        assert " " not in j
