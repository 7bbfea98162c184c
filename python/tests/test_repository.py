"""Tests for record repositories."""

import dataclasses
import json
import threading

import pytest

from clothdna.dna import DNABuilder
from clothdna.errors import SerializationError, StorageError
from clothdna.features import FeatureExtractor
from clothdna.repository import InMemoryRecordRepository, JsonRecordStore
from clothdna.types import PixelBuffer
from clothdna.verify import HashVerifier

from conftest import StepClock, textured_rgb


@pytest.fixture()
def dna():
    features = FeatureExtractor().extract(PixelBuffer(textured_rgb()))
    return DNABuilder(clock=StepClock()).build((224, 224, 3), features, "shirt-001")


@pytest.fixture()
def record(dna):
    return HashVerifier().create_record(dna)


class TestInMemoryRecordRepository:
    def test_put_get(self, record, dna):
        repo = InMemoryRecordRepository()
        repo.put(record, dna)
        assert repo.get("shirt-001") == record
        assert repo.get_dna("shirt-001") == dna
        assert "shirt-001" in repo
        assert len(repo) == 1

    def test_unknown_id(self):
        assert InMemoryRecordRepository().get("nope") is None

    def test_last_write_wins(self, record):
        repo = InMemoryRecordRepository()
        repo.put(record)
        newer = dataclasses.replace(record, hash_hex="f" * 64)
        repo.put(newer)
        assert repo.get("shirt-001").hash_hex == "f" * 64

    def test_concurrent_writers(self, record):
        repo = InMemoryRecordRepository()

        def writer(i):
            repo.put(dataclasses.replace(record, item_id=f"item-{i % 10}", hash_hex=f"{i:064x}"))

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(100)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(repo) == 10
        for j in range(10):
            assert repo.get(f"item-{j}").item_id == f"item-{j}"


class TestJsonRecordStore:
    def test_writes_two_documents(self, tmp_path, record, dna):
        store = JsonRecordStore(tmp_path / "db")
        store.put(record, dna)

        dna_doc = json.loads((tmp_path / "db" / "shirt-001_dna.json").read_text())
        record_doc = json.loads((tmp_path / "db" / "shirt-001_record.json").read_text())
        assert dna_doc["itemId"] == "shirt-001"
        assert len(dna_doc["colorHistogram"]) == 96
        assert record_doc["hashHex"] == record.hash_hex
        assert record_doc["signature"] is None

    def test_round_trip(self, tmp_path, record, dna):
        store = JsonRecordStore(tmp_path)
        store.put(record, dna)
        assert store.get("shirt-001") == record
        assert store.load_dna("shirt-001") == dna

    def test_signed_record_round_trip(self, tmp_path, record, key_pair):
        _, private_key = key_pair
        verifier = HashVerifier()
        signed = verifier.sign_record(record, private_key, "Mill 7")
        store = JsonRecordStore(tmp_path)
        store.put(signed)
        loaded = store.get("shirt-001")
        assert loaded == signed
        assert verifier.verify_record_signature(loaded)

    def test_missing(self, tmp_path):
        store = JsonRecordStore(tmp_path)
        assert store.get("nope") is None
        assert store.load_dna("nope") is None

    @pytest.mark.parametrize("item_id", ["", "../escape", "a/b", "a\\b", ".."])
    def test_unsafe_ids_rejected(self, tmp_path, item_id):
        with pytest.raises(StorageError):
            JsonRecordStore(tmp_path).record_path(item_id)

    def test_unsafe_id_on_put(self, tmp_path, record):
        bad = dataclasses.replace(record, item_id="a/b")
        with pytest.raises(StorageError):
            JsonRecordStore(tmp_path).put(bad)

    def test_write_failure_raises_storage_error(self, tmp_path, record):
        blocker = tmp_path / "db"
        blocker.write_text("a file where the directory should be")
        with pytest.raises(StorageError):
            JsonRecordStore(blocker).put(record)

    def test_load_record_alias(self, tmp_path, record):
        store = JsonRecordStore(tmp_path)
        store.put(record)
        assert store.load_record("shirt-001") == store.get("shirt-001") == record

    @pytest.mark.parametrize("content", ["{not json", "", "[1, 2, 3]", '{"itemId": "shirt-001"}'])
    def test_corrupt_record_raises_serialization_error(self, tmp_path, content):
        (tmp_path / "shirt-001_record.json").write_text(content)
        with pytest.raises(SerializationError):
            JsonRecordStore(tmp_path).get("shirt-001")

    def test_corrupt_dna_raises_serialization_error(self, tmp_path):
        (tmp_path / "shirt-001_dna.json").write_bytes(b"\xff\xfe garbage")
        with pytest.raises(SerializationError):
            JsonRecordStore(tmp_path).load_dna("shirt-001")

    def test_writers_to_different_ids_do_not_block(self, tmp_path, record):
        store = JsonRecordStore(tmp_path)
        other = dataclasses.replace(record, item_id="shirt-002")
        done = threading.Event()

        def writer():
            store.put(other)
            done.set()

        with store._lock_for("shirt-001"):
            thread = threading.Thread(target=writer)
            thread.start()
            assert done.wait(timeout=5)
        thread.join()
        assert store.get("shirt-002") == other

    def test_concurrent_writers_same_id(self, tmp_path, record):
        store = JsonRecordStore(tmp_path)

        def writer(i):
            store.put(dataclasses.replace(record, hash_hex=f"{i:064x}"))

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get("shirt-001").hash_hex in {f"{i:064x}" for i in range(20)}
