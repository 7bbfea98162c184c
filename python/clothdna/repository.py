"""Storage of authenticity records keyed by item id."""
import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from .errors import SerializationError, StorageError
from .serializer import CanonicalSerializer
from .types import AuthenticityRecord, DigitalDNA

logger = logging.getLogger(__name__)


class RecordRepository(Protocol):
    """Lookup of previously registered items."""

    def get(self, item_id: str) -> Optional[AuthenticityRecord]:
        ...

    def put(self, record: AuthenticityRecord, dna: Optional[DigitalDNA] = None) -> None:
        ...


class _ItemLocks:
    """Registry of one lock per item id.

    Writers to different ids only share the brief registry lock used to look
    up their per-id lock.
    """

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def __call__(self, item_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(item_id)
            if lock is None:
                lock = self._locks[item_id] = threading.Lock()
            return lock


class InMemoryRecordRepository:
    """Thread-safe in-memory repository.

    Writers to the same id are serialized by a per-id lock and the last write
    wins.
    """

    def __init__(self):
        self._records: Dict[str, AuthenticityRecord] = {}
        self._dnas: Dict[str, DigitalDNA] = {}
        self._lock_for = _ItemLocks()

    def get(self, item_id: str) -> Optional[AuthenticityRecord]:
        return self._records.get(item_id)

    def get_dna(self, item_id: str) -> Optional[DigitalDNA]:
        return self._dnas.get(item_id)

    def put(self, record: AuthenticityRecord, dna: Optional[DigitalDNA] = None) -> None:
        with self._lock_for(record.item_id):
            self._records[record.item_id] = record
            if dna is not None:
                self._dnas[record.item_id] = dna

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._records

    def __len__(self) -> int:
        return len(self._records)


class JsonRecordStore:
    """Filesystem repository writing two JSON documents per item.

    ``<item_id>_dna.json`` holds the full DigitalDNA and
    ``<item_id>_record.json`` the AuthenticityRecord. Writes to the same id
    are serialized; writes to different ids proceed in parallel.

    Raises:
        StorageError: For ids unusable as file names and failed writes
        SerializationError: For unreadable or corrupt documents
    """

    def __init__(self, base_dir):
        self.base_dir = Path(base_dir)
        self._lock_for = _ItemLocks()

    def dna_path(self, item_id: str) -> Path:
        return self.base_dir / f"{self._safe_id(item_id)}_dna.json"

    def record_path(self, item_id: str) -> Path:
        return self.base_dir / f"{self._safe_id(item_id)}_record.json"

    def put(self, record: AuthenticityRecord, dna: Optional[DigitalDNA] = None) -> None:
        record_path = self.record_path(record.item_id)
        dna_path = self.dna_path(dna.item_id) if dna is not None else None
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            with self._lock_for(record.item_id):
                if dna_path is not None:
                    dna_path.write_text(json.dumps(CanonicalSerializer.to_dict(dna), indent=2))
                record_path.write_text(
                    json.dumps(CanonicalSerializer.record_to_dict(record), indent=2)
                )
        except OSError as e:
            raise StorageError(f"Could not store record for {record.item_id}: {e}") from e
        logger.info("Stored record for %s in %s", record.item_id, self.base_dir)

    def get(self, item_id: str) -> Optional[AuthenticityRecord]:
        return self.load_record(item_id)

    def load_record(self, item_id: str) -> Optional[AuthenticityRecord]:
        data = self._load(self.record_path(item_id))
        return None if data is None else CanonicalSerializer.record_from_dict(data)

    def load_dna(self, item_id: str) -> Optional[DigitalDNA]:
        data = self._load(self.dna_path(item_id))
        return None if data is None else CanonicalSerializer.from_dict(data)

    @staticmethod
    def _load(path: Path):
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text())
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SerializationError(f"Could not read {path.name}: {e}") from e

    @staticmethod
    def _safe_id(item_id: str) -> str:
        if not item_id or "/" in item_id or "\\" in item_id or item_id in (".", ".."):
            raise StorageError(f"Item id cannot be used as a file name: {item_id!r}")
        return item_id
