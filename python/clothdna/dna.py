"""Assembly of DigitalDNA records."""
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from .config import SCHEMA_VERSION
from .types import DigitalDNA, FeatureRecord

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_item_id(now: datetime) -> str:
    """Item id derived from wall-clock time at one-second resolution.

    Two DNAs built within the same second without an explicit id get the
    same identifier.
    """
    return "cloth_" + now.strftime("%Y%m%d_%H%M%S")


def format_timestamp(now: datetime) -> str:
    """ISO-8601 UTC timestamp with microseconds and explicit offset."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="microseconds")


class DNABuilder:
    """Builds one immutable :class:`DigitalDNA` per call."""

    def __init__(self, schema_version: str = SCHEMA_VERSION, clock: Optional[Clock] = None):
        self.schema_version = schema_version
        self._clock = clock or utc_now

    def build(
        self,
        dimensions: Tuple[int, int, int],
        features: FeatureRecord,
        item_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> DigitalDNA:
        """Combine features and metadata.

        Args:
            dimensions: (rows, cols, channels) of the normalized image
            features: Extracted feature record
            item_id: Caller-supplied id; generated from the clock if omitted
            timestamp: ISO-8601 timestamp to reuse, e.g. when re-deriving a
                stored record; read from the clock if omitted

        Returns:
            New DigitalDNA

        Raises:
            ValueError: If ``features`` is missing or has no histogram
        """
        if features is None or not features.color_histogram:
            raise ValueError("A non-empty FeatureRecord is required")

        now = self._clock()
        return DigitalDNA(
            item_id=item_id if item_id else generate_item_id(now),
            timestamp_utc=timestamp if timestamp else format_timestamp(now),
            schema_version=self.schema_version,
            image_dimensions=tuple(int(d) for d in dimensions),
            features=features,
        )
