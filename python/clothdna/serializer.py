"""Canonical byte rendering of DigitalDNA records.

The canonical form is a compact JSON object whose keys always appear in the
order of :data:`FIELD_ORDER`. Floats are written in fixed-point notation with
a fixed number of decimals, never with an exponent, so the bytes do not depend
on dict ordering, locale, or float repr quirks. Standard ``json.dumps`` output
(sorted keys, shortest repr floats) is used only for the human-readable
documents handed to storage.
"""
import json
import math
from typing import Any, Dict, List, Optional

from .errors import SerializationError
from .types import (
    AuthenticityRecord,
    DigitalDNA,
    FeatureRecord,
    FeatureSummary,
    SignatureInfo,
)

# (canonical key, attribute on DigitalDNA or FeatureRecord)
METADATA_FIELDS = [
    ("itemId", "item_id"),
    ("timestampUtc", "timestamp_utc"),
    ("schemaVersion", "schema_version"),
    ("imageDimensions", "image_dimensions"),
]

FEATURE_FIELDS = [
    ("colorMeans", "color_means"),
    ("colorMeansHSV", "color_means_hsv"),
    ("colorHistogram", "color_histogram"),
    ("keypointCount", "keypoint_count"),
    ("edgeDensity", "edge_density"),
    ("gradientMean", "gradient_mean"),
    ("gradientStd", "gradient_std"),
    ("brightnessMean", "brightness_mean"),
    ("brightnessStd", "brightness_std"),
    ("contrast", "contrast"),
]

FIELD_ORDER = [key for key, _ in METADATA_FIELDS + FEATURE_FIELDS]

_INT_FIELDS = {"imageDimensions", "keypointCount"}


class CanonicalSerializer:
    """Renders a :class:`DigitalDNA` to reproducible bytes and back."""

    def __init__(self, precision: int = 8):
        self.precision = precision

    def serialize(self, dna: DigitalDNA, include_timestamp: bool = True) -> bytes:
        """Render ``dna`` as canonical UTF-8 bytes.

        Args:
            dna: Record to render
            include_timestamp: When False the ``timestampUtc`` field is still
                emitted, in place, with an empty value

        Raises:
            SerializationError: If any number is NaN or infinite
        """
        parts = []
        for key, value in self._ordered_values(dna):
            if key == "timestampUtc" and not include_timestamp:
                value = ""
            parts.append(f"{json.dumps(key)}:{self._encode(key, value)}")
        return ("{" + ",".join(parts) + "}").encode("utf-8")

    def deserialize(self, data: bytes) -> DigitalDNA:
        """Parse canonical bytes back into a :class:`DigitalDNA`.

        Raises:
            SerializationError: If the bytes are not a canonical record
        """
        try:
            pairs = json.loads(data.decode("utf-8"), object_pairs_hook=list)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SerializationError(f"Not a canonical DNA record: {e}") from e

        if (not isinstance(pairs, list)
                or not all(isinstance(p, tuple) for p in pairs)
                or [k for k, _ in pairs] != FIELD_ORDER):
            raise SerializationError("Canonical record fields are missing or out of order")
        return self.from_dict(dict(pairs))

    def _ordered_values(self, dna: DigitalDNA):
        for key, attr in METADATA_FIELDS:
            yield key, getattr(dna, attr)
        for key, attr in FEATURE_FIELDS:
            yield key, getattr(dna.features, attr)

    def _encode(self, key: str, value: Any) -> str:
        if isinstance(value, str):
            return json.dumps(value, ensure_ascii=True)
        if isinstance(value, (list, tuple)):
            return "[" + ",".join(self._encode(key, v) for v in value) + "]"
        if key in _INT_FIELDS:
            return str(int(value))
        return self._format_float(key, value)

    def _format_float(self, key: str, value: float) -> str:
        value = float(value)
        if not math.isfinite(value):
            raise SerializationError(f"Field {key} is not finite: {value}")
        if value == 0:
            value = 0.0  # no "-0.000"
        return format(value, f".{self.precision}f")

    # JSON documents for storage

    @staticmethod
    def to_dict(dna: DigitalDNA) -> Dict[str, Any]:
        """Plain dict of the full DNA, keys in canonical order."""
        data: Dict[str, Any] = {}
        for key, attr in METADATA_FIELDS:
            data[key] = _plain(getattr(dna, attr))
        for key, attr in FEATURE_FIELDS:
            data[key] = _plain(getattr(dna.features, attr))
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> DigitalDNA:
        """Inverse of :meth:`to_dict`.

        Raises:
            SerializationError: If a field is missing or has the wrong type
        """
        try:
            features = FeatureRecord(
                color_means=_floats(data["colorMeans"], 3),
                color_means_hsv=_floats(data["colorMeansHSV"], 3),
                color_histogram=_floats(data["colorHistogram"]),
                keypoint_count=int(data["keypointCount"]),
                edge_density=float(data["edgeDensity"]),
                gradient_mean=float(data["gradientMean"]),
                gradient_std=float(data["gradientStd"]),
                brightness_mean=float(data["brightnessMean"]),
                brightness_std=float(data["brightnessStd"]),
                contrast=float(data["contrast"]),
            )
            dims = tuple(int(d) for d in data["imageDimensions"])
            if len(dims) != 3:
                raise ValueError(f"imageDimensions must have 3 entries, got {len(dims)}")
            return DigitalDNA(
                item_id=str(data["itemId"]),
                timestamp_utc=str(data["timestampUtc"]),
                schema_version=str(data["schemaVersion"]),
                image_dimensions=dims,
                features=features,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Invalid DNA document: {e}") from e

    @staticmethod
    def record_to_dict(record: AuthenticityRecord, include_signature: bool = True) -> Dict[str, Any]:
        summary = record.feature_summary
        data: Dict[str, Any] = {
            "itemId": record.item_id,
            "hashHex": record.hash_hex,
            "timestampUtc": record.timestamp_utc,
            "featureSummary": {
                "traditionalFeatureCount": summary.traditional_feature_count,
                "deepFeatureCount": summary.deep_feature_count,
                "avgDeepFeature": summary.avg_deep_feature,
                "imageSize": list(summary.image_size),
            },
        }
        if include_signature:
            sig = record.signature
            data["signature"] = None if sig is None else {
                "algorithm": sig.algorithm,
                "publicKey": sig.public_key,
                "signature": sig.signature,
                "timestamp": sig.timestamp,
                "signer": sig.signer,
            }
        return data

    @staticmethod
    def record_from_dict(data: Dict[str, Any]) -> AuthenticityRecord:
        try:
            summary = data["featureSummary"]
            sig = data.get("signature")
            return AuthenticityRecord(
                item_id=str(data["itemId"]),
                hash_hex=str(data["hashHex"]),
                timestamp_utc=str(data["timestampUtc"]),
                feature_summary=FeatureSummary(
                    traditional_feature_count=int(summary["traditionalFeatureCount"]),
                    deep_feature_count=int(summary["deepFeatureCount"]),
                    avg_deep_feature=float(summary["avgDeepFeature"]),
                    image_size=tuple(int(d) for d in summary["imageSize"]),
                ),
                signature=None if sig is None else SignatureInfo(
                    algorithm=sig["algorithm"],
                    public_key=sig["publicKey"],
                    signature=sig["signature"],
                    timestamp=sig["timestamp"],
                    signer=sig["signer"],
                ),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Invalid authenticity record: {e}") from e


def _plain(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value


def _floats(values: List[Any], length: Optional[int] = None) -> tuple:
    result = tuple(float(v) for v in values)
    if length is not None and len(result) != length:
        raise ValueError(f"expected {length} values, got {len(result)}")
    return result
