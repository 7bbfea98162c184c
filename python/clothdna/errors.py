"""Exceptions raised by the ClothDNA pipeline."""


class ClothDNAError(Exception):
    """Base class for every error raised while fingerprinting an item."""


class DecodeError(ClothDNAError):
    """The input could not be parsed as a raster image."""


class EmptyImageError(ClothDNAError):
    """The decoded image has no pixels."""


class DegenerateContrastError(ClothDNAError):
    """Contrast is undefined because the grayscale mean is zero."""


class SerializationError(ClothDNAError):
    """A DigitalDNA could not be rendered to or parsed from canonical bytes."""


class StorageError(ClothDNAError):
    """A record could not be written to or located in a repository."""
