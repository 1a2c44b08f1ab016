"""Error types raised by raspi-uploader."""
from __future__ import annotations


class UploaderError(Exception):
    """Base class for all raspi-uploader failures."""


class ConfigError(UploaderError):
    """The config file could not be read or parsed."""


class StorageError(UploaderError):
    """An object-storage call failed."""


class LocalFileError(UploaderError, OSError):
    """The local file to upload could not be opened."""


class NetworkError(UploaderError):
    """The webhook request could not be delivered."""


class ProtocolError(UploaderError):
    """The webhook answered with a non-200 status."""


class EncodingError(UploaderError):
    """The webhook payload could not be encoded as JSON."""
