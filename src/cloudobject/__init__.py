"""cloudobject - client-side handles for objects in a remote object store."""

__version__ = "0.1.0"

from cloudobject.connection import Connection  # noqa: E402
from cloudobject.container import Container  # noqa: E402
from cloudobject.errors import (  # noqa: E402
    ChecksumMismatch,
    CloudObjectError,
    InvalidContentLength,
    InvalidResponse,
    MissingData,
    NoSuchObject,
)
from cloudobject.storage_object import StorageObject  # noqa: E402

__all__ = [
    "ChecksumMismatch",
    "CloudObjectError",
    "Connection",
    "Container",
    "InvalidContentLength",
    "InvalidResponse",
    "MissingData",
    "NoSuchObject",
    "StorageObject",
    "__version__",
]
