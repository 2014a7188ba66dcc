"""Client-side handle for a single object stored in a container.

A ``StorageObject`` mirrors one remote object as it was last observed.
Every operation is one synchronous exchange with the storage service:

    - populate / refresh  (HEAD, expects 204)
    - data / iter_data / data_stream / save_to_path  (GET, expects 200)
    - write / load_from_path  (PUT, expects 201, then refreshes)
    - set_metadata  (POST, expects 202)

User metadata travels in ``X-Object-Meta-*`` headers.
"""

import email.utils
import logging
import urllib.parse
from collections.abc import Callable, Iterator, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

import httpx

from cloudobject.connection import Body, ConnectionLike
from cloudobject.content_types import DEFAULT_CONTENT_TYPE, guess_content_type
from cloudobject.errors import (
    ChecksumMismatch,
    InvalidContentLength,
    InvalidResponse,
    MissingData,
    NoSuchObject,
)

logger = logging.getLogger(__name__)

META_PREFIX = "x-object-meta-"
META_HEADER_PREFIX = "X-Object-Meta-"

_LEGACY_SPACE = "+-"

# Printable ASCII goes into metadata headers as is; everything else is
# percent-encoded as UTF-8.
_HEADER_SAFE = "".join(chr(c) for c in range(0x20, 0x7F))


class ContainerLike(Protocol):
    """What a storage object needs from its container."""

    name: str
    connection: ConnectionLike

    def object_exists(self, name: str) -> bool:
        ...

    @property
    def public(self) -> bool:
        ...

    @property
    def cdn_url(self) -> str | None:
        ...


def _chomp(body: bytes) -> bytes:
    """Remove a single trailing line terminator (\\r\\n, \\n or \\r)."""
    if body.endswith(b"\r\n"):
        return body[:-2]
    if body.endswith((b"\n", b"\r")):
        return body[:-1]
    return body


def _parse_http_date(date_str: str | None) -> datetime | None:
    """Parse an HTTP date string into a timezone-aware datetime.

    Returns None when the header is missing or unparseable.
    """
    if not date_str:
        return None
    try:
        return email.utils.parsedate_to_datetime(date_str)
    except (ValueError, TypeError):
        return None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def decode_metadata(raw_metadata: Mapping[str, str]) -> dict[str, str]:
    """Turn raw ``x-object-meta-*`` headers into a plain key/value dict.

    The prefix is stripped from each key and each value is percent-decoded.
    Any literal ``+-`` in either is then replaced by a single space, which
    is how older clients encoded spaces.
    """
    decoded: dict[str, str] = {}
    for name, value in raw_metadata.items():
        key = name[len(META_PREFIX):] if name.startswith(META_PREFIX) else name
        decoded[key.replace(_LEGACY_SPACE, " ")] = urllib.parse.unquote(value).replace(
            _LEGACY_SPACE, " "
        )
    return decoded


def encode_metadata(metadata: Mapping[Any, Any]) -> dict[str, str]:
    """Build ``X-Object-Meta-<Key>`` request headers from a key/value mapping.

    Only the first character of each key is upper-cased.  Characters
    outside printable ASCII are percent-encoded, which ``decode_metadata``
    reverses.
    """
    headers: dict[str, str] = {}
    for key, value in metadata.items():
        key = str(key)
        name = urllib.parse.quote(key[:1].upper() + key[1:], safe=_HEADER_SAFE)
        headers[META_HEADER_PREFIX + name] = urllib.parse.quote(str(value), safe=_HEADER_SAFE)
    return headers


def object_storage_path(account_path: str, container_name: str, name: str) -> str:
    """Unquoted request path of ``name`` in ``container_name``."""
    return f"{account_path}/{container_name}/{name}"


def cdn_object_url(cdn_url: str, name: str) -> str:
    """Public CDN URL of ``name`` under a container's CDN base URL."""
    return f"{cdn_url}/{urllib.parse.quote(name)}"


class StorageObject:
    """One object in a container, as last observed from the service.

    ``bytes``, ``last_modified``, ``etag``, ``content_type`` and
    ``raw_metadata`` are only meaningful once ``populated`` is True.

    Attributes:
        container: The owning container.
        container_name: Name of the owning container.
        name: Object name within the container.
        storage_host: Storage host captured at construction.
        storage_path: Full object path captured at construction.
        bytes: Object size from Content-Length.
        last_modified: Parsed Last-Modified date.
        etag: The object's ETag.
        content_type: The object's Content-Type.
        raw_metadata: ``x-object-meta-*`` headers as received.
    """

    def __init__(self, container: ContainerLike, name: str) -> None:
        """Create a handle, populating it if the container has the object.

        Args:
            container: The owning container.
            name: The object name.

        Raises:
            NoSuchObject: If the container reports the object but the
                HEAD request fails.
        """
        self.container = container
        self.container_name = container.name
        self.name = name
        connection = container.connection
        self.storage_host = connection.storage_host
        self.storage_path = object_storage_path(
            connection.storage_path, self.container_name, name
        )

        self.populated = False
        self.bytes: int | None = None
        self.last_modified: datetime | None = None
        self.etag: str | None = None
        self.content_type: str | None = None
        self.raw_metadata: dict[str, str] = {}

        if container.object_exists(name):
            self.populate()

    @property
    def connection(self) -> ConnectionLike:
        return self.container.connection

    def _log_extra(self, **extra: Any) -> dict[str, Any]:
        return {"container": self.container_name, "object": self.name, **extra}

    def _log_failure(self, method: str, status: int) -> None:
        logger.warning(
            "%s %s returned %d",
            method,
            self.storage_path,
            status,
            extra=self._log_extra(status=status),
        )

    # -- State -----------------------------------------------------------------

    def populate(self) -> bool:
        """Fetch and cache the object's attributes with a HEAD request.

        Returns:
            True on success.

        Raises:
            NoSuchObject: If the response status is not 204.
        """
        response = self.connection.request("HEAD", self.storage_host, self.storage_path)
        if response.status != 204:
            self._log_failure("HEAD", response.status)
            raise NoSuchObject(self.name, http_status=response.status)

        headers = response.headers
        self.bytes = _parse_int(headers.get("content-length"))
        self.last_modified = _parse_http_date(headers.get("last-modified"))
        self.etag = headers.get("etag")
        self.content_type = headers.get("content-type")

        raw: dict[str, str] = {}
        for name, value in headers.multi_items():
            if name.startswith(META_PREFIX) and name not in raw:
                raw[name] = value
        self.raw_metadata = raw
        self.populated = True

        logger.debug(
            "Populated %s/%s: %s bytes, etag=%s",
            self.container_name,
            self.name,
            self.bytes,
            self.etag,
            extra=self._log_extra(),
        )
        return True

    refresh = populate

    # -- Reads -----------------------------------------------------------------

    def data(self, headers: Mapping[str, str] | None = None) -> bytes:
        """Return the object's content, minus one trailing line terminator.

        Args:
            headers: Optional request headers (e.g. ``Range``).

        Raises:
            NoSuchObject: If the response status is not 200.
        """
        response = self.connection.request(
            "GET", self.storage_host, self.storage_path, headers
        )
        if response.status != 200:
            self._log_failure("GET", response.status)
            raise NoSuchObject(self.name, http_status=response.status)
        return _chomp(response.body)

    def iter_data(
        self, headers: Mapping[str, str] | None = None, chunk_size: int | None = None
    ) -> Iterator[bytes]:
        """Yield the object's content chunk by chunk as it arrives.

        The status is checked before the first chunk is yielded.  The
        response is released when iteration ends or the generator is closed.

        Raises:
            NoSuchObject: If the response status is not 200.
        """
        with self.connection.stream(
            "GET", self.storage_host, self.storage_path, headers
        ) as response:
            if response.status != 200:
                self._log_failure("GET", response.status)
                raise NoSuchObject(self.name, http_status=response.status)
            yield from response.iter_bytes(chunk_size)

    def data_stream(
        self,
        callback: Callable[[bytes], object],
        headers: Mapping[str, str] | None = None,
        chunk_size: int | None = None,
    ) -> int:
        """Pass the object's content to ``callback`` one chunk at a time.

        The callback runs inside the read loop, so the next chunk is not
        read until it returns.

        Returns:
            The number of bytes delivered.

        Raises:
            NoSuchObject: If the response status is not 200; the callback
                is never invoked in that case.
        """
        with self.connection.stream(
            "GET", self.storage_host, self.storage_path, headers
        ) as response:
            if response.status != 200:
                self._log_failure("GET", response.status)
                raise NoSuchObject(self.name, http_status=response.status)
            return response.read_body(callback, chunk_size)

    def save_to_path(self, path: str | Path) -> int:
        """Stream the object's content into a local file.

        The file is only created once the service has answered 200.

        Returns:
            The number of bytes written.
        """
        written = 0
        chunks = self.iter_data()
        try:
            first = next(chunks, None)
            with open(path, "wb") as fh:
                if first is not None:
                    fh.write(first)
                    written += len(first)
                for chunk in chunks:
                    fh.write(chunk)
                    written += len(chunk)
        finally:
            chunks.close()
        return written

    # -- Writes ----------------------------------------------------------------

    def write(self, data: Body = None, headers: Mapping[str, str] | None = None) -> bool:
        """Upload ``data`` as the object's content, then refresh.

        ``headers`` may carry ``Content-Type`` and an ``ETag`` holding the
        MD5 of the data; the service rejects the upload when that ETag does
        not match what it received.  Without a Content-Type one is guessed
        from the object name.

        Args:
            data: bytes, str, or a readable binary stream.
            headers: Optional request headers; the mapping is not modified.

        Returns:
            True on success.

        Raises:
            MissingData: If ``data`` is None.
            InvalidContentLength: On 412.
            ChecksumMismatch: On 422.
            InvalidResponse: On any other status than 201.
        """
        if data is None:
            raise MissingData(self.name)

        request_headers = httpx.Headers(headers or {})
        if "content-type" not in request_headers:
            request_headers["Content-Type"] = (
                guess_content_type(self.name) or DEFAULT_CONTENT_TYPE
            )

        response = self.connection.request(
            "PUT", self.storage_host, self.storage_path, request_headers, data
        )
        if response.status == 412:
            self._log_failure("PUT", 412)
            raise InvalidContentLength()
        if response.status == 422:
            logger.warning(
                "Checksum mismatch writing %s/%s",
                self.container_name,
                self.name,
                extra=self._log_extra(status=422),
            )
            raise ChecksumMismatch()
        if response.status != 201:
            self._log_failure("PUT", response.status)
            raise InvalidResponse(response.status)

        logger.debug(
            "Wrote %s/%s", self.container_name, self.name, extra=self._log_extra(status=201)
        )
        self.populate()
        return True

    def load_from_path(self, path: str | Path) -> bool:
        """Upload the contents of a local file, streaming it from disk.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        with open(path, "rb") as fh:
            return self.write(fh)

    # -- Metadata --------------------------------------------------------------

    @property
    def metadata(self) -> dict[str, str]:
        """The user metadata with prefixes stripped and values decoded."""
        return decode_metadata(self.raw_metadata)

    def set_metadata(self, metadata: Mapping[Any, Any]) -> bool:
        """Replace all of the object's user metadata.

        The cached ``raw_metadata`` is left as is; call ``refresh()`` to
        see the new values.

        Returns:
            True on success.

        Raises:
            NoSuchObject: On 404.
            InvalidResponse: On any other status than 202.
        """
        response = self.connection.request(
            "POST", self.storage_host, self.storage_path, encode_metadata(metadata)
        )
        if response.status == 404:
            self._log_failure("POST", 404)
            raise NoSuchObject(self.name, http_status=404)
        if response.status != 202:
            self._log_failure("POST", response.status)
            raise InvalidResponse(response.status)
        logger.debug(
            "Set %d metadata keys on %s/%s",
            len(metadata),
            self.container_name,
            self.name,
            extra=self._log_extra(status=202),
        )
        return True

    # -- Identity --------------------------------------------------------------

    @property
    def public_url(self) -> str | None:
        """CDN URL of the object when its container is public, else None."""
        if not self.container.public:
            return None
        return cdn_object_url(self.container.cdn_url, self.name)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<StorageObject {self.container_name}/{self.name}>"
