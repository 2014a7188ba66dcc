"""HTTP transport to the object-storage service.

A ``Connection`` is created from an already-authenticated storage URL
(e.g. ``https://storage.example.com/v1/AUTH_acct``) and its token.  It is
shared by every container and object derived from the same session and
only exposes request dispatch; it never tracks object state.

Every exchange is logged at DEBUG with method, path, status and duration,
and counted in the client metrics when they are enabled.
"""

import logging
import time
import urllib.parse
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import IO, TYPE_CHECKING, Any, Protocol, Union

import httpx

from cloudobject import __version__, metrics
from cloudobject.http import Response, StreamingResponse

if TYPE_CHECKING:
    from cloudobject.config import ConnectionConfig

logger = logging.getLogger(__name__)

# Streaming chunk size: 64 KB
_CHUNK_SIZE = 64 * 1024

Body = Union[bytes, bytearray, str, IO[bytes], None]


class ConnectionLike(Protocol):
    """What storage objects and containers need from a transport."""

    storage_host: str
    storage_path: str

    def request(
        self,
        method: str,
        host: str,
        path: str,
        headers: Mapping[str, str] | None = None,
        body: Body = None,
    ) -> Response:
        ...

    def stream(
        self,
        method: str,
        host: str,
        path: str,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        ...


class Connection:
    """Synchronous transport built on ``httpx.Client``.

    Attributes:
        storage_scheme: URL scheme of the storage endpoint.
        storage_host: Host (and port) of the storage endpoint.
        storage_path: Account path prefix, without a trailing slash.
        chunk_size: Default chunk size for streamed bodies.
    """

    def __init__(
        self,
        storage_url: str,
        auth_token: str,
        timeout: float = 30.0,
        chunk_size: int = _CHUNK_SIZE,
        user_agent: str = f"cloudobject/{__version__}",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        parsed = urllib.parse.urlsplit(storage_url)
        if not parsed.netloc:
            raise ValueError(f"Storage URL has no host: {storage_url!r}")
        self.storage_scheme = parsed.scheme or "https"
        self.storage_host = parsed.netloc
        self.storage_path = parsed.path.rstrip("/")
        self.chunk_size = chunk_size
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"X-Auth-Token": auth_token, "User-Agent": user_agent},
        )

    @classmethod
    def from_config(
        cls, config: "ConnectionConfig", transport: httpx.BaseTransport | None = None
    ) -> "Connection":
        """Build a connection from a ConnectionConfig."""
        return cls(
            storage_url=config.storage_url,
            auth_token=config.auth_token,
            timeout=config.timeout,
            chunk_size=config.chunk_size,
            user_agent=config.user_agent,
            transport=transport,
        )

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def _url(self, host: str, path: str) -> str:
        return f"{self.storage_scheme}://{host}{urllib.parse.quote(path)}"

    def _content(self, body: Body):
        """Map a request body onto something httpx can send.

        Readable streams are sent chunk by chunk instead of being read
        into memory first.
        """
        if body is None:
            return None
        if isinstance(body, (bytes, bytearray, str)):
            data = body.encode("utf-8") if isinstance(body, str) else bytes(body)
            metrics.record_bytes_sent(len(data))
            return data
        if hasattr(body, "read"):
            return self._iter_stream(body)
        raise TypeError(f"Unsupported body type: {type(body).__name__}")

    def _iter_stream(self, stream: IO[bytes]) -> Iterator[bytes]:
        while True:
            chunk = stream.read(self.chunk_size)
            if not chunk:
                break
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            metrics.record_bytes_sent(len(chunk))
            yield chunk

    def _log_exchange(self, method: str, path: str, status: int, start: float) -> None:
        duration_ms = round((time.monotonic() - start) * 1000, 2)
        metrics.record_request(method, status)
        logger.debug(
            "%s %s %d %.2fms",
            method,
            path,
            status,
            duration_ms,
            extra={
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": duration_ms,
            },
        )

    def request(
        self,
        method: str,
        host: str,
        path: str,
        headers: Mapping[str, str] | None = None,
        body: Body = None,
    ) -> Response:
        """Send a request and buffer the whole response.

        Args:
            method: HTTP method.
            host: Storage host to send to.
            path: Unquoted request path.
            headers: Extra request headers.
            body: Request body; bytes, str, or a readable binary stream.

        Returns:
            The buffered Response.

        Raises:
            httpx.HTTPError: On transport failures.
        """
        start = time.monotonic()
        resp = self._client.request(
            method,
            self._url(host, path),
            headers=dict(headers) if headers else None,
            content=self._content(body),
        )
        self._log_exchange(method, path, resp.status_code, start)
        metrics.record_bytes_received(len(resp.content))
        return Response(status=resp.status_code, headers=resp.headers, body=resp.content)

    @contextmanager
    def stream(
        self,
        method: str,
        host: str,
        path: str,
        headers: Mapping[str, str] | None = None,
    ) -> Iterator[StreamingResponse]:
        """Send a request and yield the response before its body is read.

        The response is closed when the ``with`` block exits.
        """
        start = time.monotonic()
        with self._client.stream(
            method,
            self._url(host, path),
            headers=dict(headers) if headers else None,
        ) as resp:
            self._log_exchange(method, path, resp.status_code, start)
            yield StreamingResponse(resp, chunk_size=self.chunk_size)
