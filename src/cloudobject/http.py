"""HTTP response types exchanged between the connection and storage objects.

Two shapes share the ``HTTPResponse`` capability: ``Response`` is a fully
buffered exchange, ``StreamingResponse`` wraps a response whose body has
not been read yet and hands it out chunk by chunk.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from cloudobject import metrics


class HTTPResponse(Protocol):
    """Status and headers of a completed or in-flight HTTP exchange."""

    @property
    def status(self) -> int:
        ...

    @property
    def headers(self) -> httpx.Headers:
        ...


@dataclass
class Response:
    """A buffered HTTP response.

    Attributes:
        status: The HTTP status code.
        headers: Case-insensitive, multi-valued response headers.
        body: The full response body.
    """

    status: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes = b""


class StreamingResponse:
    """A response whose body is read incrementally.

    Only valid inside the ``Connection.stream()`` block that produced it.
    """

    def __init__(self, response: httpx.Response, chunk_size: int | None = None) -> None:
        self._response = response
        self._chunk_size = chunk_size

    @property
    def status(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        """Yield the body as it arrives.

        The next chunk is only pulled from the network once the caller
        asks for it.
        """
        for chunk in self._response.iter_bytes(chunk_size or self._chunk_size):
            metrics.record_bytes_received(len(chunk))
            yield chunk

    def read_body(
        self, callback: Callable[[bytes], object], chunk_size: int | None = None
    ) -> int:
        """Invoke ``callback`` once per chunk; return the number of bytes seen."""
        total = 0
        for chunk in self.iter_bytes(chunk_size):
            callback(chunk)
            total += len(chunk)
        return total
