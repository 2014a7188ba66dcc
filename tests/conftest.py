"""Shared pytest fixtures for cloudobject tests.

Requests go through ``httpx.MockTransport`` to ``FakeObjectStore``, an
in-memory stand-in for the storage service that speaks the same status
codes and headers (204 on HEAD, 201 on PUT, 202 on POST, 422 on an ETag
mismatch, ``X-Object-Meta-*`` metadata).  No network access is needed.
"""

import email.utils
import hashlib
import urllib.parse
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx
import pytest

from cloudobject.connection import Connection
from cloudobject.container import Container

STORAGE_URL = "https://storage.example.com/v1/AUTH_test"
ACCOUNT_PATH = "/v1/AUTH_test"
CDN_URI = "https://cdn.example.com/c123"
AUTH_TOKEN = "test-token"


@dataclass
class StoredObject:
    data: bytes
    content_type: str
    etag: str
    last_modified: datetime
    metadata: list[tuple[str, str]] = field(default_factory=list)


class FakeObjectStore:
    """In-memory object storage service behind an httpx handler.

    Attributes:
        objects: Stored objects keyed by (container, name).
        requests: Every request received, in order.
        forced_status: Per-method status overrides for the next requests.
        chunk_size: Size of the body pieces sent on GET.
    """

    def __init__(self, chunk_size: int = 4) -> None:
        self.objects: dict[tuple[str, str], StoredObject] = {}
        self.requests: list[httpx.Request] = []
        self.forced_status: dict[str, int] = {}
        self.chunk_size = chunk_size

    def put_object(
        self,
        container: str,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: list[tuple[str, str]] | None = None,
    ) -> StoredObject:
        obj = StoredObject(
            data=data,
            content_type=content_type,
            etag=hashlib.md5(data).hexdigest(),
            last_modified=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            metadata=list(metadata or []),
        )
        self.objects[(container, name)] = obj
        return obj

    def methods(self) -> list[str]:
        return [request.method for request in self.requests]

    def _locate(self, request: httpx.Request) -> tuple[str, str]:
        path = urllib.parse.unquote(request.url.raw_path.decode("ascii").split("?")[0])
        assert path.startswith(ACCOUNT_PATH + "/"), path
        container, _, name = path[len(ACCOUNT_PATH) + 1:].partition("/")
        return container, name

    def _object_headers(self, obj: StoredObject) -> list[tuple[str, str]]:
        return [
            ("Content-Length", str(len(obj.data))),
            ("Content-Type", obj.content_type),
            ("ETag", obj.etag),
            ("Last-Modified", email.utils.format_datetime(obj.last_modified, usegmt=True)),
            *obj.metadata,
        ]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method in self.forced_status:
            return httpx.Response(self.forced_status[request.method])

        key = self._locate(request)
        obj = self.objects.get(key)

        if request.method == "HEAD":
            if obj is None:
                return httpx.Response(404)
            return httpx.Response(204, headers=self._object_headers(obj))

        if request.method == "GET":
            if obj is None:
                return httpx.Response(404, content=b"Not Found")
            pieces = [
                obj.data[i:i + self.chunk_size]
                for i in range(0, len(obj.data), self.chunk_size)
            ]
            return httpx.Response(
                200,
                headers={"Content-Type": obj.content_type, "ETag": obj.etag},
                content=iter(pieces),
            )

        if request.method == "PUT":
            data = request.content
            etag = hashlib.md5(data).hexdigest()
            supplied = request.headers.get("etag")
            if supplied is not None and supplied != etag:
                return httpx.Response(422)
            metadata = [
                (name, value)
                for name, value in request.headers.multi_items()
                if name.startswith("x-object-meta-")
            ]
            self.objects[key] = StoredObject(
                data=data,
                content_type=request.headers.get("content-type", "application/octet-stream"),
                etag=etag,
                last_modified=datetime.now(timezone.utc).replace(microsecond=0),
                metadata=metadata,
            )
            return httpx.Response(201, headers={"ETag": etag})

        if request.method == "POST":
            if obj is None:
                return httpx.Response(404)
            obj.metadata = [
                (name, value)
                for name, value in request.headers.multi_items()
                if name.startswith("x-object-meta-")
            ]
            return httpx.Response(202)

        return httpx.Response(405)


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def connection(store):
    """A Connection whose requests are served by the fake store."""
    conn = Connection(STORAGE_URL, AUTH_TOKEN, transport=httpx.MockTransport(store.handle))
    yield conn
    conn.close()


@pytest.fixture
def container(connection) -> Container:
    """A CDN-enabled container named 'photos'."""
    return Container(connection, "photos", cdn_enabled=True, cdn_uri=CDN_URI)


@pytest.fixture
def private_container(connection) -> Container:
    return Container(connection, "private")
