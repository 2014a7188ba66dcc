"""Container collaborator for storage objects.

A ``Container`` is a thin, named view over a connection.  It answers the
questions a ``StorageObject`` asks of it (does an object exist, is the
container published on the CDN and under which URL) and hands out object
handles.  Listing, creation and CDN management of containers are not
covered here.
"""

from cloudobject.connection import ConnectionLike
from cloudobject.errors import InvalidResponse
from cloudobject.storage_object import StorageObject, object_storage_path


class Container:
    """A named collection of objects on the storage service.

    Attributes:
        connection: The shared transport.
        name: Container name.
        cdn_enabled: Whether the container is published on the CDN.
        cdn_uri: Base CDN URL for the container's objects.
    """

    def __init__(
        self,
        connection: ConnectionLike,
        name: str,
        cdn_enabled: bool = False,
        cdn_uri: str | None = None,
    ) -> None:
        self.connection = connection
        self.name = name
        self.cdn_enabled = cdn_enabled
        self.cdn_uri = cdn_uri.rstrip("/") if cdn_uri else cdn_uri

    @property
    def public(self) -> bool:
        return self.cdn_enabled

    @property
    def cdn_url(self) -> str | None:
        return self.cdn_uri

    def object_path(self, name: str) -> str:
        return object_storage_path(self.connection.storage_path, self.name, name)

    def object_exists(self, name: str) -> bool:
        """Check whether an object exists with a HEAD request.

        Raises:
            InvalidResponse: If the status is neither 204 nor 404.
        """
        response = self.connection.request(
            "HEAD", self.connection.storage_host, self.object_path(name)
        )
        if response.status == 204:
            return True
        if response.status == 404:
            return False
        raise InvalidResponse(response.status)

    def object(self, name: str) -> StorageObject:
        """Return a populated handle for an existing object.

        Raises:
            NoSuchObject: If the object does not exist.
        """
        obj = StorageObject(self, name)
        if not obj.populated:
            obj.populate()
        return obj

    def create_object(self, name: str) -> StorageObject:
        """Return a handle for ``name``; empty if the object does not exist yet."""
        return StorageObject(self, name)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<Container {self.name}>"
