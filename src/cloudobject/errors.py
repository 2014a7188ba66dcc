"""Error definitions for cloudobject."""


class CloudObjectError(Exception):
    """A storage-object error with code, message, and HTTP status.

    Attributes:
        code: Short error code string (e.g. "NoSuchObject", "ChecksumMismatch").
        message: Human-readable error description.
        http_status: The HTTP status code observed, or None when the error
            was detected before any request was made.
    """

    def __init__(
        self,
        code: str,
        message: str,
        http_status: int | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            code: Error code.
            message: Error description.
            http_status: HTTP status code, if any.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status


# -- Object errors -------------------------------------------------------------


class NoSuchObject(CloudObjectError):
    """The object does not exist (or no longer exists) at its path."""

    def __init__(self, object_name: str = "", http_status: int | None = None) -> None:
        super().__init__(
            code="NoSuchObject",
            message=f"Object {object_name} does not exist",
            http_status=http_status,
        )
        self.object_name = object_name


class InvalidResponse(CloudObjectError):
    """The service answered with a status outside the expected set."""

    def __init__(self, http_status: int, message: str | None = None) -> None:
        super().__init__(
            code="InvalidResponse",
            message=message or f"Invalid response code {http_status}",
            http_status=http_status,
        )


class InvalidContentLength(InvalidResponse):
    """The service rejected the write because of a bad Content-Length."""

    def __init__(self, message: str = "Invalid content-length header sent") -> None:
        super().__init__(http_status=412, message=message)
        self.code = "InvalidContentLength"


class ChecksumMismatch(CloudObjectError):
    """The caller-supplied ETag did not match the checksum the service computed."""

    def __init__(self, message: str = "Mismatched etag") -> None:
        super().__init__(code="ChecksumMismatch", message=message, http_status=422)


class MissingData(CloudObjectError):
    """Write was called without any data."""

    def __init__(self, object_name: str = "") -> None:
        super().__init__(
            code="MissingData",
            message=f"No data was provided for object '{object_name}'",
        )
        self.object_name = object_name
