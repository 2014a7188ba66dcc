"""Content-type inference from object names."""

import mimetypes

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def guess_content_type(name: str) -> str | None:
    """Return the registered MIME type for ``name``'s extension, or None."""
    content_type, _ = mimetypes.guess_type(name, strict=False)
    return content_type
