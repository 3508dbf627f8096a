"""
Content-type classification by file extension.
"""

import mimetypes
from typing import NamedTuple, Protocol

DEFAULT_MIME_TYPE = "text/plain"

IMAGE_MIME_PREFIX = "image/"


class ContentType(NamedTuple):
    mime_type: str
    is_image: bool


class ContentTypeClassifier(Protocol):
    """Decides whether a path is read as an image or as text."""

    def classify(self, path: str) -> ContentType:
        ...


class MimeTypeClassifier:
    """Guess the MIME type from the extension; unknown types read as text."""

    def classify(self, path: str) -> ContentType:
        mime_type, _ = mimetypes.guess_type(path)
        mime_type = mime_type or DEFAULT_MIME_TYPE
        return ContentType(mime_type, is_image_mime_type(mime_type))


def is_image_mime_type(mime_type: str) -> bool:
    return mime_type.strip().lower().startswith(IMAGE_MIME_PREFIX)
