"""
MediaQ exception hierarchy.
"""

from typing import Optional


class MediaQError(Exception):
    """Base error carrying a stable machine-readable code."""

    def __init__(self, message: str, code: str = "MEDIAQ_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return self.message


class MediaValidationError(MediaQError):
    """Upload rejected before any side effect."""

    def __init__(self, message: str):
        super().__init__(message, "MEDIAQ_VALIDATION_ERROR")


class MediaNotFoundError(MediaQError):
    def __init__(self, media_id: int):
        super().__init__(f"Media with ID {media_id} not found", "MEDIAQ_MEDIA_NOT_FOUND")
        self.media_id = media_id


class EmptyObjectError(MediaQError):
    """Object store returned no body for a key."""

    def __init__(self, key: str):
        super().__init__(f"File body is empty for key: {key}", "MEDIAQ_EMPTY_OBJECT")
        self.key = key


class TransformError(MediaQError):
    """Transform service answered with a non-success status."""

    def __init__(self, url: str, status: int, detail: Optional[str] = None):
        message = f"Transform request failed with HTTP {status}: {url}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, "MEDIAQ_TRANSFORM_ERROR")
        self.url = url
        self.status = status
