"""Object store."""

from .s3 import ObjectStore

__all__ = ["ObjectStore"]
