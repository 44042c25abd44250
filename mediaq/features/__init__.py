"""Optional and ambient features for MediaQ: logging, dead-letter forwarding, flags."""

from . import dead_letter
from . import flags
from . import logging

__all__ = [
    "dead_letter",
    "flags",
    "logging",
]
