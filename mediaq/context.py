"""
Worker context: the external collaborators a worker talks to.

One context is owned by one MediaQ instance and passed explicitly to the
producer, processor and pollers, so tests can build isolated instances
with fake collaborators.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .settings import MediaQSettings


@dataclass
class WorkerContext:
    settings: MediaQSettings
    store: Any
    object_store: Any
    queue: Any
    transform: Any
    dead_letter: Optional[Any] = None
