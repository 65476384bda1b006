"""At-most-one-build publication of a finished container.

The slot owns the plugin's linear memory image. A build runs under a lock
acquired without blocking; the finished container is published by replacing
one ``(memory, artifact)`` reference, so readers see either the previous
state or the complete new one.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Tuple

from ..errors import ContentionError, PreconditionError
from ..logging import get_logger
from ..packing.writer import write_container

if TYPE_CHECKING:
    from ..scene.models import Document


@dataclass(frozen=True, slots=True)
class Artifact:
    offset: int = 0
    length: int = 0

    @property
    def end(self) -> int:
        return self.offset + self.length


_EMPTY: Tuple[bytes, Artifact] = (b"", Artifact())


class PublishSlot:
    def __init__(self, base: int = 0):
        if base < 0:
            raise PreconditionError("base offset must be non-negative")
        self.base = base
        self._lock = threading.Lock()
        self._published: Tuple[bytes, Artifact] = _EMPTY

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def build(self, fn: Callable[[], "Document"]) -> Artifact:
        """Run ``fn``, write its document and publish the container.

        Raises ContentionError immediately when another build holds the slot.
        Any exception from ``fn`` or the writer leaves the slot cleared.
        """
        if not self._lock.acquire(blocking=False):
            raise ContentionError("a build is already in flight")
        try:
            self._published = _EMPTY
            document = fn()
            data = write_container(document)
            memory = bytes(self.base) + data
            artifact = Artifact(self.base, len(data))
            self._published = (memory, artifact)
            get_logger().debug(
                "published container offset=%d length=%d",
                artifact.offset,
                artifact.length,
            )
            return artifact
        finally:
            self._lock.release()

    def clear(self) -> None:
        if not self._lock.acquire(blocking=False):
            raise ContentionError("cannot clear while a build is in flight")
        try:
            self._published = _EMPTY
        finally:
            self._lock.release()

    def pointer(self) -> int:
        return self._published[1].offset

    def size(self) -> int:
        return self._published[1].length

    def memory(self) -> bytes:
        return self._published[0]

    def read(self) -> bytes:
        memory, artifact = self._published
        return memory[artifact.offset : artifact.end]


__all__ = ["Artifact", "PublishSlot"]
