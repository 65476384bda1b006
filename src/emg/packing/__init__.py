from .constants import pad_length
from .elements import ELEMENT_CODECS, ComponentType, ElementShape, codec_for
from .inspector import (
    ChunkRange,
    ContainerLayout,
    inspect_container,
    parse_container,
    read_container,
)
from .writer import write_container, write_container_to

__all__ = [
    "pad_length",
    "ELEMENT_CODECS",
    "ComponentType",
    "ElementShape",
    "codec_for",
    "ChunkRange",
    "ContainerLayout",
    "inspect_container",
    "parse_container",
    "read_container",
    "write_container",
    "write_container_to",
]
