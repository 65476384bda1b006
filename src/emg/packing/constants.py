"""Binary container constants.

Layout: 12-byte header (magic, version, total length) followed by a JSON
chunk and an optional BIN chunk. Chunk header = length(u32) + type(u32).
All integers are little-endian.
"""

from __future__ import annotations

MAGIC = b"glTF"
CONTAINER_VERSION = 2

CHUNK_TYPE_JSON = b"JSON"  # 0x4E4F534A
CHUNK_TYPE_BIN = b"BIN\x00"  # 0x004E4942

HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8
# Header plus the JSON chunk header; the JSON chunk itself is mandatory.
JSON_CHUNK_OFFSET = HEADER_SIZE + CHUNK_HEADER_SIZE
MIN_CONTAINER_SIZE = 24

CHUNK_ALIGNMENT = 4
JSON_PAD_BYTE = b"\x20"
BIN_PAD_BYTE = b"\x00"

FORMAT_VERSION = "2.0"

# Index buffers switch to 32-bit indices at this vertex count.
MAX_SHORT_INDEXED_VERTICES = 65536


def pad_length(length: int) -> int:
    """Round ``length`` up to the next chunk boundary."""
    return length + (CHUNK_ALIGNMENT - length % CHUNK_ALIGNMENT) % CHUNK_ALIGNMENT


__all__ = [
    "MAGIC",
    "CONTAINER_VERSION",
    "CHUNK_TYPE_JSON",
    "CHUNK_TYPE_BIN",
    "HEADER_SIZE",
    "CHUNK_HEADER_SIZE",
    "JSON_CHUNK_OFFSET",
    "MIN_CONTAINER_SIZE",
    "CHUNK_ALIGNMENT",
    "JSON_PAD_BYTE",
    "BIN_PAD_BYTE",
    "FORMAT_VERSION",
    "MAX_SHORT_INDEXED_VERTICES",
    "pad_length",
]
