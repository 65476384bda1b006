"""Binary container reading and validation.

Public functions:
- read_container(data) -> ContainerLayout   (strict structural validation)
- parse_container(data) -> (document dict, BIN payload)
- inspect_container(data) -> dict            (summary for reporting)

The structural checks run in a fixed order and the first violation raises
:class:`~emg.errors.MalformedContainerError` naming the rule and the byte
counts involved. Nothing is truncated or padded to make a buffer fit.
"""

from __future__ import annotations

import json
import struct
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

from ..errors import (
    E_BIN_ALIGNMENT,
    E_BIN_OVERFLOW,
    E_CHUNK_HEADER_TRUNCATED,
    E_FIRST_CHUNK_NOT_JSON,
    E_JSON_ALIGNMENT,
    E_JSON_OVERFLOW,
    E_LENGTH_ALIGNMENT,
    E_LENGTH_MISMATCH,
    E_MAGIC,
    E_SECOND_CHUNK_NOT_BIN,
    E_TOO_SHORT,
    E_TRAILING_CHUNK,
    E_VERSION,
    MalformedContainerError,
    MalformedPayloadError,
)
from .constants import (
    CHUNK_ALIGNMENT,
    CHUNK_HEADER_SIZE,
    CHUNK_TYPE_BIN,
    CHUNK_TYPE_JSON,
    CONTAINER_VERSION,
    JSON_CHUNK_OFFSET,
    MAGIC,
    MIN_CONTAINER_SIZE,
)

__all__ = [
    "ChunkRange",
    "ContainerLayout",
    "read_container",
    "parse_container",
    "inspect_container",
]


@dataclass(frozen=True, slots=True)
class ChunkRange:
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    def slice(self, data: bytes) -> bytes:
        return bytes(data[self.start : self.end])


@dataclass(frozen=True, slots=True)
class ContainerLayout:
    total_length: int
    json: ChunkRange
    bin: Optional[ChunkRange] = None


def _u32(data: bytes, offset: int) -> int:
    return struct.unpack_from("<I", data, offset)[0]


def read_container(data: bytes) -> ContainerLayout:
    total = len(data)
    if total < MIN_CONTAINER_SIZE:
        raise MalformedContainerError(
            E_TOO_SHORT,
            f"Container is {total} bytes; at least {MIN_CONTAINER_SIZE} "
            "are needed for the header and the JSON chunk header",
            actual=total,
            minimum=MIN_CONTAINER_SIZE,
        )
    magic = bytes(data[0:4])
    if magic != MAGIC:
        raise MalformedContainerError(
            E_MAGIC,
            f"Header magic mismatch: expected {MAGIC!r}, got {magic!r}",
        )
    version = _u32(data, 4)
    if version != CONTAINER_VERSION:
        raise MalformedContainerError(
            E_VERSION,
            f"Unsupported container version {version} "
            f"(only {CONTAINER_VERSION} is supported)",
            version=version,
        )
    declared = _u32(data, 8)
    if declared != total:
        raise MalformedContainerError(
            E_LENGTH_MISMATCH,
            f"Header declares {declared} bytes but buffer holds {total}",
            declared=declared,
            actual=total,
        )
    if total % CHUNK_ALIGNMENT:
        raise MalformedContainerError(
            E_LENGTH_ALIGNMENT,
            f"Total length {total} is not a multiple of {CHUNK_ALIGNMENT}",
            actual=total,
        )

    json_length = _u32(data, 12)
    json_type = bytes(data[16:20])
    if json_type != CHUNK_TYPE_JSON:
        raise MalformedContainerError(
            E_FIRST_CHUNK_NOT_JSON,
            f"First chunk type is {json_type!r}, expected {CHUNK_TYPE_JSON!r}",
        )
    if json_length > total - JSON_CHUNK_OFFSET:
        raise MalformedContainerError(
            E_JSON_OVERFLOW,
            f"JSON chunk declares {json_length} bytes but only "
            f"{total - JSON_CHUNK_OFFSET} remain after its header",
            declared=json_length,
            available=total - JSON_CHUNK_OFFSET,
        )
    if json_length % CHUNK_ALIGNMENT:
        raise MalformedContainerError(
            E_JSON_ALIGNMENT,
            f"JSON chunk length {json_length} is not a multiple of "
            f"{CHUNK_ALIGNMENT}",
            declared=json_length,
        )
    json_range = ChunkRange(JSON_CHUNK_OFFSET, json_length)

    remaining = total - json_range.end
    if remaining == 0:
        return ContainerLayout(total_length=total, json=json_range)
    if remaining < CHUNK_HEADER_SIZE:
        raise MalformedContainerError(
            E_CHUNK_HEADER_TRUNCATED,
            f"{remaining} bytes follow the JSON chunk; a chunk header needs "
            f"{CHUNK_HEADER_SIZE}",
            remaining=remaining,
        )

    bin_length = _u32(data, json_range.end)
    bin_type = bytes(data[json_range.end + 4 : json_range.end + 8])
    if bin_type != CHUNK_TYPE_BIN:
        raise MalformedContainerError(
            E_SECOND_CHUNK_NOT_BIN,
            f"Second chunk type is {bin_type!r}, expected {CHUNK_TYPE_BIN!r}",
        )
    bin_range = ChunkRange(json_range.end + CHUNK_HEADER_SIZE, bin_length)
    if bin_range.end > total:
        raise MalformedContainerError(
            E_BIN_OVERFLOW,
            f"BIN chunk declares {bin_length} bytes but only "
            f"{total - bin_range.start} remain after its header",
            declared=bin_length,
            available=total - bin_range.start,
        )
    if bin_length % CHUNK_ALIGNMENT:
        raise MalformedContainerError(
            E_BIN_ALIGNMENT,
            f"BIN chunk length {bin_length} is not a multiple of "
            f"{CHUNK_ALIGNMENT}",
            declared=bin_length,
        )
    if bin_range.end != total:
        raise MalformedContainerError(
            E_TRAILING_CHUNK,
            f"{total - bin_range.end} bytes follow the BIN chunk; additional "
            "chunks are not supported",
            trailing=total - bin_range.end,
        )
    return ContainerLayout(total_length=total, json=json_range, bin=bin_range)


def parse_container(data: bytes) -> Tuple[Dict[str, Any], bytes]:
    layout = read_container(data)
    raw = layout.json.slice(data)
    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedPayloadError(
            f"JSON chunk does not parse: {e}",
            {"json_length": layout.json.length},
        ) from e
    if not isinstance(document, dict):
        raise MalformedPayloadError(
            "JSON chunk root must be an object",
            {"root_type": type(document).__name__},
        )
    blob = layout.bin.slice(data) if layout.bin is not None else b""
    return document, blob


def inspect_container(data: bytes) -> Dict[str, Any]:
    layout = read_container(data)
    document, _ = parse_container(data)
    return {
        "total_length": layout.total_length,
        "json": asdict(layout.json),
        "bin": asdict(layout.bin) if layout.bin is not None else None,
        "counts": {
            key: len(document.get(key, []))
            for key in (
                "scenes",
                "nodes",
                "materials",
                "meshes",
                "accessors",
                "bufferViews",
                "buffers",
            )
        },
    }
