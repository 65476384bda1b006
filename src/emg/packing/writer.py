"""Binary container writer.

Sizes every section up front (JSON length + padding, BIN length + padding,
total length) and then emits header, JSON chunk and the optional BIN chunk in
a single pass. Any divergence between the planned and emitted size is an
internal error.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..logging import get_logger
from .constants import (
    BIN_PAD_BYTE,
    CHUNK_HEADER_SIZE,
    CHUNK_TYPE_BIN,
    CHUNK_TYPE_JSON,
    CONTAINER_VERSION,
    HEADER_SIZE,
    JSON_PAD_BYTE,
    MAGIC,
    pad_length,
)

if TYPE_CHECKING:  # pragma: no cover
    from ..scene.models import Document

__all__ = ["ContainerPlan", "plan_container", "write_container", "write_container_to"]


@dataclass(frozen=True, slots=True)
class ContainerPlan:
    json_size: int
    json_padding: int
    bin_size: int
    bin_padding: int

    @property
    def json_chunk_length(self) -> int:
        return self.json_size + self.json_padding

    @property
    def bin_chunk_length(self) -> int:
        return self.bin_size + self.bin_padding

    @property
    def has_bin(self) -> bool:
        return self.bin_size > 0

    @property
    def total_length(self) -> int:
        total = HEADER_SIZE + CHUNK_HEADER_SIZE + self.json_chunk_length
        if self.has_bin:
            total += CHUNK_HEADER_SIZE + self.bin_chunk_length
        return total


def plan_container(json_size: int, bin_size: int) -> ContainerPlan:
    return ContainerPlan(
        json_size=json_size,
        json_padding=pad_length(json_size) - json_size,
        bin_size=bin_size,
        bin_padding=pad_length(bin_size) - bin_size,
    )


def _chunk_header(length: int, chunk_type: bytes) -> bytes:
    return struct.pack("<I", length) + chunk_type


def write_container(document: "Document") -> bytes:
    json_bytes = document.to_json_bytes()
    blob = bytes(document.bin)
    plan = plan_container(len(json_bytes), len(blob))

    out = bytearray()
    out += MAGIC
    out += struct.pack("<II", CONTAINER_VERSION, plan.total_length)

    out += _chunk_header(plan.json_chunk_length, CHUNK_TYPE_JSON)
    out += json_bytes
    out += JSON_PAD_BYTE * plan.json_padding

    if plan.has_bin:
        out += _chunk_header(plan.bin_chunk_length, CHUNK_TYPE_BIN)
        out += blob
        out += BIN_PAD_BYTE * plan.bin_padding

    if len(out) != plan.total_length:
        raise RuntimeError(
            f"Container size mismatch: plan={plan.total_length} written={len(out)}"
        )
    get_logger().debug(
        "Wrote container: total=%d json=%d(+%d) bin=%d(+%d)",
        plan.total_length,
        plan.json_size,
        plan.json_padding,
        plan.bin_size,
        plan.bin_padding,
    )
    return bytes(out)


def write_container_to(document: "Document", path: str | Path) -> int:
    data = write_container(document)
    Path(path).write_bytes(data)
    return len(data)
