"""Render a validated container into one of the output formats.

``binary`` passes the container through unchanged, ``text`` re-embeds the
BIN chunk as a base64 data URI on the first buffer, and ``pretty`` is an
indented debugging view of the JSON chunk only.
"""

from __future__ import annotations

import base64
import json
from enum import Enum
from typing import Union

from .packing.inspector import parse_container

DATA_URI_PREFIX = "data:application/octet-stream;base64,"


class OutputFormat(str, Enum):
    PRETTY = "pretty"
    TEXT = "text"
    BINARY = "binary"


def embed_buffer(document: dict, bin_data: bytes) -> dict:
    """Set ``buffers[0].uri`` to a data URI holding ``bin_data``."""
    if not bin_data:
        return document
    buffers = document.setdefault("buffers", [])
    if not buffers:
        buffers.append({"byteLength": len(bin_data)})
    # BIN chunk payload carries up to 3 bytes of padding past byteLength
    length = buffers[0].get("byteLength", len(bin_data))
    if isinstance(length, int) and 0 <= length <= len(bin_data):
        bin_data = bin_data[:length]
    buffers[0]["uri"] = DATA_URI_PREFIX + base64.b64encode(bin_data).decode(
        "ascii"
    )
    return document


def render(data: bytes, fmt: Union[OutputFormat, str]) -> bytes:
    fmt = OutputFormat(fmt)
    if fmt is OutputFormat.BINARY:
        parse_container(data)
        return bytes(data)
    document, bin_data = parse_container(data)
    if fmt is OutputFormat.TEXT:
        text = json.dumps(
            embed_buffer(document, bin_data),
            separators=(",", ":"),
            ensure_ascii=False,
        )
    else:
        text = json.dumps(document, indent=2, ensure_ascii=False)
    return (text + "\n").encode("utf-8")


__all__ = ["DATA_URI_PREFIX", "OutputFormat", "embed_buffer", "render"]
