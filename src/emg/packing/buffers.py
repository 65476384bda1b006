"""Typed buffer packing.

Appends sequences of fixed-size elements to a document's single binary blob
and records the BufferView/Accessor pair describing what was written. The
blob is zero-padded first so every view starts on a multiple of its
component width. Bounds (min/max) and buffer-view targets are left to the
caller, which is the only party that knows whether the data is positions,
indices or something else.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Tuple

from ..errors import PreconditionError
from ..logging import get_logger
from .elements import ComponentType, ElementShape, codec_for

if TYPE_CHECKING:  # pragma: no cover
    from ..scene.models import Document

__all__ = ["pack_elements", "unpack_elements", "append_elements"]


def pack_elements(
    elements: Iterable[Any],
    shape: ElementShape,
    component_type: ComponentType,
) -> Tuple[bytes, int]:
    """Encode ``elements`` back to back; return ``(payload, count)``."""
    codec = codec_for(shape, component_type)
    out = bytearray()
    count = 0
    for element in elements:
        out += codec.encode(element)
        count += 1
    return bytes(out), count


def unpack_elements(
    data: bytes, shape: ElementShape, component_type: ComponentType
) -> list[Any]:
    codec = codec_for(shape, component_type)
    if len(data) % codec.size:
        raise PreconditionError(
            f"{len(data)} bytes is not a whole number of "
            f"{codec.size}-byte elements"
        )
    return [
        codec.decode(data[off : off + codec.size])
        for off in range(0, len(data), codec.size)
    ]


def append_elements(
    document: "Document",
    elements: Iterable[Any],
    shape: ElementShape,
    component_type: ComponentType,
) -> Tuple[int, int]:
    """Append typed elements to ``document.bin``.

    Returns ``(accessor_index, buffer_view_index)``. The new BufferView spans
    exactly the bytes written and the Accessor's count is
    ``byte_length // element_size``.
    """
    from ..scene.models import Accessor, Buffer, BufferView  # local import to avoid cycle

    payload, count = pack_elements(elements, shape, component_type)
    element_size = codec_for(shape, component_type).size

    # Views start on a multiple of the component width.
    misalign = len(document.bin) % component_type.byte_width
    if misalign:
        document.bin += bytes(component_type.byte_width - misalign)

    view = BufferView(
        buffer=0,
        byte_length=len(payload),
        byte_offset=len(document.bin),
    )
    document.buffer_views.append(view)
    view_index = len(document.buffer_views) - 1

    accessor = Accessor(
        buffer_view=view_index,
        component_type=component_type,
        type=shape,
        count=view.byte_length // element_size,
    )
    document.accessors.append(accessor)
    accessor_index = len(document.accessors) - 1

    document.bin += payload
    if not document.buffers:
        document.buffers.append(Buffer())
    document.buffers[0].byte_length = len(document.bin)

    get_logger().debug(
        "Packed %d %s/%s elements (%d bytes) -> accessor %d, bufferView %d",
        count,
        shape.value,
        component_type.name,
        len(payload),
        accessor_index,
        view_index,
    )
    return accessor_index, view_index
