"""Typed element codecs.

Every supported (element shape, component type) pair has an entry in
:data:`ELEMENT_CODECS` holding a little-endian ``struct.Struct`` sized for one
element. Packing never depends on the in-memory layout of the caller's
values; an element either encodes to exactly ``codec.size`` bytes or the call
fails with :class:`~emg.errors.PreconditionError`.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Sequence, Tuple

from ..errors import PreconditionError

__all__ = [
    "ComponentType",
    "ElementShape",
    "ElementCodec",
    "ELEMENT_CODECS",
    "codec_for",
]


class ComponentType(IntEnum):
    BYTE = 5120
    UNSIGNED_BYTE = 5121
    SHORT = 5122
    UNSIGNED_SHORT = 5123
    UNSIGNED_INT = 5125
    FLOAT = 5126

    @property
    def struct_code(self) -> str:
        return _STRUCT_CODES[self]

    @property
    def byte_width(self) -> int:
        return struct.calcsize("<" + _STRUCT_CODES[self])


_STRUCT_CODES = {
    ComponentType.BYTE: "b",
    ComponentType.UNSIGNED_BYTE: "B",
    ComponentType.SHORT: "h",
    ComponentType.UNSIGNED_SHORT: "H",
    ComponentType.UNSIGNED_INT: "I",
    ComponentType.FLOAT: "f",
}


class ElementShape(Enum):
    SCALAR = "SCALAR"
    VEC2 = "VEC2"
    VEC3 = "VEC3"
    VEC4 = "VEC4"
    MAT2 = "MAT2"
    MAT3 = "MAT3"
    MAT4 = "MAT4"

    @property
    def component_count(self) -> int:
        return _COMPONENT_COUNTS[self]

    @property
    def is_matrix(self) -> bool:
        return self in (ElementShape.MAT2, ElementShape.MAT3, ElementShape.MAT4)

    @property
    def columns(self) -> int:
        """Number of columns for matrices, components for everything else."""
        if self.is_matrix:
            return {4: 2, 9: 3, 16: 4}[self.component_count]
        return self.component_count


_COMPONENT_COUNTS = {
    ElementShape.SCALAR: 1,
    ElementShape.VEC2: 2,
    ElementShape.VEC3: 3,
    ElementShape.VEC4: 4,
    ElementShape.MAT2: 4,
    ElementShape.MAT3: 9,
    ElementShape.MAT4: 16,
}


@dataclass(frozen=True, slots=True)
class ElementCodec:
    shape: ElementShape
    component_type: ComponentType
    layout: struct.Struct

    @property
    def size(self) -> int:
        return self.layout.size

    def _flatten(self, element: Any) -> Sequence[Any]:
        shape = self.shape
        if shape is ElementShape.SCALAR:
            if isinstance(element, (str, bytes)) or hasattr(element, "__len__"):
                raise PreconditionError(
                    f"SCALAR element must be a single number, got {element!r}"
                )
            return (element,)
        try:
            values = list(element)
        except TypeError:
            raise PreconditionError(
                f"{shape.value} element must be a sequence, got {element!r}"
            ) from None
        if shape.is_matrix and len(values) == shape.columns:
            # Column-major nested form: one sequence per column.
            flat: list[Any] = []
            for column in values:
                column = list(column) if hasattr(column, "__len__") else [column]
                if len(column) != shape.columns:
                    raise PreconditionError(
                        f"{shape.value} column must have {shape.columns} "
                        f"components, got {len(column)}"
                    )
                flat.extend(column)
            values = flat
        if len(values) != shape.component_count:
            raise PreconditionError(
                f"{shape.value} element must have {shape.component_count} "
                f"components, got {len(values)}"
            )
        return values

    def encode(self, element: Any) -> bytes:
        values = self._flatten(element)
        try:
            return self.layout.pack(*values)
        except (struct.error, OverflowError) as e:
            raise PreconditionError(
                f"element {element!r} does not fit "
                f"{self.shape.value}/{self.component_type.name}: {e}"
            ) from e

    def decode(self, data: bytes) -> Any:
        if len(data) != self.size:
            raise PreconditionError(
                f"expected {self.size} bytes for one "
                f"{self.shape.value}/{self.component_type.name} element, "
                f"got {len(data)}"
            )
        values = self.layout.unpack(data)
        if self.shape is ElementShape.SCALAR:
            return values[0]
        if self.shape.is_matrix:
            n = self.shape.columns
            return tuple(tuple(values[c * n : c * n + n]) for c in range(n))
        return values


ELEMENT_CODECS: Dict[Tuple[ElementShape, ComponentType], ElementCodec] = {
    (shape, ctype): ElementCodec(
        shape,
        ctype,
        struct.Struct("<" + ctype.struct_code * shape.component_count),
    )
    for shape in ElementShape
    for ctype in ComponentType
}


def codec_for(shape: ElementShape, component_type: ComponentType) -> ElementCodec:
    try:
        return ELEMENT_CODECS[(shape, component_type)]
    except KeyError:
        raise PreconditionError(
            f"Unsupported element type: {shape!r}/{component_type!r}"
        ) from None
