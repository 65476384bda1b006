"""Names and types shared by plugins and the host.

A plugin exposes one ``emg_<identifier>`` function per model it can build,
two zero-argument accessors locating the last published container, and a
linear memory the host reads that container from.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, NewType, Optional, Tuple, Union

GENERATOR_PREFIX = "emg_"
POINTER_EXPORT = "model_pointer"
SIZE_EXPORT = "model_size"
MEMORY_EXPORT = "memory"

STATUS_OK = 0
STATUS_CONTENTION = 1

# Parameter annotations accepted by ``Plugin.generator``.
i32 = NewType("i32", int)
i64 = NewType("i64", int)
f32 = NewType("f32", float)
f64 = NewType("f64", float)


class ValType(str, Enum):
    I32 = "i32"
    I64 = "i64"
    F32 = "f32"
    F64 = "f64"

    @property
    def is_integer(self) -> bool:
        return self in (ValType.I32, ValType.I64)

    @classmethod
    def lookup(cls, name: str) -> Union["ValType", str]:
        """Map a type name to a member; unknown names come back unchanged."""
        try:
            return cls(name)
        except ValueError:
            return name


def type_name(t: Union[ValType, str]) -> str:
    return t.value if isinstance(t, ValType) else str(t)


PARAM_ANNOTATIONS = {
    i32: ValType.I32,
    i64: ValType.I64,
    f32: ValType.F32,
    f64: ValType.F64,
}


@dataclass(frozen=True, slots=True)
class FuncType:
    # Unknown value types (e.g. from a foreign module) are kept as strings.
    params: Tuple[Union[ValType, str], ...] = ()
    results: Tuple[Union[ValType, str], ...] = ()

    def __str__(self) -> str:
        params = ", ".join(type_name(p) for p in self.params)
        results = ", ".join(type_name(r) for r in self.results)
        return f"({params}) -> ({results})"


ACCESSOR_TYPE = FuncType((), (ValType.I32,))


@dataclass(frozen=True, slots=True)
class FunctionExport:
    type: FuncType
    call: Callable[..., Any]


@dataclass(frozen=True, slots=True)
class MemoryExport:
    size: Callable[[], int]
    read: Callable[[int, int], bytes]


Export = Union[FunctionExport, MemoryExport]


def generator_export_name(identifier: str) -> str:
    return GENERATOR_PREFIX + identifier


def generator_identifier(export_name: str) -> Optional[str]:
    if export_name.startswith(GENERATOR_PREFIX) and len(export_name) > len(
        GENERATOR_PREFIX
    ):
        return export_name[len(GENERATOR_PREFIX) :]
    return None


__all__ = [
    "GENERATOR_PREFIX",
    "POINTER_EXPORT",
    "SIZE_EXPORT",
    "MEMORY_EXPORT",
    "STATUS_OK",
    "STATUS_CONTENTION",
    "ACCESSOR_TYPE",
    "i32",
    "i64",
    "f32",
    "f64",
    "ValType",
    "PARAM_ANNOTATIONS",
    "FuncType",
    "FunctionExport",
    "MemoryExport",
    "Export",
    "generator_export_name",
    "generator_identifier",
    "type_name",
]
