"""Host side of the plugin contract: call a generator, fetch its container."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from ..errors import (
    ContractError,
    ExecutionFault,
    GeneratorFailure,
    GeneratorNotFound,
    ParameterCountError,
    ParameterOutOfRangeError,
    ParameterTypeError,
)
from ..logging import get_logger
from ..packing.inspector import read_container
from .contract import (
    ACCESSOR_TYPE,
    MEMORY_EXPORT,
    POINTER_EXPORT,
    SIZE_EXPORT,
    STATUS_OK,
    Export,
    FunctionExport,
    MemoryExport,
    ValType,
    generator_export_name,
    generator_identifier,
    type_name,
)
from .guest import Plugin

_INT_RANGES = {
    ValType.I32: (-(2**31), 2**31 - 1),
    ValType.I64: (-(2**63), 2**63 - 1),
}
_F32 = struct.Struct("<f")
_F32_MAX = _F32.unpack(b"\xff\xff\x7f\x7f")[0]

_TYPE_DESCRIPTIONS = {
    ValType.I32: "a 32-bit integer",
    ValType.I64: "a 64-bit integer",
    ValType.F32: "a 32-bit floating-point value",
    ValType.F64: "a 64-bit floating-point value",
}


class PluginModule(Protocol):
    def export_names(self) -> List[str]: ...

    def get_export(self, name: str) -> Optional[Export]: ...


class PythonPluginModule:
    """Adapter exposing an in-process :class:`Plugin` as a plugin module."""

    def __init__(self, plugin: Plugin):
        self.plugin = plugin

    def export_names(self) -> List[str]:
        return list(self.plugin.exports())

    def get_export(self, name: str) -> Optional[Export]:
        return self.plugin.exports().get(name)


@dataclass(frozen=True, slots=True)
class GeneratorInfo:
    name: str
    params: Tuple[str, ...]
    results: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "params": list(self.params),
            "results": list(self.results),
        }


def parse_parameter(index: int, text: str, valtype: Any) -> Any:
    """Convert one textual parameter to the value type the generator declares.

    ``index`` is zero-based; diagnostics number parameters from 1.
    """
    if not isinstance(valtype, ValType):
        raise ContractError(
            "generators only support parameters of type i32, i64, f32, or f64",
            {"parameter": index + 1, "type": type_name(valtype)},
        )
    ctx = {"parameter": index + 1, "value": text, "type": valtype.value}
    what = (
        f"parameter {index + 1} (`{text}`) should be "
        f"{_TYPE_DESCRIPTIONS[valtype]}"
    )
    if valtype.is_integer:
        try:
            value = int(text.strip(), 10)
        except ValueError:
            raise ParameterTypeError(what, ctx) from None
        lo, hi = _INT_RANGES[valtype]
        if not lo <= value <= hi:
            raise ParameterOutOfRangeError(
                f"parameter {index + 1} (`{text}`) does not fit in {valtype.value}",
                ctx,
            )
        return value
    try:
        value = float(text)
    except ValueError:
        raise ParameterTypeError(what, ctx) from None
    if valtype is ValType.F32 and math.isfinite(value) and abs(value) > _F32_MAX:
        raise ParameterOutOfRangeError(
            f"parameter {index + 1} (`{text}`) does not fit in f32", ctx
        )
    if valtype is ValType.F32:
        # Same value a wasm f32 parameter receives
        value = _F32.unpack(_F32.pack(value))[0]
    return value


def _call(export: FunctionExport, name: str, *args: Any) -> Any:
    try:
        return export.call(*args)
    except ExecutionFault:
        raise
    except Exception as exc:
        raise ExecutionFault(
            f"call to '{name}' trapped: {exc}", {"export": name}
        ) from exc


def _accessor(module: PluginModule, name: str) -> int:
    export = module.get_export(name)
    if not isinstance(export, FunctionExport):
        raise ContractError(
            f"module is not a valid emg module: missing required function `{name}()`",
            {"export": name},
        )
    if export.type != ACCESSOR_TYPE:
        raise ContractError(
            f"module is not a valid emg module: function `{name}()` must take "
            f"no arguments and return one i32, found {export.type}",
            {"export": name},
        )
    # i32 results are reinterpreted as unsigned 32-bit addresses/lengths
    return int(_call(export, name)) & 0xFFFFFFFF


def invoke_generator(
    module: PluginModule, generator: str, params: Sequence[str]
) -> bytes:
    """Run ``generator`` in ``module`` and return its validated container."""
    log = get_logger()
    export_name = generator_export_name(generator)
    export = module.get_export(export_name)
    if not isinstance(export, FunctionExport):
        raise GeneratorNotFound(
            f"module does not contain the model `{generator}`",
            {"generator": generator},
        )
    signature = export.type
    if signature.results != (ValType.I32,):
        raise ContractError(
            "generators must return a single 32-bit integer status code",
            {
                "generator": generator,
                "results": [type_name(r) for r in signature.results],
            },
        )
    if len(params) != len(signature.params):
        raise ParameterCountError(
            f"model expects {len(signature.params)} parameters, "
            f"but {len(params)} were given",
            {"expected": len(signature.params), "given": len(params)},
        )
    args = [
        parse_parameter(i, text, valtype)
        for i, (text, valtype) in enumerate(zip(params, signature.params))
    ]
    log.debug("calling %s%s with %s", export_name, signature, args)

    status = int(_call(export, export_name, *args))
    if status != STATUS_OK:
        raise GeneratorFailure(status, generator)

    offset = _accessor(module, POINTER_EXPORT)
    length = _accessor(module, SIZE_EXPORT)
    log.debug("artifact offset=%d length=%d", offset, length)

    memory = module.get_export(MEMORY_EXPORT)
    if not isinstance(memory, MemoryExport):
        raise ContractError(
            "module is not a valid emg module: missing `memory` export",
            {"export": MEMORY_EXPORT},
        )
    available = memory.size()
    if offset + length > available:
        raise ContractError(
            "published artifact lies outside plugin memory",
            {"offset": offset, "length": length, "memory_size": available},
        )
    data = bytes(memory.read(offset, length))
    read_container(data)
    return data


def describe_module(module: PluginModule) -> List[GeneratorInfo]:
    infos = []
    for name in sorted(module.export_names()):
        identifier = generator_identifier(name)
        export = module.get_export(name) if identifier else None
        if not isinstance(export, FunctionExport):
            continue
        infos.append(
            GeneratorInfo(
                identifier,
                tuple(type_name(p) for p in export.type.params),
                tuple(type_name(r) for r in export.type.results),
            )
        )
    return infos


__all__ = [
    "PluginModule",
    "PythonPluginModule",
    "GeneratorInfo",
    "parse_parameter",
    "invoke_generator",
    "describe_module",
]
