"""Plugin-side registry of model generators.

Example::

    plugin = Plugin("blocks")

    @plugin.generator
    def battlement(height: i32) -> Document:
        ...

Each decorated function is exported as ``emg_<name>`` returning a status
code; a successful call publishes the document's container in the plugin's
slot, where the host picks it up through ``model_pointer``/``model_size``.
"""

from __future__ import annotations

import inspect
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..errors import ContentionError
from .contract import (
    ACCESSOR_TYPE,
    MEMORY_EXPORT,
    PARAM_ANNOTATIONS,
    POINTER_EXPORT,
    SIZE_EXPORT,
    STATUS_CONTENTION,
    STATUS_OK,
    Export,
    FuncType,
    FunctionExport,
    MemoryExport,
    ValType,
    generator_export_name,
)
from .publish import PublishSlot


class GenerationError(Exception):
    """Raised by a generator to fail with a plugin-specific status code."""

    def __init__(self, status: int, message: str = ""):
        if status == STATUS_OK:
            raise ValueError("generation status must be nonzero")
        super().__init__(message or f"generation failed with status {status}")
        self.status = status


@dataclass(slots=True)
class Generator:
    identifier: str
    func: Callable[..., Any]
    signature: FuncType

    @property
    def export_name(self) -> str:
        return generator_export_name(self.identifier)


def _signature_of(func: Callable[..., Any]) -> FuncType:
    hints = typing.get_type_hints(func)
    params = []
    for param in inspect.signature(func).parameters.values():
        if param.kind not in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            raise TypeError(
                f"generator '{func.__name__}' parameter '{param.name}' "
                "must be positional"
            )
        valtype = PARAM_ANNOTATIONS.get(hints.get(param.name))
        if valtype is None:
            raise TypeError(
                f"generator '{func.__name__}' parameter '{param.name}' must be "
                "annotated as i32, i64, f32, or f64"
            )
        params.append(valtype)
    return FuncType(tuple(params), (ValType.I32,))


class Plugin:
    def __init__(self, name: str = "", *, base: int = 0):
        self.name = name
        self.slot = PublishSlot(base)
        self._generators: Dict[str, Generator] = {}

    @property
    def generators(self) -> Dict[str, Generator]:
        return dict(self._generators)

    def generator(
        self,
        func: Optional[Callable[..., Any]] = None,
        *,
        name: Optional[str] = None,
    ):
        """Register ``func`` as a generator; usable bare or with ``name=``."""

        def register(fn: Callable[..., Any]) -> Callable[..., Any]:
            identifier = name or fn.__name__
            if identifier in self._generators:
                raise ValueError(f"duplicate generator '{identifier}'")
            self._generators[identifier] = Generator(
                identifier, fn, _signature_of(fn)
            )
            return fn

        if func is not None:
            return register(func)
        return register

    def invoke(self, identifier: str, *args: Any) -> int:
        """Run one generator the way the host does and return its status."""
        gen = self._generators[identifier]
        try:
            self.slot.build(lambda: gen.func(*args))
        except ContentionError:
            return STATUS_CONTENTION
        except GenerationError as exc:
            return exc.status
        return STATUS_OK

    def exports(self) -> Dict[str, Export]:
        out: Dict[str, Export] = {}
        for gen in self._generators.values():
            out[gen.export_name] = FunctionExport(
                gen.signature,
                lambda *args, _id=gen.identifier: self.invoke(_id, *args),
            )
        out[POINTER_EXPORT] = FunctionExport(ACCESSOR_TYPE, self.slot.pointer)
        out[SIZE_EXPORT] = FunctionExport(ACCESSOR_TYPE, self.slot.size)
        out[MEMORY_EXPORT] = MemoryExport(
            size=lambda: len(self.slot.memory()),
            read=lambda offset, length: self.slot.memory()[
                offset : offset + length
            ],
        )
        return out

    def __repr__(self) -> str:
        return f"Plugin({self.name!r}, generators={sorted(self._generators)})"


__all__ = ["GenerationError", "Generator", "Plugin"]
