"""WebAssembly plugin modules hosted with wasmtime."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import wasmtime

from ..errors import ExecutionFault, ModuleLoadError
from .contract import Export, FuncType, FunctionExport, MemoryExport, ValType


def _func_type(ty: wasmtime.FuncType) -> FuncType:
    return FuncType(
        tuple(ValType.lookup(str(p)) for p in ty.params),
        tuple(ValType.lookup(str(r)) for r in ty.results),
    )


class WasmPluginModule:
    def __init__(
        self,
        store: wasmtime.Store,
        module: wasmtime.Module,
        instance: wasmtime.Instance,
    ):
        self._store = store
        self._module = module
        self._instance = instance

    @classmethod
    def from_file(cls, path: Path) -> "WasmPluginModule":
        path = Path(path)
        engine = wasmtime.Engine()
        try:
            if path.suffix.lower() == ".wat":
                module = wasmtime.Module(engine, path.read_text(encoding="utf-8"))
            else:
                module = wasmtime.Module.from_file(engine, str(path))
        except (OSError, wasmtime.WasmtimeError) as exc:
            raise ModuleLoadError(
                f"failed to compile module: {exc}", {"path": str(path)}
            ) from exc
        store = wasmtime.Store(engine)
        try:
            instance = wasmtime.Instance(store, module, [])
        except (wasmtime.WasmtimeError, wasmtime.Trap) as exc:
            raise ModuleLoadError(
                f"failed to instantiate module: {exc}",
                {"path": str(path)},
                instantiate=True,
            ) from exc
        return cls(store, module, instance)

    def export_names(self) -> List[str]:
        return [e.name for e in self._module.exports]

    def get_export(self, name: str) -> Optional[Export]:
        try:
            ext = self._instance.exports(self._store)[name]
        except KeyError:
            return None
        if isinstance(ext, wasmtime.Func):
            return FunctionExport(
                _func_type(ext.type(self._store)),
                lambda *args, _f=ext, _n=name: self._call(_f, _n, args),
            )
        if isinstance(ext, wasmtime.Memory):
            return MemoryExport(
                size=lambda _m=ext: _m.data_len(self._store),
                read=lambda offset, length, _m=ext: bytes(
                    _m.read(self._store, offset, offset + length)
                ),
            )
        return None

    def _call(self, func: wasmtime.Func, name: str, args: Any) -> Any:
        try:
            return func(self._store, *args)
        except (wasmtime.Trap, wasmtime.WasmtimeError) as exc:
            raise ExecutionFault(
                f"call to '{name}' trapped: {exc}", {"export": name}
            ) from exc


__all__ = ["WasmPluginModule"]
