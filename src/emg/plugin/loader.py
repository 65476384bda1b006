from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

from ..errors import ContractError, ModuleLoadError
from ..logging import get_logger
from .guest import Plugin
from .host import PluginModule, PythonPluginModule

WASM_SUFFIXES = (".wasm", ".wat")
PYTHON_SUFFIXES = (".py",)


def _load_python(path: Path) -> PythonPluginModule:
    name = f"emg_plugin_{path.stem}"
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ModuleLoadError(f"cannot import {path}", {"path": str(path)})
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(name, None)
        raise ModuleLoadError(
            f"failed to import plugin: {exc}", {"path": str(path)}
        ) from exc
    plugins = [v for v in vars(module).values() if isinstance(v, Plugin)]
    if len(plugins) != 1:
        raise ContractError(
            f"plugin file must define exactly one Plugin, found {len(plugins)}",
            {"path": str(path)},
        )
    return PythonPluginModule(plugins[0])


def load_module(path) -> PluginModule:
    """Load a plugin module from a Python source or WebAssembly file."""
    path = Path(path)
    if not path.is_file():
        raise ModuleLoadError(f"module not found: {path}", {"path": str(path)})
    suffix = path.suffix.lower()
    get_logger().debug("loading module %s", path)
    if suffix in PYTHON_SUFFIXES:
        return _load_python(path)
    if suffix in WASM_SUFFIXES:
        from .wasm import WasmPluginModule  # wasmtime is only needed here

        return WasmPluginModule.from_file(path)
    raise ModuleLoadError(
        f"unsupported module type '{path.suffix}'", {"path": str(path)}
    )


__all__ = ["load_module"]
