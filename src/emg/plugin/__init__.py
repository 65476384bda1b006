from .contract import (
    GENERATOR_PREFIX,
    MEMORY_EXPORT,
    POINTER_EXPORT,
    SIZE_EXPORT,
    FuncType,
    FunctionExport,
    MemoryExport,
    ValType,
    f32,
    f64,
    i32,
    i64,
)
from .guest import GenerationError, Plugin
from .host import (
    GeneratorInfo,
    PluginModule,
    PythonPluginModule,
    describe_module,
    invoke_generator,
)
from .loader import load_module
from .publish import Artifact, PublishSlot

__all__ = [
    "GENERATOR_PREFIX",
    "MEMORY_EXPORT",
    "POINTER_EXPORT",
    "SIZE_EXPORT",
    "FuncType",
    "FunctionExport",
    "MemoryExport",
    "ValType",
    "f32",
    "f64",
    "i32",
    "i64",
    "GenerationError",
    "Plugin",
    "GeneratorInfo",
    "PluginModule",
    "PythonPluginModule",
    "describe_module",
    "invoke_generator",
    "load_module",
    "Artifact",
    "PublishSlot",
]
