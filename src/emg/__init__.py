"""emg: build 3D scenes in plugins and publish them as binary containers.

Plugin authors typically need only::

    from emg import Document, Geometry, Plugin, i32
"""

from ._version import __version__
from .errors import EmgError, ErrorCode, PreconditionError
from .plugin import GenerationError, Plugin, f32, f64, i32, i64
from .scene import (
    Accessor,
    AlphaMode,
    Asset,
    Buffer,
    BufferTarget,
    BufferView,
    Document,
    Geometry,
    Material,
    Mesh,
    MeshPrimitive,
    Node,
    PbrMetallicRoughness,
    PrimitiveMode,
    Scene,
)

__all__ = [
    "__version__",
    "EmgError",
    "ErrorCode",
    "PreconditionError",
    "GenerationError",
    "Plugin",
    "f32",
    "f64",
    "i32",
    "i64",
    "Accessor",
    "AlphaMode",
    "Asset",
    "Buffer",
    "BufferTarget",
    "BufferView",
    "Document",
    "Geometry",
    "Material",
    "Mesh",
    "MeshPrimitive",
    "Node",
    "PbrMetallicRoughness",
    "PrimitiveMode",
    "Scene",
]
