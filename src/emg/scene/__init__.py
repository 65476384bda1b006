from .models import (
    Accessor,
    AlphaMode,
    Asset,
    Buffer,
    BufferTarget,
    BufferView,
    Document,
    Material,
    Mesh,
    MeshPrimitive,
    Node,
    PbrMetallicRoughness,
    PrimitiveMode,
    Scene,
)
from .geometry import Geometry

__all__ = [
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
