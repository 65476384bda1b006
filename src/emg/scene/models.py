"""Dataclass models for the scene document.

Each entry serializes through ``to_dict()`` with keys in schema order and
every optional field dropped when it holds its schema default. The defaults
are per field (a node's scale defaults to ones, a material's alpha cutoff to
0.5), so each ``to_dict`` spells out its own comparisons.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .._version import __version__
from ..packing.constants import FORMAT_VERSION
from ..packing.elements import ComponentType, ElementShape

__all__ = [
    "AlphaMode",
    "PrimitiveMode",
    "BufferTarget",
    "Asset",
    "Scene",
    "Node",
    "PbrMetallicRoughness",
    "Material",
    "MeshPrimitive",
    "Mesh",
    "Accessor",
    "BufferView",
    "Buffer",
    "Document",
    "ATTRIBUTE_ORDER",
]


class AlphaMode(Enum):
    OPAQUE = "OPAQUE"
    MASK = "MASK"
    BLEND = "BLEND"


class PrimitiveMode(IntEnum):
    POINTS = 0
    LINES = 1
    LINE_LOOP = 2
    LINE_STRIP = 3
    TRIANGLES = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6


class BufferTarget(IntEnum):
    ARRAY_BUFFER = 34962
    ELEMENT_ARRAY_BUFFER = 34963


ATTRIBUTE_ORDER = (
    "COLOR_0",
    "JOINTS_0",
    "NORMAL",
    "POSITION",
    "TANGENT",
    "TEXCOORD_0",
    "TEXCOORD_1",
    "TEXCOORD_2",
    "TEXCOORD_3",
    "WEIGHTS_0",
)

IDENTITY_TRANSLATION = (0.0, 0.0, 0.0)
IDENTITY_ROTATION = (0.0, 0.0, 0.0, 1.0)
IDENTITY_SCALE = (1.0, 1.0, 1.0)


def _floats(values: Iterable[Any]) -> List[float]:
    return [float(v) for v in values]


def _is(values: Sequence[Any], default: Tuple[float, ...]) -> bool:
    return tuple(float(v) for v in values) == default


@dataclass(slots=True)
class Asset:
    copyright: str = ""
    generator: str = f"emg v{__version__}"
    version: str = FORMAT_VERSION
    min_version: str = FORMAT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.copyright:
            out["copyright"] = self.copyright
        if self.generator:
            out["generator"] = self.generator
        # Mandatory even when empty.
        out["version"] = self.version
        if self.min_version:
            out["minVersion"] = self.min_version
        return out


@dataclass(slots=True)
class Scene:
    name: str = ""
    nodes: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        if self.nodes:
            out["nodes"] = [int(n) for n in self.nodes]
        return out


@dataclass(slots=True)
class Node:
    name: str = ""
    mesh: Optional[int] = None
    translation: Sequence[float] = IDENTITY_TRANSLATION
    rotation: Sequence[float] = IDENTITY_ROTATION
    scale: Sequence[float] = IDENTITY_SCALE
    children: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        if self.mesh is not None:
            out["mesh"] = int(self.mesh)
        if not _is(self.translation, IDENTITY_TRANSLATION):
            out["translation"] = _floats(self.translation)
        if not _is(self.rotation, IDENTITY_ROTATION):
            out["rotation"] = _floats(self.rotation)
        if not _is(self.scale, IDENTITY_SCALE):
            out["scale"] = _floats(self.scale)
        if self.children:
            out["children"] = [int(c) for c in self.children]
        return out


@dataclass(slots=True)
class PbrMetallicRoughness:
    base_color_factor: Sequence[float] = (1.0, 1.0, 1.0, 1.0)
    metallic_factor: float = 1.0
    roughness_factor: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if not _is(self.base_color_factor, (1.0, 1.0, 1.0, 1.0)):
            out["baseColorFactor"] = _floats(self.base_color_factor)
        if float(self.metallic_factor) != 1.0:
            out["metallicFactor"] = float(self.metallic_factor)
        if float(self.roughness_factor) != 1.0:
            out["roughnessFactor"] = float(self.roughness_factor)
        return out


@dataclass(slots=True)
class Material:
    name: str = ""
    emissive_factor: Sequence[float] = (0.0, 0.0, 0.0)
    alpha_mode: AlphaMode = AlphaMode.OPAQUE
    alpha_cutoff: float = 0.5
    double_sided: bool = False
    pbr_metallic_roughness: PbrMetallicRoughness = field(
        default_factory=PbrMetallicRoughness
    )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        if not _is(self.emissive_factor, (0.0, 0.0, 0.0)):
            out["emissiveFactor"] = _floats(self.emissive_factor)
        if self.alpha_mode is not AlphaMode.OPAQUE:
            out["alphaMode"] = self.alpha_mode.value
        if float(self.alpha_cutoff) != 0.5:
            out["alphaCutoff"] = float(self.alpha_cutoff)
        if self.double_sided:
            out["doubleSided"] = True
        # Always present, possibly as an empty object.
        out["pbrMetallicRoughness"] = self.pbr_metallic_roughness.to_dict()
        return out


@dataclass(slots=True)
class MeshPrimitive:
    attributes: Dict[str, int] = field(default_factory=dict)
    indices: Optional[int] = None
    material: Optional[int] = None
    mode: PrimitiveMode = PrimitiveMode.TRIANGLES

    def ordered_attributes(self) -> Dict[str, int]:
        known = {
            name: int(self.attributes[name])
            for name in ATTRIBUTE_ORDER
            if name in self.attributes
        }
        extra = {
            name: int(index)
            for name, index in self.attributes.items()
            if name not in known
        }
        return {**known, **extra}

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"attributes": self.ordered_attributes()}
        if self.indices is not None:
            out["indices"] = int(self.indices)
        if self.material is not None:
            out["material"] = int(self.material)
        if self.mode != PrimitiveMode.TRIANGLES:
            out["mode"] = int(self.mode)
        return out


@dataclass(slots=True)
class Mesh:
    name: str = ""
    primitives: List[MeshPrimitive] = field(default_factory=list)
    weights: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        out["primitives"] = [p.to_dict() for p in self.primitives]
        if self.weights:
            out["weights"] = _floats(self.weights)
        return out


@dataclass(slots=True)
class Accessor:
    name: str = ""
    buffer_view: Optional[int] = None
    byte_offset: int = 0
    component_type: ComponentType = ComponentType.BYTE
    normalized: bool = False
    count: int = 0
    type: ElementShape = ElementShape.SCALAR
    max: List[float] = field(default_factory=list)
    min: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        if self.buffer_view is not None:
            out["bufferView"] = int(self.buffer_view)
        if self.byte_offset:
            out["byteOffset"] = int(self.byte_offset)
        out["componentType"] = int(self.component_type)
        if self.normalized:
            out["normalized"] = True
        out["count"] = int(self.count)
        out["type"] = self.type.value
        if self.max:
            out["max"] = _floats(self.max)
        if self.min:
            out["min"] = _floats(self.min)
        return out


@dataclass(slots=True)
class BufferView:
    name: str = ""
    buffer: int = 0
    byte_length: int = 0
    byte_offset: int = 0
    byte_stride: Optional[int] = None
    target: Optional[BufferTarget] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        out["buffer"] = int(self.buffer)
        out["byteLength"] = int(self.byte_length)
        out["byteOffset"] = int(self.byte_offset)
        if self.byte_stride is not None:
            out["byteStride"] = int(self.byte_stride)
        if self.target is not None:
            out["target"] = int(self.target)
        return out


@dataclass(slots=True)
class Buffer:
    name: str = ""
    byte_length: int = 0
    uri: str = ""

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        out["byteLength"] = int(self.byte_length)
        if self.uri:
            out["uri"] = self.uri
        return out


@dataclass(slots=True)
class Document:
    """Root of a scene document plus the binary blob its accessors index."""

    asset: Asset = field(default_factory=Asset)
    scene: Optional[int] = None
    scenes: List[Scene] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)
    materials: List[Material] = field(default_factory=list)
    meshes: List[Mesh] = field(default_factory=list)
    accessors: List[Accessor] = field(default_factory=list)
    buffer_views: List[BufferView] = field(default_factory=list)
    buffers: List[Buffer] = field(default_factory=list)
    bin: bytearray = field(default_factory=bytearray)

    def append(
        self,
        elements: Iterable[Any],
        shape: ElementShape,
        component_type: ComponentType,
    ) -> Tuple[int, int]:
        """Pack ``elements`` into the blob; see :func:`emg.packing.buffers.append_elements`."""
        from ..packing.buffers import append_elements  # local import to avoid cycle

        return append_elements(self, elements, shape, component_type)

    def add_scene(self, scene: Scene, *, default: bool = True) -> int:
        self.scenes.append(scene)
        index = len(self.scenes) - 1
        if default and self.scene is None:
            self.scene = index
        return index

    def add_node(self, node: Node) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def add_mesh(self, mesh: Mesh) -> int:
        self.meshes.append(mesh)
        return len(self.meshes) - 1

    def add_material(self, material: Material) -> int:
        self.materials.append(material)
        return len(self.materials) - 1

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"asset": self.asset.to_dict()}
        if self.scene is not None:
            out["scene"] = int(self.scene)
        for key, entries in (
            ("scenes", self.scenes),
            ("nodes", self.nodes),
            ("materials", self.materials),
            ("meshes", self.meshes),
            ("accessors", self.accessors),
            ("bufferViews", self.buffer_views),
            ("buffers", self.buffers),
        ):
            if entries:
                out[key] = [e.to_dict() for e in entries]
        return out

    def to_json_bytes(self) -> bytes:
        return json.dumps(
            self.to_dict(), separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")
