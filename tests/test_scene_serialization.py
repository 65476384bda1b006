import json

import emg
from emg.packing.elements import ComponentType, ElementShape
from emg.scene import (
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


def test_default_document_is_minimal():
    assert Document().to_dict() == {
        "asset": {
            "generator": f"emg v{emg.__version__}",
            "version": "2.0",
            "minVersion": "2.0",
        }
    }


def test_minimal_form_is_stable():
    assert Document().to_json_bytes() == Document().to_json_bytes()
    assert Document().to_json_bytes() == (
        b'{"asset":{"generator":"emg v' + emg.__version__.encode() +
        b'","version":"2.0","minVersion":"2.0"}}'
    )


def test_asset_version_is_mandatory():
    assert Asset(generator="", version="", min_version="").to_dict() == {
        "version": ""
    }


def test_identity_node_serializes_empty():
    assert Node().to_dict() == {}
    assert Node(translation=[0, 0, 0], rotation=(0, 0, 0, 1), scale=(1, 1, 1)).to_dict() == {}


def test_node_key_order():
    node = Node(
        name="n",
        mesh=0,
        translation=(1, 2, 3),
        rotation=(0, 0, 1, 0),
        scale=(2, 2, 2),
        children=[1],
    )
    assert json.dumps(node.to_dict(), separators=(",", ":")) == (
        '{"name":"n","mesh":0,"translation":[1.0,2.0,3.0],'
        '"rotation":[0.0,0.0,1.0,0.0],"scale":[2.0,2.0,2.0],"children":[1]}'
    )


def test_material_defaults():
    assert Material().to_dict() == {"pbrMetallicRoughness": {}}
    mat = Material(
        name="Red",
        alpha_mode=AlphaMode.MASK,
        alpha_cutoff=0.5,
        pbr_metallic_roughness=PbrMetallicRoughness(
            base_color_factor=(1, 0, 0, 1), metallic_factor=0.0, roughness_factor=1.0
        ),
    )
    assert mat.to_dict() == {
        "name": "Red",
        "alphaMode": "MASK",
        "pbrMetallicRoughness": {
            "baseColorFactor": [1.0, 0.0, 0.0, 1.0],
            "metallicFactor": 0.0,
        },
    }
    assert Material(alpha_cutoff=0.25, double_sided=True).to_dict() == {
        "alphaCutoff": 0.25,
        "doubleSided": True,
        "pbrMetallicRoughness": {},
    }


def test_primitive_attribute_order_and_mode():
    prim = MeshPrimitive(attributes={"POSITION": 0, "NORMAL": 1}, indices=2)
    assert list(prim.to_dict()["attributes"]) == ["NORMAL", "POSITION"]
    assert "mode" not in prim.to_dict()
    assert MeshPrimitive(mode=PrimitiveMode.LINES).to_dict() == {
        "attributes": {},
        "mode": 1,
    }


def test_mesh_always_lists_primitives():
    assert Mesh().to_dict() == {"primitives": []}


def test_accessor_and_views():
    accessor = Accessor(
        buffer_view=0,
        component_type=ComponentType.FLOAT,
        count=8,
        type=ElementShape.VEC3,
        max=[1, 1, 1],
        min=[-1, -1, -1],
    )
    assert list(accessor.to_dict()) == [
        "bufferView",
        "componentType",
        "count",
        "type",
        "max",
        "min",
    ]
    assert Accessor(byte_offset=4, normalized=True).to_dict() == {
        "byteOffset": 4,
        "componentType": 5120,
        "normalized": True,
        "count": 0,
        "type": "SCALAR",
    }
    view = BufferView(byte_length=96, target=BufferTarget.ARRAY_BUFFER)
    assert view.to_dict() == {
        "buffer": 0,
        "byteLength": 96,
        "byteOffset": 0,
        "target": 34962,
    }
    assert Buffer(byte_length=12).to_dict() == {"byteLength": 12}


def test_document_section_order():
    doc = Document()
    doc.add_scene(Scene(name="s", nodes=[0]))
    doc.add_node(Node(mesh=0))
    doc.add_material(Material())
    doc.add_mesh(Mesh(primitives=[MeshPrimitive()]))
    doc.append([1.0], ElementShape.SCALAR, ComponentType.FLOAT)
    assert list(doc.to_dict()) == [
        "asset",
        "scene",
        "scenes",
        "nodes",
        "materials",
        "meshes",
        "accessors",
        "bufferViews",
        "buffers",
    ]
    assert doc.scene == 0


def test_add_scene_keeps_first_default():
    doc = Document()
    doc.add_scene(Scene(name="a"))
    assert doc.add_scene(Scene(name="b")) == 1
    assert doc.scene == 0
    other = Document()
    other.add_scene(Scene(), default=False)
    assert other.scene is None


def test_blob_is_not_serialized():
    doc = Document()
    doc.append([1, 2], ElementShape.SCALAR, ComponentType.UNSIGNED_BYTE)
    text = doc.to_json_bytes().decode()
    assert "bin" not in json.loads(text)
    assert json.loads(text)["buffers"] == [{"byteLength": 2}]
