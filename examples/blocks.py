"""Example plugin: a fortress wall battlement built from two boxes.

Run it with::

    emg gen examples/blocks.py build_the_model 1 --format text
"""

from __future__ import annotations

from emg import (
    Document,
    GenerationError,
    Geometry,
    Material,
    Mesh,
    Node,
    PbrMetallicRoughness,
    Plugin,
    Scene,
    f32,
    i32,
)

plugin = Plugin("blocks")

STATUS_BAD_LEVELS = 100


def _material(name: str, color) -> Material:
    return Material(
        name=name,
        pbr_metallic_roughness=PbrMetallicRoughness(
            base_color_factor=color,
            metallic_factor=0.0,
            roughness_factor=0.5,
        ),
    )


def wall() -> Geometry:
    return Geometry.cube().scale((1.0, 0.25, 0.3)).translate((0.0, -0.75, 4.1))


def merlon() -> Geometry:
    """Block sitting on the wall; its bottom face rests on the wall and is dropped."""
    block = Geometry.cube().scale((0.5, 0.25, 0.3)).translate((0.0, -0.75, 4.7))
    block.delete_triangles(
        block.select_triangles((-0.5, -1.0, 4.4), (0.5, -0.5, 4.7))
    )
    return block


@plugin.generator
def build_the_model(a: i32) -> Document:
    doc = Document()
    doc.add_scene(Scene(name="A name for a scene", nodes=[0]))
    red = doc.add_material(_material("Red", (1.0, 0.0, 0.0, 1.0)))
    black = doc.add_material(_material("Black", (0.1, 0.1, 0.1, 1.0)))
    mesh = Mesh(
        name="Fortress Wall Battlement",
        primitives=[
            wall().to_primitive(doc, red),
            merlon().to_primitive(doc, black),
        ],
    )
    doc.add_node(Node(name="Fortress Wall Battlement", mesh=doc.add_mesh(mesh)))
    return doc


@plugin.generator
def tower(levels: i32, width: f32) -> Document:
    if levels < 1:
        raise GenerationError(STATUS_BAD_LEVELS, "a tower needs at least one level")
    doc = Document()
    stone = doc.add_material(_material("Stone", (0.5, 0.5, 0.5, 1.0)))
    primitives = [
        Geometry.cube()
        .scale((width / 2, 0.5, width / 2))
        .translate((0.0, 0.5 + level, 0.0))
        .to_primitive(doc, stone)
        for level in range(levels)
    ]
    node = doc.add_node(Node(name="Tower", mesh=doc.add_mesh(Mesh("Tower", primitives))))
    doc.add_scene(Scene(name="Tower", nodes=[node]))
    return doc
