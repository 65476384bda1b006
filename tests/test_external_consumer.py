"""The produced container loads in an independent glTF reader."""

import numpy as np
import pytest
from pygltflib import GLTF2

from emg.api import GenOptions, generate_model
from emg.render import OutputFormat


def test_pygltflib_reads_battlement(tmp_path, blocks_plugin_path):
    out = tmp_path / "battlement.glb"
    result = generate_model(
        GenOptions(
            module_path=blocks_plugin_path,
            generator="build_the_model",
            params=["1"],
            format=OutputFormat.BINARY,
            output_path=out,
        )
    )
    assert result.container_length == len(result.output)

    gltf = GLTF2.load(str(out))
    assert gltf.asset.version == "2.0"
    assert len(gltf.meshes[0].primitives) == 2
    blob = gltf.binary_blob()
    assert len(blob) >= gltf.buffers[0].byteLength

    prim = gltf.meshes[0].primitives[0]
    accessor = gltf.accessors[prim.attributes.POSITION]
    view = gltf.bufferViews[accessor.bufferView]
    positions = np.frombuffer(
        blob[view.byteOffset : view.byteOffset + view.byteLength], dtype="<f4"
    ).reshape(-1, 3)
    assert positions.shape == (accessor.count, 3)
    assert positions.min(axis=0).tolist() == pytest.approx(accessor.min)
    assert positions.max(axis=0).tolist() == pytest.approx(accessor.max)

    indices = gltf.accessors[prim.indices]
    index_view = gltf.bufferViews[indices.bufferView]
    idx = np.frombuffer(
        blob[index_view.byteOffset : index_view.byteOffset + index_view.byteLength],
        dtype="<u2",
    )
    assert idx.max() < accessor.count
