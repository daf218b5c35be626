"""Tests for scene JSON loading."""

import json
import logging

import numpy as np
import pytest

from poseforge.constants import BUILTIN_SCENES, MAX_SKINNING_BONES
from poseforge.loaders.skeleton_loader import (
    SceneFormatError, build_mesh, load_builtin_scene, load_scene, parse_bone_records,
)
from poseforge.skeleton.skeleton import MalformedHierarchy


def _bone(parent, position, endpoint, **extra):
    return {"parent": parent, "position": position, "endpoint": endpoint, **extra}


def _two_bones():
    return [_bone(None, [0, 0, 0], [0, 1, 0]), _bone(0, [0, 1, 0], [0, 2, 0])]


def _quad_mesh(bone=0):
    return {
        "positions": [0, 0, 0, 1, 0, 0, 1, 1, 0, 0, 1, 0],
        "indices": [0, 1, 2, 0, 2, 3],
        "skin_indices": [bone, 0, 0, 0] * 4,
        "skin_weights": [1, 0, 0, 0] * 4,
    }


@pytest.mark.parametrize("name", BUILTIN_SCENES)
def test_builtin_scenes_load(name):
    mesh = load_builtin_scene(name)
    assert mesh.name == name
    assert len(mesh.skeleton) > 0
    for bone in mesh.skeleton:
        np.testing.assert_array_almost_equal(bone.skinning_matrix, np.eye(4))


def test_skinned_column_has_geometry():
    mesh = load_builtin_scene("skinned_column")
    g = mesh.geometry
    assert g is not None
    assert g.vertex_count == 12
    assert g.has_indices
    assert len(g.skin_indices) == 4 * g.vertex_count
    assert g.max_bone_index == 1


def test_minus_one_parent_is_root():
    mesh = load_builtin_scene("long_chain")
    assert mesh.skeleton.roots() == [0]
    assert mesh.skeleton[0].parent is None


def test_explicit_children_are_honoured():
    mesh = load_builtin_scene("robot_arm")
    assert mesh.skeleton.find("forearm").children == {3, 4}


def test_load_scene_from_file(tmp_path):
    path = tmp_path / "pose.json"
    path.write_text(json.dumps({"bones": _two_bones()}), encoding="utf-8")
    mesh = load_scene(path)
    # Name falls back to the file stem
    assert mesh.name == "pose"
    assert mesh.geometry is None
    assert [b.name for b in mesh.skeleton] == ["bone_0", "bone_1"]


def test_parse_bone_records():
    records = parse_bone_records([_bone(-1, [1, 2, 3], [1, 3, 3], name="hip")])
    assert records[0].parent is None
    assert records[0].name == "hip"
    np.testing.assert_array_equal(records[0].bind_position, [1, 2, 3])


@pytest.mark.parametrize("bones", [None, [], {"a": 1}])
def test_missing_bones(bones):
    with pytest.raises(SceneFormatError):
        build_mesh({"bones": bones})


def test_root_must_be_object():
    with pytest.raises(SceneFormatError):
        build_mesh([1, 2, 3])


@pytest.mark.parametrize("entry", [
    {"parent": None, "endpoint": [0, 1, 0]},
    {"parent": None, "position": [0, 0], "endpoint": [0, 1, 0]},
    {"parent": None, "position": [0, "x", 0], "endpoint": [0, 1, 0]},
    {"parent": "0", "position": [0, 0, 0], "endpoint": [0, 1, 0]},
    {"parent": None, "position": [0, 0, 0], "endpoint": [0, 1, 0], "children": "1"},
    "not a bone",
])
def test_bad_bone_entries(entry):
    with pytest.raises(SceneFormatError):
        parse_bone_records([entry])


def test_broken_hierarchy_raises_malformed():
    bones = [_bone(1, [0, 0, 0], [0, 1, 0]), _bone(0, [0, 1, 0], [0, 2, 0])]
    with pytest.raises(MalformedHierarchy):
        build_mesh({"bones": bones})


def test_children_mismatch_raises_malformed():
    bones = [_bone(None, [0, 0, 0], [0, 1, 0], children=[]),
             _bone(0, [0, 1, 0], [0, 2, 0], children=[0])]
    with pytest.raises(MalformedHierarchy):
        build_mesh({"bones": bones})


def test_mesh_is_parsed():
    mesh = build_mesh({"name": "quad", "bones": _two_bones(), "mesh": _quad_mesh(bone=1)})
    g = mesh.geometry
    assert g.vertex_count == 4
    assert g.positions.dtype == np.float32
    assert g.indices.dtype == np.uint32
    # Missing normals default to zeros
    np.testing.assert_array_equal(g.normals, np.zeros(12, dtype=np.float32))


def test_mesh_skin_length_mismatch():
    data = _quad_mesh()
    data["skin_weights"] = [1, 0, 0, 0]
    with pytest.raises(SceneFormatError):
        build_mesh({"bones": _two_bones(), "mesh": data})


def test_mesh_positions_not_triples():
    data = _quad_mesh()
    data["positions"] = data["positions"][:-1]
    with pytest.raises(SceneFormatError):
        build_mesh({"bones": _two_bones(), "mesh": data})


def test_mesh_index_out_of_range():
    data = _quad_mesh()
    data["indices"] = [0, 1, 9]
    with pytest.raises(SceneFormatError):
        build_mesh({"bones": _two_bones(), "mesh": data})


def test_mesh_skin_references_missing_bone():
    with pytest.raises(SceneFormatError):
        build_mesh({"bones": _two_bones(), "mesh": _quad_mesh(bone=5)})


def test_mesh_missing_skin_weights():
    data = _quad_mesh()
    del data["skin_weights"]
    with pytest.raises(SceneFormatError):
        build_mesh({"bones": _two_bones(), "mesh": data})


def test_too_many_bones_for_gpu_skinning_warns(caplog):
    n = MAX_SKINNING_BONES + 1
    bones = [_bone(None if i == 0 else i - 1, [0, i, 0], [0, i + 1, 0]) for i in range(n)]
    with caplog.at_level(logging.WARNING, logger="poseforge.loaders.skeleton_loader"):
        mesh = build_mesh({"name": "tall", "bones": bones, "mesh": _quad_mesh()})
    assert len(mesh.skeleton) == n
    assert "only 64 can be skinned" in caplog.text


def test_invalid_json_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_scene(path)
