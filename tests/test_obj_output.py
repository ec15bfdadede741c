import io
import os
import sys

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from obj_output import MeshAggregator
from util import Transform, TOP

QUAD = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]


def _faces_text(obj, obj_per_mat=False):
    out = io.StringIO()
    obj.serialize_faces(out, obj_per_mat)
    return out.getvalue()


def _vertices_text(obj):
    out = io.StringIO()
    obj.serialize_vertices(out)
    return out.getvalue()


def test_same_quad_twice_reuses_vertices():
    obj = MeshAggregator()
    obj.add_face(QUAD, "stone")
    obj.add_face(QUAD, "stone")
    assert obj.face_count == 2
    assert obj.vertex_count == 4
    assert obj.faces[0].vertices == obj.faces[1].vertices == [1, 2, 3, 4]


def test_vertex_id_is_stable():
    obj = MeshAggregator()
    obj.add_face(QUAD, "stone")
    first = obj.get_vertex_id((1, 1, 0))
    obj.add_face([(1, 1, 0), (2, 1, 0), (2, 2, 0), (1, 2, 0)], "dirt")
    assert obj.get_vertex_id((1, 1, 0)) == first == 3
    assert obj.faces[1].vertices[0] == first
    assert obj.vertex_count == 7


def test_dedup_is_exact_not_epsilon():
    obj = MeshAggregator()
    one = np.float32(1.0)
    next_up = np.nextafter(one, np.float32(2.0))
    obj.add_face([(0, 0, 0), (one, 0, 0), (1, 1, 0), (0, 1, 0)], "stone")
    obj.add_face([(0, 0, 0), (next_up, 0, 0), (1, 1, 0), (0, 1, 0)], "stone")
    assert obj.vertex_count == 5
    assert obj.faces[0].vertices[1] != obj.faces[1].vertices[1]


def test_negative_zero_welds_with_zero():
    obj = MeshAggregator()
    obj.add_face([(0.0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)], "stone")
    obj.add_face([(-0.0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)], "stone")
    assert obj.vertex_count == 4
    assert "-0.00" not in _vertices_text(obj)


def test_boundary_vertices_survive_flush():
    obj = MeshAggregator()
    obj.add_face([(0.5, 0, 3.5), (3.5, 0, 3.5), (3.5, 1, 3.5), (0.5, 1, 3.5)], "stone")
    edge_id = obj.get_vertex_id((0.5, 0, 3.5))
    obj.clear_data(True)
    assert obj.face_count == 0
    assert obj.vertices == []
    assert obj.get_vertex_id((0.5, 0, 3.5)) == edge_id
    assert obj.get_vertex_id((0.5, 1, 3.5)) is not None
    assert obj.get_vertex_id((3.5, 0, 3.5)) is None
    assert obj.get_vertex_id((3.5, 1, 3.5)) is None


def test_boundary_vertices_on_z_and_far_chunks():
    obj = MeshAggregator()
    obj.add_face([(3.5, 0, 15.5), (35.5, 0, 3.5), (-16.5, 0, 3.5), (3.5, 0, 3.5)], "stone")
    obj.clear_data(True)
    assert obj.get_vertex_id((3.5, 0, 15.5)) is not None
    assert obj.get_vertex_id((35.5, 0, 3.5)) is None
    assert obj.get_vertex_id((-16.5, 0, 3.5)) is not None
    assert obj.get_vertex_id((3.5, 0, 3.5)) is None


def test_retained_vertex_is_welded_by_later_face():
    obj = MeshAggregator()
    obj.add_face([(14.5, 0, 2.5), (15.5, 0, 2.5), (15.5, 1, 2.5), (14.5, 1, 2.5)], "stone")
    obj.clear_data(True)
    obj.add_face([(15.5, 0, 2.5), (16.5, 0, 2.5), (16.5, 1, 2.5), (15.5, 1, 2.5)], "stone")
    assert obj.faces[0].vertices == [2, 5, 6, 3]
    # only the new vertices are pending output
    assert len(obj.vertices) == 2


def test_full_clear_forgets_vertices_but_ids_keep_counting():
    obj = MeshAggregator()
    obj.add_face([(15.5, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)], "stone")
    obj.clear_data(False)
    assert obj.get_vertex_id((15.5, 0, 0)) is None
    obj.add_face(QUAD, "stone")
    assert obj.faces[0].vertices == [5, 6, 7, 8]


def test_reset_restarts_ids():
    obj = MeshAggregator()
    obj.add_face(QUAD, "stone")
    obj.reset()
    obj.add_face(QUAD, "dirt")
    assert obj.faces[0].vertices == [1, 2, 3, 4]
    assert obj.material_map.get_material_id("stone") == 1


def test_material_ids_first_seen_order():
    obj = MeshAggregator()
    for name in ("stone", "dirt", "stone", "grass_top"):
        obj.add_face(QUAD, name)
    assert [f.mtl for f in obj.faces] == [1, 2, 1, 3]
    assert obj.material_map.get_material_name(2) == "dirt"


def test_faces_grouped_by_material():
    obj = MeshAggregator()
    for name in ("stone", "dirt", "stone", "sand", "dirt"):
        obj.add_face(QUAD, name)
    text = _faces_text(obj)
    markers = [line for line in text.splitlines() if line.startswith("usemtl ")]
    assert markers == ["usemtl stone", "usemtl dirt", "usemtl sand"]
    assert len([line for line in text.splitlines() if line.startswith("f ")]) == 5


def test_sort_is_stable_within_material():
    obj = MeshAggregator()
    obj.add_face(QUAD, "stone")
    obj.add_face([(5, 0, 0), (6, 0, 0), (6, 1, 0), (5, 1, 0)], "dirt")
    obj.add_face([(7, 0, 0), (8, 0, 0), (8, 1, 0), (7, 1, 0)], "stone")
    lines = [line for line in _faces_text(obj).splitlines() if line.startswith("f ")]
    assert lines[0].startswith("f 1/")
    assert lines[1].startswith("f 9/")
    assert lines[2].startswith("f 5/")


def test_group_per_material():
    obj = MeshAggregator("world")
    obj.add_face(QUAD, "stone")
    obj.add_face(QUAD, "dirt")
    text = _faces_text(obj, obj_per_mat=True)
    assert "g world_1\nusemtl stone\n" in text
    assert "g world_2\nusemtl dirt\n" in text


def test_single_quad_output():
    obj = MeshAggregator()
    obj.add_face(QUAD, "stone")
    assert _vertices_text(obj) == (
        "v 0.00 0.00 0.00\n"
        "v 1.00 0.00 0.00\n"
        "v 1.00 1.00 0.00\n"
        "v 0.00 1.00 0.00\n"
    )
    assert _faces_text(obj) == "\nusemtl stone\nf 1/1/1 2/2/1 3/3/1 4/4/1\n"
    out = io.StringIO()
    obj.serialize_textures_and_normals(out)
    assert out.getvalue() == "vt 0 0\nvt 1 0\nvt 1 1\nvt 0 1\nvn 0 0 1\n"


def test_offset_and_scale_only_change_output():
    obj = MeshAggregator()
    obj.add_face(QUAD, "stone")
    obj.set_offset(10, 0, -2)
    obj.set_scale(0.5)
    obj.add_face(QUAD, "stone")
    assert obj.vertex_count == 4
    assert obj.get_vertex_id((1, 1, 0)) == 3
    assert _vertices_text(obj).splitlines()[2] == "v 5.50 0.50 -1.00"


def test_transform_applied_before_dedup():
    obj = MeshAggregator()
    trans = Transform().translate(3, 4, 5)
    obj.add_face(QUAD, "stone", trans=trans)
    assert obj.get_vertex_id((3, 4, 5)) == 1
    assert obj.get_vertex_id((0, 0, 0)) is None
    obj.add_face([(3, 4, 5), (4, 4, 5), (4, 5, 5), (3, 5, 5)], "stone")
    assert obj.vertex_count == 4


def test_side_tag_sets_normal():
    obj = MeshAggregator()
    obj.add_face(QUAD, "stone", side=TOP)
    normal_id = obj.faces[0].normals[0]
    assert obj.uvnorm_map.normals.values[normal_id - 1] == (0.0, 1.0, 0.0)


def test_explicit_uvs_and_normals_are_pooled():
    obj = MeshAggregator()
    uvs = [(0, 0), (0.5, 0), (0.5, 0.5), (0, 0.5)]
    normals = [(0, 0, 1)] * 4
    obj.add_face_uv(QUAD, uvs, normals, "rose")
    obj.add_face_uv([(0, 0, 1), (1, 0, 1), (1, 1, 1), (0, 1, 1)], uvs, normals, "rose")
    assert obj.faces[0].uv == obj.faces[1].uv == [1, 2, 3, 4]
    assert obj.faces[0].normals == [1, 1, 1, 1]
    assert len(obj.uvnorm_map.uvs) == 4
    assert obj.vertex_count == 8


def test_extend_offsets_ids_and_merges_materials():
    a = MeshAggregator()
    a.add_face(QUAD, "stone")
    b = MeshAggregator()
    b.add_face(QUAD, "dirt")
    b.add_face([(0, 0, 0), (0, 0, 1), (0, 1, 1), (0, 1, 0)], "stone")
    a.extend(b)
    assert a.vertex_count == 4 + 6
    assert a.faces[1].vertices == [5, 6, 7, 8]
    assert a.faces[2].vertices == [5, 9, 10, 8]
    assert [f.mtl for f in a.faces] == [1, 2, 1]
    assert len(_vertices_text(a).splitlines()) == 10
