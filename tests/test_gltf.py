import struct

import pytest

from obj2gltf.errors import StructuralError
from obj2gltf.gltf import GltfBuilder, create_gltf
from obj2gltf.model import GL_RGB, Image, Material, Mesh, Node, ObjData, Primitive

TRIANGLE = [0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0, 0.0]


def _triangle_model(**mesh_kwargs):
    mesh = Mesh(
        name="Mesh0",
        positions=TRIANGLE,
        primitives=[Primitive(indices=[0, 1, 2], material="mat")],
        **mesh_kwargs,
    )
    return ObjData(nodes=[Node(name="Node0", meshes=[mesh])], materials={"mat": Material()})


def test_single_triangle_document():
    result = create_gltf(_triangle_model())
    doc = result.document

    assert doc["scene"] == "scene"
    assert doc["scenes"]["scene"]["nodes"] == ["Node0"]
    assert doc["nodes"]["Node0"] == {"name": "Node0", "meshes": ["Mesh0"]}

    primitive = doc["meshes"]["Mesh0"]["primitives"][0]
    assert primitive["mode"] == 4
    assert primitive["material"] == "mat"
    assert primitive["attributes"] == {"POSITION": "accessor"}

    position = doc["accessors"][primitive["attributes"]["POSITION"]]
    assert position["type"] == "VEC3"
    assert position["min"] == [0.0, 0.0, 0.0]
    assert position["max"] == [1.0, 1.0, 0.0]

    index = doc["accessors"][primitive["indices"]]
    assert index["type"] == "SCALAR"
    assert index["componentType"] == 5123
    assert index["min"] == [0]
    assert index["max"] == [2]

    assert len(result.buffer) == 42
    assert doc["buffers"]["buffer"] == {"byteLength": 42, "type": "arraybuffer"}


def test_document_field_names_and_asset():
    doc = create_gltf(_triangle_model()).document

    assert list(doc) == [
        "accessors",
        "asset",
        "buffers",
        "bufferViews",
        "images",
        "materials",
        "meshes",
        "nodes",
        "samplers",
        "scene",
        "scenes",
        "textures",
    ]
    assert doc["asset"] == {
        "generator": "obj2gltf",
        "profile": {"api": "WebGL", "version": "1.0.2"},
        "version": "1.1",
    }
    assert list(doc["samplers"]) == ["sampler"]


def test_buffer_views_partition_the_buffer():
    result = create_gltf(_triangle_model(normals=TRIANGLE, uvs=[0.0, 0.0, 1.0, 0.0, 0.0, 1.0]))
    views = result.document["bufferViews"]
    vertex = views["bufferView_vertex"]
    index = views["bufferView_index"]

    assert vertex == {"buffer": "buffer", "byteLength": 36 + 36 + 24, "byteOffset": 0, "target": 34962}
    assert index["byteOffset"] == vertex["byteLength"]
    assert index["target"] == 34963
    assert result.document["buffers"]["buffer"]["byteLength"] == vertex["byteLength"] + index["byteLength"]
    assert len(result.buffer) == vertex["byteLength"] + index["byteLength"]


def test_accessors_fit_inside_their_buffer_views():
    meshes = [
        Mesh(
            name="a",
            positions=TRIANGLE,
            uvs=[0.0] * 6,
            primitives=[Primitive([0, 1, 2], "mat"), Primitive([2, 1, 0], "mat")],
        ),
        Mesh(name="b", positions=TRIANGLE * 2, primitives=[Primitive([0, 4, 5], "mat")]),
        Mesh(name="c", positions=TRIANGLE, primitives=[Primitive([0, 1, 65535], "mat")]),
    ]
    doc = create_gltf(ObjData(nodes=[Node("n", meshes)], materials={"mat": Material()})).document
    sizes = {5126: 4, 5123: 2, 5125: 4}
    widths = {"SCALAR": 1, "VEC2": 2, "VEC3": 3}

    for accessor in doc["accessors"].values():
        view = doc["bufferViews"][accessor["bufferView"]]
        size = sizes[accessor["componentType"]]
        end = accessor["byteOffset"] + accessor["count"] * widths[accessor["type"]] * size
        assert end <= view["byteLength"]
        assert accessor["byteOffset"] % size == 0


def test_primitives_share_attributes_but_not_indices():
    mesh = Mesh(
        name="m",
        positions=TRIANGLE,
        normals=TRIANGLE,
        primitives=[Primitive([0, 1, 2], "red"), Primitive([2, 1, 0], "blue")],
    )
    model = ObjData(nodes=[Node("n", [mesh])], materials={"red": Material(), "blue": Material()})
    primitives = create_gltf(model).document["meshes"]["m"]["primitives"]

    assert primitives[0]["attributes"] == primitives[1]["attributes"]
    assert primitives[0]["indices"] != primitives[1]["indices"]
    assert [p["material"] for p in primitives] == ["red", "blue"]


def test_vertex_bytes_round_trip():
    uvs = [0.25, 0.75, 0.5, 0.125, 1.0, 0.0]
    result = create_gltf(_triangle_model(uvs=uvs))
    doc = result.document
    attributes = doc["meshes"]["Mesh0"]["primitives"][0]["attributes"]

    for semantic, expected in (("POSITION", TRIANGLE), ("TEXCOORD_0", uvs)):
        accessor = doc["accessors"][attributes[semantic]]
        start = doc["bufferViews"]["bufferView_vertex"]["byteOffset"] + accessor["byteOffset"]
        decoded = struct.unpack_from(f"<{len(expected)}f", result.buffer, start)
        assert list(decoded) == expected


def test_index_bytes_follow_vertex_region():
    result = create_gltf(_triangle_model())
    view = result.document["bufferViews"]["bufferView_index"]
    assert struct.unpack_from("<3H", result.buffer, view["byteOffset"]) == (0, 1, 2)


def test_duplicate_names_are_disambiguated():
    node_a = Node("accessor", [Mesh("shape", TRIANGLE, primitives=[Primitive([0, 1, 2], "mat")])])
    node_b = Node("accessor", [Mesh("shape", TRIANGLE, primitives=[Primitive([0, 1, 2], "mat")])])
    doc = create_gltf(ObjData(nodes=[node_a, node_b], materials={"mat": Material()})).document

    # nodes and accessors draw from one allocator
    assert doc["scenes"]["scene"]["nodes"] == ["accessor", "accessor_3"]
    assert list(doc["meshes"]) == ["shape", "shape_1"]
    assert len(set(doc["accessors"]) | set(doc["nodes"])) == len(doc["accessors"]) + len(doc["nodes"])


def test_material_named_like_reserved_id_is_renamed_consistently():
    mesh = Mesh("m", TRIANGLE, primitives=[Primitive([0, 1, 2], "scene")])
    doc = create_gltf(ObjData(nodes=[Node("n", [mesh])], materials={"scene": Material()})).document

    assert list(doc["materials"]) == ["scene_1"]
    assert doc["materials"]["scene_1"]["name"] == "scene"
    assert doc["meshes"]["m"]["primitives"][0]["material"] == "scene_1"


def test_textured_material_references_registered_texture():
    model = _triangle_model()
    model.materials["mat"] = Material(diffuse_color_map="/tex/stone.png")
    model.images["/tex/stone.png"] = Image(format=GL_RGB, uri="stone.png")
    doc = create_gltf(model).document

    values = doc["materials"]["mat"]["extensions"]["KHR_materials_common"]["values"]
    assert values["diffuse"] == "texture_stone"
    assert doc["textures"]["texture_stone"]["source"] == "stone"
    assert doc["textures"]["texture_stone"]["sampler"] == "sampler"


def test_each_build_starts_with_fresh_state():
    first = create_gltf(_triangle_model())
    second = create_gltf(_triangle_model())

    assert first.document == second.document
    assert first.buffer == second.buffer


def test_builder_is_single_use():
    builder = GltfBuilder()
    builder.build(_triangle_model())
    with pytest.raises(RuntimeError):
        builder.build(_triangle_model())


def test_mesh_without_positions_aborts_build():
    mesh = Mesh("empty", positions=[], normals=TRIANGLE, primitives=[Primitive([0, 1, 2], "mat")])
    with pytest.raises(StructuralError):
        create_gltf(ObjData(nodes=[Node("n", [mesh])], materials={"mat": Material()}))


def test_unknown_material_aborts_build():
    mesh = Mesh("m", TRIANGLE, primitives=[Primitive([0, 1, 2], "missing")])
    with pytest.raises(StructuralError):
        create_gltf(ObjData(nodes=[Node("n", [mesh])], materials={}))


def test_oversized_index_aborts_build():
    mesh = Mesh("m", TRIANGLE, primitives=[Primitive([0, 1, 2**32], "mat")])
    with pytest.raises(StructuralError):
        create_gltf(ObjData(nodes=[Node("n", [mesh])], materials={"mat": Material()}))


def test_counts_summary():
    counts = create_gltf(_triangle_model()).counts()
    assert counts["nodes"] == 1
    assert counts["meshes"] == 1
    assert counts["primitives"] == 1
    assert counts["accessors"] == 2
    assert counts["bytes"] == 42
