import logging

from obj2gltf.mtl import load_mtl, parse_mtl

MTL = """\
# two materials
newmtl brick
Ka 0.1 0.2 0.3
Kd 0.5 0.25 0.125
Ks 1 1 1
Ke 0 0 0.5
Ns 96.0
d 0.75
map_Kd textures/brick diffuse.png
map_Ka ambient.png
map_Ke glow.png
map_Ks spec.png
map_Ns gloss.png
map_Bump normal.png
map_d alpha.png

NEWMTL glass
kd 0.9 0.9 1.0
Tr 0.25
"""


def test_parse_all_directives():
    materials = parse_mtl(MTL.splitlines())
    brick = materials["brick"]

    assert brick.ambient_color == [0.1, 0.2, 0.3, 1.0]
    assert brick.diffuse_color == [0.5, 0.25, 0.125, 1.0]
    assert brick.specular_color == [1.0, 1.0, 1.0, 1.0]
    assert brick.emission_color == [0.0, 0.0, 0.5, 1.0]
    assert brick.specular_shininess == 96.0
    assert brick.alpha == 0.75
    assert brick.diffuse_color_map == "textures/brick diffuse.png"
    assert brick.ambient_color_map == "ambient.png"
    assert brick.emission_color_map == "glow.png"
    assert brick.specular_color_map == "spec.png"
    assert brick.specular_shininess_map == "gloss.png"
    assert brick.normal_map == "normal.png"
    assert brick.alpha_map == "alpha.png"


def test_directives_are_case_insensitive():
    glass = parse_mtl(MTL.splitlines())["glass"]

    assert glass.diffuse_color == [0.9, 0.9, 1.0, 1.0]
    assert glass.alpha == 0.75


def test_directives_outside_a_material_are_ignored():
    materials = parse_mtl(["Kd 1 0 0", "newmtl only", "Kd 0 1 0"])

    assert list(materials) == ["only"]
    assert materials["only"].diffuse_color == [0.0, 1.0, 0.0, 1.0]


def test_malformed_values_are_skipped():
    materials = parse_mtl(["newmtl m", "Kd 1 oops 0", "Ns 5"])

    assert materials["m"].diffuse_color is None
    assert materials["m"].specular_shininess == 5.0


def test_load_mtl_reads_file(tmp_path):
    path = tmp_path / "scene.mtl"
    path.write_text(MTL, encoding="utf-8")

    assert set(load_mtl(path)) == {"brick", "glass"}


def test_unreadable_mtl_degrades_to_empty_table(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="obj2gltf.mtl"):
        materials = load_mtl(tmp_path / "missing.mtl")

    assert materials == {}
    assert "Could not read material file" in caplog.text
