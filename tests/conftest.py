from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

QUAD_OBJ = """\
# textured quad
mtllib quad.mtl
o Quad
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 0 1
usemtl textured
f 1/1/1 2/2/1 3/3/1 4/4/1
"""

QUAD_MTL = """\
newmtl textured
Ka 0.1 0.1 0.1
Kd 0.8 0.2 0.2
Ks 0.5 0.5 0.5
Ns 32
map_Kd textures/diffuse.png
"""


@pytest.fixture
def quad_dir(tmp_path: Path) -> Path:
    (tmp_path / "quad.obj").write_text(QUAD_OBJ, encoding="utf-8")
    (tmp_path / "quad.mtl").write_text(QUAD_MTL, encoding="utf-8")
    textures = tmp_path / "textures"
    textures.mkdir()
    Image.new("RGBA", (2, 2), (255, 0, 0, 128)).save(textures / "diffuse.png")
    return tmp_path
