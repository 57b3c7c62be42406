import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .config import Color
from .linalg import Mat3, Vec3, rotation


logger = logging.getLogger(__name__)

Polygon = Tuple[int, ...]


# ============================================================
#  Materials
# ============================================================

MATERIAL_GROUND = "ground"
MATERIAL_PINE = "pine"
MATERIAL_NEUTRAL = "neutral"

GROUND_COLORS = ((43, 64, 43), (51, 77, 51))
PINE_BANDS = (
    (range(0, 6), (115, 71, 31)),     # trunk
    (range(6, 11), (26, 102, 41)),    # foliage layer 1
    (range(11, 16), (31, 115, 46)),   # foliage layer 2
    (range(16, 21), (36, 128, 51)),   # foliage layer 3
)
NEUTRAL_COLOR = (191, 191, 199)


# ============================================================
#  Mesh / Scene
# ============================================================

@dataclass(frozen=True)
class Mesh:
    """
    Static polygon mesh.

    faces:
      0-based indices into `vertices`, 3..N per polygon. Polygons must be
      convex and consistently wound; the fan triangulation downstream
      does not check this (see validate_mesh for a debug pass).

    material:
      explicit tag driving assign_face_colors(). For MATERIAL_GROUND,
      `grid` is the number of checker columns.
    """
    name: str
    vertices: Tuple[Vec3, ...]
    faces: Tuple[Polygon, ...]
    material: str = MATERIAL_NEUTRAL
    grid: int = 0


def assign_face_colors(mesh: Mesh) -> List[Color]:
    """One RGB color per face, parallel to mesh.faces, chosen by material tag."""
    n = len(mesh.faces)
    if mesh.material == MATERIAL_GROUND:
        cols = mesh.grid if mesh.grid > 0 else max(1, int(math.isqrt(n)))
        colors = []
        for f in range(n):
            row, col = divmod(f, cols)
            colors.append(GROUND_COLORS[(row + col) % 2])
        return colors

    if mesh.material == MATERIAL_PINE:
        colors = []
        for f in range(n):
            color = PINE_BANDS[-1][1]
            for band, band_color in PINE_BANDS:
                if f in band:
                    color = band_color
                    break
            colors.append(color)
        return colors

    if mesh.material != MATERIAL_NEUTRAL:
        logger.warning("unknown material %r on mesh %r, using neutral", mesh.material, mesh.name)
    return [NEUTRAL_COLOR] * n


class Scene:
    """
    Meshes plus a world rotation applied to every vertex each frame.

    The rotation (rx, ry, rz) is composed as rotation(rx, ry, rz) and
    advances by `spin` (rad/s) in advance(). Zero spin keeps it identity.
    """

    def __init__(self, meshes: Sequence[Mesh] = (),
                 spin: Tuple[float, float, float] = (0.0, 0.0, 0.0)):
        self.meshes: List[Mesh] = []
        self.face_colors: List[List[Color]] = []
        self.angles = [0.0, 0.0, 0.0]
        self.spin = tuple(float(s) for s in spin)
        for mesh in meshes:
            self.add(mesh)

    def add(self, mesh: Mesh):
        self.meshes.append(mesh)
        self.face_colors.append(assign_face_colors(mesh))

    def advance(self, dt: float):
        two_pi = 2.0 * math.pi
        for i in range(3):
            self.angles[i] = (self.angles[i] + self.spin[i] * dt) % two_pi

    def world_matrix(self) -> Mat3:
        return rotation(*self.angles)

    @property
    def vertex_count(self) -> int:
        return sum(len(m.vertices) for m in self.meshes)

    @property
    def face_count(self) -> int:
        return sum(len(m.faces) for m in self.meshes)


# ============================================================
#  Builders (default scene)
# ============================================================

def _box(x0, x1, y0, y1, z0, z1, base=0):
    """
    Axis-aligned box: 8 vertices and 6 quads, starting at vertex index `base`.

    Quads are wound like the ground grid seen from above, viewed from
    outside the box, so culling keeps the faces pointing at the camera.
    """
    verts = [
        Vec3(x0, y0, z0), Vec3(x1, y0, z0), Vec3(x1, y1, z0), Vec3(x0, y1, z0),
        Vec3(x0, y0, z1), Vec3(x1, y0, z1), Vec3(x1, y1, z1), Vec3(x0, y1, z1),
    ]
    b = base
    faces = [
        (b, b+1, b+2, b+3), (b+7, b+6, b+5, b+4), (b+4, b+5, b+1, b),
        (b+5, b+6, b+2, b+1), (b+6, b+7, b+3, b+2), (b+7, b+4, b, b+3),
    ]
    return verts, faces


def ground_grid(size=10.0, cells=8, y=-0.62, name="ground") -> Mesh:
    """Square grid on the XZ plane centered at the origin, cells x cells quads."""
    step = size / cells
    half = size / 2.0
    verts = [Vec3(-half + ix * step, y, -half + iz * step)
             for iz in range(cells + 1) for ix in range(cells + 1)]
    faces = []
    for r in range(cells):
        for c in range(cells):
            a = r * (cells + 1) + c
            faces.append((a, a + 1, a + cells + 2, a + cells + 1))
    return Mesh(name, tuple(verts), tuple(faces), MATERIAL_GROUND, grid=cells)


def pine_tree(cx, cz, trunk, trunk_top, layers, ground_y=-0.60, name="pine") -> Mesh:
    """
    Pine: box trunk plus stacked square pyramids.

    Parameters:
      cx, cz    - trunk center on the ground plane
      trunk     - (half_x, half_z) of the trunk
      trunk_top - y of the trunk top
      layers    - (half_width, base_y, apex_y) per foliage layer
    """
    hx, hz = trunk
    verts, faces = _box(cx - hx, cx + hx, ground_y, trunk_top, cz - hz, cz + hz)
    for half, base_y, apex_y in layers:
        k = len(verts)
        verts += [
            Vec3(cx - half, base_y, cz - half), Vec3(cx + half, base_y, cz - half),
            Vec3(cx + half, base_y, cz + half), Vec3(cx - half, base_y, cz + half),
            Vec3(cx, apex_y, cz),
        ]
        faces += [
            (k+3, k+2, k+1, k),
            (k, k+1, k+4), (k+1, k+2, k+4), (k+2, k+3, k+4), (k+3, k, k+4),
        ]
    return Mesh(name, tuple(verts), tuple(faces), MATERIAL_PINE)


def box_figure(name="figure") -> Mesh:
    """Blocky humanoid (torso, head, arms, legs) standing behind the origin."""
    parts = [
        (-0.25, 0.25, 0.20, 1.00, -0.90, -0.70),     # torso
        (-0.18, 0.18, 1.00, 1.36, -0.98, -0.62),     # head
        (-0.45, -0.25, 0.25, 0.85, -0.875, -0.725),  # left arm
        (0.25, 0.45, 0.25, 0.85, -0.875, -0.725),    # right arm
        (-0.15, 0.00, -0.60, 0.20, -0.875, -0.725),  # left leg
        (0.00, 0.15, -0.60, 0.20, -0.875, -0.725),   # right leg
    ]
    verts, faces = [], []
    for part in parts:
        v, f = _box(*part, base=len(verts))
        verts += v
        faces += f
    return Mesh(name, tuple(verts), tuple(faces), MATERIAL_NEUTRAL)


def default_scene(spin=(0.0, 0.0, 0.0)) -> Scene:
    """Ground, four pines and a figure."""
    tall = [(0.45, 0.20, 0.65), (0.33, 0.50, 0.95), (0.22, 0.80, 1.20)]
    small = [(0.36, 0.15, 0.51), (0.264, 0.39, 0.75), (0.176, 0.63, 0.95)]
    large = [(0.54, 0.24, 0.78), (0.396, 0.60, 1.14), (0.264, 0.96, 1.44)]
    return Scene([
        ground_grid(),
        pine_tree(-1.8, 0.6, (0.07, 0.07), 0.20, tall, name="pine-1"),
        pine_tree(-0.6, 0.3, (0.06, 0.06), 0.15, small, name="pine-2"),
        pine_tree(0.6, 0.5, (0.07, 0.07), 0.20, tall, name="pine-3"),
        pine_tree(1.8, 0.8, (0.08, 0.084), 0.24, large, name="pine-4"),
        box_figure(),
    ], spin=spin)


# ============================================================
#  OBJ loader
# ============================================================

def load_obj(path: str, material: str = MATERIAL_NEUTRAL, name: Optional[str] = None) -> Mesh:
    """
    Minimal OBJ parser for polygonal meshes.

    Supported:
      v  x y z
      f  v1 v2 v3 ...   (any of v, v/vt, v/vt/vn, v//vn; negative = relative)

    Other records (vt, vn, o, g, s, usemtl, ...) are ignored.
    Faces with fewer than 3 vertices are skipped with a warning.

    Raises:
      OSError    - file cannot be read
      ValueError - malformed v/f record or face index out of range
    """
    verts: List[Vec3] = []
    faces: List[Polygon] = []
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split()
            try:
                if parts[0] == "v":
                    if len(parts) < 4:
                        raise ValueError("vertex needs 3 coordinates")
                    verts.append(Vec3(float(parts[1]), float(parts[2]), float(parts[3])))
                elif parts[0] == "f":
                    face = tuple(_obj_index(tok, len(verts)) for tok in parts[1:])
                    if len(face) < 3:
                        logger.warning("%s:%d: skipping face with %d vertices", path, lineno, len(face))
                        continue
                    faces.append(face)
            except ValueError as exc:
                raise ValueError(f"{path}:{lineno}: {exc}") from exc

    logger.info("loaded %s: %d vertices, %d faces", path, len(verts), len(faces))
    return Mesh(name or str(path), tuple(verts), tuple(faces), material)


def _obj_index(token: str, n_verts: int) -> int:
    idx = int(token.split("/")[0])
    if idx < 0:
        idx = n_verts + idx
    else:
        idx -= 1
    if not 0 <= idx < n_verts:
        raise ValueError(f"face index {token!r} out of range (have {n_verts} vertices)")
    return idx


# ============================================================
#  Debug validation
# ============================================================

def validate_mesh(mesh: Mesh, eps: float = 1e-9) -> List[str]:
    """
    Check the fan-triangulation preconditions of every face.

    Reports (never raises):
      - polygons with fewer than 3 vertices
      - indices outside the vertex list
      - degenerate polygons (zero area normal)
      - non-convex polygons or polygons with inconsistent turning
    """
    problems: List[str] = []
    n = len(mesh.vertices)
    for fi, face in enumerate(mesh.faces):
        if len(face) < 3:
            problems.append(f"{mesh.name}: face {fi} has {len(face)} vertices")
            continue
        bad = [i for i in face if not 0 <= i < n]
        if bad:
            problems.append(f"{mesh.name}: face {fi} references missing vertices {bad}")
            continue

        pts = [mesh.vertices[i] for i in face]
        normal = _newell_normal(pts)
        if normal.norm() <= eps:
            problems.append(f"{mesh.name}: face {fi} is degenerate")
            continue

        k = len(pts)
        for j in range(k):
            a, b, c = pts[j], pts[(j + 1) % k], pts[(j + 2) % k]
            turn = (b - a).cross(c - b).dot(normal)
            if turn < -eps:
                problems.append(f"{mesh.name}: face {fi} is not convex")
                break

    for p in problems:
        logger.warning(p)
    return problems


def _newell_normal(pts: Sequence[Vec3]) -> Vec3:
    nx = ny = nz = 0.0
    k = len(pts)
    for j in range(k):
        a, b = pts[j], pts[(j + 1) % k]
        nx += (a.y - b.y) * (a.z + b.z)
        ny += (a.z - b.z) * (a.x + b.x)
        nz += (a.x - b.x) * (a.y + b.y)
    return Vec3(nx, ny, nz)


def summarize(scene: Scene) -> Dict[str, int]:
    return {
        "meshes": len(scene.meshes),
        "vertices": scene.vertex_count,
        "faces": scene.face_count,
    }
