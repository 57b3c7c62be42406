from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import Color
from .linalg import Vec3
from .projection import NEAR, ScreenPoint
from .scene import Polygon


AREA_EPSILON = 1e-6


@dataclass(frozen=True)
class Triangle:
    """
    Raster-ready triangle.

    p1, p2, p3 - screen-space points (window pixels)
    z1, z2, z3 - camera-space depths, all > near plane
    color      - RGB 0..255
    """
    p1: ScreenPoint
    p2: ScreenPoint
    p3: ScreenPoint
    z1: float
    z2: float
    z3: float
    color: Color


def triangulate_fan(face: Sequence[int]) -> List[Tuple[int, int, int]]:
    """
    Convert a convex polygon (3..N vertices) into triangles using a fan:
      (v0,v1,v2), (v0,v2,v3), ..., (v0,vN-2,vN-1)

    Concave polygons produce wrong (overlapping) triangles; the caller
    guarantees convex input.
    """
    if len(face) < 3:
        return []
    o = face[0]
    return [(o, face[i], face[i + 1]) for i in range(1, len(face) - 1)]


def signed_area2(p1: ScreenPoint, p2: ScreenPoint, p3: ScreenPoint) -> float:
    """Twice the signed area: (x2-x1)(y3-y1) - (y2-y1)(x3-x1)."""
    return (p2[0] - p1[0]) * (p3[1] - p1[1]) - (p2[1] - p1[1]) * (p3[0] - p1[0])


def gather_triangles(camera_verts: Sequence[Optional[Vec3]],
                     screen_verts: Sequence[Optional[ScreenPoint]],
                     faces: Sequence[Polygon],
                     colors: Sequence[Color],
                     near: float = NEAR,
                     area_epsilon: float = AREA_EPSILON,
                     out: Optional[List[Triangle]] = None) -> List[Triangle]:
    """
    Fan-triangulate every face of one mesh and keep the valid triangles.

    A candidate triangle is dropped when:
      - any vertex has no camera-space or screen-space value
      - any camera-space depth is <= near
      - |signed screen area| < area_epsilon (collinear or sub-pixel)

    Survivors are appended to `out` (a new list if None) in face order.
    No backface culling is done here.
    """
    tris = out if out is not None else []
    for f, face in enumerate(faces):
        color = colors[f] if f < len(colors) else (255, 255, 255)
        for a, b, c in triangulate_fan(face):
            v1, v2, v3 = camera_verts[a], camera_verts[b], camera_verts[c]
            p1, p2, p3 = screen_verts[a], screen_verts[b], screen_verts[c]
            if v1 is None or v2 is None or v3 is None:
                continue
            if p1 is None or p2 is None or p3 is None:
                continue
            if v1.z <= near or v2.z <= near or v3.z <= near:
                continue
            if abs(signed_area2(p1, p2, p3)) < area_epsilon:
                continue
            tris.append(Triangle(p1, p2, p3, v1.z, v2.z, v3.z, color))
    return tris
