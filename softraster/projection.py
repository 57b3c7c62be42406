import math
from typing import List, Optional, Sequence, Tuple

from .linalg import Vec3


ScreenPoint = Tuple[float, float]

NEAR = 1e-3


def focal_length(fov, height) -> float:
    """
    Vertical focal length in pixels for a vertical FOV in degrees:
      f = (height / 2) / tan(fov / 2)

    The same f is used horizontally, which keeps the aspect ratio.
    """
    return (height / 2.0) / math.tan(math.radians(fov) / 2.0)


def project_point(p: Vec3, fov, width, height, near=NEAR) -> Optional[ScreenPoint]:
    """
    Perspective-project a camera-space point to screen pixels.

      x_screen = f * x / z + width / 2
      y_screen = height / 2 - f * y / z

    Screen y grows downward, camera y grows upward, hence the sign flip.

    Returns None when z <= near: the point has no valid projection and
    every triangle touching it must be dropped by the caller.
    """
    if p.z <= near:
        return None
    f = focal_length(fov, height)
    return (f * (p.x / p.z) + width / 2.0,
            height / 2.0 - f * (p.y / p.z))


def project_vertices(points: Sequence[Vec3], fov, width, height,
                     near=NEAR) -> List[Optional[ScreenPoint]]:
    """Project a vertex list; invalid entries are None, indices are preserved."""
    f = focal_length(fov, height)
    cx, cy = width / 2.0, height / 2.0
    out: List[Optional[ScreenPoint]] = []
    for p in points:
        if p.z > near:
            out.append((f * (p.x / p.z) + cx, cy - f * (p.y / p.z)))
        else:
            out.append(None)
    return out
