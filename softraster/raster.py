import logging
import math
from typing import Iterable, Optional

import numpy as np
from numba import njit
from PIL import Image

from .assembly import Triangle
from .config import Color


logger = logging.getLogger(__name__)


# ============================================================
#  Numba kernels
# ============================================================

@njit(cache=True)
def edge(x0, y0, x1, y1, x, y):
    """
    Edge function: 2D cross product of (P - P0) and (P1 - P0).

    Sign tells which side of the segment P0->P1 the point P lies on;
    zero means P is on the line.
    """
    return (x - x0) * (y1 - y0) - (y - y0) * (x1 - x0)


@njit(cache=True)
def interpolate_depth(w1, w2, w3, invz1, invz2, invz3):
    """Perspective-correct depth: interpolate 1/z linearly, then invert."""
    return 1.0 / (w1 * invz1 + w2 * invz2 + w3 * invz3)


@njit(cache=True)
def perspective_depth(w1, w2, w3, z1, z2, z3):
    """Depth at barycentric weights (w1, w2, w3) of a triangle with depths z1..z3."""
    return interpolate_depth(w1, w2, w3, 1.0 / z1, 1.0 / z2, 1.0 / z3)


@njit(cache=True)
def fill_triangle_zbuffer(img, zbuf,
                          x1, y1, z1,
                          x2, y2, z2,
                          x3, y3, z3,
                          r, g, b, cull):
    """
    Rasterize a filled, constant-color triangle with a depth test.

    img:
      - shape (W, H, 3), dtype uint8, indexed [x, y] like pygame surfarray
    zbuf:
      - shape (W, H), camera-space depth, +inf when empty
      - a fragment is written only if z < zbuf[x, y] (first writer wins ties)

    Pixels are sampled at their centers (x + 0.5, y + 0.5). Weights are
    divided by the signed area, so both windings pass the inclusion test;
    with `cull` set, triangles with A <= 0 are skipped instead.

    Returns the number of pixels written.
    """
    W, H = zbuf.shape

    A = edge(x1, y1, x2, y2, x3, y3)
    if A == 0.0:
        return 0
    if cull and A < 0.0:
        return 0

    minx = max(0, int(math.floor(min(x1, x2, x3))))
    maxx = min(W - 1, int(math.floor(max(x1, x2, x3))))
    miny = max(0, int(math.floor(min(y1, y2, y3))))
    maxy = min(H - 1, int(math.floor(max(y1, y2, y3))))

    invA = 1.0 / A
    invz1 = 1.0 / z1
    invz2 = 1.0 / z2
    invz3 = 1.0 / z3

    written = 0
    for y in range(miny, maxy + 1):
        py = y + 0.5
        for x in range(minx, maxx + 1):
            px = x + 0.5
            w1 = edge(x2, y2, x3, y3, px, py) * invA
            w2 = edge(x3, y3, x1, y1, px, py) * invA
            w3 = 1.0 - w1 - w2
            if w1 < 0.0 or w2 < 0.0 or w3 < 0.0:
                continue

            z = interpolate_depth(w1, w2, w3, invz1, invz2, invz3)
            if z < zbuf[x, y]:
                zbuf[x, y] = z
                img[x, y, 0] = r
                img[x, y, 1] = g
                img[x, y, 2] = b
                written += 1
    return written


def warmup():
    """Compile the kernels once (first call triggers numba compilation)."""
    img = np.zeros((4, 4, 3), dtype=np.uint8)
    zbuf = np.full((4, 4), np.inf, dtype=np.float64)
    fill_triangle_zbuffer(img, zbuf, 0.0, 0.0, 1.0, 4.0, 0.0, 1.0, 0.0, 4.0, 1.0, 255, 255, 255, False)
    perspective_depth(0.5, 0.25, 0.25, 1.0, 2.0, 3.0)


# ============================================================
#  Framebuffer
# ============================================================

class Framebuffer:
    """
    Fixed-resolution color + depth buffers.

    color: (W, H, 3) uint8 RGB
    depth: (W, H) float64 camera-space depth, +inf = nothing drawn

    Per frame: clear() -> rasterize(...) -> color / to_image().
    """

    def __init__(self, width: int, height: int, background: Color = (0, 0, 0)):
        self.width = int(width)
        self.height = int(height)
        self.background = tuple(background)
        self.color = np.empty((self.width, self.height, 3), dtype=np.uint8)
        self.depth = np.empty((self.width, self.height), dtype=np.float64)
        self.clear()

    @property
    def size(self):
        return self.width, self.height

    def clear(self):
        """Depth to +inf, color to background."""
        self.depth.fill(np.inf)
        self.color[:, :] = self.background

    def rasterize(self, triangles: Iterable[Triangle],
                  window_width: Optional[float] = None,
                  window_height: Optional[float] = None,
                  cull_backfaces: bool = False) -> int:
        """
        Draw triangles into the buffers. Order does not matter.

        Screen points are given in window pixels and scaled by
        (width / window_width, height / window_height) into the buffer.
        Returns the number of pixels written.
        """
        sx = self.width / window_width if window_width else 1.0
        sy = self.height / window_height if window_height else 1.0
        img, zbuf = self.color, self.depth

        written = 0
        for t in triangles:
            r, g, b = t.color
            written += fill_triangle_zbuffer(
                img, zbuf,
                t.p1[0] * sx, t.p1[1] * sy, t.z1,
                t.p2[0] * sx, t.p2[1] * sy, t.z2,
                t.p3[0] * sx, t.p3[1] * sy, t.z3,
                r, g, b, cull_backfaces)
        return written

    def to_image(self) -> Image.Image:
        """Color buffer as a Pillow RGB image (rows = y)."""
        return Image.fromarray(np.ascontiguousarray(self.color.transpose(1, 0, 2)))

    def save(self, path):
        self.to_image().save(path)
        logger.info("saved frame %dx%d to %s", self.width, self.height, path)
