import math
from dataclasses import dataclass
from typing import List, Optional


# ============================================================
#  Vectors
# ============================================================

@dataclass(frozen=True)
class Vec3:
    """
    3D vector for positions and directions.

    Used in:
      - mesh vertices (world space)
      - camera position and basis axes
      - camera-space vertices fed to the projection stage

    Immutable: operations return new objects.
    """
    x: float
    y: float
    z: float

    def __add__(self, o): return Vec3(self.x + o.x, self.y + o.y, self.z + o.z)
    def __sub__(self, o): return Vec3(self.x - o.x, self.y - o.y, self.z - o.z)
    def __mul__(self, k: float): return Vec3(self.x * k, self.y * k, self.z * k)
    def __neg__(self): return Vec3(-self.x, -self.y, -self.z)

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z

    def dot(self, o) -> float:
        """Dot product (scalar product)."""
        return dot(self, o)

    def cross(self, o):
        """Cross product (vector product)."""
        return Vec3(
            self.y * o.z - self.z * o.y,
            self.z * o.x - self.x * o.z,
            self.x * o.y - self.y * o.x
        )

    def norm(self) -> float:
        """Euclidean length."""
        return math.sqrt(self.dot(self))

    def normalize(self):
        """Return normalized vector, or the zero vector for zero length."""
        return normalize(self)


ZERO = Vec3(0.0, 0.0, 0.0)


def dot(a: Vec3, b: Vec3) -> float:
    return a.x * b.x + a.y * b.y + a.z * b.z


def normalize(v: Vec3) -> Vec3:
    """
    Unit vector in the direction of v.

    A zero-length input yields the zero vector instead of raising.
    """
    n = math.sqrt(dot(v, v))
    if n == 0.0:
        return ZERO
    return Vec3(v.x / n, v.y / n, v.z / n)


# ============================================================
#  Matrices
# ============================================================

class Mat3:
    """
    3x3 matrix (row-major), a linear map on Vec3.

    Rotation matrices built below are orthonormal, so their transpose
    is their inverse. This is relied on by the camera and never checked.

    Multiplication:
      - Matrix @ Matrix => Mat3
      - Matrix @ Vec3   => Vec3
    """
    __slots__ = ("m",)

    def __init__(self, m: Optional[List[List[float]]] = None):
        self.m = m if m is not None else [[0.0] * 3 for _ in range(3)]

    @staticmethod
    def identity():
        """Create identity matrix."""
        m = Mat3()
        for i in range(3):
            m.m[i][i] = 1.0
        return m

    def __matmul__(self, o):
        if isinstance(o, Mat3):
            return mat_mul(self, o)
        if isinstance(o, Vec3):
            return mat_vec(self, o)
        return NotImplemented

    def __eq__(self, o):
        if not isinstance(o, Mat3):
            return NotImplemented
        return self.m == o.m

    def __repr__(self):
        return f"Mat3({self.m!r})"

    def column(self, j: int) -> Vec3:
        m = self.m
        return Vec3(m[0][j], m[1][j], m[2][j])

    def transpose(self):
        return transpose(self)

    def determinant(self) -> float:
        (a, b, c), (d, e, f), (g, h, i) = self.m
        return a * (e * i - f * h) - b * (d * i - f * g) + c * (d * h - e * g)


def mat_mul(a: Mat3, b: Mat3) -> Mat3:
    """(AB)[i][j] = sum_k A[i][k] * B[k][j]. Not commutative."""
    r = Mat3()
    for i in range(3):
        for j in range(3):
            s = 0.0
            for k in range(3):
                s += a.m[i][k] * b.m[k][j]
            r.m[i][j] = s
    return r


def mat_vec(mat: Mat3, v: Vec3) -> Vec3:
    """Multiply matrix by a column vector (Mat3 * Vec3)."""
    m = mat.m
    return Vec3(
        m[0][0]*v.x + m[0][1]*v.y + m[0][2]*v.z,
        m[1][0]*v.x + m[1][1]*v.y + m[1][2]*v.z,
        m[2][0]*v.x + m[2][1]*v.y + m[2][2]*v.z,
    )


def transpose(mat: Mat3) -> Mat3:
    m = mat.m
    return Mat3([
        [m[0][0], m[1][0], m[2][0]],
        [m[0][1], m[1][1], m[2][1]],
        [m[0][2], m[1][2], m[2][2]],
    ])


# ============================================================
#  Rotations
# ============================================================

def rotate_x(a) -> Mat3:
    """Rotation around X axis by angle a (radians)."""
    c, s = math.cos(a), math.sin(a)
    m = Mat3.identity()
    m.m[1][1] = c
    m.m[1][2] = -s
    m.m[2][1] = s
    m.m[2][2] = c
    return m


def rotate_y(a) -> Mat3:
    """Rotation around Y axis by angle a (radians)."""
    c, s = math.cos(a), math.sin(a)
    m = Mat3.identity()
    m.m[0][0] = c
    m.m[0][2] = s
    m.m[2][0] = -s
    m.m[2][2] = c
    return m


def rotate_z(a) -> Mat3:
    """Rotation around Z axis by angle a (radians)."""
    c, s = math.cos(a), math.sin(a)
    m = Mat3.identity()
    m.m[0][0] = c
    m.m[0][1] = -s
    m.m[1][0] = s
    m.m[1][1] = c
    return m


def rotation(alpha, beta, gamma) -> Mat3:
    """
    Composed rotation R = Rz(gamma) @ Ry(beta) @ Rx(alpha).

    Applied to a vector this rotates around X first, then Y, then Z.
    """
    return rotate_z(gamma) @ (rotate_y(beta) @ rotate_x(alpha))
