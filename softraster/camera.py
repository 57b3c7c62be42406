from dataclasses import dataclass, field
from typing import Optional, Tuple

from .linalg import Mat3, Vec3, mat_vec, rotate_x, rotate_y, transpose


@dataclass
class Camera:
    """
    First-person camera: yaw/pitch orientation and a world position.

    Orientation matrix:
      R = Ry(yaw) @ Rx(pitch)

    Basis (columns of R, world space):
      - column 0: right
      - column 2: forward (the direction camera-space +z maps to)

    Conventions:
      - yaw > 0 turns right, pitch > 0 looks down
      - yaw is unbounded, pitch is clamped by look()
    """
    yaw: float = 0.0
    pitch: float = 0.0
    position: Vec3 = field(default_factory=lambda: Vec3(0.0, 0.0, -2.5))

    def view_basis(self) -> Tuple[Mat3, Mat3]:
        """Return (R, R^T). R^T is used as R^-1 since R is orthonormal."""
        r = rotate_y(self.yaw) @ rotate_x(self.pitch)
        return r, transpose(r)

    def right_axis(self) -> Vec3:
        return self.view_basis()[0].column(0)

    def forward_axis(self) -> Vec3:
        return self.view_basis()[0].column(2)

    def world_to_camera(self, point: Vec3, inverse: Optional[Mat3] = None) -> Vec3:
        """
        Transform a world-space point into camera space:
          p_cam = R^T @ (p_world - position)

        Translate first, then rotate by the inverse orientation.
        Pass `inverse` (R^T from view_basis) to avoid rebuilding it per vertex.
        """
        if inverse is None:
            inverse = self.view_basis()[1]
        return mat_vec(inverse, point - self.position)

    def look(self, dx: float, dy: float, sensitivity: float = 0.0015,
             pitch_limit: float = 1.45):
        """Apply a mouse delta (pixels). Pitch is silently clamped."""
        self.yaw += dx * sensitivity
        self.pitch = max(-pitch_limit, min(pitch_limit, self.pitch + dy * sensitivity))

    def move(self, dt: float, forward: bool = False, back: bool = False,
             left: bool = False, right: bool = False, speed: float = 1.5):
        """
        Move along the current basis for the held direction keys.

        Directions accumulate before scaling, so opposite keys cancel
        and diagonal movement is not normalized.
        """
        r, _ = self.view_basis()
        fwd = r.column(2)
        rgt = r.column(0)

        step = Vec3(0.0, 0.0, 0.0)
        if forward:
            step = step + fwd
        if back:
            step = step - fwd
        if right:
            step = step + rgt
        if left:
            step = step - rgt
        self.position = self.position + step * (speed * dt)
