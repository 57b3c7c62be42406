from dataclasses import dataclass, fields
from typing import Tuple


Color = Tuple[int, int, int]


@dataclass
class RenderConfig:
    """
    Tunable constants of the render pipeline and the interactive viewer.

    Defaults:
      - 60 degree vertical FOV, near plane at 1e-3
      - 820x580 render buffer, shown in a window of the same size
      - FPS controls: 1.5 units/s movement, 0.0015 rad/px mouse look,
        pitch limited to +-1.45 rad
    """
    fov: float = 60.0
    near: float = 1e-3
    area_epsilon: float = 1e-6

    render_width: int = 820
    render_height: int = 580
    window_width: int = 820
    window_height: int = 580
    background: Color = (0, 0, 0)

    move_speed: float = 1.5
    mouse_sensitivity: float = 0.0015
    pitch_limit: float = 1.45
    eye: Tuple[float, float, float] = (0.0, 0.0, -2.5)

    cull_backfaces: bool = False
    debug_checks: bool = False
    target_fps: int = 60

    def __post_init__(self):
        if not 0.0 < self.fov < 180.0:
            raise ValueError(f"fov must be in (0, 180) degrees, got {self.fov}")
        if self.near <= 0.0:
            raise ValueError(f"near plane must be positive, got {self.near}")
        if self.area_epsilon < 0.0:
            raise ValueError(f"area_epsilon must be >= 0, got {self.area_epsilon}")
        for name in ("render_width", "render_height", "window_width", "window_height"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if len(self.background) != 3 or any(not 0 <= c <= 255 for c in self.background):
            raise ValueError(f"background must be an RGB triple in 0..255, got {self.background}")
        if self.pitch_limit <= 0.0:
            raise ValueError(f"pitch_limit must be positive, got {self.pitch_limit}")

    @property
    def render_size(self) -> Tuple[int, int]:
        return self.render_width, self.render_height

    @property
    def window_size(self) -> Tuple[int, int]:
        return self.window_width, self.window_height

    @classmethod
    def from_args(cls, args) -> "RenderConfig":
        """
        Build a config from an argparse namespace.

        Only attributes that exist on the namespace and are not None
        override the defaults, so partial namespaces are fine.
        """
        overrides = {}
        for f in fields(cls):
            value = getattr(args, f.name, None)
            if value is not None:
                overrides[f.name] = value

        window = getattr(args, "window", None)
        if window is not None:
            overrides["window_width"], overrides["window_height"] = window
        elif "render_width" in overrides or "render_height" in overrides:
            # window follows the render buffer unless given explicitly
            overrides.setdefault("window_width", overrides.get("render_width", cls.window_width))
            overrides.setdefault("window_height", overrides.get("render_height", cls.window_height))

        if getattr(args, "cull", False):
            overrides["cull_backfaces"] = True
        return cls(**overrides)
