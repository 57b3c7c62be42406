"""CPU z-buffer rasterizer: posed polygon meshes + first-person camera -> RGB image."""

from .linalg import Vec3, Mat3, rotation, rotate_x, rotate_y, rotate_z, transpose
from .config import RenderConfig
from .camera import Camera
from .projection import project_point, project_vertices
from .scene import Mesh, Scene, default_scene, load_obj
from .assembly import Triangle, gather_triangles, triangulate_fan
from .raster import Framebuffer
from .pipeline import FrameStats, render_frame

__version__ = "0.1.0"
