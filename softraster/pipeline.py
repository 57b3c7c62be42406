import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .assembly import Triangle, gather_triangles, triangulate_fan
from .camera import Camera
from .config import RenderConfig
from .linalg import Vec3, mat_vec
from .projection import project_vertices
from .raster import Framebuffer
from .scene import Scene


logger = logging.getLogger(__name__)


@dataclass
class FrameStats:
    vertices: int = 0
    candidates: int = 0
    triangles: int = 0
    pixels: int = 0


def transform_scene(scene: Scene, camera: Camera) -> List[List[Vec3]]:
    """
    Camera-space vertices for every mesh:
      p_cam = R^T @ (W @ p - eye)

    W is the scene's world rotation, R the camera orientation.
    """
    world = scene.world_matrix()
    _, inverse = camera.view_basis()
    eye = camera.position
    out = []
    for mesh in scene.meshes:
        out.append([mat_vec(inverse, mat_vec(world, v) - eye) for v in mesh.vertices])
    return out


def build_triangles(scene: Scene, camera: Camera, config: RenderConfig,
                    window_size: Tuple[int, int],
                    stats: Optional[FrameStats] = None) -> List[Triangle]:
    """Transform, project and assemble all meshes into one triangle list."""
    width, height = window_size
    tris: List[Triangle] = []
    for mesh, colors, cam_verts in zip(scene.meshes, scene.face_colors,
                                       transform_scene(scene, camera)):
        screen = project_vertices(cam_verts, config.fov, width, height, config.near)
        gather_triangles(cam_verts, screen, mesh.faces, colors,
                         near=config.near, area_epsilon=config.area_epsilon, out=tris)
        if stats is not None:
            stats.vertices += len(cam_verts)
            stats.candidates += sum(len(triangulate_fan(f)) for f in mesh.faces)
    if stats is not None:
        stats.triangles = len(tris)
    return tris


def render_frame(scene: Scene, camera: Camera, framebuffer: Framebuffer,
                 config: RenderConfig,
                 window_size: Optional[Tuple[int, int]] = None) -> FrameStats:
    """
    Run one full frame: transform -> project -> assemble -> clear -> rasterize.

    `window_size` is the coordinate space of the projection (the output
    surface); the framebuffer keeps its own fixed resolution and the
    rasterizer scales between the two. Defaults to the config window size.
    """
    if window_size is None:
        window_size = config.window_size

    stats = FrameStats()
    tris = build_triangles(scene, camera, config, window_size, stats)

    framebuffer.clear()
    stats.pixels = framebuffer.rasterize(tris, window_size[0], window_size[1],
                                         cull_backfaces=config.cull_backfaces)
    logger.debug("frame: %d vertices, %d/%d triangles, %d pixels",
                 stats.vertices, stats.triangles, stats.candidates, stats.pixels)
    return stats
