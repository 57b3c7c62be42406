import math

import numpy as np
import pytest

from softraster.assembly import signed_area2
from softraster.camera import Camera
from softraster.config import RenderConfig
from softraster.linalg import Vec3
from softraster.pipeline import build_triangles, render_frame, transform_scene
from softraster.raster import Framebuffer
from softraster.scene import Mesh, Scene, _box, box_figure, default_scene, ground_grid


@pytest.fixture
def config():
    return RenderConfig(render_width=164, render_height=116,
                        window_width=164, window_height=116)


def test_default_frame_draws_scene(config):
    fb = Framebuffer(config.render_width, config.render_height, config.background)
    stats = render_frame(default_scene(), Camera(), fb, config)
    assert stats.vertices == 81 + 4 * 23 + 48
    assert 0 < stats.triangles <= stats.candidates
    assert stats.pixels > 0

    drawn = np.isfinite(fb.depth)
    assert drawn.any()
    # undrawn pixels keep the background
    assert (fb.color[~drawn] == 0).all()
    assert (fb.depth[drawn] > config.near).all()


def test_triangles_respect_near_plane_and_area(config):
    cam = Camera(position=Vec3(0.0, 0.0, 0.0))   # standing inside the scene
    tris = build_triangles(default_scene(), cam, config, config.window_size)
    assert tris
    for t in tris:
        assert min(t.z1, t.z2, t.z3) > config.near
        assert abs(signed_area2(t.p1, t.p2, t.p3)) >= config.area_epsilon


def test_geometry_behind_camera_is_not_drawn(config):
    scene = Scene([box_figure()])
    cam = Camera(yaw=math.pi)   # facing -z, away from the figure
    fb = Framebuffer(config.render_width, config.render_height, config.background)
    stats = render_frame(scene, cam, fb, config)
    assert stats.triangles == 0
    assert stats.pixels == 0
    assert np.isinf(fb.depth).all()


def test_render_is_deterministic(config):
    scene, cam = default_scene(), Camera(yaw=0.3, pitch=0.2)
    fb = Framebuffer(config.render_width, config.render_height)
    render_frame(scene, cam, fb, config)
    first = fb.color.copy()
    render_frame(scene, cam, fb, config)
    np.testing.assert_array_equal(first, fb.color)


def test_world_rotation_applied_before_camera():
    scene = Scene([box_figure()])
    scene.angles = [0.0, math.pi, 0.0]
    cam = Camera(position=Vec3(0.0, 0.0, 0.0))
    rotated = transform_scene(scene, cam)[0]
    unrotated = box_figure().vertices
    for r, v in zip(rotated, unrotated):
        assert tuple(r) == pytest.approx((-v.x, v.y, -v.z), abs=1e-12)


def test_window_size_differs_from_buffer():
    config = RenderConfig(render_width=82, render_height=58)
    fb = Framebuffer(82, 58)
    stats = render_frame(default_scene(), Camera(), fb, config, window_size=(820, 580))
    assert stats.pixels > 0
    assert fb.size == (82, 58)


def render_depth(scene, camera, cull):
    config = RenderConfig(render_width=82, render_height=58, window_width=82,
                          window_height=58, cull_backfaces=cull)
    fb = Framebuffer(config.render_width, config.render_height, config.background)
    stats = render_frame(scene, camera, fb, config)
    return fb.depth.copy(), stats


def test_culling_keeps_box_faces_toward_camera():
    verts, faces = _box(-0.5, 0.5, -0.5, 0.5, -0.5, 0.5)
    scene = Scene([Mesh("box", tuple(verts), tuple(faces))])
    both, _ = render_depth(scene, Camera(), cull=False)
    culled, stats = render_depth(scene, Camera(), cull=True)
    assert both[41, 29] == pytest.approx(2.0)
    assert culled[41, 29] == pytest.approx(2.0)
    assert stats.pixels > 0


def test_culling_keeps_ground_seen_from_above():
    scene = Scene([ground_grid()])
    cam = Camera(pitch=0.6)
    both, _ = render_depth(scene, cam, cull=False)
    culled, stats = render_depth(scene, cam, cull=True)
    assert stats.pixels > 0
    np.testing.assert_array_equal(culled, both)


def test_culling_does_not_change_default_view():
    both, _ = render_depth(default_scene(), Camera(), cull=False)
    culled, _ = render_depth(default_scene(), Camera(), cull=True)
    # closed meshes only lose hidden faces; silhouette ties may differ
    assert np.isclose(culled, both).mean() > 0.99
