import numpy as np
import pytest

from softraster.assembly import Triangle
from softraster.raster import (Framebuffer, edge, fill_triangle_zbuffer,
                               perspective_depth, warmup)


RED, GREEN, BG = (255, 0, 0), (0, 255, 0), (5, 6, 7)


def big(z, color=RED):
    """A triangle covering the whole of a small buffer at constant depth."""
    return Triangle((-10.0, -10.0), (50.0, -10.0), (-10.0, 50.0), z, z, z, color)


def test_edge_function_sign():
    assert edge(0.0, 0.0, 1.0, 0.0, 0.5, 1.0) < 0.0
    assert edge(0.0, 0.0, 1.0, 0.0, 0.5, -1.0) > 0.0
    assert edge(0.0, 0.0, 1.0, 0.0, 2.0, 0.0) == 0.0


def test_perspective_correct_depth():
    # 1/z = 0.5*0.5 + 0.3/3 + 0.2*0.25 = 0.4
    assert perspective_depth(0.5, 0.3, 0.2, 2.0, 3.0, 4.0) == pytest.approx(2.5)
    # linear interpolation would give 2.7
    assert perspective_depth(0.5, 0.3, 0.2, 2.0, 3.0, 4.0) != pytest.approx(2.7)


def test_clear():
    fb = Framebuffer(8, 6, BG)
    assert fb.color.shape == (8, 6, 3)
    assert np.isinf(fb.depth).all()
    assert (fb.color == np.array(BG, dtype=np.uint8)).all()

    fb.rasterize([big(1.0)])
    fb.clear()
    assert np.isinf(fb.depth).all()
    assert (fb.color == np.array(BG, dtype=np.uint8)).all()


def test_depth_test_passes_and_overwrites():
    fb = Framebuffer(10, 10, BG)
    fb.depth[5, 5] = 5.0
    fb.depth[6, 6] = 1.0
    fb.color[6, 6] = GREEN

    fb.rasterize([big(2.5)])
    assert fb.depth[5, 5] == pytest.approx(2.5)
    assert tuple(fb.color[5, 5]) == RED
    # nearer fragment already stored
    assert fb.depth[6, 6] == 1.0
    assert tuple(fb.color[6, 6]) == GREEN


def test_equal_depth_first_writer_wins():
    fb = Framebuffer(10, 10, BG)
    fb.rasterize([big(3.0, RED), big(3.0, GREEN)])
    assert (fb.color[:, :] == np.array(RED, dtype=np.uint8)).all()


def test_degenerate_triangle_draws_nothing():
    fb = Framebuffer(16, 16, BG)
    collinear = Triangle((0.0, 0.0), (5.0, 5.0), (10.0, 10.0), 1.0, 1.0, 1.0, RED)
    assert fb.rasterize([collinear]) == 0
    assert np.isinf(fb.depth).all()


def test_pixel_centers_and_bounding_box_clamp():
    fb = Framebuffer(10, 10, BG)
    # right triangle over [0,4]x[0,4]; pixel (3,3) center (3.5,3.5) is outside
    tri = Triangle((0.0, 0.0), (4.0, 0.0), (0.0, 4.0), 1.0, 1.0, 1.0, RED)
    written = fb.rasterize([tri])
    assert tuple(fb.color[0, 0]) == RED
    assert tuple(fb.color[3, 0]) == RED
    assert tuple(fb.color[3, 3]) == BG
    assert written == int(np.isfinite(fb.depth).sum())

    # far off-screen extents are clamped to the buffer
    fb.clear()
    huge = Triangle((-1e6, -1e6), (1e6, -1e6), (0.0, 1e6), 1.0, 1.0, 1.0, RED)
    assert fb.rasterize([huge]) <= 100


def test_both_windings_by_default_and_culling():
    cw = Triangle((1.0, 1.0), (8.0, 1.0), (1.0, 8.0), 1.0, 1.0, 1.0, RED)
    ccw = Triangle((1.0, 1.0), (1.0, 8.0), (8.0, 1.0), 1.0, 1.0, 1.0, RED)

    assert Framebuffer(10, 10).rasterize([cw]) > 0
    assert Framebuffer(10, 10).rasterize([ccw]) > 0

    assert Framebuffer(10, 10).rasterize([cw], cull_backfaces=True) == 0
    assert Framebuffer(10, 10).rasterize([ccw], cull_backfaces=True) > 0


def overlapping():
    # sloped triangles that cross: neither is entirely in front
    a = Triangle((0.0, 0.0), (20.0, 0.0), (0.0, 20.0), 1.0, 4.0, 1.0, RED)
    b = Triangle((0.0, 0.0), (20.0, 0.0), (0.0, 20.0), 2.0, 2.0, 2.0, GREEN)
    return a, b


def test_order_independence():
    a, b = overlapping()
    fb1, fb2 = Framebuffer(20, 20, BG), Framebuffer(20, 20, BG)
    fb1.rasterize([a, b])
    fb2.rasterize([b, a])
    np.testing.assert_array_equal(fb1.color, fb2.color)
    np.testing.assert_array_equal(fb1.depth, fb2.depth)
    colors = {tuple(c) for c in fb1.color.reshape(-1, 3)}
    assert RED in colors and GREEN in colors


def test_repeat_rendering_is_identical():
    a, b = overlapping()
    fb = Framebuffer(20, 20, BG)
    fb.rasterize([a, b])
    first = fb.color.copy()
    fb.clear()
    fb.rasterize([a, b])
    np.testing.assert_array_equal(first, fb.color)


def test_window_to_buffer_scaling():
    fb = Framebuffer(10, 10, BG)
    # top-left quadrant of a 20x20 window
    tri = Triangle((0.0, 0.0), (10.0, 0.0), (0.0, 10.0), 1.0, 1.0, 1.0, RED)
    fb.rasterize([tri], 20, 20)
    assert tuple(fb.color[1, 1]) == RED
    assert tuple(fb.color[6, 1]) == BG
    assert tuple(fb.color[1, 6]) == BG


def test_kernel_direct_call():
    warmup()
    img = np.zeros((4, 4, 3), dtype=np.uint8)
    zbuf = np.full((4, 4), np.inf)
    n = fill_triangle_zbuffer(img, zbuf, 0.0, 0.0, 2.0, 8.0, 0.0, 2.0, 0.0, 8.0, 2.0,
                              9, 8, 7, False)
    assert n == 16
    assert np.allclose(zbuf, 2.0)
    assert tuple(img[2, 1]) == (9, 8, 7)


def test_to_image_orientation(tmp_path):
    fb = Framebuffer(6, 4, BG)
    fb.color[3, 1] = RED
    img = fb.to_image()
    assert img.size == (6, 4)
    assert img.getpixel((3, 1)) == RED
    assert img.getpixel((1, 3)) == BG

    path = tmp_path / "frame.png"
    fb.save(path)
    assert path.exists()
