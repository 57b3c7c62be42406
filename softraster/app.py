import argparse
import logging
import os
import sys
from typing import List, Optional

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame

from .camera import Camera
from .config import RenderConfig
from .linalg import Vec3
from .pipeline import render_frame
from .raster import Framebuffer, warmup
from .scene import Scene, default_scene, load_obj, summarize, validate_mesh


logger = logging.getLogger(__name__)


# ============================================================
#  Command line
# ============================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    epilog = """\
controls:
  mouse     look around          W/A/S/D   move
  B         toggle culling       F12       screenshot
  ESC       quit

examples:
  %(prog)s                               Default scene, 820x580
  %(prog)s --width 410 --height 290 --window 820 580
                                         Half resolution shown in an 820x580 window
  %(prog)s --obj teapot.obj --spin 0 0.5 0
  %(prog)s --output frame.png            Render one frame without a window
"""
    parser = argparse.ArgumentParser(
        prog="softraster",
        description="CPU z-buffer rasterizer with a first-person camera",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", dest="render_width", type=int,
                        help="render buffer width (default: 820)")
    parser.add_argument("--height", dest="render_height", type=int,
                        help="render buffer height (default: 580)")
    parser.add_argument("--window", type=int, nargs=2, metavar=("W", "H"),
                        help="window size (default: render buffer size)")
    parser.add_argument("--fov", type=float, help="vertical field of view in degrees (default: 60)")
    parser.add_argument("--near", type=float, help="near plane depth (default: 0.001)")
    parser.add_argument("--fps", dest="target_fps", type=int, help="frame rate cap (default: 60)")
    parser.add_argument("--obj", action="append", default=[], metavar="PATH",
                        help="add an OBJ mesh to the scene (repeatable)")
    parser.add_argument("--spin", type=float, nargs=3, metavar=("RX", "RY", "RZ"),
                        default=(0.0, 0.0, 0.0),
                        help="world rotation speed around X/Y/Z in rad/s")
    parser.add_argument("--cull", action="store_true", help="enable backface culling")
    parser.add_argument("--debug-checks", dest="debug_checks", action="store_true",
                        help="validate polygon convexity/winding at startup")
    parser.add_argument("--output", metavar="PATH",
                        help="render a single frame to an image file and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def build_scene(args: argparse.Namespace, config: RenderConfig) -> Scene:
    scene = default_scene(spin=args.spin)
    for path in args.obj:
        scene.add(load_obj(path))
    if config.debug_checks:
        problems = sum((validate_mesh(m) for m in scene.meshes), [])
        logger.info("validation: %d problem(s)", len(problems))
    logger.info("scene: %(meshes)d meshes, %(vertices)d vertices, %(faces)d faces", summarize(scene))
    return scene


# ============================================================
#  Headless
# ============================================================

def render_to_file(scene: Scene, camera: Camera, config: RenderConfig, path: str):
    """Render one frame and save it with Pillow."""
    fb = Framebuffer(config.render_width, config.render_height, config.background)
    stats = render_frame(scene, camera, fb, config)
    fb.save(path)
    return stats


# ============================================================
#  Interactive loop
# ============================================================

def run(scene: Scene, camera: Camera, config: RenderConfig):
    """
    Main interactive loop:
      - mouse look (grabbed cursor) and held WASD movement
      - render one frame into the fixed-size framebuffer
      - scale it to the (resizable) window and draw the HUD
    """
    pygame.init()
    screen = pygame.display.set_mode(config.window_size, pygame.RESIZABLE)
    pygame.display.set_caption("softraster: WASD move, mouse look, B cull, F12 screenshot, ESC exit")
    pygame.mouse.set_visible(False)
    pygame.event.set_grab(True)

    fb = Framebuffer(config.render_width, config.render_height, config.background)
    render_surface = pygame.Surface(fb.size)
    clock = pygame.time.Clock()
    font = pygame.font.SysFont("consolas", 16)

    warmup()

    shots = 0
    running = True
    while running:
        dt = clock.tick(config.target_fps) / 1000.0

        look_dx = look_dy = 0
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_b:
                    config.cull_backfaces = not config.cull_backfaces
                    logger.info("backface culling %s", "on" if config.cull_backfaces else "off")
                elif event.key == pygame.K_F12:
                    shots += 1
                    fb.save(f"screenshot-{shots:03d}.png")
            elif event.type == pygame.MOUSEMOTION:
                dx, dy = event.rel
                look_dx += dx
                look_dy += dy

        if look_dx or look_dy:
            camera.look(look_dx, look_dy, config.mouse_sensitivity, config.pitch_limit)

        keys = pygame.key.get_pressed()
        camera.move(dt,
                    forward=keys[pygame.K_w], back=keys[pygame.K_s],
                    left=keys[pygame.K_a], right=keys[pygame.K_d],
                    speed=config.move_speed)
        scene.advance(dt)

        window_size = screen.get_size()
        stats = render_frame(scene, camera, fb, config, window_size)

        # ====================================================
        #  Present frame
        # ====================================================
        pygame.surfarray.blit_array(render_surface, fb.color)
        if fb.size != window_size:
            pygame.transform.scale(render_surface, window_size, screen)
        else:
            screen.blit(render_surface, (0, 0))

        pos = camera.position
        hud = [
            f"FPS: {clock.get_fps():.1f} | Tris: {stats.triangles}/{stats.candidates} | "
            f"Cull(B): {config.cull_backfaces} | {fb.width}x{fb.height}",
            f"pos ({pos.x:.2f}, {pos.y:.2f}, {pos.z:.2f}) yaw {camera.yaw:.2f} pitch {camera.pitch:.2f}",
        ]
        y = 10
        for line in hud:
            screen.blit(font.render(line, True, (235, 235, 235)), (10, y))
            y += 18

        pygame.display.flip()

    pygame.quit()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = RenderConfig.from_args(args)
        scene = build_scene(args, config)
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 2

    camera = Camera(position=Vec3(*config.eye))

    if args.output:
        render_to_file(scene, camera, config, args.output)
        return 0

    run(scene, camera, config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
