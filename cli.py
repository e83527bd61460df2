import argparse
import logging
import sys
from PIL import Image
from config import RENDER_SETTINGS, OUTPUT_SETTINGS
from ray import RAY_CENTER, RAY_GRID, to_image
from scenes import SCENES
from utils import to_srgb8

logger = logging.getLogger('raytrace')


def init_logger(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def save_image(colors, width, height, output_path, srgb_whitepoint=1.0):
    """Write a column-major color buffer to an 8-bit sRGB image file."""
    pixels = to_srgb8(to_image(colors, width, height) / srgb_whitepoint)
    Image.fromarray(pixels).save(output_path)


def render(scene_def, width, height, output_path, depth_or_samples=None, grid=False, workers=None,
           view_width=RENDER_SETTINGS['view_width'], view_height=RENDER_SETTINGS['view_height'],
           srgb_whitepoint=OUTPUT_SETTINGS['srgb_whitepoint']):
    settings = dict(image_width=width, image_height=height, view_width=view_width, view_height=view_height,
                    grid_or_center=RAY_GRID if grid else RAY_CENTER)
    if depth_or_samples is not None:
        settings['depth_or_samples'] = depth_or_samples
    camera = scene_def.make_camera(**settings)
    colors = camera.render(scene_def.world, workers=workers)
    save_image(colors, width, height, output_path, srgb_whitepoint)
    logger.info('Saved %s', output_path)
    return colors


def main(argv=None):
    parser = argparse.ArgumentParser(description='Render an example scene to an image file.')
    parser.add_argument('scene', choices=sorted(SCENES))
    parser.add_argument('-o', '--output', default=OUTPUT_SETTINGS['output'])
    parser.add_argument('--width', type=int, default=RENDER_SETTINGS['width'])
    parser.add_argument('--height', type=int, default=RENDER_SETTINGS['height'])
    parser.add_argument('--depth', type=int, default=None,
                        help='max recursion depth (ray tracing) or steps per ray (ray marching); '
                             'defaults to the scene setting')
    parser.add_argument('--grid', action='store_true', default=RENDER_SETTINGS['grid'],
                        help='average a 3x3 grid of rays per pixel')
    parser.add_argument('--workers', type=int, default=RENDER_SETTINGS['workers'],
                        help='worker processes, 0 for one per CPU')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    init_logger(logging.DEBUG if args.verbose else logging.INFO)

    try:
        scene_def = SCENES[args.scene]()
        render(scene_def, args.width, args.height, args.output, args.depth, args.grid, args.workers)
    except ValueError as exc:
        logger.error('Invalid configuration: %s', exc)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
