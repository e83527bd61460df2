import os
import tempfile
import unittest
import numpy as np
from PIL import Image
from cli import main, save_image


class TestSaveImage(unittest.TestCase):

    def test_orientation_and_encoding(self):
        # 3 wide, 2 high; pixel (i=2, j=0) is red, pixel (i=0, j=1) is mid gray
        colors = np.zeros((6, 3))
        colors[2 * 2 + 0] = [1, 0, 0]
        colors[0 * 2 + 1] = [0.5, 0.5, 0.5]
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'out.png')
            save_image(colors, 3, 2, path)
            img = Image.open(path)
            self.assertEqual(img.size, (3, 2))
            self.assertEqual(img.getpixel((2, 0)), (255, 0, 0))
            self.assertEqual(img.getpixel((0, 1)), (188, 188, 188))
            self.assertEqual(img.getpixel((1, 1)), (0, 0, 0))


class TestMain(unittest.TestCase):

    def test_renders_scene(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'sphere.png')
            status = main(['single_sphere', '-o', path, '--width', '4', '--height', '3', '--workers', '1'])
            self.assertEqual(status, 0)
            self.assertEqual(Image.open(path).size, (4, 3))

    def test_scene_depth_used_without_option(self):
        # the fog scene marches 20 steps; without --depth that setting is kept
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'fog.png')
            self.assertEqual(main(['fog', '-o', path, '--width', '2', '--height', '2', '--workers', '1']), 0)
            self.assertEqual(Image.open(path).size, (2, 2))

    def test_invalid_settings_fail(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'bad.png')
            with self.assertLogs('raytrace', level='ERROR'):
                self.assertEqual(main(['fog', '-o', path, '--width', '2', '--height', '2', '--depth', '0']), 1)
            self.assertFalse(os.path.exists(path))

    def test_unknown_scene(self):
        with self.assertRaises(SystemExit):
            main(['teapot'])


if __name__ == '__main__':
    unittest.main()
