import base64
import io
import unittest
import sys
import os
from PIL import Image

# Adjust the path to import from the parent directory (project root)
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))

from core.utils import (apply_orientation, embed_image, escape_html, escape_xml, make_thumbnail,
                        placemark_entry_name, sanitize_filename, to_data_uri)
import config # For config.DEBUG_MODE if used by apply_orientation

class TestUtilsFunctions(unittest.TestCase):

    # Tests for sanitize_filename / placemark_entry_name
    def test_sanitize_filename_replaces_unsafe_chars(self):
        self.assertEqual(sanitize_filename('fi*le:n"ame?'), 'fi_le_n_ame_')
        self.assertEqual(sanitize_filename('test\\file/path'), 'test_file_path')
        self.assertEqual(sanitize_filename('file name with spaces'), 'file_name_with_spaces')

    def test_sanitize_filename_no_change(self):
        self.assertEqual(sanitize_filename('valid-filename_123.txt'), 'valid-filename_123.txt')

    def test_placemark_entry_name_strips_extension_and_sanitizes(self):
        entry = placemark_entry_name('Paris café.jpg')
        self.assertEqual(entry, 'Paris_caf_.kml')
        self.assertRegex(entry[:-len('.kml')], r'^[A-Za-z0-9\-_.]+$')
        self.assertEqual(placemark_entry_name('IMG_0001.JPEG'), 'IMG_0001.kml')
        self.assertEqual(placemark_entry_name('holiday.2024.jpg'), 'holiday.2024.kml')

    # Tests for the two escaping rules
    def test_escape_xml(self):
        self.assertEqual(escape_xml('<a & \'b\' "c">'), '&lt;a &amp; &apos;b&apos; &quot;c&quot;&gt;')

    def test_escape_html(self):
        self.assertEqual(escape_html('<a & \'b\' "c">'), '&lt;a &amp; &#39;b&#39; &quot;c&quot;&gt;')

    def test_escape_does_not_double_escape_plain_text(self):
        self.assertEqual(escape_xml('IMG_0001.jpg'), 'IMG_0001.jpg')
        self.assertEqual(escape_html('Canon EOS R6'), 'Canon EOS R6')

    # Tests for the inline image encoding
    def test_to_data_uri(self):
        uri = to_data_uri(b'\xff\xd8\xff', 'photo.JPG')
        self.assertTrue(uri.startswith('data:image/jpeg;base64,'))
        self.assertEqual(base64.b64decode(uri.split(',', 1)[1]), b'\xff\xd8\xff')

    def test_make_thumbnail_limits_width(self):
        buffer = io.BytesIO()
        Image.new('RGB', (800, 400), color='green').save(buffer, format='JPEG')
        thumbnail = make_thumbnail(buffer.getvalue(), 200)
        with Image.open(io.BytesIO(thumbnail)) as img:
            self.assertEqual(img.format, 'JPEG')
            self.assertEqual(img.size, (200, 100))

    def test_make_thumbnail_applies_orientation(self):
        buffer = io.BytesIO()
        Image.new('RGB', (80, 40), color='green').save(buffer, format='JPEG')
        with Image.open(io.BytesIO(make_thumbnail(buffer.getvalue(), 100, orientation=6))) as img:
            self.assertEqual(img.size, (40, 80))

    def test_embed_image_falls_back_to_original_bytes(self):
        uri = embed_image(b'not a jpeg', 'broken.jpg', thumbnail_width=100)
        self.assertEqual(uri, to_data_uri(b'not a jpeg', 'broken.jpg'))
        self.assertEqual(embed_image(b'raw', 'a.jpg'), to_data_uri(b'raw', 'a.jpg'))

    # Tests for apply_orientation
    def test_apply_orientation_no_orientation(self):
        img = Image.new('RGB', (60, 30), color = 'red')
        img_none = apply_orientation(img.copy(), None)
        self.assertEqual(list(img.getdata()), list(img_none.getdata()))
        self.assertEqual(img.size, img_none.size)
        img_one = apply_orientation(img.copy(), 1)
        self.assertEqual(list(img.getdata()), list(img_one.getdata()))
        self.assertEqual(img.size, img_one.size)
        img.close()
        img_none.close()
        img_one.close()

    def test_apply_orientation_rotate_270_swaps_dimensions(self):
        original_img = Image.new('RGB', (60, 30), color = 'blue')
        oriented_img = apply_orientation(original_img.copy(), 6)
        self.assertEqual(oriented_img.size, (30, 60))
        original_img.close()
        oriented_img.close()

    def test_apply_orientation_flip_left_right(self):
        # Orientation 2: FLIP_LEFT_RIGHT
        original_img = Image.new('RGB', (2, 1), color='white')
        original_img.putpixel((0, 0), (255, 0, 0)) # Red pixel on left
        original_img.putpixel((1, 0), (0, 0, 255)) # Blue pixel on right

        original_debug_mode = config.DEBUG_MODE
        config.DEBUG_MODE = False
        oriented_img = apply_orientation(original_img.copy(), 2)
        config.DEBUG_MODE = original_debug_mode

        self.assertEqual(original_img.size, oriented_img.size)
        self.assertEqual(oriented_img.getpixel((0, 0)), (0, 0, 255)) # Blue now on left
        self.assertEqual(oriented_img.getpixel((1, 0)), (255, 0, 0)) # Red now on right

        original_img.close()
        oriented_img.close()


if __name__ == '__main__':
    unittest.main()
