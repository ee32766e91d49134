import unittest
import sys
import os

# Adjust the path to import from the parent directory (project root) and the fixtures
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from core.exif_reader import FormatError, RawMetadata, read_metadata, _to_int, _to_text, _to_tuple
import jpeg_fixtures as fx


class TestReadMetadata(unittest.TestCase):

    def test_reads_gps_triples_and_references(self):
        data = fx.make_jpeg(gps=fx.gps_tags())
        metadata = read_metadata(data)
        self.assertEqual(metadata.gps_latitude_ref, 'N')
        self.assertEqual(metadata.gps_longitude_ref, 'E')
        self.assertEqual(len(metadata.gps_latitude), 3)
        for expected, actual in zip((48.0, 51.0, 29.6), metadata.gps_latitude):
            self.assertAlmostEqual(expected, actual, places=6)
        for expected, actual in zip((2.0, 17.0, 40.2), metadata.gps_longitude):
            self.assertAlmostEqual(expected, actual, places=6)

    def test_reads_altitude_direction_and_timestamps(self):
        extra = {
            fx.GPS_ALTITUDE_REF: b'\x01', fx.GPS_ALTITUDE: 120.5,
            fx.GPS_IMG_DIRECTION_REF: 'T', fx.GPS_IMG_DIRECTION: 271.5,
            fx.GPS_DATE_STAMP: '2024:05:01', fx.GPS_TIME_STAMP: (14.0, 5.0, 9.0),
            fx.GPS_H_POSITIONING_ERROR: 4.25,
        }
        metadata = read_metadata(fx.make_jpeg(gps=fx.gps_tags(extra=extra)))
        self.assertEqual(metadata.gps_altitude_ref, 1)
        self.assertAlmostEqual(metadata.gps_altitude, 120.5)
        self.assertEqual(metadata.gps_img_direction_ref, 'T')
        self.assertAlmostEqual(metadata.gps_img_direction, 271.5)
        self.assertEqual(metadata.gps_date_stamp, '2024:05:01')
        self.assertEqual(tuple(round(v) for v in metadata.gps_time_stamp), (14, 5, 9))
        self.assertAlmostEqual(metadata.gps_h_positioning_error, 4.25)

    def test_reads_camera_lens_and_capture_date(self):
        data = fx.make_jpeg(
            gps=fx.gps_tags(),
            ifd0={fx.MAKE: 'Apple', fx.MODEL: 'iPhone 15 Pro', fx.ORIENTATION: 6},
            exif_ifd={fx.DATE_TIME_ORIGINAL: '2024:05:01 14:05:09', fx.LENS_MODEL: 'Main Camera 6.86mm f/1.78'},
        )
        metadata = read_metadata(data)
        self.assertEqual(metadata.make, 'Apple')
        self.assertEqual(metadata.model, 'iPhone 15 Pro')
        self.assertEqual(metadata.orientation, 6)
        self.assertEqual(metadata.date_time_original, '2024:05:01 14:05:09')
        self.assertEqual(metadata.lens_model, 'Main Camera 6.86mm f/1.78')

    def test_jpeg_without_exif_is_empty_record(self):
        metadata = read_metadata(fx.make_jpeg())
        self.assertEqual(metadata, RawMetadata())

    def test_jpeg_without_gps_keeps_other_tags(self):
        metadata = read_metadata(fx.make_jpeg(ifd0={fx.MAKE: 'Canon'}))
        self.assertEqual(metadata.make, 'Canon')
        self.assertIsNone(metadata.gps_latitude)
        self.assertIsNone(metadata.gps_longitude)

    def test_undecodable_bytes_raise_format_error(self):
        with self.assertRaises(FormatError):
            read_metadata(b'this is not an image at all')
        with self.assertRaises(FormatError):
            read_metadata(b'')

    def test_with_coordinates_returns_augmented_copy(self):
        metadata = RawMetadata(make='Apple')
        augmented = metadata.with_coordinates(10.5, -20.25)
        self.assertIsNone(metadata.latitude)
        self.assertEqual((augmented.latitude, augmented.longitude), (10.5, -20.25))
        self.assertEqual(augmented.make, 'Apple')


class TestValueCoercion(unittest.TestCase):

    def test_altitude_reference_byte(self):
        self.assertEqual(_to_int(b'\x01'), 1)
        self.assertEqual(_to_int(b'\x00'), 0)
        self.assertEqual(_to_int(1), 1)
        self.assertEqual(_to_int('1'), 1)
        self.assertIsNone(_to_int(b''))

    def test_text_strips_nulls_and_blank_is_none(self):
        self.assertEqual(_to_text('Apple\x00'), 'Apple')
        self.assertEqual(_to_text(b'Nikon \x00'), 'Nikon')
        self.assertEqual(_to_text('caf\xe9'.encode('latin-1')), 'caf\xe9')
        self.assertIsNone(_to_text('   '))
        self.assertIsNone(_to_text(42))

    def test_tuple_rejects_non_finite_values(self):
        self.assertEqual(_to_tuple((1, 2, 3)), (1.0, 2.0, 3.0))
        self.assertIsNone(_to_tuple((1.0, float('nan'), 3.0)))
        self.assertIsNone(_to_tuple(12.0))


if __name__ == '__main__':
    unittest.main()
