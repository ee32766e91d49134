# -*- coding: utf-8 -*-
"""JPEGs sintéticos con EXIF/GPS, generados en memoria con Pillow."""
import io
from PIL import Image

EXIF_IFD = 0x8769
GPS_IFD = 0x8825

# Tags GPS
GPS_LATITUDE_REF = 1
GPS_LATITUDE = 2
GPS_LONGITUDE_REF = 3
GPS_LONGITUDE = 4
GPS_ALTITUDE_REF = 5
GPS_ALTITUDE = 6
GPS_TIME_STAMP = 7
GPS_IMG_DIRECTION_REF = 16
GPS_IMG_DIRECTION = 17
GPS_DATE_STAMP = 29
GPS_H_POSITIONING_ERROR = 31

# IFD0 / Exif
MAKE = 271
MODEL = 272
ORIENTATION = 274
DATE_TIME_ORIGINAL = 36867
OFFSET_TIME_ORIGINAL = 36881
LENS_MODEL = 42036


def gps_tags(lat=(48.0, 51.0, 29.6), lat_ref="N", lon=(2.0, 17.0, 40.2), lon_ref="E", extra=None):
    tags = {GPS_LATITUDE_REF: lat_ref, GPS_LATITUDE: lat, GPS_LONGITUDE_REF: lon_ref, GPS_LONGITUDE: lon}
    tags.update(extra or {})
    return tags


def make_jpeg(gps=None, ifd0=None, exif_ifd=None, size=(16, 12), color="red"):
    img = Image.new("RGB", size, color=color)
    exif = Image.Exif()
    for tag, value in (ifd0 or {}).items():
        exif[tag] = value
    if exif_ifd:
        exif[EXIF_IFD] = dict(exif_ifd)
    if gps:
        exif[GPS_IFD] = dict(gps)
    buffer = io.BytesIO()
    if len(exif):
        img.save(buffer, format="JPEG", exif=exif)
    else:
        img.save(buffer, format="JPEG")
    img.close()
    return buffer.getvalue()
