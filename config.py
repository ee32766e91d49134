# -*- coding: utf-8 -*-
# -----------------------------------------------------------------------------
# config.py
#
# Archivo de configuración para el proyecto procesar_kmz.
# Contiene constantes globales, definiciones de tags y tipos.
# -----------------------------------------------------------------------------

import re
from PIL import ExifTags as PIL_ExifTags
from typing import Optional, Dict, Tuple, Union

# --- MODO DE DEPURACIÓN ---
DEBUG_MODE: bool = False # Cambiar a True (o usar --debug) para activar logs de depuración

# --- Constantes para Tags EXIF ---
# TAG_NAMES: id -> nombre (tabla de Pillow). TAGS: nombre -> id.
TAG_NAMES: Dict[int, str] = PIL_ExifTags.TAGS
TAGS: Dict[str, int] = {v: k for k, v in TAG_NAMES.items()}
GPSTAGS: Dict[int, str] = PIL_ExifTags.GPSTAGS

EXIF_IFD_TAG_ID: Optional[int] = TAGS.get("ExifOffset") # 34665
GPS_IFD_TAG_ID: Optional[int] = TAGS.get("GPSInfo") # 34853

# --- Filtro de entrada ---
JPEG_NAME_PATTERN = re.compile(r"\.jpe?g$", re.IGNORECASE)

# --- Constantes para Salida KMZ ---
KML_ENTRY_EXTENSION: str = ".kml"
KML_NAMESPACE: str = "http://www.opengis.net/kml/2.2"
ENTRY_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9\-_.]")
# Fecha fija para las entradas del ZIP: misma entrada -> mismos bytes.
ZIP_ENTRY_DATE_TIME: Tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)
KMZ_THUMBNAIL_QUALITY: int = 85

# --- Formato de presentación ---
COORDINATE_DECIMALS: int = 6
MEASURE_DECIMALS: int = 2
ALTITUDE_BELOW_SEA_LEVEL: int = 1

# --- Motivos de omisión (texto visible en la lista de estado) ---
SKIP_NO_GPS: str = "no GPS metadata"
SKIP_UNREADABLE: str = "could not read metadata"

# --- Procesamiento por lotes ---
DEFAULT_MAX_WORKERS: int = 1

# --- Tipos para Type Hinting ---
UTMCoordinates = Optional[Tuple[float, float, int, str]]
Bounds = Optional[Tuple[float, float, float, float]]
Number = Union[int, float]

if DEBUG_MODE:
    print("DEBUG [config.py]: MODO DEPURACIÓN ACTIVO.")
    if GPS_IFD_TAG_ID is None:
        print("DEBUG [config.py]: Advertencia - TAGS.get('GPSInfo') devolvió None. Verifica la instalación de Pillow.")
