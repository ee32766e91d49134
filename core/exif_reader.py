# -*- coding: utf-8 -*-
import io
import math
from dataclasses import dataclass, replace
from PIL import Image, ImageFile
from typing import Optional, Tuple, Dict, Any

import config

ImageFile.LOAD_TRUNCATED_IMAGES = True


class FormatError(Exception):
    """Los bytes no se pueden decodificar como imagen con metadatos legibles."""


@dataclass(frozen=True)
class RawMetadata:
    """
    Tags EXIF reconocidos de una imagen. Los tags que no aparecen aquí se
    ignoran. Un registro sin campos GPS es un resultado válido ("sin ubicación").

    latitude/longitude/altitude/heading/horizontal_accuracy son campos ya
    normalizados (grados decimales, metros); cuando existen tienen prioridad
    sobre los tags GPS crudos.
    """
    gps_latitude: Optional[Tuple[float, ...]] = None
    gps_latitude_ref: Optional[str] = None
    gps_longitude: Optional[Tuple[float, ...]] = None
    gps_longitude_ref: Optional[str] = None
    gps_altitude: Optional[float] = None
    gps_altitude_ref: Optional[int] = None
    gps_img_direction: Optional[float] = None
    gps_img_direction_ref: Optional[str] = None
    gps_h_positioning_error: Optional[float] = None
    gps_date_stamp: Optional[str] = None
    gps_time_stamp: Optional[Tuple[float, ...]] = None
    make: Optional[str] = None
    model: Optional[str] = None
    lens_model: Optional[str] = None
    date_time_original: Optional[str] = None
    create_date: Optional[str] = None
    offset_time_original: Optional[str] = None
    orientation: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    heading: Optional[float] = None
    horizontal_accuracy: Optional[float] = None

    def with_coordinates(self, latitude: float, longitude: float) -> "RawMetadata":
        return replace(self, latitude=latitude, longitude=longitude)


# Nombre del tag (tablas de Pillow) -> campo de RawMetadata
_IFD0_FIELDS: Dict[str, str] = {
    "Make": "make",
    "Model": "model",
    "Orientation": "orientation",
}
_EXIF_FIELDS: Dict[str, str] = {
    "DateTimeOriginal": "date_time_original",
    "DateTimeDigitized": "create_date",
    "OffsetTimeOriginal": "offset_time_original",
    "LensModel": "lens_model",
}
_GPS_FIELDS: Dict[str, str] = {
    "GPSLatitudeRef": "gps_latitude_ref",
    "GPSLatitude": "gps_latitude",
    "GPSLongitudeRef": "gps_longitude_ref",
    "GPSLongitude": "gps_longitude",
    "GPSAltitudeRef": "gps_altitude_ref",
    "GPSAltitude": "gps_altitude",
    "GPSTimeStamp": "gps_time_stamp",
    "GPSImgDirectionRef": "gps_img_direction_ref",
    "GPSImgDirection": "gps_img_direction",
    "GPSDateStamp": "gps_date_stamp",
    "GPSHPositioningError": "gps_h_positioning_error",
}

_TEXT_FIELDS = {"gps_latitude_ref", "gps_longitude_ref", "gps_img_direction_ref", "gps_date_stamp",
                "make", "model", "lens_model", "date_time_original", "create_date", "offset_time_original"}
_TUPLE_FIELDS = {"gps_latitude", "gps_longitude", "gps_time_stamp"}
_INT_FIELDS = {"gps_altitude_ref", "orientation"}

# --- Funções Auxiliares ---

def _decode_exif_string(value: bytes) -> str:
    """Tenta decodificar um valor EXIF bytes para string (UTF-8 luego Latin-1)."""
    try:
        return value.decode('utf-8', 'strict').replace('\x00', '').strip()
    except UnicodeDecodeError:
        return value.decode('latin-1', 'replace').replace('\x00', '').strip()

def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, (tuple, list)) and len(value) == 1:
        value = value[0]
    if isinstance(value, (bytes, bytearray)):
        return None
    try:
        number = float(getattr(value, 'real', value))
    except (ValueError, TypeError, ZeroDivisionError):
        return None
    return number if math.isfinite(number) else None

def _to_tuple(value: Any) -> Optional[Tuple[float, ...]]:
    if not isinstance(value, (tuple, list)):
        return None
    numbers = tuple(_to_float(v) for v in value)
    if any(n is None for n in numbers):
        if config.DEBUG_MODE: print(f"DEBUG: [exif_reader] Tupla GPS no numérica o no finita: {value!r}")
        return None
    return numbers  # type: ignore

def _to_int(value: Any) -> Optional[int]:
    # GPSAltitudeRef es de tipo BYTE: Pillow lo entrega como b'\x00' / b'\x01'
    if isinstance(value, (bytes, bytearray)):
        return value[0] if len(value) >= 1 else None
    if isinstance(value, str):
        return int(value) if value.strip().isdigit() else None
    number = _to_float(value)
    return int(number) if number is not None else None

def _to_text(value: Any) -> Optional[str]:
    if isinstance(value, (bytes, bytearray)):
        text = _decode_exif_string(bytes(value))
    elif isinstance(value, str):
        text = value.replace('\x00', '').strip()
    else:
        return None
    return text or None

def _coerce(field_name: str, value: Any) -> Any:
    if field_name in _TEXT_FIELDS: return _to_text(value)
    if field_name in _TUPLE_FIELDS: return _to_tuple(value)
    if field_name in _INT_FIELDS: return _to_int(value)
    return _to_float(value)

def _collect(ifd: Dict[int, Any], names: Dict[int, str], fields: Dict[str, str]) -> Dict[str, Any]:
    collected: Dict[str, Any] = {}
    for tag_id, value in ifd.items():
        field_name = fields.get(names.get(tag_id, ""))
        if field_name is None: continue
        coerced = _coerce(field_name, value)
        if coerced is not None: collected[field_name] = coerced
    return collected

def read_metadata(data: bytes) -> RawMetadata:
    """
    Decodifica los metadatos EXIF (IFD0, Exif y GPS) de los bytes de una imagen.
    Lança FormatError se os bytes não são uma imagem decodificável.
    Una imagen válida sin EXIF devuelve un RawMetadata vacío.
    """
    try:
        with Image.open(io.BytesIO(data)) as img_pil:
            if config.DEBUG_MODE: print(f"DEBUG: [read_metadata] Imagen abierta con Pillow ({img_pil.format}, {img_pil.size}).")
            exif_data_raw = img_pil.getexif()
            ifd0 = dict(exif_data_raw)
            exif_ifd = exif_data_raw.get_ifd(config.EXIF_IFD_TAG_ID) if config.EXIF_IFD_TAG_ID is not None else {}
            gps_ifd = exif_data_raw.get_ifd(config.GPS_IFD_TAG_ID) if config.GPS_IFD_TAG_ID is not None else {}
    except Exception as e: # pylint: disable=broad-except
        raise FormatError(f"No se pudieron leer los metadatos de la imagen: {e}") from e

    fields = _collect(ifd0, config.TAG_NAMES, _IFD0_FIELDS)
    fields.update(_collect(exif_ifd, config.TAG_NAMES, _EXIF_FIELDS))
    fields.update(_collect(gps_ifd, config.GPSTAGS, _GPS_FIELDS))
    if "create_date" not in fields:
        # DateTime (IFD0) como último recurso para la fecha de creación
        datetime_tag = config.TAGS.get("DateTime")
        fallback_date = _to_text(ifd0.get(datetime_tag)) if datetime_tag is not None else None
        if fallback_date: fields["create_date"] = fallback_date
    if config.DEBUG_MODE: print(f"DEBUG: [read_metadata] Campos reconocidos: {sorted(fields)}")
    return RawMetadata(**fields)
