# -*- coding: utf-8 -*-
import math
import pyproj
import traceback # For debug prints in convert_to_utm, if DEBUG_MODE is active
from dataclasses import dataclass
from typing import Optional, Sequence

import config # For type hints and DEBUG_MODE
from core.exif_reader import RawMetadata


@dataclass(frozen=True)
class NormalizedPoint:
    """Punto en grados decimales; altitud en metros, rumbo en [0, 360)."""
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    heading: Optional[float] = None


@dataclass(frozen=True)
class ProcessedPhoto:
    filename: str
    metadata: RawMetadata
    point: NormalizedPoint


def dms_to_decimal(
    degrees: config.Number,
    minutes: config.Number,
    seconds: config.Number,
    direction: Optional[str]
) -> float:
    """
    Convierte Grados, Minutos, Segundos (DMS) a Grados Decimales.
    S/W devuelven un valor negativo; N/E, una referencia ausente o desconocida,
    positivo. Lança ValueError se algum componente não é finito.
    """
    try:
        deg_f = float(getattr(degrees, 'real', degrees))
        min_f = float(getattr(minutes, 'real', minutes))
        sec_f = float(getattr(seconds, 'real', seconds))
    except (ValueError, TypeError) as e:
        raise ValueError(f"Error convirtiendo DMS ({degrees}, {minutes}, {seconds}, {direction}): {e}") from e
    if not all(math.isfinite(x) for x in [deg_f, min_f, sec_f]):
        raise ValueError(f"Componente(s) DMS no finito: D={degrees}, M={minutes}, S={seconds}")
    if config.DEBUG_MODE and not (0 <= min_f < 60 and 0 <= sec_f < 60):
        print(f"DEBUG: [dms_to_decimal] Valores DMS fuera del rango (Min={min_f}, Sec={sec_f}), continuando cálculo.")
    dd = deg_f + min_f / 60.0 + sec_f / 3600.0
    if direction is not None and direction.strip().upper() in ('S', 'W'):
        return -dd
    return dd

def _dms_sequence_to_decimal(dms: Optional[Sequence[float]], direction: Optional[str]) -> Optional[float]:
    if not isinstance(dms, (tuple, list)) or len(dms) < 3:
        return None
    try:
        return dms_to_decimal(dms[0], dms[1], dms[2], direction)
    except ValueError as e:
        if config.DEBUG_MODE: print(f"DEBUG: [geo] {e}")
        return None

def extract_latitude(metadata: Optional[RawMetadata]) -> Optional[float]:
    if metadata is None: return None
    if metadata.latitude is not None: return float(metadata.latitude)
    return _dms_sequence_to_decimal(metadata.gps_latitude, metadata.gps_latitude_ref)

def extract_longitude(metadata: Optional[RawMetadata]) -> Optional[float]:
    if metadata is None: return None
    if metadata.longitude is not None: return float(metadata.longitude)
    return _dms_sequence_to_decimal(metadata.gps_longitude, metadata.gps_longitude_ref)

def extract_altitude(metadata: Optional[RawMetadata]) -> Optional[float]:
    if metadata is None: return None
    if metadata.altitude is not None: return float(metadata.altitude)
    if metadata.gps_altitude is None: return None
    altitude = float(metadata.gps_altitude)
    if metadata.gps_altitude_ref == config.ALTITUDE_BELOW_SEA_LEVEL:
        return -altitude
    return altitude

def extract_direction(metadata: Optional[RawMetadata]) -> Optional[float]:
    if metadata is None: return None
    if metadata.gps_img_direction is not None: return float(metadata.gps_img_direction)
    if metadata.heading is not None: return float(metadata.heading)
    return None

def normalize_point(metadata: Optional[RawMetadata]) -> Optional[NormalizedPoint]:
    """Devuelve el punto normalizado, o None si falta la latitud o la longitud."""
    latitude = extract_latitude(metadata); longitude = extract_longitude(metadata)
    if latitude is None or longitude is None:
        return None
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        if config.DEBUG_MODE: print(f"DEBUG: [normalize_point] Coordenadas fuera de rango: Lat={latitude:.7f}, Lon={longitude:.7f}")
        return None
    heading = extract_direction(metadata)
    if heading is not None:
        heading = heading % 360.0
    return NormalizedPoint(latitude, longitude, extract_altitude(metadata), heading)

def format_coordinate(value: config.Number) -> str:
    return f"{float(value):.{config.COORDINATE_DECIMALS}f}"

def format_measure(value: config.Number) -> str:
    return f"{float(value):.{config.MEASURE_DECIMALS}f}"

def convert_to_utm(latitude: float, longitude: float) -> config.UTMCoordinates:
    """Convierte WGS84 a UTM (easting, northing, zona, hemisferio). None si falla."""
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        print(f"\nError UTM: Coordenadas Lat/Lon fuera de rango ({latitude}, {longitude})"); return None
    epsg_code = 0
    try:
        zone = min(math.floor((longitude + 180) / 6) + 1, 60); hemisphere = 'N' if latitude >= 0 else 'S'
        epsg_code = (32600 if latitude >= 0 else 32700) + zone
        transformer = pyproj.Transformer.from_crs(pyproj.CRS("EPSG:4326"), pyproj.CRS(f"EPSG:{epsg_code}"), always_xy=True)
        easting, northing = transformer.transform(longitude, latitude)
        if not math.isfinite(easting) or not math.isfinite(northing):
            raise ValueError(f"Resultado da transformação UTM não finito: E={easting}, N={northing}")
        return easting, northing, zone, hemisphere
    except pyproj.exceptions.CRSError as e_crs:
        print(f"\nError UTM: Problema com o sistema de coordenadas (EPSG:{epsg_code}): {e_crs}"); return None
    except ValueError as e_val:
        print(f"\nError UTM: Problema nos valores durante a conversão: {e_val}"); return None
    except Exception as e: # pylint: disable=broad-except
        if config.DEBUG_MODE: traceback.print_exc()
        print(f"\nError inesperado en la conversión UTM para ({latitude}, {longitude}): {e}"); return None
