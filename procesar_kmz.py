# -*- coding: utf-8 -*-
# -----------------------------------------------------------------------------
# Script para convertir una carpeta de fotos con GPS en un archivo KMZ: un
# placemark KML por foto (con la imagen incrustada y sus metadatos), más un
# GeoJSON con los puntos para el mapa. También genera CSV o KML simple.
# -----------------------------------------------------------------------------

import os
import argparse # For command-line interface
import traceback
from typing import List

import config # Importa nuestro módulo de configuración
from core.pipeline import BatchResult, BatchState, EmptyBatchError, ImageRecord, Outcome, is_jpeg, run_batch
from core.utils import sanitize_filename
from generators.csv_generator import _generate_csv
from generators.kml_generator import generate_kml_overview
from generators.kmz_generator import KmzOutput

def collect_images(folder_path: str, recursive: bool = False) -> List[ImageRecord]:
    """Lee los JPEG de la carpeta (y subcarpetas si recursive), ordenados por ruta relativa."""
    paths: List[str] = []
    if recursive:
        for root, _, files in os.walk(folder_path):
            paths.extend(os.path.join(root, name) for name in files if is_jpeg(name))
    else:
        paths = [entry.path for entry in os.scandir(folder_path) if entry.is_file() and is_jpeg(entry.name)]
    paths.sort(key=lambda p: os.path.relpath(p, folder_path))
    records: List[ImageRecord] = []
    for path in paths:
        try:
            with open(path, "rb") as f:
                records.append(ImageRecord(os.path.basename(path), f.read()))
        except OSError as e: print(f"\nError de Sistema/Archivo leyendo imagen {os.path.basename(path)}: {e}")
    return records

def summarize(result: BatchResult) -> str:
    parts = []
    if result.processed_count > 0: parts.append(f"{result.processed_count} photo{'' if result.processed_count == 1 else 's'} converted")
    if result.skipped_count > 0: parts.append(f"{result.skipped_count} photo{'' if result.skipped_count == 1 else 's'} skipped")
    return " · ".join(parts) if parts else "Nothing to convert."

def _print_state(state: BatchState, name: object) -> None:
    if state is BatchState.EXTRACTING: print(f"\rProcesando: {str(name):<50}", end='', flush=True)
    elif config.DEBUG_MODE: print(f"\nDEBUG [run_batch]: {state.value} {name or ''}")

def process_folder(folder_path: str, output_format: str, out_base: str, recursive: bool = False,
                   workers: int = config.DEFAULT_MAX_WORKERS, thumbnail_width=None) -> bool:
    if not os.path.isdir(folder_path): print(f"Error: Carpeta no encontrada: {folder_path}"); return False
    print(f"\nProcesando imágenes en: {folder_path}")
    print(f"Formato de salida solicitado: {output_format.upper()}")
    images = collect_images(folder_path, recursive)
    try:
        result = run_batch(images, max_workers=workers, thumbnail_width=thumbnail_width, on_state=_print_state)
    except EmptyBatchError as e:
        print(f"\n{e}"); return False
    print()

    print("\n--- Resumen del Análisis EXIF ---")
    for status in result.statuses:
        marker = "OK " if status.outcome is Outcome.PROCESSED else "-- "
        detail = status.detail if status.outcome is Outcome.PROCESSED else f"Skipped ({status.detail})"
        print(f"  {marker}{status.name}: {detail}")
    print(f"  {summarize(result)}")
    print("---------------------------------")

    if not result.photos:
        print("\nNo se encontraron fotos con coordenadas válidas suficientes para generar la salida.")
        return False

    output_generated = False
    try:
        if output_format == "kmz":
            # Si falla el GeoJSON con excepción, el KMZ recién escrito se elimina.
            with KmzOutput(f"{out_base}.kmz") as kmz_output:
                kmz_output.publish(result.archive_bytes) # type: ignore
                output_generated = result.feature_collection.save(f"{out_base}.geojson")
            bounds = result.feature_collection.bounds()
            if bounds: print(f"Extensión (lon/lat): {bounds[0]:.6f}, {bounds[1]:.6f} -> {bounds[2]:.6f}, {bounds[3]:.6f}")
        elif output_format == "csv":
            output_generated = _generate_csv(result.photos, out_base)
        elif output_format == "kml_simple":
            folder_base_name = os.path.basename(os.path.normpath(folder_path))
            output_generated = generate_kml_overview(result.photos, f"Coords {folder_base_name} (Simple)", out_base)
        if not output_generated: print(f"\nLa generación del archivo {output_format.upper()} falló debido a errores previos.")
    except OSError as e_generate:
        print(f"\nERROR CRÍTICO durante la generación del archivo {output_format.upper()}: {e_generate}")
        if config.DEBUG_MODE: traceback.print_exc()
    return output_generated

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Convierte una carpeta de fotos con GPS en un KMZ (un placemark por foto), GeoJSON, CSV o KML simple.",
        epilog="Ejemplo de uso: python procesar_kmz.py ./mis_fotos -a kmz"
    )
    parser.add_argument("folder", help="Ruta a la carpeta que contiene las imágenes a procesar.")
    parser.add_argument("-a", "--action", choices=['kmz', 'csv', 'kml_simple'], default='kmz',
                        help="Formato de salida a generar (por defecto: kmz).")
    parser.add_argument("-o", "--output", help="Nombre base de los archivos de salida (sin extensión).")
    parser.add_argument("-r", "--recursive", action="store_true", help="Incluir subcarpetas.")
    parser.add_argument("-w", "--workers", type=int, default=config.DEFAULT_MAX_WORKERS,
                        help="Número de hilos para procesar las imágenes.")
    parser.add_argument("--thumbnail-width", type=int, default=None,
                        help="Incrustar una miniatura de este ancho en lugar de la foto original.")
    parser.add_argument("--debug", action="store_true", help="Activar logs de depuración.")
    args = parser.parse_args(argv)

    if args.debug: config.DEBUG_MODE = True
    if not os.path.isdir(args.folder):
        parser.error(f"La ruta de la carpeta especificada no es un directorio válido o no existe: {args.folder}")
    if args.workers < 1: parser.error("--workers debe ser al menos 1.")
    if args.thumbnail_width is not None and args.thumbnail_width < 1: parser.error("--thumbnail-width debe ser positivo.")

    folder_base_name = os.path.basename(os.path.normpath(args.folder))
    out_base = args.output or sanitize_filename(f"fotos_{folder_base_name}")
    print("\n--- Conversor de Fotos GPS a KMZ ---")
    print(f"--- Modo Depuración: {'ACTIVO' if config.DEBUG_MODE else 'INACTIVO'} ---")
    ok = process_folder(args.folder, args.action, out_base, args.recursive, args.workers, args.thumbnail_width)
    print("\n--- Script Finalizado ---")
    return 0 if ok else 1

if __name__ == "__main__":
    raise SystemExit(main())
