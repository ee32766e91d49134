# -*- coding: utf-8 -*-
import io
import os
import zipfile
from typing import Iterable, NamedTuple, Optional, Set

import config


class PlacemarkDocument(NamedTuple):
    entry_name: str
    content: bytes


def unique_entry_name(entry_name: str, taken: Set[str]) -> str:
    """
    Devuelve entry_name, o entry_name con sufijo _2, _3... si ya está en uso
    dentro del mismo archivo. Registra el nombre elegido en `taken`.
    """
    candidate = entry_name
    if candidate in taken:
        base_name, extension = os.path.splitext(entry_name)
        index = 2
        while f"{base_name}_{index}{extension}" in taken:
            index += 1
        candidate = f"{base_name}_{index}{extension}"
        if config.DEBUG_MODE: print(f"DEBUG: [kmz] Nombre de entrada repetido '{entry_name}', se usa '{candidate}'")
    taken.add(candidate)
    return candidate

def assemble_archive(documents: Iterable[PlacemarkDocument]) -> bytes:
    """
    Empaqueta los documentos en un ZIP (deflate, nombres planos). Las entradas
    llevan fecha fija, así que la misma entrada produce los mismos bytes.
    Lança ValueError se dois documentos têm o mesmo nome.
    """
    buffer = io.BytesIO(); seen: Set[str] = set()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as kmz:
        for document in documents:
            if document.entry_name in seen:
                raise ValueError(f"Entrada duplicada en el archivo KMZ: {document.entry_name}")
            seen.add(document.entry_name)
            info = zipfile.ZipInfo(document.entry_name, date_time=config.ZIP_ENTRY_DATE_TIME)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            kmz.writestr(info, document.content)
    return buffer.getvalue()


class KmzOutput:
    """
    Archivo KMZ en disco producido por una ejecución. Cada publicación libera
    el artefacto anterior antes de escribir el nuevo; release() lo elimina.
    """

    def __init__(self, path: str):
        self.path = path
        self._published = False

    @property
    def published(self) -> bool:
        return self._published

    def publish(self, archive_bytes: bytes) -> str:
        self.release()
        with open(self.path, "wb") as f:
            f.write(archive_bytes)
        self._published = True
        print(f"\nArchivo KMZ guardado con éxito: {os.path.abspath(self.path)}")
        return self.path

    def release(self) -> None:
        if os.path.exists(self.path):
            try:
                os.remove(self.path)
                if config.DEBUG_MODE: print(f"DEBUG: [KmzOutput] Eliminado: {os.path.basename(self.path)}")
            except OSError as e_remove: print(f"  Warning: No se pudo eliminar el archivo KMZ anterior '{self.path}': {e_remove}")
        self._published = False

    def __enter__(self) -> "KmzOutput":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        if exc_type is not None:
            self.release()
        return None
