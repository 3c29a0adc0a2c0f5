"""
Reconciliación del bloque gestionado en sshd_config.

Trabaja sobre líneas: localiza el marcador por coincidencia exacta de línea,
añade al final o elimina el tramo marcador..centinela, y devuelve una nueva
secuencia de líneas. Nunca edita dentro de una línea.

Sin bloqueo entre procesos no hay garantía frente a dos invocaciones
simultáneas (doble inserción si ambas pasan la comprobación antes de
escribir); por eso las ediciones de archivo se hacen bajo flock exclusivo.
"""

import fcntl
import logging
import shutil
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, TextIO, Tuple

from sftpctl.core.contracts import SystemCollaborator
from sftpctl.core.errors import ValidationError
from sftpctl.core.models import BlockOutcome

log = logging.getLogger(__name__)


# --- Operaciones puras sobre líneas ---

def find_line(lines: Sequence[str], text: str, start: int = 0) -> Optional[int]:
    """Índice de la primera línea (desde start) igual a text, ignorando espacios en los extremos."""
    target = text.strip()
    for i in range(start, len(lines)):
        if lines[i].strip() == target:
            return i
    return None


def has_marker(lines: Sequence[str], marker: str) -> bool:
    return find_line(lines, marker) is not None


def render_block(marker: str, body: Sequence[str]) -> List[str]:
    """Líneas a añadir: línea en blanco, marcador y cuerpo (con salto de línea)."""
    return ["\n", f"{marker}\n"] + [f"{line}\n" for line in body]


def append_block(lines: Sequence[str], marker: str, body: Sequence[str]) -> List[str]:
    """
    Devuelve las líneas con el bloque añadido al final.
    Si ya existe el marcador, devuelve una copia sin cambios.
    """
    out = list(lines)
    if has_marker(out, marker):
        return out
    if out and not out[-1].endswith("\n"):
        out[-1] += "\n"
    return out + render_block(marker, body)


def remove_span(
    lines: Sequence[str],
    start_marker: str,
    end_sentinel: str
) -> Tuple[List[str], bool]:
    """
    Elimina desde la línea start_marker hasta la primera línea end_sentinel
    posterior, ambas incluidas. Sin centinela, el tramo llega al final.

    Returns:
        Tuple (nuevas_líneas, eliminado)
    """
    start = find_line(lines, start_marker)
    if start is None:
        return list(lines), False
    end = find_line(lines, end_sentinel, start + 1)
    stop = len(lines) if end is None else end + 1
    if end is None:
        log.warning("Sin '%s' tras '%s': se elimina hasta el final", end_sentinel, start_marker)
    return list(lines[:start]) + list(lines[stop:]), True


# --- Reconciliador sobre archivo ---

def create_backup(path: Path) -> Path:
    """Copia el archivo a <nombre>.bak-<timestamp> en el mismo directorio."""
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    backup_path = path.parent / f"{path.name}.bak-{timestamp}"
    shutil.copy2(path, backup_path)
    return backup_path


@contextmanager
def _locked(path: Path) -> Iterator[TextIO]:
    """Abre el archivo para lectura/escritura con flock exclusivo."""
    # newline="" conserva los finales de línea; surrogateescape conserva bytes no UTF-8
    with open(path, "r+", encoding="utf-8", errors="surrogateescape", newline="") as fh:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
        try:
            yield fh
        finally:
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


class BlockReconciler:
    """
    Garantiza como mucho un bloque por marcador en sshd_config.

    Tras cualquier modificación pide al colaborador que valide la sintaxis;
    si falla, ConfigSyntaxError se propaga y el archivo queda editado.
    """

    def __init__(self, system: SystemCollaborator, backup: bool = True):
        self.system = system
        self.backup = backup
        self.last_backup: Optional[Path] = None

    def ensure_block(self, path: Path, marker: str, body: Sequence[str]) -> BlockOutcome:
        path = Path(path)
        if not path.is_file():
            raise ValidationError(f"No existe el archivo de configuración SSHD: {path}")

        with _locked(path) as fh:
            content = fh.read()
            lines = content.splitlines(keepends=True)
            if has_marker(lines, marker):
                log.debug("Bloque '%s' ya presente en %s", marker, path)
                return BlockOutcome.ALREADY_PRESENT

            self._backup(path)
            new_content = "".join(append_block(lines, marker, body))
            # Solo se añade al final: los bytes previos no se reescriben
            fh.seek(0, 2)
            fh.write(new_content[len(content):])
            log.debug("Bloque '%s' añadido a %s", marker, path)

        self.system.validate_config(path)
        return BlockOutcome.CREATED

    def remove_block(self, path: Path, start_marker: str, end_sentinel: str) -> BlockOutcome:
        path = Path(path)
        if not path.is_file():
            log.debug("%s no existe: nada que eliminar", path)
            return BlockOutcome.NOT_FOUND

        with _locked(path) as fh:
            lines = fh.read().splitlines(keepends=True)
            new_lines, removed = remove_span(lines, start_marker, end_sentinel)
            if not removed:
                return BlockOutcome.NOT_FOUND

            self._backup(path)
            fh.seek(0)
            fh.write("".join(new_lines))
            fh.truncate()
            log.debug("Bloque '%s' eliminado de %s", start_marker, path)

        self.system.validate_config(path)
        return BlockOutcome.REMOVED

    def _backup(self, path: Path) -> None:
        if self.backup:
            self.last_backup = create_backup(path)
            log.debug("Backup de %s en %s", path, self.last_backup)
