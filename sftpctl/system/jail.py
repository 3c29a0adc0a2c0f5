"""
Jaulas chroot de las cuentas SFTP.

sshd rechaza la sesión (no la recarga) si la raíz de la jaula no es
root:root o es escribible por otros, así que ownership y modo de la raíz se
aplican siempre, aunque el directorio ya existiera.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console

from sftpctl.core.contracts import SystemCollaborator
from sftpctl.core.models import JailDirectory

ROOT_OWNER = "root"


def ensure_root_owned_dir(
    system: SystemCollaborator,
    path: Path,
    mode: int = 0o755,
    console: Optional[Console] = None
) -> None:
    """Crea el directorio (con padres) y fuerza root:root y el modo indicado."""
    system.make_dirs(path)
    system.chown(path, ROOT_OWNER, ROOT_OWNER)
    system.chmod(path, mode)
    if console:
        console.print(f"  [green]✓[/green] Directorio [cyan]{path}[/cyan] (root:root {mode:o})")


def create_jail(
    system: SystemCollaborator,
    jail: JailDirectory,
    console: Optional[Console] = None
) -> None:
    """
    Crea la jaula: raíz root:root 0755 y subdirectorio de subida del usuario.
    """
    ensure_root_owned_dir(system, jail.root_path, jail.mode, console)

    child = jail.child_path
    system.make_dirs(child)
    system.chown(child, jail.owner, jail.owner)
    system.chmod(child, jail.child_mode)
    if console:
        console.print(
            f"  [green]✓[/green] Directorio [cyan]{child}[/cyan] "
            f"({jail.owner}:{jail.owner} {jail.child_mode:o})"
        )


def destroy_jail(
    system: SystemCollaborator,
    root: Path,
    console: Optional[Console] = None
) -> bool:
    """
    Elimina la jaula completa. Si no existe no hace nada.

    Returns:
        True si se eliminó, False si no existía
    """
    if not system.path_exists(root):
        if console:
            console.print(f"  [dim]La carpeta {root} no existe[/dim]")
        return False
    system.remove_tree(root)
    if console:
        console.print(f"  [green]🧹[/green] Carpeta [cyan]{root}[/cyan] eliminada")
    return True
