"""
Cuentas y grupos SFTP.

Alta/baja de la cuenta del sistema, su contraseña y la pertenencia al grupo
SFTP compartido. Sin lógica de negocio más allá de comprobar existencia.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console

from sftpctl.core.contracts import SystemCollaborator
from sftpctl.core.errors import AlreadyExists
from sftpctl.core.models import GroupOutcome


def create_account(
    system: SystemCollaborator,
    username: str,
    home: Path,
    shell: Path,
    console: Optional[Console] = None
) -> None:
    """
    Crea la cuenta sin home materializado y con shell sin login.
    Lanza AlreadyExists si la cuenta ya existe.
    """
    if system.account_exists(username):
        raise AlreadyExists(f"El usuario '{username}' ya existe")
    system.create_account(username, home, shell)
    if console:
        console.print(f"  [green]✓[/green] Usuario [cyan]{username}[/cyan] creado (shell {shell})")


def set_password(
    system: SystemCollaborator,
    username: str,
    secret: str,
    console: Optional[Console] = None
) -> None:
    system.set_password(username, secret)
    if console:
        console.print(f"  [green]✓[/green] Contraseña de [cyan]{username}[/cyan] establecida")


def delete_account(
    system: SystemCollaborator,
    username: str,
    console: Optional[Console] = None
) -> bool:
    """
    Elimina la cuenta si existe.

    Returns:
        True si se eliminó, False si no existía
    """
    if not system.account_exists(username):
        if console:
            console.print(f"  [yellow]⚠[/yellow] El usuario '{username}' no existe")
        return False
    system.delete_account(username)
    if console:
        console.print(f"  [green]🗑️[/green]  Usuario [cyan]{username}[/cyan] eliminado")
    return True


def ensure_group(
    system: SystemCollaborator,
    name: str,
    console: Optional[Console] = None
) -> GroupOutcome:
    """Crea el grupo si no existe. Idempotente."""
    if system.group_exists(name):
        if console:
            console.print(f"  [dim]Grupo [cyan]{name}[/cyan] ya existe[/dim]")
        return GroupOutcome.EXISTS
    system.create_group(name)
    if console:
        console.print(f"  [green]✓[/green] Grupo [cyan]{name}[/cyan] creado")
    return GroupOutcome.CREATED


def add_member(
    system: SystemCollaborator,
    username: str,
    group: str,
    console: Optional[Console] = None
) -> None:
    """Añade el usuario al grupo si no pertenece ya. Idempotente."""
    if system.is_member(username, group):
        if console:
            console.print(f"  [dim]Usuario [cyan]{username}[/cyan] ya está en el grupo [cyan]{group}[/cyan][/dim]")
        return
    system.add_member(username, group)
    if console:
        console.print(f"  [green]✓[/green] Usuario [cyan]{username}[/cyan] añadido al grupo [cyan]{group}[/cyan]")
