#!/usr/bin/env python3
"""
sftpctl - Gestión de cuentas SFTP enjauladas (chroot) y de su bloque en sshd_config
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler

from sftpctl import __version__
from sftpctl.core.errors import ConfigError, SftpctlError, UserAbort
from sftpctl.core.models import Command
from sftpctl.core.settings import FALLBACKS, environment_defaults, load_env_file
from sftpctl.orchestrator import CommandInputs, Orchestrator, select_command
from sftpctl.prompts import RichPrompter
from sftpctl.system import HostSystem
from sftpctl.system.doctor import doctor_ok, run_doctor
from sftpctl.system.permissions import require_root

log = logging.getLogger("sftpctl")

app = typer.Typer(
    name="sftpctl",
    help="sftpctl - Alta, baja y contraseñas de usuarios SFTP enjaulados",
    add_completion=False,
)

console = Console()


# Opciones comunes a add/delete/passwd/setup
USERNAME_OPT = typer.Option(None, "--username", "-u", help="Nombre de usuario")
PASSWORD_OPT = typer.Option(None, "--password", "-p", help="Contraseña (vacía: se autogenera)")
BASE_DIR_OPT = typer.Option(None, "--base-dir", "-b", help=f"Directorio base (por defecto {FALLBACKS['base_dir']})")
FOLDER_OPT = typer.Option(None, "--folder", "-f", help="Carpeta bajo el directorio base (modo user)")
GROUP_OPT = typer.Option(None, "--group", "-g", help=f"Grupo SFTP (modo group, por defecto {FALLBACKS['group']})")
CONFIG_OPT = typer.Option(None, "--config", "-c", help=f"Ruta de sshd_config (por defecto {FALLBACKS['sshd_config']})")
SHELL_OPT = typer.Option(None, "--shell", "-s", help=f"Shell sin login (por defecto {FALLBACKS['nologin_shell']})")
UPLOAD_OPT = typer.Option(None, "--upload-dir", help=f"Subdirectorio de subida (por defecto {FALLBACKS['upload_dir']})")
MODE_OPT = typer.Option(None, "--mode", "-m", help="Modelo de bloque: group | user")
INTERACTIVE_OPT = typer.Option(False, "--interactive", "-i", help="Preguntar todos los valores")
YES_OPT = typer.Option(False, "--yes", "-y", help="Confirmar sin preguntar (útil para scripts)")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_defaults() -> dict:
    """Valores por defecto de entorno (.env, SFTPCTL_*, archivo YAML)."""
    env_file = load_env_file()
    if env_file:
        log.debug("Cargado %s", env_file)
    return environment_defaults()


def _run(ctx: typer.Context, command: Command, inputs: CommandInputs) -> None:
    """Ejecuta un comando del orquestador y traduce los errores a códigos de salida."""
    defaults = (ctx.obj or {}).get("defaults", {})
    try:
        require_root()
        orchestrator = Orchestrator(HostSystem(), RichPrompter(console), console, defaults)
        orchestrator.run(command, inputs)
    except UserAbort as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(code=0)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operación cancelada por el usuario[/yellow]")
        raise typer.Exit(code=1)
    except SftpctlError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Mostrar el detalle de los comandos ejecutados"),
    version: bool = typer.Option(False, "--version", help="Mostrar la versión y salir"),
):
    """
    Gestiona usuarios SFTP enjaulados y el bloque correspondiente en sshd_config.

    Sin comando, muestra un menú interactivo.

    Ejemplos:
        sudo sftpctl add -u john
        sudo sftpctl delete -u john --yes
        sudo sftpctl --mode user add -u ana -f ana_data
    """
    if version:
        console.print(f"sftpctl {__version__}")
        raise typer.Exit()

    _setup_logging(verbose)
    try:
        defaults = _load_defaults()
    except ConfigError as e:
        console.print(f"[red]❌ Error de configuración: {e}[/red]")
        raise typer.Exit(code=1)
    ctx.obj = {"defaults": defaults}

    if ctx.invoked_subcommand is not None:
        return

    try:
        command = select_command(RichPrompter(console))
    except KeyboardInterrupt:
        console.print("\n[yellow]Operación cancelada por el usuario[/yellow]")
        raise typer.Exit(code=1)
    except SftpctlError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        console.print("[dim]Usa 'sftpctl --help' para ver los comandos[/dim]")
        raise typer.Exit(code=1)

    if command is None:
        console.print("[dim]Saliendo...[/dim]")
        raise typer.Exit(code=0)
    # Desde el menú, todo se pregunta
    _run(ctx, command, CommandInputs(interactive=True))


@app.command()
def add(
    ctx: typer.Context,
    username: Optional[str] = USERNAME_OPT,
    password: Optional[str] = PASSWORD_OPT,
    base_dir: Optional[str] = BASE_DIR_OPT,
    folder: Optional[str] = FOLDER_OPT,
    group: Optional[str] = GROUP_OPT,
    config: Optional[str] = CONFIG_OPT,
    shell: Optional[str] = SHELL_OPT,
    upload_dir: Optional[str] = UPLOAD_OPT,
    mode: Optional[str] = MODE_OPT,
    interactive: bool = INTERACTIVE_OPT,
    yes: bool = YES_OPT,
):
    """
    Crea un usuario SFTP enjaulado

    Crea la cuenta (sin shell), su jaula <base>/<usuario> y el subdirectorio
    de subida, y asegura el bloque de sshd_config. Si no se indica contraseña
    se autogenera y se muestra al final.

    Ejemplos:
        sudo sftpctl add -u john
        sudo sftpctl add -u john -p 'S3creta' -b /srv/sftp --yes
    """
    _run(ctx, Command.ADD, CommandInputs(
        username=username, password=password, base_dir=base_dir, folder=folder,
        group=group, sshd_config=config, nologin_shell=shell, upload_dir=upload_dir,
        mode=mode, interactive=interactive, assume_yes=yes,
    ))


@app.command()
def delete(
    ctx: typer.Context,
    username: Optional[str] = USERNAME_OPT,
    base_dir: Optional[str] = BASE_DIR_OPT,
    folder: Optional[str] = FOLDER_OPT,
    config: Optional[str] = CONFIG_OPT,
    mode: Optional[str] = MODE_OPT,
    interactive: bool = INTERACTIVE_OPT,
    yes: bool = YES_OPT,
):
    """
    Elimina un usuario SFTP y su jaula

    En modo user también elimina su bloque de sshd_config; en modo group el
    bloque compartido no se toca.
    """
    _run(ctx, Command.DELETE, CommandInputs(
        username=username, base_dir=base_dir, folder=folder, sshd_config=config,
        mode=mode, interactive=interactive, assume_yes=yes,
    ))


@app.command()
def passwd(
    ctx: typer.Context,
    username: Optional[str] = USERNAME_OPT,
    password: Optional[str] = PASSWORD_OPT,
    mode: Optional[str] = MODE_OPT,
    interactive: bool = INTERACTIVE_OPT,
    yes: bool = YES_OPT,
):
    """Cambia la contraseña de un usuario SFTP existente"""
    _run(ctx, Command.PASSWD, CommandInputs(
        username=username, password=password, mode=mode,
        interactive=interactive, assume_yes=yes,
    ))


@app.command()
def setup(
    ctx: typer.Context,
    base_dir: Optional[str] = BASE_DIR_OPT,
    group: Optional[str] = GROUP_OPT,
    config: Optional[str] = CONFIG_OPT,
    upload_dir: Optional[str] = UPLOAD_OPT,
    mode: Optional[str] = MODE_OPT,
    interactive: bool = INTERACTIVE_OPT,
    yes: bool = YES_OPT,
):
    """
    Configuración inicial del modo group

    Crea el grupo SFTP, el directorio base (root:root 755) y el bloque
    'Match Group' en sshd_config. Solo hace falta una vez.
    """
    _run(ctx, Command.SETUP, CommandInputs(
        base_dir=base_dir, group=group, sshd_config=config, upload_dir=upload_dir,
        mode=mode, interactive=interactive, assume_yes=yes,
    ))


@app.command()
def doctor(
    ctx: typer.Context,
    config: Optional[str] = CONFIG_OPT,
    shell: Optional[str] = SHELL_OPT,
):
    """
    Verifica herramientas y requisitos del host

    No requiere root ni modifica nada.
    """
    defaults = (ctx.obj or {}).get("defaults", {})
    sshd_config = config or defaults.get("sshd_config") or FALLBACKS["sshd_config"]
    nologin_shell = shell or defaults.get("nologin_shell") or FALLBACKS["nologin_shell"]
    results = run_doctor(console, Path(sshd_config), Path(nologin_shell))
    if not doctor_ok(results):
        raise typer.Exit(code=1)


def main() -> None:
    """
    Punto de entrada del script sftpctl.

    Los errores de uso (opción desconocida, valor inválido) salen con código 1.
    """
    try:
        rv = app(standalone_mode=False)
    except click.exceptions.ClickException as e:
        e.show()
        sys.exit(1)
    except click.exceptions.Abort:
        console.print("\n[yellow]Operación cancelada por el usuario[/yellow]")
        sys.exit(1)
    sys.exit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    main()
