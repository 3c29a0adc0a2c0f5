"""
Orquestación de comandos: add, delete, passwd, setup.

Cada comando recorre las mismas etapas:
    CollectInputs → Validate → Summarize&Confirm → Execute → Report

No hay rollback entre pasos: si un paso falla, lo ya hecho queda hecho y la
recuperación es volver a ejecutar (cada paso es idempotente o tolera un
estado parcial previo).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sftpctl.core.blocks import BlockReconciler
from sftpctl.core.contracts import ConfigStrategy, Prompter, SystemCollaborator
from sftpctl.core.errors import AlreadyExists, ExternalToolFailure, UserAbort, ValidationError
from sftpctl.core.models import (
    BlockOutcome,
    Command,
    JailDirectory,
    ManagedUser,
    Mode,
    ResolvedConfig,
)
from sftpctl.core.settings import FALLBACKS, SettingResolver
from sftpctl.core.strategy import get_strategy
from sftpctl.system import accounts, jail

log = logging.getLogger(__name__)

TITLES = {
    Command.ADD: "Alta de usuario SFTP",
    Command.DELETE: "Baja de usuario SFTP",
    Command.PASSWD: "Cambio de contraseña SFTP",
    Command.SETUP: "Configuración inicial del grupo SFTP",
}

# Menú cuando no se indica comando: (etiqueta, comando o None para salir)
MENU_OPTIONS: List[Tuple[str, Optional[Command]]] = [
    ("Añadir usuario", Command.ADD),
    ("Eliminar usuario", Command.DELETE),
    ("Cambiar contraseña", Command.PASSWD),
    ("Configuración inicial (modo grupo)", Command.SETUP),
    ("Salir", None),
]


@dataclass
class CommandInputs:
    """Valores indicados explícitamente en la línea de comandos (None = no indicado)."""
    username: Optional[str] = None
    password: Optional[str] = None
    base_dir: Optional[str] = None
    folder: Optional[str] = None
    group: Optional[str] = None
    sshd_config: Optional[str] = None
    nologin_shell: Optional[str] = None
    upload_dir: Optional[str] = None
    mode: Optional[str] = None
    interactive: bool = False
    assume_yes: bool = False

    def explicit(self) -> dict:
        return {
            "base_dir": self.base_dir,
            "group": self.group,
            "sshd_config": self.sshd_config,
            "nologin_shell": self.nologin_shell,
            "upload_dir": self.upload_dir,
            "mode": self.mode,
        }


def select_command(prompter: Prompter) -> Optional[Command]:
    """Menú numerado de acciones. None si el operador elige salir."""
    if not prompter.enabled:
        raise ValidationError("No se indicó ninguna acción (add, delete, passwd, setup)")
    idx = prompter.choose("Selecciona una acción:", [label for label, _ in MENU_OPTIONS])
    return MENU_OPTIONS[idx][1]


class Orchestrator:
    """Secuencia los componentes para cada comando."""

    def __init__(
        self,
        system: SystemCollaborator,
        prompter: Prompter,
        console: Console,
        defaults: Optional[Mapping[str, str]] = None,
        backup: bool = True
    ):
        self.system = system
        self.prompter = prompter
        self.console = console
        self.defaults = dict(defaults or {})
        self.reconciler = BlockReconciler(system, backup=backup)

    # --- Punto de entrada ---

    def run(self, command: Command, inputs: CommandInputs) -> Optional[ManagedUser]:
        """
        Ejecuta un comando completo.

        Raises:
            UserAbort: el operador rechazó la confirmación
            ValidationError: entrada inválida o precondición no cumplida
            ExternalToolFailure / ConfigSyntaxError: fallo de una herramienta del sistema
        """
        command = Command(command)
        self.console.print(Panel.fit(f"[bold cyan]{TITLES[command]}[/bold cyan]", border_style="cyan"))

        cfg = self.collect_inputs(command, inputs)
        strategy = get_strategy(cfg.mode)
        self.validate(command, cfg, strategy)

        if command in (Command.ADD, Command.PASSWD):
            cfg = self.collect_password(cfg, inputs)

        self.summarize_and_confirm(command, cfg, strategy, inputs.assume_yes)

        if command == Command.ADD:
            user = self.execute_add(cfg, strategy)
        elif command == Command.DELETE:
            user = self.execute_delete(cfg, strategy)
        elif command == Command.PASSWD:
            user = self.execute_passwd(cfg, strategy)
        else:
            self.execute_setup(cfg, strategy)
            user = None

        self.report(command, cfg, user)
        return user

    # --- CollectInputs ---

    def collect_inputs(self, command: Command, inputs: CommandInputs) -> ResolvedConfig:
        """Combina argumentos, valores de entorno y preguntas en un ResolvedConfig."""
        resolver = SettingResolver(
            inputs.explicit(), self.defaults, self.prompter, interactive=inputs.interactive
        )

        raw_mode = resolver.resolve("mode", "Modo", ask=False)
        try:
            mode = Mode((raw_mode or FALLBACKS["mode"]).lower())
        except ValueError:
            raise ValidationError(f"Modo inválido: '{raw_mode}' (usa 'group' o 'user')")

        if command == Command.SETUP and mode != Mode.GROUP:
            raise ValidationError("'setup' solo aplica al modo grupo")

        username = None
        if command != Command.SETUP:
            username = inputs.username
            if not username or inputs.interactive:
                if self.prompter.enabled:
                    username = self.prompter.ask("Nombre de usuario", default=username, required=True)
                elif not username:
                    raise ValidationError("Falta un valor requerido: nombre de usuario")

        needs_paths = command != Command.PASSWD
        base_dir = resolver.resolve("base_dir", "Directorio base (ej. /sftp)", ask=needs_paths)

        folder = None
        if mode == Mode.USER and command in (Command.ADD, Command.DELETE):
            folder = inputs.folder or username
            if inputs.interactive and self.prompter.enabled:
                folder = self.prompter.ask("Nombre de carpeta", default=folder) or folder

        group = resolver.resolve(
            "group", "Grupo SFTP",
            ask=mode == Mode.GROUP and command in (Command.ADD, Command.SETUP)
        )
        sshd_config = resolver.resolve(
            "sshd_config", "Ruta de sshd_config (ej. /etc/ssh/sshd_config)", ask=needs_paths
        )
        nologin_shell = resolver.resolve(
            "nologin_shell", "Shell sin login", ask=command == Command.ADD
        )
        upload_dir = resolver.resolve(
            "upload_dir", "Subdirectorio de subida",
            ask=command in (Command.ADD, Command.SETUP)
        )

        return ResolvedConfig(
            mode=mode,
            username=username,
            base_dir=Path(base_dir),
            folder=folder,
            group=group,
            sshd_config=Path(sshd_config),
            nologin_shell=Path(nologin_shell),
            upload_dir=upload_dir,
        )

    def collect_password(self, cfg: ResolvedConfig, inputs: CommandInputs) -> ResolvedConfig:
        """Contraseña explícita, preguntada o autogenerada."""
        password = inputs.password
        if (not password or inputs.interactive) and self.prompter.enabled:
            hint = "mantener la indicada" if password else "autogenerarla"
            self.console.print(f"[dim]Deja la contraseña vacía para {hint}[/dim]")
            password = self.prompter.ask_secret("Contraseña") or password

        if password and ("\n" in password or "\r" in password):
            raise ValidationError("La contraseña no puede contener saltos de línea")

        generated = False
        if not password:
            password = self.system.generate_password()
            generated = True
            self.console.print("[yellow]📝 Contraseña autogenerada[/yellow]")
        return cfg.model_copy(update={"password": password, "password_generated": generated})

    # --- Validate ---

    def validate(self, command: Command, cfg: ResolvedConfig, strategy: ConfigStrategy) -> None:
        """Precondiciones; cualquier fallo es fatal y no se ha modificado nada."""
        if command == Command.ADD:
            if self.system.account_exists(cfg.username):
                raise AlreadyExists(f"El usuario '{cfg.username}' ya existe. Abortando.")
            self._require_file(cfg.sshd_config, "No se encontró el archivo de configuración SSHD")
            if not self.system.path_exists(cfg.nologin_shell):
                raise ValidationError(f"No se encontró la shell sin login: {cfg.nologin_shell}")
        elif command in (Command.DELETE, Command.PASSWD):
            if not self.system.account_exists(cfg.username):
                raise ValidationError(f"El usuario '{cfg.username}' no existe")
        elif command == Command.SETUP:
            self._require_file(cfg.sshd_config, "No se encontró el archivo de configuración SSHD")

    def _require_file(self, path: Path, message: str) -> None:
        if not self.system.path_exists(path):
            raise ValidationError(f"{message}: {path}")

    # --- Summarize & Confirm ---

    def summarize_and_confirm(
        self,
        command: Command,
        cfg: ResolvedConfig,
        strategy: ConfigStrategy,
        assume_yes: bool = False
    ) -> None:
        """Muestra la configuración resuelta y exige confirmación explícita."""
        table = Table(title="Resumen", show_header=False, header_style="bold cyan")
        table.add_column("Campo", style="cyan")
        table.add_column("Valor", style="green")
        for label, value in self._summary_rows(command, cfg, strategy):
            table.add_row(label, value)
        self.console.print()
        self.console.print(table)

        if command == Command.DELETE:
            self.console.print("[red]⚠️  ATENCIÓN: se eliminará el usuario y sus datos de forma permanente[/red]")

        questions = {
            Command.ADD: "¿Crear el usuario?",
            Command.DELETE: "¿Seguro que quieres eliminar este usuario?",
            Command.PASSWD: f"¿Actualizar la contraseña de '{cfg.username}'?",
            Command.SETUP: "¿Aplicar la configuración inicial?",
        }
        if assume_yes:
            return
        if not self.prompter.enabled:
            raise ValidationError("Se requiere confirmación: ejecuta en una terminal o usa --yes")
        if not self.prompter.confirm(questions[command]):
            raise UserAbort("Operación cancelada")

    def _summary_rows(
        self,
        command: Command,
        cfg: ResolvedConfig,
        strategy: ConfigStrategy
    ) -> List[Tuple[str, str]]:
        rows = [("Modo", strategy.name)]
        if cfg.username:
            rows.append(("Usuario", cfg.username))
        if command == Command.PASSWD:
            return rows
        rows.append(("Directorio base", str(cfg.base_dir)))
        if strategy.uses_group:
            rows.append(("Grupo", cfg.group))
        elif cfg.folder:
            rows.append(("Carpeta", cfg.folder))
        if cfg.username:
            rows.append(("Directorio home", str(strategy.home_path(cfg))))
        if command in (Command.ADD, Command.SETUP):
            rows.append(("Subdirectorio de subida", cfg.upload_dir))
        if command == Command.ADD:
            rows.append(("Shell", str(cfg.nologin_shell)))
        rows.append(("Config SSHD", str(cfg.sshd_config)))
        return rows

    # --- Execute ---

    def execute_add(self, cfg: ResolvedConfig, strategy: ConfigStrategy) -> ManagedUser:
        self.console.print("\n[bold]Ejecutando[/bold]")
        if strategy.uses_group:
            accounts.ensure_group(self.system, cfg.group, self.console)

        self._ensure_block(cfg, strategy)

        home = strategy.home_path(cfg)
        # La cuenta debe existir antes de la jaula: el subdirectorio se le asigna
        accounts.create_account(self.system, cfg.username, home, cfg.nologin_shell, self.console)
        accounts.set_password(self.system, cfg.username, cfg.password, self.console)
        jail.create_jail(
            self.system,
            JailDirectory(root_path=home, upload_subdir=cfg.upload_dir, owner=cfg.username),
            self.console,
        )
        if strategy.uses_group:
            accounts.add_member(self.system, cfg.username, cfg.group, self.console)

        self._reload()
        return ManagedUser(cfg.username, cfg.password, home, cfg.upload_dir)

    def execute_delete(self, cfg: ResolvedConfig, strategy: ConfigStrategy) -> ManagedUser:
        self.console.print("\n[bold]Ejecutando[/bold]")
        home = strategy.home_path(cfg)
        accounts.delete_account(self.system, cfg.username, self.console)
        jail.destroy_jail(self.system, home, self.console)

        if strategy.removes_block_on_delete:
            outcome = self.reconciler.remove_block(
                cfg.sshd_config, strategy.marker(cfg), strategy.end_sentinel
            )
            if outcome == BlockOutcome.REMOVED:
                self.console.print(f"  [green]🧾[/green] Bloque SSHD de {cfg.username} eliminado")
            else:
                self.console.print(f"  [yellow]⚠[/yellow] No se encontró bloque SSHD para {cfg.username}")

        self._reload()
        return ManagedUser(cfg.username, None, home, cfg.upload_dir)

    def execute_passwd(self, cfg: ResolvedConfig, strategy: ConfigStrategy) -> ManagedUser:
        accounts.set_password(self.system, cfg.username, cfg.password, self.console)
        return ManagedUser(cfg.username, cfg.password, strategy.home_path(cfg), cfg.upload_dir)

    def execute_setup(self, cfg: ResolvedConfig, strategy: ConfigStrategy) -> None:
        self.console.print("\n[bold]Ejecutando[/bold]")
        accounts.ensure_group(self.system, cfg.group, self.console)
        # Todos los componentes de la ruta del chroot deben ser de root
        jail.ensure_root_owned_dir(self.system, cfg.base_dir, console=self.console)
        self._ensure_block(cfg, strategy)
        self._reload()

    def _ensure_block(self, cfg: ResolvedConfig, strategy: ConfigStrategy) -> BlockOutcome:
        outcome = self.reconciler.ensure_block(cfg.sshd_config, strategy.marker(cfg), strategy.body(cfg))
        if outcome == BlockOutcome.CREATED:
            self.console.print(f"  [green]✓[/green] Bloque SSHD añadido a [cyan]{cfg.sshd_config}[/cyan]")
            if self.reconciler.last_backup:
                self.console.print(f"  [dim]Backup: {self.reconciler.last_backup}[/dim]")
        else:
            self.console.print(f"  [dim]Bloque SSHD '{strategy.marker(cfg)}' ya presente[/dim]")
        return outcome

    def _reload(self) -> None:
        """Recarga sshd; un fallo aquí solo es un aviso (el estado ya está aplicado)."""
        try:
            unit = self.system.reload_service()
        except ExternalToolFailure as e:
            log.debug("Fallo al recargar sshd: %s", e)
            self.console.print(f"  [yellow]⚠[/yellow] {e}")
            self.console.print("  [dim]Recarga manualmente: sudo systemctl reload sshd[/dim]")
            return
        self.console.print(f"  [green]✓[/green] Servicio [cyan]{unit}[/cyan] recargado")

    # --- Report ---

    def report(self, command: Command, cfg: ResolvedConfig, user: Optional[ManagedUser]) -> None:
        """Estado final. La contraseña se muestra en claro: es el único registro que queda."""
        self.console.print()
        if command == Command.ADD and user:
            self.console.print(Panel.fit(
                "[bold green]✅ Usuario SFTP creado correctamente[/bold green]\n\n"
                f"[bold]Usuario:[/bold]    {user.username}\n"
                f"[bold]Contraseña:[/bold] {user.password}\n"
                f"[bold]Directorio:[/bold] {user.upload_path}",
                border_style="green"
            ))
        elif command == Command.PASSWD and user:
            self.console.print(Panel.fit(
                "[bold green]✅ Contraseña actualizada[/bold green]\n\n"
                f"[bold]Usuario:[/bold]          {user.username}\n"
                f"[bold]Nueva contraseña:[/bold] {user.password}",
                border_style="green"
            ))
        elif command == Command.DELETE and user:
            self.console.print(f"[bold green]✅ Usuario SFTP '{user.username}' eliminado por completo[/bold green]")
        elif command == Command.SETUP:
            self.console.print(
                f"[bold green]✅ Grupo '{cfg.group}' listo; las cuentas se enjaulan en {cfg.base_dir}/%u[/bold green]"
            )
