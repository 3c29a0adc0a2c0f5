"""
Contratos que implementan los colaboradores externos.

El core solo define interfaces; la implementación real vive en
sftpctl/system/host.py y la de pruebas en tests/fakes.py.
"""

from pathlib import Path
from typing import List, Optional, Protocol

from sftpctl.core.models import ResolvedConfig


class SystemCollaborator(Protocol):
    """
    Capacidades del host que usa sftpctl.
    Cada operación es síncrona; un fallo se reporta con ExternalToolFailure.
    """

    # --- Cuentas ---

    def account_exists(self, username: str) -> bool:
        ...

    def create_account(self, username: str, home: Path, shell: Path) -> None:
        """Crea la cuenta sin materializar el home (lo hace la jaula)."""
        ...

    def delete_account(self, username: str) -> None:
        ...

    def set_password(self, username: str, secret: str) -> None:
        ...

    def generate_password(self) -> str:
        """Contraseña aleatoria (fuente de entropía externa)."""
        ...

    # --- Grupos ---

    def group_exists(self, name: str) -> bool:
        ...

    def create_group(self, name: str) -> None:
        ...

    def is_member(self, username: str, group: str) -> bool:
        ...

    def add_member(self, username: str, group: str) -> None:
        ...

    # --- Filesystem ---

    def path_exists(self, path: Path) -> bool:
        ...

    def make_dirs(self, path: Path) -> None:
        ...

    def chown(self, path: Path, user: str, group: str) -> None:
        ...

    def chmod(self, path: Path, mode: int) -> None:
        ...

    def remove_tree(self, path: Path) -> None:
        ...

    # --- sshd ---

    def validate_config(self, config_path: Path) -> None:
        """Comprueba la sintaxis de sshd_config; lanza ConfigSyntaxError si no es válida."""
        ...

    def reload_service(self) -> str:
        """Recarga sshd; devuelve el nombre de la unidad recargada."""
        ...


class ConfigStrategy(Protocol):
    """
    Modelo de bloque gestionado en sshd_config (por usuario o por grupo).
    Se elige una vez al arrancar; el orquestador solo conoce este contrato.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def uses_group(self) -> bool:
        """True si las cuentas se agrupan en un grupo compartido."""
        ...

    @property
    def removes_block_on_delete(self) -> bool:
        ...

    @property
    def end_sentinel(self) -> str:
        ...

    def home_path(self, cfg: ResolvedConfig) -> Path:
        ...

    def marker(self, cfg: ResolvedConfig) -> str:
        ...

    def body(self, cfg: ResolvedConfig) -> List[str]:
        ...


class Prompter(Protocol):
    """Preguntas interactivas al operador."""

    @property
    def enabled(self) -> bool:
        """False si no hay TTY: no se puede preguntar."""
        ...

    def ask(self, label: str, default: Optional[str] = None, required: bool = False) -> str:
        """Con required, repite la pregunta hasta obtener un valor no vacío."""
        ...

    def ask_secret(self, label: str) -> str:
        ...

    def confirm(self, question: str) -> bool:
        ...

    def choose(self, title: str, options: List[str]) -> int:
        """Menú numerado; devuelve el índice (0-based) elegido."""
        ...
