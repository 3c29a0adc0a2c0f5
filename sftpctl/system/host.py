"""
Colaborador real del host: cuentas, grupos, filesystem y sshd.

Implementa SystemCollaborator con useradd/userdel/chpasswd/groupadd/usermod,
sshd -t y systemctl. Requiere root para todo lo que modifica el sistema.
"""

import base64
import logging
import os
import secrets
import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from sftpctl.core.errors import AlreadyExists, ConfigSyntaxError, ExternalToolFailure
from sftpctl.system.tools import run_command

log = logging.getLogger(__name__)

# Unidades systemd alternativas según distribución (RHEL: sshd, Debian: ssh)
SSH_SERVICE_NAMES = ("sshd", "ssh")


def _failure(message: str, command: List[str], stderr: str) -> ExternalToolFailure:
    detail = stderr.strip()
    full = f"{message}: {detail}" if detail else message
    return ExternalToolFailure(full, command=command, stderr=stderr)


class HostSystem:
    """SystemCollaborator que actúa sobre el host local."""

    def __init__(
        self,
        sshd_binary: Optional[str] = None,
        service_names: Sequence[str] = SSH_SERVICE_NAMES
    ):
        self.sshd_binary = sshd_binary or shutil.which("sshd") or "/usr/sbin/sshd"
        self.service_names = tuple(service_names)

    # --- Cuentas ---

    def account_exists(self, username: str) -> bool:
        ok, _, _ = run_command(["getent", "passwd", username])
        return ok

    def create_account(self, username: str, home: Path, shell: Path) -> None:
        # -M: el home lo crea el gestor de jaulas, no useradd
        cmd = ["useradd", "-M", "-d", str(home), "-s", str(shell), username]
        if self.account_exists(username):
            raise AlreadyExists(f"El usuario '{username}' ya existe")
        ok, _, err = run_command(cmd)
        if not ok:
            if "already exists" in err:
                raise AlreadyExists(f"El usuario '{username}' ya existe")
            raise _failure(f"No se pudo crear el usuario {username}", cmd, err)

    def delete_account(self, username: str) -> None:
        if not self.account_exists(username):
            log.debug("Usuario %s no existe: nada que borrar", username)
            return
        # -r también borra el buzón; la jaula la elimina el gestor de jaulas
        cmd = ["userdel", "-r", username]
        ok, _, err = run_command(cmd)
        if not ok and not self.account_exists(username):
            # userdel -r sale con error si no puede borrar el home, pero la cuenta ya no existe
            log.warning("userdel: %s", err.strip())
        elif not ok:
            raise _failure(f"No se pudo eliminar el usuario {username}", cmd, err)

    def set_password(self, username: str, secret: str) -> None:
        cmd = ["chpasswd"]
        ok, _, err = run_command(cmd, input_text=f"{username}:{secret}\n")
        if not ok:
            raise _failure(f"No se pudo establecer la contraseña de {username}", cmd, err)

    def generate_password(self) -> str:
        # Mismo formato que `openssl rand -base64 12`
        return base64.b64encode(secrets.token_bytes(12)).decode("ascii")

    # --- Grupos ---

    def group_exists(self, name: str) -> bool:
        ok, _, _ = run_command(["getent", "group", name])
        return ok

    def create_group(self, name: str) -> None:
        cmd = ["groupadd", name]
        ok, _, err = run_command(cmd)
        if not ok and not self.group_exists(name):
            raise _failure(f"No se pudo crear el grupo {name}", cmd, err)

    def is_member(self, username: str, group: str) -> bool:
        ok, out, _ = run_command(["id", "-nG", username])
        if not ok:
            return False
        return group in out.split()

    def add_member(self, username: str, group: str) -> None:
        cmd = ["usermod", "-aG", group, username]
        ok, _, err = run_command(cmd)
        if not ok:
            raise _failure(f"No se pudo añadir {username} al grupo {group}", cmd, err)

    # --- Filesystem ---

    def path_exists(self, path: Path) -> bool:
        return Path(path).exists()

    def make_dirs(self, path: Path) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExternalToolFailure(f"No se pudo crear {path}: {e}") from e

    def chown(self, path: Path, user: str, group: str) -> None:
        try:
            shutil.chown(path, user=user, group=group)
        except (OSError, LookupError) as e:
            raise ExternalToolFailure(f"No se pudo asignar {user}:{group} a {path}: {e}") from e

    def chmod(self, path: Path, mode: int) -> None:
        try:
            os.chmod(path, mode)
        except OSError as e:
            raise ExternalToolFailure(f"No se pudo aplicar {oct(mode)} a {path}: {e}") from e

    def remove_tree(self, path: Path) -> None:
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ExternalToolFailure(f"No se pudo eliminar {path}: {e}") from e

    # --- sshd ---

    def validate_config(self, config_path: Path) -> None:
        cmd = [self.sshd_binary, "-t", "-f", str(config_path)]
        ok, out, err = run_command(cmd)
        if not ok:
            detail = (err or out).strip()
            raise ConfigSyntaxError(
                f"sshd rechazó {config_path}: {detail}" if detail else f"sshd rechazó {config_path}",
                command=cmd,
                stderr=err
            )

    def reload_service(self) -> str:
        errors = []
        for name in self.service_names:
            cmd = ["systemctl", "reload", name]
            ok, _, err = run_command(cmd)
            if ok:
                return name
            errors.append(f"{name}: {err.strip() or 'error'}")
        raise ExternalToolFailure(
            "No se pudo recargar el servicio SSH (" + "; ".join(errors) + ")",
            command=["systemctl", "reload"]
        )
