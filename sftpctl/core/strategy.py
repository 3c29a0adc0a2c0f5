"""
Estrategias de bloque en sshd_config.

- UserScopedStrategy: un bloque por cuenta (Match User), ChrootDirectory literal.
- GroupScopedStrategy: un único bloque compartido (Match Group) con
  ChrootDirectory <base>/%u; alta y baja de cuentas no tocan sshd_config.
"""

from pathlib import Path
from typing import List

from sftpctl.core.contracts import ConfigStrategy
from sftpctl.core.errors import ValidationError
from sftpctl.core.models import Mode, ResolvedConfig


END_SENTINEL = "X11Forwarding no"

# Directivas comunes a ambos bloques, en el orden en que se escriben
_HARDENING = [
    "PasswordAuthentication yes",
    "PermitTunnel no",
    "AllowAgentForwarding no",
    "AllowTcpForwarding no",
    END_SENTINEL,
]

INDENT = "    "


def _require_username(cfg: ResolvedConfig) -> str:
    if not cfg.username:
        raise ValidationError("Se requiere un nombre de usuario")
    return cfg.username


class UserScopedStrategy:
    """Un bloque '# SFTP config for <usuario>' por cuenta."""

    name = Mode.USER.value
    uses_group = False
    removes_block_on_delete = True
    end_sentinel = END_SENTINEL

    def home_path(self, cfg: ResolvedConfig) -> Path:
        username = _require_username(cfg)
        return cfg.base_dir / (cfg.folder or username)

    def marker(self, cfg: ResolvedConfig) -> str:
        return f"# SFTP config for {_require_username(cfg)}"

    def body(self, cfg: ResolvedConfig) -> List[str]:
        username = _require_username(cfg)
        lines = [
            f"ForceCommand internal-sftp -d {cfg.upload_dir}",
            f"ChrootDirectory {self.home_path(cfg)}",
        ] + _HARDENING
        return [f"Match User {username}"] + [INDENT + line for line in lines]


class GroupScopedStrategy:
    """Un único bloque '# SFTP group config (<grupo>)' para todo el sistema."""

    name = Mode.GROUP.value
    uses_group = True
    removes_block_on_delete = False
    end_sentinel = END_SENTINEL

    def home_path(self, cfg: ResolvedConfig) -> Path:
        # ChrootDirectory usa %u: la jaula es siempre <base>/<usuario>
        return cfg.base_dir / _require_username(cfg)

    def marker(self, cfg: ResolvedConfig) -> str:
        return f"# SFTP group config ({cfg.group})"

    def body(self, cfg: ResolvedConfig) -> List[str]:
        lines = [
            f"ChrootDirectory {cfg.base_dir}/%u",
            f"ForceCommand internal-sftp -d {cfg.upload_dir}",
        ] + _HARDENING
        return [f"Match Group {cfg.group}"] + [INDENT + line for line in lines]


def get_strategy(mode: Mode) -> ConfigStrategy:
    """Devuelve la estrategia para el modo indicado."""
    if Mode(mode) == Mode.USER:
        return UserScopedStrategy()
    return GroupScopedStrategy()
