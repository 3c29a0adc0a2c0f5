"""
Modelos de datos de sftpctl (agnósticos de interfaz y de sistema).

ResolvedConfig es el valor inmutable que construye el orquestador una sola vez
(CollectInputs + Validate) y que se pasa explícitamente a cada componente.
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from sftpctl.core.errors import ValidationError


# Nombre de cuenta POSIX portable (useradd lo acepta en cualquier distro)
USERNAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_-]*\$?$")
USERNAME_MAX_LEN = 32


class Mode(str, Enum):
    """Modelo de bloque en sshd_config."""
    GROUP = "group"
    USER = "user"


class Command(str, Enum):
    ADD = "add"
    DELETE = "delete"
    PASSWD = "passwd"
    SETUP = "setup"


class BlockOutcome(str, Enum):
    CREATED = "created"
    ALREADY_PRESENT = "already-present"
    REMOVED = "removed"
    NOT_FOUND = "not-found"


class GroupOutcome(str, Enum):
    CREATED = "created"
    EXISTS = "exists"


def validate_username(username: str) -> None:
    """Valida que el nombre sea una cuenta POSIX aceptable."""
    if not username or not username.strip():
        raise ValidationError("El nombre de usuario no puede estar vacío")
    if len(username) > USERNAME_MAX_LEN:
        raise ValidationError(f"El nombre de usuario no puede superar {USERNAME_MAX_LEN} caracteres")
    if not USERNAME_PATTERN.match(username):
        raise ValidationError(
            f"Nombre de usuario inválido: '{username}' "
            "(minúsculas, dígitos, '_' o '-', sin empezar por dígito)"
        )


def validate_path_segment(value: str, label: str) -> None:
    """Valida que un nombre sea un único segmento de ruta (sin '/' ni '..')."""
    if not value or not value.strip():
        raise ValidationError(f"{label} no puede estar vacío")
    if "/" in value or value in (".", ".."):
        raise ValidationError(f"{label} debe ser un nombre simple, no una ruta: '{value}'")


class ResolvedConfig(BaseModel):
    """Configuración resuelta de un comando. Inmutable."""
    mode: Mode = Field(Mode.GROUP, description="group | user")
    username: Optional[str] = Field(None, description="Cuenta SFTP (no aplica a setup)")
    password: Optional[str] = Field(None, description="Contraseña en claro (add/passwd)")
    password_generated: bool = False
    base_dir: Path = Field(..., description="Directorio base de las jaulas")
    folder: Optional[str] = Field(None, description="Carpeta bajo base_dir (solo modo user)")
    group: str = Field("sftpusers", description="Grupo SFTP (solo modo group)")
    sshd_config: Path = Field(..., description="Ruta de sshd_config")
    nologin_shell: Path = Field(..., description="Shell que rechaza login interactivo")
    upload_dir: str = Field("uploads", description="Subdirectorio escribible de la jaula")

    class Config:
        frozen = True

    @field_validator("username")
    @classmethod
    def _check_username(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            validate_username(v)
        return v

    @field_validator("upload_dir")
    @classmethod
    def _check_upload_dir(cls, v: str) -> str:
        validate_path_segment(v, "El subdirectorio de subida")
        return v

    @field_validator("folder")
    @classmethod
    def _check_folder(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            validate_path_segment(v, "La carpeta")
        return v

    @field_validator("group")
    @classmethod
    def _check_group(cls, v: str) -> str:
        validate_username(v)
        return v


@dataclass
class JailDirectory:
    """Jaula chroot: raíz root:root 0755 y subdirectorio escribible del usuario."""
    root_path: Path
    upload_subdir: str
    owner: str
    mode: int = 0o755
    child_mode: int = 0o755

    @property
    def child_path(self) -> Path:
        return self.root_path / self.upload_subdir


@dataclass
class ManagedUser:
    """Cuenta SFTP gestionada (lo que se reporta al operador)."""
    username: str
    password: Optional[str]
    home_path: Path
    upload_subdir: str

    @property
    def upload_path(self) -> Path:
        return self.home_path / self.upload_subdir
