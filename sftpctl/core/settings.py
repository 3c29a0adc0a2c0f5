"""
Valores por defecto de sftpctl.

Orden de precedencia por ajuste:
    argumento explícito > entorno (SFTPCTL_*, luego archivo YAML) > pregunta interactiva > valor fijo

- .env: SFTPCTL_ENV_FILE si está definido; si no, ./.env (nunca pisa el entorno real).
- Archivo YAML: SFTPCTL_CONFIG o /etc/sftpctl/config.yaml (opcional).
"""

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError as PydanticValidationError

from sftpctl.core.contracts import Prompter
from sftpctl.core.errors import ConfigError, ValidationError

ENV_PREFIX = "SFTPCTL_"
DEFAULT_CONFIG_FILE = Path("/etc/sftpctl/config.yaml")

# Valores fijos (último recurso)
FALLBACKS: Dict[str, str] = {
    "mode": "group",
    "base_dir": "/sftp",
    "group": "sftpusers",
    "sshd_config": "/etc/ssh/sshd_config",
    "nologin_shell": "/usr/sbin/nologin",
    "upload_dir": "uploads",
}

# folder no admite valor por defecto: cada cuenta debe tener su propia jaula
SETTING_KEYS = ("mode", "base_dir", "group", "sshd_config", "nologin_shell", "upload_dir")


class FileDefaults(BaseModel):
    """Contenido admitido en el archivo YAML de valores por defecto."""
    mode: Optional[str] = None
    base_dir: Optional[str] = None
    group: Optional[str] = None
    sshd_config: Optional[str] = None
    nologin_shell: Optional[str] = None
    upload_dir: Optional[str] = None

    class Config:
        extra = "forbid"


def env_var_name(key: str) -> str:
    return f"{ENV_PREFIX}{key.upper()}"


def load_env_file(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Carga el .env (si existe) en os.environ sin sobrescribir variables ya definidas."""
    environ = os.environ if environ is None else environ
    explicit = environ.get("SFTPCTL_ENV_FILE", "").strip()
    env_file = Path(explicit).expanduser() if explicit else Path.cwd() / ".env"
    if env_file.is_file():
        load_dotenv(env_file, override=False)
        return env_file
    return None


def get_config_file_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    environ = os.environ if environ is None else environ
    explicit = environ.get("SFTPCTL_CONFIG", "").strip()
    if explicit:
        return Path(explicit).expanduser()
    return DEFAULT_CONFIG_FILE


def load_file_defaults(path: Path) -> Dict[str, str]:
    """
    Lee el archivo YAML de valores por defecto.
    Devuelve {} si no existe; lanza ConfigError si no es válido.
    """
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"No se pudo leer {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path} debe contener un mapa clave: valor")
    try:
        parsed = FileDefaults(**data)
    except PydanticValidationError as e:
        raise ConfigError(f"Formato inválido en {path}: {e}") from e
    return {k: str(v) for k, v in parsed.model_dump().items() if v not in (None, "")}


def environment_defaults(
    environ: Optional[Mapping[str, str]] = None,
    config_file: Optional[Path] = None
) -> Dict[str, str]:
    """
    Valores por defecto de entorno: variables SFTPCTL_* y, debajo, el archivo YAML.
    """
    environ = os.environ if environ is None else environ
    path = config_file if config_file is not None else get_config_file_path(environ)
    values = load_file_defaults(path)
    for key in SETTING_KEYS:
        value = environ.get(env_var_name(key), "").strip()
        if value:
            values[key] = value
    return values


class SettingResolver:
    """
    Resuelve cada ajuste según la precedencia del módulo.

    En modo interactivo se pregunta todo, con el valor que se habría usado
    como sugerencia; la respuesta manda. Fuera de él solo se pregunta lo
    requerido que falte.
    """

    def __init__(
        self,
        explicit: Mapping[str, Optional[str]],
        defaults: Mapping[str, str],
        prompter: Prompter,
        interactive: bool = False
    ):
        self.explicit = dict(explicit)
        self.defaults = dict(defaults)
        self.prompter = prompter
        self.interactive = interactive

    def resolve(
        self,
        key: str,
        label: str,
        fallback: Optional[str] = None,
        required: bool = False,
        ask: bool = True
    ) -> Optional[str]:
        """
        Args:
            key: Clave del ajuste (ver SETTING_KEYS)
            label: Texto de la pregunta
            fallback: Valor fijo si nada más lo aporta (por defecto FALLBACKS[key])
            required: Sin valor posible, pregunta o lanza ValidationError
            ask: False para no preguntar aunque el modo sea interactivo
        """
        current = self.explicit.get(key) or self.defaults.get(key)
        if current and not self.interactive:
            return current

        suggestion = current or fallback or FALLBACKS.get(key)
        if self.interactive and ask and self.prompter.enabled:
            return self.prompter.ask(label, default=suggestion, required=required) or suggestion

        if suggestion:
            return suggestion
        if required:
            if self.prompter.enabled:
                return self.prompter.ask(label, required=True)
            raise ValidationError(f"Falta un valor requerido: {label}")
        return None
