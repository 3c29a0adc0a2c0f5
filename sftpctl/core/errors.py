"""
Errores de sftpctl.

El core solo define excepciones; la CLI se encarga del formato de salida
y del código de salida.
"""

from typing import Optional, Sequence


class SftpctlError(Exception):
    """Error base de sftpctl."""
    pass


class ValidationError(SftpctlError):
    """Entrada inválida o precondición no cumplida (usuario existente, ruta faltante...)."""
    pass


class AlreadyExists(ValidationError):
    """La cuenta ya existe en el sistema."""
    pass


class ConfigError(SftpctlError):
    """Error en el archivo de valores por defecto (faltante, formato inválido)."""
    pass


class ExternalToolFailure(SftpctlError):
    """Una herramienta del sistema (useradd, chpasswd, systemctl...) reportó fallo."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = ""
    ):
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class ConfigSyntaxError(ExternalToolFailure):
    """
    sshd rechazó la configuración tras una edición gestionada.

    El archivo queda editado; no se debe recargar el servicio.
    """
    pass


class UserAbort(SftpctlError):
    """El operador rechazó la confirmación. No es un error (exit 0)."""
    pass
