"""
Core: lógica de sftpctl sin invocación de procesos.

- Este paquete NO importa sftpctl.system ni sftpctl.cli.
- Los colaboradores del host implementan los contratos de core.contracts;
  el core nunca depende de una implementación concreta.
"""

from sftpctl.core.errors import (
    SftpctlError,
    ValidationError,
    ConfigError,
    ExternalToolFailure,
    ConfigSyntaxError,
    UserAbort,
)

__all__ = [
    "SftpctlError",
    "ValidationError",
    "ConfigError",
    "ExternalToolFailure",
    "ConfigSyntaxError",
    "UserAbort",
]
