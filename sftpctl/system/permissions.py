"""
Módulo Permissions - Verificación de privilegios
"""

import os

from sftpctl.core.errors import ValidationError


def is_root() -> bool:
    return os.geteuid() == 0


def require_root() -> None:
    """
    Verifica que se ejecuta como root

    Raises:
        ValidationError: si el UID efectivo no es 0
    """
    if not is_root():
        raise ValidationError("Se requieren permisos de root (ejecuta con sudo)")
