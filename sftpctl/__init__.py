"""
sftpctl - Alta y baja de cuentas SFTP enjauladas (chroot) en un host Linux.

Mantiene sincronizado el bloque gestionado de sshd_config con las cuentas
dadas de alta.
"""

__version__ = "1.0.0"
