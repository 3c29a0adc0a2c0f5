"""
System: colaboradores que actúan sobre el host (cuentas, grupos, jaulas, sshd).

Las operaciones que crean cuentas o cambian ownership requieren root.
"""

from sftpctl.system.host import HostSystem

__all__ = ["HostSystem"]
