"""
Módulo Doctor - Verificación de herramientas y requisitos del host
"""

import shutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sftpctl.system.permissions import is_root

REQUIRED_TOOLS = ["useradd", "userdel", "usermod", "chpasswd", "groupadd", "getent", "sshd", "systemctl"]

# sshd y las herramientas shadow suelen estar en sbin, fuera del PATH de usuarios normales
_SBIN_DIRS = ("/usr/sbin", "/sbin")


def check_tool(tool_name: str) -> Tuple[bool, Optional[str]]:
    """
    Verifica si una herramienta está instalada

    Returns:
        Tuple (is_available, ruta)
    """
    found = shutil.which(tool_name)
    if found:
        return True, found
    for d in _SBIN_DIRS:
        candidate = Path(d) / tool_name
        if candidate.exists():
            return True, str(candidate)
    return False, None


def run_doctor(
    console: Console,
    sshd_config: Path,
    nologin_shell: Path,
    required_tools: Optional[List[str]] = None
) -> Dict[str, bool]:
    """
    Ejecuta la verificación completa del host

    Args:
        console: Console de Rich para salida
        sshd_config: Ruta de sshd_config a comprobar
        nologin_shell: Shell sin login a comprobar
        required_tools: Herramientas requeridas (por defecto REQUIRED_TOOLS)

    Returns:
        Dict con resultados de verificación
    """
    if required_tools is None:
        required_tools = REQUIRED_TOOLS

    console.print(Panel.fit("[bold cyan]Doctor - Verificación del Sistema[/bold cyan]", border_style="cyan"))

    results: Dict[str, bool] = {}

    console.print("\n[bold]Herramientas[/bold]")
    tool_table = Table(show_header=True, header_style="bold cyan")
    tool_table.add_column("Herramienta", style="cyan")
    tool_table.add_column("Estado", style="green")
    tool_table.add_column("Ruta", style="dim")

    for tool in required_tools:
        available, location = check_tool(tool)
        status = "[green]✔ Disponible[/green]" if available else "[red]✘ No encontrado[/red]"
        tool_table.add_row(tool, status, location or "[dim]N/A[/dim]")
        results[f"tool_{tool}"] = available

    console.print(tool_table)

    console.print("\n[bold]Rutas y permisos[/bold]")
    perm_table = Table(show_header=True, header_style="bold cyan")
    perm_table.add_column("Requisito", style="cyan")
    perm_table.add_column("Estado", style="green")

    checks = {
        f"sshd_config ({sshd_config})": ("path_sshd_config", Path(sshd_config).is_file()),
        f"Shell sin login ({nologin_shell})": ("path_nologin_shell", Path(nologin_shell).exists()),
        "Root": ("perm_root", is_root()),
    }
    for label, (key, ok) in checks.items():
        if ok:
            status = "[green]✔ OK[/green]"
        elif key == "perm_root":
            status = "[yellow]⚠ No (las acciones requieren sudo)[/yellow]"
        else:
            status = "[red]✘ No encontrado[/red]"
        perm_table.add_row(label, status)
        results[key] = ok

    console.print(perm_table)

    missing = [k for k, ok in results.items() if not ok and k != "perm_root"]
    if not missing:
        console.print("\n[bold green]✅ Todos los requisitos están disponibles[/bold green]")
    else:
        console.print("\n[yellow]⚠️ Faltan requisitos[/yellow]")
        console.print(f"[dim]Faltan: {', '.join(missing)}[/dim]")

    return results


def doctor_ok(results: Dict[str, bool]) -> bool:
    """True si no falta nada obligatorio (root no lo es para el diagnóstico)."""
    return all(ok for key, ok in results.items() if key != "perm_root")
