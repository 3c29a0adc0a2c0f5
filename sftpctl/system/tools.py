"""
Módulo Tools - Ejecución de comandos del sistema
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

log = logging.getLogger(__name__)


def run_command(
    command: List[str],
    input_text: Optional[str] = None,
    cwd: Optional[Path] = None,
    timeout: int = 30
) -> Tuple[bool, str, str]:
    """
    Ejecuta un comando del sistema de forma segura

    Args:
        command: Lista con comando y argumentos
        input_text: Texto para stdin (no se registra en el log)
        cwd: Directorio de trabajo
        timeout: Timeout en segundos

    Returns:
        Tuple (success, stdout, stderr)
    """
    log.debug("$ %s%s", " ".join(command), " (stdin)" if input_text is not None else "")
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False
        )
    except subprocess.TimeoutExpired:
        log.debug("Timeout ejecutando: %s", command[0])
        return False, "", "Timeout"
    except FileNotFoundError:
        return False, "", f"Comando no encontrado: {command[0]}"

    if result.returncode != 0:
        log.debug("%s terminó con código %s: %s", command[0], result.returncode, result.stderr.strip())
    return result.returncode == 0, result.stdout, result.stderr
