"""
Preguntas interactivas y menú numerado.
UX: selección por número, campos obligatorios repetidos hasta tener valor.
"""

import sys
from typing import List, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt


def _format_menu(options: List[str], indent: str = "  ") -> str:
    """Genera texto del menú numerado."""
    return "\n".join(f"{indent}{i}) {label}" for i, label in enumerate(options, 1))


def _parse_number(raw: str, max_val: int) -> int:
    """Parsea número de la entrada, retorna índice 1-based o -1 si no es válido."""
    s = (raw or "").strip()
    try:
        n = int(s)
        if 1 <= n <= max_val:
            return n
    except ValueError:
        pass
    return -1


class RichPrompter:
    """Prompter sobre rich.prompt. Solo pregunta si stdin es una TTY."""

    def __init__(self, console: Console, enabled: Optional[bool] = None):
        self.console = console
        self._enabled = sys.stdin.isatty() if enabled is None else enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def ask(self, label: str, default: Optional[str] = None, required: bool = False) -> str:
        while True:
            if default:
                value = Prompt.ask(label, default=default, console=self.console)
            else:
                value = Prompt.ask(label, default="", show_default=False, console=self.console)
            value = (value or "").strip()
            if value or not required:
                return value
            self.console.print("[yellow]⚠️  Este campo es obligatorio[/yellow]")

    def ask_secret(self, label: str) -> str:
        return Prompt.ask(label, password=True, default="", show_default=False, console=self.console)

    def confirm(self, question: str) -> bool:
        return Confirm.ask(question, default=False, console=self.console)

    def choose(self, title: str, options: List[str]) -> int:
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]")
        self.console.print(_format_menu(options))
        max_val = len(options)
        while True:
            raw = Prompt.ask(f"Opción [1-{max_val}]", console=self.console)
            idx = _parse_number(raw, max_val)
            if idx >= 1:
                return idx - 1
            self.console.print(f"[red]Opción inválida. Elige un número entre 1 y {max_val}.[/red]")
