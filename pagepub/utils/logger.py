"""
logger.py — Logging para pagepub usando Rich + archivo.

Dual output:
- Rich console: colores para uso interactivo y logs legibles en CI
- Archivo rotativo: logs/pagepub.log para revisar publicaciones pasadas

Regla de oro: el token NUNCA llega al log. Todo texto que pueda
contener la URL del remoto pasa antes por redact().

Uso:
    from pagepub.utils.logger import get_logger, redact
    logger = get_logger("pagepub.publisher")
    logger.step(3, 11, "Inicializando repositorio")
    logger.error(redact(str(error), token))
"""

from __future__ import annotations

import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

_in_pytest = "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ

pagepub_theme = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
    "step": "bold magenta",
})

# Consola global — se usa en todo el proyecto.
# Los mensajes van a stderr para que stdout quede libre para scripts.
console = Console(theme=pagepub_theme, stderr=True)

REDACTED = "***"

# Credenciales embebidas en URLs: https://<token>@host o https://user:<token>@host
_URL_CREDENTIALS = re.compile(r"(https?://)[^/@\s]+@")


def redact(text: str, secret: str | None = None) -> str:
    """
    Elimina credenciales de un texto antes de mostrarlo o guardarlo.

    Reemplaza el secreto literal (si se conoce) y cualquier bloque
    usuario:password@ dentro de una URL http(s).

    Ejemplo:
        redact("https://abc123@github.com/o/r.git", "abc123")
        → "https://***@github.com/o/r.git"
    """
    if secret:
        text = text.replace(secret, REDACTED)
    return _URL_CREDENTIALS.sub(rf"\g<1>{REDACTED}@", text)


# ================================================================
# File logging setup
# ================================================================

_file_logger: logging.Logger | None = None


def _setup_file_logger() -> logging.Logger:
    """Configura el logger de archivo con rotación."""
    global _file_logger
    if _file_logger is not None:
        return _file_logger

    # No crear logs en pytest
    if _in_pytest:
        _file_logger = logging.getLogger("pagepub.null")
        _file_logger.addHandler(logging.NullHandler())
        return _file_logger

    log_dir = Path(os.environ.get("PAGEPUB_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    _file_logger = logging.getLogger("pagepub.file")
    _file_logger.setLevel(logging.DEBUG)
    _file_logger.propagate = False

    if not _file_logger.handlers:
        handler = RotatingFileHandler(
            log_dir / "pagepub.log",
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=5,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        _file_logger.addHandler(handler)

    return _file_logger


class PagepubLogger:
    """
    Logger que escribe a la consola Rich y al archivo rotativo.

    Cada módulo crea su propio logger con un nombre para
    identificar de dónde viene cada mensaje.

    Args:
        name: Nombre del módulo (ej: "pagepub.publisher")
    """

    def __init__(self, name: str):
        self._name = name
        self._file = _setup_file_logger()

    @property
    def name(self) -> str:
        return self._name

    def info(self, message: str) -> None:
        """Mensaje informativo (cyan)."""
        console.print(f"[info]i  {escape(message)}[/info]")
        self._file.info(f"[{self._name}] {message}")

    def success(self, message: str) -> None:
        """Mensaje de éxito (verde)."""
        console.print(f"[success][OK] {escape(message)}[/success]")
        self._file.info(f"[{self._name}] OK: {message}")

    def warning(self, message: str) -> None:
        """Mensaje de advertencia (amarillo)."""
        console.print(f"[warning]\\[!] {escape(message)}[/warning]")
        self._file.warning(f"[{self._name}] {message}")

    def error(self, message: str) -> None:
        """Mensaje de error (rojo)."""
        console.print(f"[error]\\[X] {escape(message)}[/error]")
        self._file.error(f"[{self._name}] {message}")

    def step(self, number: int, total: int, message: str) -> None:
        """Mensaje de paso en un proceso."""
        console.print(f"[step]  \\[{number}/{total}] {escape(message)}[/step]")
        self._file.info(f"[{self._name}] [{number}/{total}] {message}")


def get_logger(name: str = "pagepub") -> PagepubLogger:
    """
    Obtiene un logger para el módulo especificado.

    Ejemplo:
        logger = get_logger("pagepub.cli")
        logger.info("Cargando configuración...")
    """
    return PagepubLogger(name)
