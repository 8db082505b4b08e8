"""
cli.py — Punto de entrada de pagepub.

Comandos disponibles:
    pagepub publish                       → Publica target/doc en gh-pages
    pagepub publish --dry-run             → Commit local, sin push
    pagepub publish --output-dir site     → Otro directorio de salida
    pagepub config --show                 → Muestra configuración
    pagepub config --validate             → Valida configuración
    pagepub health                        → Verifica git, rutas y credenciales

Códigos de salida:
    0 → publicado (o sin cambios con on_unchanged=skip)
    N → código de git del paso que falló (1 si no hubo código)
    2 → configuración o credenciales inválidas

Uso:
    # Desde línea de comandos (CI):
    GH_TOKEN=... pagepub publish --repo owner/project

    # Desde código (testing):
    from click.testing import CliRunner
    from pagepub.cli import main
    CliRunner().invoke(main, ["publish", "--dry-run"])
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path

import click
from rich.panel import Panel
from rich.table import Table

from pagepub import __version__
from pagepub.config import AppConfig, load_config
from pagepub.publishing.github_auth import (
    MissingCredentialError,
    has_app_credentials,
    resolve_remote,
)
from pagepub.publishing.publisher import (
    PublishError,
    PublishResult,
    Publisher,
    resolve_revision,
)
from pagepub.utils.logger import console as rich_console, get_logger, redact
from pagepub.utils.validators import VALID_UNCHANGED_POLICIES, validate_config

logger = get_logger("pagepub.cli")

EXIT_CONFIG_ERROR = 2


@click.group()
@click.version_option(version=__version__, prog_name="pagepub")
def main():
    """Publica documentación generada en un branch gh-pages."""
    pass


@main.command()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Ruta a pagepub.yaml (por defecto se busca hacia arriba)",
)
@click.option("--output-dir", "-o", default=None, help="Directorio con el sitio ya construido")
@click.option("--source-dir", default=None, help="Checkout del que se toma la revisión")
@click.option("--repo", "-r", default=None, help="Repo destino en formato owner/name")
@click.option("--branch", "-b", default=None, help="Branch destino (ej: gh-pages)")
@click.option("--remote-name", default=None, help="Nombre del remoto (ej: upstream)")
@click.option("--message", "-m", default=None, help="Mensaje de commit, con {revision}")
@click.option(
    "--on-unchanged",
    type=click.Choice(VALID_UNCHANGED_POLICIES),
    default=None,
    help="Qué hacer si el sitio no cambió",
)
@click.option("--no-force", is_flag=True, default=False, help="Push sin --force")
@click.option(
    "--create-branch",
    is_flag=True,
    default=False,
    help="Crea el branch si el remoto no lo tiene",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Hace el commit local pero NO empuja",
)
def publish(
    config_path: Path | None,
    output_dir: str | None,
    source_dir: str | None,
    repo: str | None,
    branch: str | None,
    remote_name: str | None,
    message: str | None,
    on_unchanged: str | None,
    no_force: bool,
    create_branch: bool,
    dry_run: bool,
):
    """Publica el directorio de salida en gh-pages."""
    try:
        cfg = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(EXIT_CONFIG_ERROR)

    _apply_overrides(
        cfg,
        output_dir=output_dir,
        source_dir=source_dir,
        repo=repo,
        branch=branch,
        remote_name=remote_name,
        message=message,
        on_unchanged=on_unchanged,
    )
    if no_force:
        cfg.publish.force_push = False
    if create_branch:
        cfg.publish.create_missing_branch = True

    problemas = validate_config(cfg)
    if problemas:
        for p in problemas:
            logger.error(p)
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        remote = resolve_remote(cfg)
    except MissingCredentialError as e:
        logger.error(str(e))
        sys.exit(EXIT_CONFIG_ERROR)
    except (FileNotFoundError, RuntimeError) as e:
        logger.error(redact(str(e), cfg.github_token))
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        result = Publisher(cfg, remote).run(dry_run=dry_run)
    except PublishError as e:
        logger.error(str(e))
        sys.exit(e.exit_code)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(EXIT_CONFIG_ERROR)

    _show_summary(result, dry_run)


@main.command()
@click.option("--show", is_flag=True, help="Muestra la configuración actual")
@click.option("--validate", is_flag=True, help="Valida la configuración")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Ruta a pagepub.yaml",
)
def config(show: bool, validate: bool, config_path: Path | None):
    """Gestiona la configuración de pagepub."""
    try:
        cfg = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(EXIT_CONFIG_ERROR)

    if show:
        tabla = Table(title="Configuración de pagepub")
        tabla.add_column("Parámetro", style="cyan")
        tabla.add_column("Valor", style="green")

        tabla.add_row("Archivo", str(cfg.source_path or "(valores por defecto)"))
        tabla.add_row("Directorio de salida", cfg.publish.output_dir)
        tabla.add_row("Checkout de origen", cfg.publish.source_dir)
        tabla.add_row("Repo", cfg.github.repo or "(no configurado)")
        tabla.add_row("Remoto explícito", redact(cfg.github.remote_url) or "-")
        tabla.add_row("Branch", cfg.publish.branch)
        tabla.add_row("Remoto", cfg.publish.remote_name)
        tabla.add_row("Mensaje", cfg.publish.commit_message)
        tabla.add_row("Identidad", f"{cfg.identity.name} <{cfg.identity.email}>")
        tabla.add_row("Force push", "sí" if cfg.publish.force_push else "no")
        tabla.add_row("Sin cambios", cfg.publish.on_unchanged)
        tabla.add_row(
            f"Token ({cfg.github.token_env})",
            "configurado" if cfg.github_token else "falta",
        )
        tabla.add_row(
            "GitHub App",
            "configurada" if has_app_credentials(cfg) else "no configurada",
        )

        rich_console.print(tabla)

    if validate:
        if not _validate_config(cfg):
            sys.exit(EXIT_CONFIG_ERROR)


@main.command()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Ruta a pagepub.yaml",
)
def health(config_path: Path | None):
    """Verifica que todo esté listo para publicar."""
    try:
        cfg = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(EXIT_CONFIG_ERROR)

    errores = []

    # 1. git en el PATH
    if shutil.which("git"):
        logger.success("git: disponible")
    else:
        errores.append("git no está en el PATH")
        logger.error("git: NO encontrado")

    # 2. Checkout de origen
    try:
        revision = resolve_revision(cfg.publish.source_dir, cfg.publish.revision_length)
        logger.success(f"Checkout de origen: {revision}")
    except PublishError as e:
        errores.append(e.message)
        logger.error(f"Checkout de origen: {e.message}")

    # 3. Directorio de salida
    salida = Path(cfg.publish.output_dir)
    if salida.is_dir() and any(p.name != ".git" for p in salida.iterdir()):
        logger.success(f"Directorio de salida: {salida}")
    else:
        errores.append(f"Directorio de salida vacío o inexistente: {salida}")
        logger.error(f"Directorio de salida: NO listo ({salida})")

    # 4. Credenciales
    if cfg.github.remote_url:
        logger.success("Remoto explícito: configurado")
    elif cfg.github_token:
        logger.success(f"{cfg.github.token_env}: configurado")
    elif has_app_credentials(cfg):
        logger.success("GitHub App: configurada")
    else:
        errores.append(f"{cfg.github.token_env} no configurado")
        logger.error(f"{cfg.github.token_env}: NO configurado")

    # 5. Configuración
    errores.extend(validate_config(cfg))

    if errores:
        rich_console.print(
            Panel(
                "\n".join(f"- {e}" for e in errores),
                title="Problemas encontrados",
                border_style="red",
            )
        )
        sys.exit(1)

    rich_console.print(
        Panel(
            "Todo listo para publicar",
            title="Estado de salud",
            border_style="green",
        )
    )


# ============================================================
# Funciones auxiliares (privadas)
# ============================================================

def _apply_overrides(cfg: AppConfig, **overrides: str | None) -> AppConfig:
    """Las opciones de línea de comandos ganan sobre pagepub.yaml."""
    publish = cfg.publish
    campos_publish = {
        "output_dir": "output_dir",
        "source_dir": "source_dir",
        "branch": "branch",
        "remote_name": "remote_name",
        "message": "commit_message",
        "on_unchanged": "on_unchanged",
    }
    for opcion, campo in campos_publish.items():
        valor = overrides.get(opcion)
        if valor is not None:
            setattr(publish, campo, valor)

    if overrides.get("repo") is not None:
        cfg.github.repo = overrides["repo"]
    return cfg


def _show_summary(result: PublishResult, dry_run: bool) -> None:
    """Muestra resumen después de publicar."""
    if result.skipped:
        estado = "Sin cambios: no se publicó nada"
    elif dry_run:
        estado = "Dry-run: commit local, sin push"
    else:
        estado = "Publicado"

    rich_console.print(Panel(
        f"[bold]Revisión:[/bold] {result.revision}\n"
        f"[bold]Commit:[/bold] {result.commit_sha[:7] or '-'}\n"
        f"[bold]Branch:[/bold] {result.branch}\n"
        f"[bold]Remoto:[/bold] {result.remote_url}\n"
        f"[bold]Idéntico al anterior:[/bold] {'sí' if result.unchanged else 'no'}",
        title=estado,
        border_style="green" if result.pushed else "yellow",
    ))


def _validate_config(cfg: AppConfig) -> bool:
    """Valida la configuración y muestra resultado."""
    problemas = validate_config(cfg)

    if not (cfg.github.remote_url or cfg.github_token or has_app_credentials(cfg)):
        problemas.append(f"{cfg.github.token_env} no configurado en el entorno")

    if problemas:
        for p in problemas:
            logger.error(p)
        return False

    logger.success("Configuración válida")
    return True


if __name__ == "__main__":
    main()
