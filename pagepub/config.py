"""
config.py — Carga y gestiona la configuración de pagepub.

Se encarga de:
1. Cargar pagepub.yaml (configuración general del publicador)
2. Cargar .env (secretos: GH_TOKEN, credenciales de GitHub App)
3. Resolver ${VARIABLES} de entorno en los valores del YAML
4. Entregar todo como dataclasses explícitas al Publisher

¿Por qué no leer el entorno directamente desde el Publisher?
    Porque el Publisher recibe su configuración ya resuelta. Así los
    tests pueden construir un AppConfig a mano sin tocar os.environ,
    y el único lugar que lee el entorno es load_config().

Secretos:
    El token NUNCA va en pagepub.yaml. Se lee de la variable de entorno
    indicada por github.token_env (por defecto GH_TOKEN).

Uso:
    from pagepub.config import load_config
    config = load_config()
    print(config.publish.branch)  # "gh-pages"
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

CONFIG_FILENAME = "pagepub.yaml"


# ============================================================
# Dataclasses de configuración
# ============================================================

@dataclass
class PublishConfig:
    """Qué se publica, desde dónde y hacia qué branch."""
    output_dir: str = "target/doc"
    source_dir: str = "."
    branch: str = "gh-pages"
    remote_name: str = "upstream"
    commit_message: str = "rebuild pages at {revision}"
    revision_length: int = 7
    force_push: bool = True
    quiet_push: bool = True
    on_unchanged: str = "commit"
    create_missing_branch: bool = False


@dataclass
class IdentityConfig:
    """Autor de los commits creados por el publicador."""
    name: str = "Pages Publisher"
    email: str = "pages-publisher@users.noreply.github.com"


@dataclass
class GitHubConfig:
    """Repositorio destino en GitHub."""
    repo: str = ""
    host: str = "github.com"
    token_env: str = "GH_TOKEN"
    # URL explícita del remoto (ej: un mirror file://). Si está, se usa tal cual.
    remote_url: str = ""


@dataclass
class AppConfig:
    """Configuración completa de la aplicación."""
    publish: PublishConfig = field(default_factory=PublishConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    # Valores del entorno (no están en pagepub.yaml)
    github_token: str = ""
    github_app_id: str = ""
    github_app_private_key_path: str = ""
    github_app_installation_id: str = ""

    # Archivo del que se cargó la configuración (None = valores por defecto)
    source_path: Path | None = None


# ============================================================
# Funciones de carga
# ============================================================

def _resolve_env_vars(value: str) -> str:
    """
    Resuelve variables de entorno en un string.

    Ejemplo:
        "${SITE_DIR}/html" → "/home/ci/build/html"

    Si la variable no existe, el placeholder se deja intacto.
    """
    patron = re.compile(r"\$\{(\w+)\}")

    def reemplazar(match: re.Match) -> str:
        nombre_var = match.group(1)
        return os.environ.get(nombre_var, match.group(0))

    return patron.sub(reemplazar, value)


def _resolve_env_recursive(data: Any) -> Any:
    """Resuelve ${VARIABLES} recursivamente en dicts y listas del YAML."""
    if isinstance(data, str):
        return _resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_recursive(item) for item in data]
    return data


def _dict_to_dataclass(data: dict, cls: type) -> Any:
    """
    Convierte un diccionario a una dataclass, ignorando keys desconocidas.

    Un pagepub.yaml con una key de más (o de una versión futura)
    no debe romper la carga.
    """
    campos_validos = {f.name for f in cls.__dataclass_fields__.values()}
    datos_filtrados = {k: v for k, v in data.items() if k in campos_validos}
    return cls(**datos_filtrados)


def _find_config_dir() -> Path:
    """
    Encuentra el directorio donde vive pagepub.yaml.

    Busca hacia arriba desde el directorio actual. Si no lo encuentra,
    usa el directorio actual.
    """
    current = Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def _read_secrets(app_config: AppConfig) -> AppConfig:
    """Agrega al AppConfig los valores que solo viven en el entorno."""
    token_env = app_config.github.token_env or "GH_TOKEN"
    app_config.github_token = os.environ.get(token_env, "").strip()
    app_config.github_app_id = os.environ.get("GITHUB_APP_ID", "")
    app_config.github_app_private_key_path = os.environ.get(
        "GITHUB_APP_PRIVATE_KEY_PATH", ""
    )
    app_config.github_app_installation_id = os.environ.get(
        "GITHUB_APP_INSTALLATION_ID", ""
    )
    return app_config


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Carga la configuración completa de pagepub.

    Pasos:
    1. Carga .env del directorio del proyecto (si existe)
    2. Lee pagepub.yaml
    3. Resuelve ${VARIABLES} en los valores del YAML
    4. Convierte cada sección a su dataclass
    5. Agrega los secretos del entorno

    Args:
        config_path: Ruta a pagepub.yaml. Si es None, se busca automáticamente.

    Returns:
        AppConfig listo para usar.

    Raises:
        FileNotFoundError: Si se pasó config_path explícito y no existe.
        ValueError: Si el YAML no es un mapeo.
    """
    explicito = config_path is not None

    # Paso 1: Cargar .env
    proyecto_dir = config_path.parent if explicito else _find_config_dir()
    env_path = proyecto_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    # Paso 2: Leer pagepub.yaml
    if config_path is None:
        config_path = proyecto_dir / CONFIG_FILENAME

    if not config_path.exists():
        if explicito:
            raise FileNotFoundError(
                f"No se encontró el archivo de configuración: {config_path}"
            )
        return _read_secrets(AppConfig())

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(
            f"{config_path} debe contener un mapeo YAML, "
            f"no {type(raw_config).__name__}"
        )

    # Paso 3: Resolver variables de entorno
    config_resuelto = _resolve_env_recursive(raw_config)

    # Paso 4: Convertir cada sección a su dataclass
    app_config = AppConfig(
        publish=_dict_to_dataclass(
            config_resuelto.get("publish") or {}, PublishConfig
        ),
        identity=_dict_to_dataclass(
            config_resuelto.get("identity") or {}, IdentityConfig
        ),
        github=_dict_to_dataclass(
            config_resuelto.get("github") or {}, GitHubConfig
        ),
        source_path=config_path,
    )

    # Paso 5: Agregar secretos del entorno
    return _read_secrets(app_config)
