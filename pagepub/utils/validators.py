"""
validators.py -- Validacion de la configuracion de publicacion.

Antes de tocar git se revisa que la configuracion tenga sentido:
un slug de repo valido, un branch que git acepte, un mensaje de
commit que incluya la revision, etc.

Cada funcion retorna una tupla (es_valido, mensaje_de_error).
Si es_valido es True, el mensaje sera una cadena vacia.

Por que tuplas y no excepciones?
    Para poder juntar TODOS los problemas de una vez (config --validate)
    en vez de detenerse en el primero.

Uso:
    from pagepub.utils.validators import validate_branch_name
    valido, error = validate_branch_name("gh-pages")
"""

from __future__ import annotations

import re

from pagepub.config import AppConfig


# =====================================================================
# Constantes de validacion
# =====================================================================

# owner/name de GitHub: letras, numeros, guiones, puntos y guion bajo.
REPO_SLUG_PATTERN: re.Pattern[str] = re.compile(
    r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})/[A-Za-z0-9._-]{1,100}$"
)

# Nombre de remoto: sin espacios ni separadores raros.
REMOTE_NAME_PATTERN: re.Pattern[str] = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

EMAIL_PATTERN: re.Pattern[str] = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Caracteres que git no acepta en nombres de refs (git check-ref-format).
_REF_FORBIDDEN_CHARS = set(" ~^:?*[\\\x7f")

VALID_UNCHANGED_POLICIES: tuple[str, ...] = ("commit", "skip", "fail")

REVISION_PLACEHOLDER = "{revision}"


# =====================================================================
# Validaciones individuales
# =====================================================================

def validate_repo_slug(slug: str) -> tuple[bool, str]:
    """Valida un repo en formato owner/name (ej: "pshendry/io-providers")."""
    if not slug:
        return False, "El repo esta vacio (se espera owner/name)"
    if slug.endswith(".git"):
        return False, f"El repo no debe terminar en .git: {slug}"
    if not REPO_SLUG_PATTERN.match(slug):
        return False, f"Repo invalido (se espera owner/name): {slug}"
    return True, ""


def validate_branch_name(branch: str) -> tuple[bool, str]:
    """
    Valida un nombre de branch con las reglas principales de
    git check-ref-format.
    """
    if not branch:
        return False, "El branch esta vacio"
    if branch.startswith(("-", "/")) or branch.endswith(("/", ".", ".lock")):
        return False, f"Branch invalido: {branch}"
    if ".." in branch or "//" in branch or "@{" in branch or branch == "@":
        return False, f"Branch invalido: {branch}"
    if any(c in _REF_FORBIDDEN_CHARS or ord(c) < 32 for c in branch):
        return False, f"Branch con caracteres no permitidos: {branch}"
    if any(parte.startswith(".") for parte in branch.split("/")):
        return False, f"Ningun componente del branch puede empezar con '.': {branch}"
    return True, ""


def validate_remote_name(name: str) -> tuple[bool, str]:
    """Valida el nombre del remoto (ej: "upstream")."""
    if not name:
        return False, "El nombre del remoto esta vacio"
    if not REMOTE_NAME_PATTERN.match(name):
        return False, f"Nombre de remoto invalido: {name}"
    return True, ""


def validate_commit_template(template: str) -> tuple[bool, str]:
    """
    El mensaje de commit debe referenciar la revision de origen,
    si no, los commits publicados no son trazables.
    """
    if not template.strip():
        return False, "El mensaje de commit esta vacio"
    if REVISION_PLACEHOLDER not in template:
        return False, (
            f"El mensaje de commit debe incluir {REVISION_PLACEHOLDER}: "
            f"{template!r}"
        )
    try:
        template.format(revision="abc1234")
    except (KeyError, IndexError, ValueError) as e:
        return False, f"Mensaje de commit con placeholders invalidos: {e}"
    return True, ""


def validate_email(email: str) -> tuple[bool, str]:
    """Valida el email de la identidad de commit."""
    if not email:
        return False, "El email de la identidad esta vacio"
    if not EMAIL_PATTERN.match(email):
        return False, f"Email invalido: {email}"
    return True, ""


# =====================================================================
# Validacion completa
# =====================================================================

def validate_config(cfg: AppConfig) -> list[str]:
    """
    Revisa toda la configuracion y retorna la lista de problemas.

    No revisa credenciales: eso lo hace github_auth al momento de
    construir la URL del remoto.

    Returns:
        Lista de mensajes de error. Vacia si todo esta bien.
    """
    problemas: list[str] = []
    publish = cfg.publish

    checks = [
        validate_branch_name(publish.branch),
        validate_remote_name(publish.remote_name),
        validate_commit_template(publish.commit_message),
        validate_email(cfg.identity.email),
    ]
    if not cfg.github.remote_url:
        checks.append(validate_repo_slug(cfg.github.repo))

    for valido, error in checks:
        if not valido:
            problemas.append(error)

    if not cfg.identity.name.strip():
        problemas.append("El nombre de la identidad esta vacio")
    if not publish.output_dir:
        problemas.append("output_dir esta vacio")
    if publish.on_unchanged not in VALID_UNCHANGED_POLICIES:
        problemas.append(
            f"on_unchanged invalido: {publish.on_unchanged!r} "
            f"(opciones: {', '.join(VALID_UNCHANGED_POLICIES)})"
        )
    longitud = publish.revision_length
    if not isinstance(longitud, int) or not 4 <= longitud <= 40:
        problemas.append(
            f"revision_length debe estar entre 4 y 40: {publish.revision_length}"
        )

    return problemas
