"""
pagepub — Publica documentación generada en un branch gh-pages.

Este paquete contiene:
- publishing/ → Publicación (secuencia git, credenciales de GitHub)
- utils/      → Utilidades compartidas (logging, validaciones)

Uso:
    GH_TOKEN=... python -m pagepub publish --repo owner/project
    python -m pagepub health
"""

__version__ = "1.0.0"
