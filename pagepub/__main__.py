"""
__main__.py — Permite ejecutar pagepub como módulo.

    python -m pagepub publish
"""

from pagepub.cli import main

if __name__ == "__main__":
    main()
