"""
publishing/ — Todo lo relacionado con publicar el sitio.

Módulos:
- publisher.py   → Secuencia init/fetch/reset/add/commit/push sobre gh-pages
- github_auth.py → URL del remoto con token o GitHub App
"""
