"""
test_validators.py — Tests para la validación de configuración.
"""

import pytest

from pagepub.config import AppConfig
from pagepub.utils.validators import (
    validate_branch_name,
    validate_commit_template,
    validate_config,
    validate_email,
    validate_remote_name,
    validate_repo_slug,
)


class TestRepoSlug:
    @pytest.mark.parametrize("slug", ["pshendry/io-providers", "octo/site.github.io", "a/b_c"])
    def test_validos(self, slug):
        assert validate_repo_slug(slug) == (True, "")

    @pytest.mark.parametrize("slug", ["", "sin-barra", "octo/site.git", "a/b/c", "-octo/site"])
    def test_invalidos(self, slug):
        valido, error = validate_repo_slug(slug)
        assert not valido
        assert error


class TestBranchName:
    @pytest.mark.parametrize("branch", ["gh-pages", "docs/site", "pages_v2"])
    def test_validos(self, branch):
        assert validate_branch_name(branch) == (True, "")

    @pytest.mark.parametrize(
        "branch",
        ["", "bad..branch", "con espacio", "-gh", "gh/", "x.lock", "a:b", "@", ".oculto", "a//b"],
    )
    def test_invalidos(self, branch):
        valido, _ = validate_branch_name(branch)
        assert not valido


class TestOtros:
    def test_remote_name(self):
        assert validate_remote_name("upstream")[0]
        assert not validate_remote_name("mi remoto")[0]
        assert not validate_remote_name("")[0]

    def test_template_debe_incluir_revision(self):
        assert validate_commit_template("rebuild pages at {revision}")[0]
        valido, error = validate_commit_template("rebuild pages")
        assert not valido
        assert "{revision}" in error

    def test_template_con_placeholder_desconocido(self):
        valido, _ = validate_commit_template("{revision} {autor}")
        assert not valido

    def test_email(self):
        assert validate_email("paul@pshendry.com")[0]
        assert not validate_email("sin-arroba")[0]


class TestValidateConfig:
    def test_config_completa_es_valida(self):
        config = AppConfig()
        config.github.repo = "octo/site"
        assert validate_config(config) == []

    def test_repo_requerido_sin_remote_url(self):
        problemas = validate_config(AppConfig())
        assert any("repo" in p for p in problemas)

    def test_remote_url_evita_repo(self):
        config = AppConfig()
        config.github.remote_url = "/srv/mirror.git"
        assert validate_config(config) == []

    def test_junta_todos_los_problemas(self):
        config = AppConfig()
        config.github.repo = "octo/site"
        config.publish.branch = "bad..branch"
        config.publish.on_unchanged = "ignorar"
        config.publish.revision_length = 2
        config.identity.name = " "

        problemas = validate_config(config)
        assert len(problemas) == 4
