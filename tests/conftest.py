"""
conftest.py — Fixtures de git compartidas.

Los tests de publicación usan repos git reales en tmp_path:
- source: checkout de origen con un commit (de ahí sale la revisión)
- remote: repo bare que hace de GitHub, con un gh-pages previo
- output: source/target/doc con el sitio "construido"
"""

from __future__ import annotations

from pathlib import Path

import git as gitpython
import pytest

from pagepub.config import AppConfig
from pagepub.publishing.github_auth import RemoteTarget

ACTOR = gitpython.Actor("Test Author", "test@example.com")


def commit_files(repo: gitpython.Repo, files: dict[str, str], message: str) -> gitpython.Commit:
    """Escribe archivos en el working tree y los commitea."""
    for nombre, contenido in files.items():
        ruta = Path(repo.working_tree_dir) / nombre
        ruta.parent.mkdir(parents=True, exist_ok=True)
        ruta.write_text(contenido, encoding="utf-8")
    repo.index.add(list(files))
    return repo.index.commit(message, author=ACTOR, committer=ACTOR)


@pytest.fixture
def source_repo(tmp_path):
    """Checkout de origen con un commit."""
    repo = gitpython.Repo.init(tmp_path / "source")
    commit_files(repo, {"README.md": "# proyecto\n"}, "initial")
    yield repo
    repo.close()


@pytest.fixture
def empty_remote(tmp_path):
    """Repo bare sin branches."""
    repo = gitpython.Repo.init(tmp_path / "remote.git", bare=True)
    yield repo
    repo.close()


@pytest.fixture
def remote_repo(tmp_path, empty_remote):
    """Repo bare con un gh-pages previo que contiene old.html."""
    seed = gitpython.Repo.init(tmp_path / "seed")
    commit_files(seed, {"old.html": "<p>old</p>\n"}, "rebuild pages at 0000000")
    seed.git.push(str(empty_remote.git_dir), "HEAD:refs/heads/gh-pages")
    seed.close()
    return empty_remote


@pytest.fixture
def output_dir(source_repo):
    """Sitio construido: target/doc/index.html dentro del checkout."""
    salida = Path(source_repo.working_tree_dir) / "target" / "doc"
    salida.mkdir(parents=True)
    (salida / "index.html").write_text("<h1>docs</h1>\n", encoding="utf-8")
    return salida


@pytest.fixture
def app_config(source_repo, output_dir, remote_repo):
    """AppConfig apuntando a los repos temporales."""
    config = AppConfig()
    config.publish.output_dir = str(output_dir)
    config.publish.source_dir = str(source_repo.working_tree_dir)
    config.github.remote_url = str(remote_repo.git_dir)
    config.identity.name = "Docs Bot"
    config.identity.email = "docs-bot@example.com"
    return config


@pytest.fixture
def remote_target(remote_repo):
    return RemoteTarget(url=str(remote_repo.git_dir), source="explicit")
