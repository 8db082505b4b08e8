"""
publisher.py — Publica un directorio ya construido en el branch gh-pages.

Flujo (secuencial, se detiene en el primer error):
    1. Resolver la revisión corta del checkout de origen
    2. Validar el directorio de salida (debe existir y tener archivos)
    3. git init en el directorio de salida (descartando historia previa)
    4. Configurar user.name / user.email
    5. git remote add <remoto> <url con token>
    6. git fetch <remoto>
    7. git reset <remoto>/<branch> (mixed: solo el índice)
    8. Detectar si el árbol cambia respecto al tip publicado
    9. git add -A .
    10. git commit -m "rebuild pages at <revisión>"
    11. git push <remoto> HEAD:<branch>

No hay rollback: si un paso falla se lanza PublishError y el
repositorio a medio inicializar queda como está para inspeccionarlo.

¿Por qué git init + reset en vez de clonar gh-pages?
    El directorio de salida ya tiene el sitio completo. Con init + fetch
    + reset el índice apunta al tip publicado y el working tree es el
    sitio nuevo, así `git add -A` produce exactamente la diferencia
    (incluyendo archivos borrados) sin copiar nada.

Uso:
    from pagepub.publishing.publisher import Publisher
    publisher = Publisher(config, resolve_remote(config))
    result = publisher.run()
    print(result.commit_sha)
"""

from __future__ import annotations

import shutil
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import git as gitpython

from pagepub.config import AppConfig
from pagepub.publishing.github_auth import RemoteTarget
from pagepub.utils.logger import get_logger, redact
from pagepub.utils.validators import validate_config

logger = get_logger("pagepub.publisher")

STEPS: tuple[str, ...] = (
    "Resolviendo revisión de origen",
    "Validando directorio de salida",
    "Inicializando repositorio en el directorio de salida",
    "Configurando identidad de commit",
    "Registrando remoto",
    "Descargando historial del remoto",
    "Reseteando sobre el branch publicado",
    "Detectando cambios",
    "Agregando archivos",
    "Creando commit",
    "Empujando al remoto",
)
TOTAL_STEPS = len(STEPS)


class PublishError(RuntimeError):
    """
    Falla de un paso de la publicación.

    Args:
        step: Número de paso (1-11)
        message: Descripción ya redactada (sin tokens)
        status: Código de salida del comando git que falló, si lo hubo
    """

    def __init__(self, step: int, message: str, status: int | None = None):
        self.step = step
        self.step_name = STEPS[step - 1]
        self.status = status
        self.message = message
        super().__init__(f"Paso {step}/{TOTAL_STEPS} ({self.step_name}): {message}")

    @property
    def exit_code(self) -> int:
        """Código de salida del proceso: el de git si fue distinto de 0."""
        if isinstance(self.status, int) and self.status > 0:
            return self.status
        return 1


@dataclass
class PublishResult:
    """
    Resultado de una publicación exitosa.

    Campos:
        revision: Revisión corta del checkout de origen
        branch: Branch publicado
        remote_url: URL del remoto (redactada)
        commit_sha: SHA del commit creado ("" si no se creó)
        pushed: False en dry-run o si se omitió el commit
        unchanged: True si el árbol era idéntico al tip publicado
        skipped: True si la política on_unchanged=skip evitó el commit
    """
    revision: str
    branch: str
    remote_url: str
    commit_sha: str = ""
    pushed: bool = False
    unchanged: bool = False
    skipped: bool = False


def resolve_revision(source_dir: str | Path, length: int = 7) -> str:
    """
    Obtiene la revisión corta (git rev-parse --short HEAD) del checkout
    que contiene source_dir.

    Args:
        source_dir: Cualquier ruta dentro del checkout de origen
        length: Largo mínimo del hash abreviado

    Returns:
        Hash abreviado (ej: "abc1234").

    Raises:
        PublishError: Si no es un repo git o no tiene commits (paso 1).
    """
    try:
        repo = gitpython.Repo(source_dir, search_parent_directories=True)
    except (gitpython.InvalidGitRepositoryError, gitpython.NoSuchPathError) as e:
        raise PublishError(
            1, f"{source_dir} no está dentro de un repositorio git"
        ) from e

    try:
        return repo.git.rev_parse(f"--short={length}", "HEAD").strip()
    except gitpython.GitCommandError as e:
        raise PublishError(
            1,
            f"No se pudo resolver HEAD en {repo.working_tree_dir}: "
            f"{(e.stderr or '').strip() or e}",
            status=e.status,
        ) from e
    finally:
        repo.close()


class Publisher:
    """
    Ejecuta la secuencia de publicación sobre el directorio de salida.

    Toda la entrada llega explícita: rutas, identidad y branch en el
    AppConfig; la URL del remoto (con su secreto) en el RemoteTarget.

    Args:
        config: Configuración de la app
        remote: Remoto destino ya resuelto por github_auth
    """

    def __init__(self, config: AppConfig, remote: RemoteTarget):
        self._config = config
        self._remote = remote
        self._output_dir = Path(config.publish.output_dir)
        self._repo: gitpython.Repo | None = None

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    @contextmanager
    def _step(self, number: int) -> Iterator[None]:
        """
        Anuncia un paso y traduce errores de git/filesystem a PublishError.

        Cualquier texto del error pasa por redact() antes de salir.
        """
        logger.step(number, TOTAL_STEPS, STEPS[number - 1])
        try:
            yield
        except PublishError:
            raise
        except gitpython.GitCommandError as e:
            subcomando = e.command[1] if len(e.command) > 1 else ""
            detalle = (e.stderr or "").strip() or str(e)
            mensaje = f"git {subcomando} falló: {detalle}"
            raise PublishError(
                number,
                redact(mensaje, self._remote.secret),
                status=e.status if isinstance(e.status, int) else None,
            ) from None
        except gitpython.CommandError as e:
            # GitCommandNotFound: git no está instalado o no es ejecutable
            raise PublishError(
                number,
                redact(f"No se pudo ejecutar git: {e}", self._remote.secret),
            ) from None
        except OSError as e:
            raise PublishError(
                number, redact(str(e), self._remote.secret)
            ) from None

    def run(self, dry_run: bool = False) -> PublishResult:
        """
        Ejecuta los 11 pasos.

        Args:
            dry_run: Si es True, hace todo localmente pero no empuja.

        Returns:
            PublishResult con el commit creado.

        Raises:
            ValueError: Si la configuración es inválida.
            PublishError: En el primer paso que falle.
        """
        problemas = validate_config(self._config)
        if problemas:
            raise ValueError("Configuración inválida: " + "; ".join(problemas))

        publish = self._config.publish
        try:
            with self._step(1):
                revision = resolve_revision(
                    publish.source_dir, publish.revision_length
                )
                logger.info(f"Revisión de origen: {revision}")

            result = PublishResult(
                revision=revision,
                branch=publish.branch,
                remote_url=self._remote.display_url,
            )

            with self._step(2):
                self._validate_output_dir()

            with self._step(3):
                self._init_repo()

            with self._step(4):
                self._configure_identity()

            with self._step(5):
                self._add_remote()

            with self._step(6):
                self._fetch()

            with self._step(7):
                has_history = self._reset_to_published()

            with self._step(8):
                result.unchanged = has_history and not self._has_changes()
                if result.unchanged and not self._should_commit_unchanged():
                    result.skipped = True
                    return result

            with self._step(9):
                self._get_repo().git.add("-A", ".")

            with self._step(10):
                result.commit_sha = self._commit(revision, allow_empty=result.unchanged)

            if dry_run:
                logger.warning(
                    f"Dry-run: commit {result.commit_sha[:7]} creado, "
                    "no se empuja al remoto"
                )
                return result

            with self._step(11):
                self._push()
                result.pushed = True

            logger.success(
                f"Publicado {result.commit_sha[:7]} en "
                f"{result.remote_url} ({publish.branch})"
            )
            return result
        finally:
            if self._repo is not None:
                self._repo.close()

    # ============================================================
    # Pasos
    # ============================================================

    def _validate_output_dir(self) -> None:
        """
        El directorio vacío o inexistente es un error: no se publica
        un sitio vacío por accidente.
        """
        salida = self._output_dir
        if not salida.exists():
            raise PublishError(
                2,
                f"El directorio de salida no existe: {salida}. "
                "¿Corriste el build de la documentación?",
            )
        if not salida.is_dir():
            raise PublishError(2, f"La ruta de salida no es un directorio: {salida}")

        contenido = [p for p in salida.iterdir() if p.name != ".git"]
        if not contenido:
            raise PublishError(2, f"El directorio de salida está vacío: {salida}")

        # Evitar borrar el .git del propio checkout de origen
        source_root = self._source_root()
        if source_root is not None and salida.resolve() == source_root:
            raise PublishError(
                2,
                f"El directorio de salida es la raíz del checkout de origen "
                f"({source_root}); su historia sería descartada.",
            )

        logger.info(f"Directorio de salida: {salida} ({len(contenido)} entradas)")

    def _source_root(self) -> Path | None:
        try:
            repo = gitpython.Repo(
                self._config.publish.source_dir, search_parent_directories=True
            )
        except (gitpython.InvalidGitRepositoryError, gitpython.NoSuchPathError):
            return None
        try:
            if repo.working_tree_dir is None:
                return None
            return Path(repo.working_tree_dir).resolve()
        finally:
            repo.close()

    def _init_repo(self) -> None:
        """git init desde cero: cualquier .git previo se descarta."""
        git_dir = self._output_dir / ".git"
        if git_dir.is_dir() and not git_dir.is_symlink():
            logger.warning(f"Descartando historia previa en {git_dir}")
            shutil.rmtree(git_dir)
        elif git_dir.exists() or git_dir.is_symlink():
            git_dir.unlink()

        self._repo = gitpython.Repo.init(self._output_dir)
        # En CI no hay nadie para escribir credenciales
        self._repo.git.update_environment(GIT_TERMINAL_PROMPT="0")

    def _get_repo(self) -> gitpython.Repo:
        if self._repo is None:
            raise RuntimeError("El repositorio de salida no está inicializado")
        return self._repo

    def _configure_identity(self) -> None:
        identity = self._config.identity
        with self._get_repo().config_writer() as writer:
            writer.set_value("user", "name", identity.name)
            writer.set_value("user", "email", identity.email)
        logger.info(f"Identidad: {identity.name} <{identity.email}>")

    def _add_remote(self) -> None:
        nombre = self._config.publish.remote_name
        self._get_repo().create_remote(nombre, self._remote.url)
        logger.info(f"Remoto {nombre}: {self._remote.display_url}")

    def _fetch(self) -> None:
        self._get_repo().git.fetch(self._config.publish.remote_name)

    def _reset_to_published(self) -> bool:
        """
        Mueve HEAD y el índice al tip del branch publicado, sin tocar
        los archivos del directorio.

        Returns:
            True si el remoto ya tenía el branch; False si se crea desde cero.
        """
        publish = self._config.publish
        repo = self._get_repo()
        ref = f"{publish.remote_name}/{publish.branch}"

        try:
            repo.git.rev_parse("--verify", "--quiet", f"refs/remotes/{ref}")
        except gitpython.GitCommandError:
            if not publish.create_missing_branch:
                raise PublishError(
                    7,
                    f"El remoto no tiene el branch {publish.branch} "
                    "(usa create_missing_branch para crearlo)",
                ) from None
            logger.warning(
                f"El remoto no tiene {publish.branch}: se creará desde cero"
            )
            return False

        repo.git.reset("-q", "--mixed", ref)
        logger.info(f"Base: {ref} ({repo.head.commit.hexsha[:7]})")
        return True

    def _has_changes(self) -> bool:
        """True si el working tree difiere del tip publicado."""
        status = self._get_repo().git.status("--porcelain", "--untracked-files=all")
        return bool(status.strip())

    def _should_commit_unchanged(self) -> bool:
        """
        Aplica la política on_unchanged cuando el sitio no cambió.

        Returns:
            True si igual hay que crear el commit (vacío).
        """
        politica = self._config.publish.on_unchanged
        if politica == "fail":
            raise PublishError(
                8, "El sitio es idéntico al publicado (on_unchanged=fail)"
            )
        if politica == "skip":
            logger.warning("El sitio es idéntico al publicado: no se crea commit")
            return False
        logger.info("El sitio es idéntico al publicado: se crea un commit vacío")
        return True

    def _commit(self, revision: str, allow_empty: bool = False) -> str:
        repo = self._get_repo()
        mensaje = self._config.publish.commit_message.format(revision=revision)
        args = ["-q", "-m", mensaje]
        if allow_empty:
            args.append("--allow-empty")
        repo.git.commit(*args)

        sha = repo.head.commit.hexsha
        logger.info(f"Commit creado: {sha[:7]} — {mensaje}")
        return sha

    def _push(self) -> None:
        publish = self._config.publish
        args = []
        if publish.quiet_push:
            args.append("-q")
        if publish.force_push:
            args.append("--force")
        args += [publish.remote_name, f"HEAD:refs/heads/{publish.branch}"]
        self._get_repo().git.push(*args)
