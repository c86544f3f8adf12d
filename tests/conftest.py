"""
pytest configuration and shared fixtures for superinit tests.

Fixtures
--------
config : ProvisionConfig
    Default configuration rooted in a temporary directory.

fake_runner : FakeRunner
    Records commands and reproduces the on-disk effects of git, poetry,
    django-admin and manage.py, so the pipeline runs without those tools.
    Applied migrations are recorded beside the workspace, standing in for
    the PostgreSQL server.

console : Console
    A recording console; use ``console.export_text()`` to read output.

settings_text : str
    settings.py as generated by ``django-admin startproject``.
"""

from __future__ import annotations

import re
import subprocess
from collections.abc import Sequence
from pathlib import Path

import pytest
from rich.console import Console

from superinit.errors import CommandError
from superinit.models import ProvisionConfig
from superinit.runner import CommandRunner


DJANGO_SETTINGS = '''"""
Django settings for {name} project.
"""

from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = "django-insecure-test"

DEBUG = True

ALLOWED_HOSTS = []


# Application definition

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

ROOT_URLCONF = "{name}.urls"


# Database

DATABASES = {{
    "default": {{
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }}
}}

STATIC_URL = "static/"
'''

STARTAPP_MODELS = "from django.db import models\n\n# Create your models here.\n"

MODEL_CLASS = re.compile(r"^class \w+\(models\.Model\):", re.MULTILINE)


class FakeRunner(CommandRunner):
    """
    A ``CommandRunner`` that simulates the external tools.

    Parameters
    ----------
    fail_on : str | None
        Any command whose joined argv contains this text exits with
        ``fail_code`` instead of being simulated.
    """

    def __init__(self, fail_on: str | None = None, fail_code: int = 1) -> None:
        super().__init__()
        self.calls: list[tuple[list[str], Path | None]] = []
        self.fail_on = fail_on
        self.fail_code = fail_code

    @property
    def commands(self) -> list[str]:
        return [" ".join(argv) for argv, _ in self.calls]

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        argv = list(command)
        self.calls.append((argv, cwd))

        if self.fail_on is not None and self.fail_on in " ".join(argv):
            returncode = self.fail_code
        else:
            returncode = self._simulate(argv, cwd or Path.cwd())

        if check and returncode != 0:
            raise CommandError(argv, returncode)
        return subprocess.CompletedProcess(argv, returncode, "", "")

    def _simulate(self, argv: list[str], cwd: Path) -> int:
        if argv[:2] == ["git", "init"]:
            (Path(argv[2]) / ".git").mkdir(parents=True, exist_ok=True)
        elif argv[:2] == ["git", "rev-parse"]:
            commits = cwd / ".git" / "COMMITS"
            return 0 if commits.is_file() and commits.read_text() else 128
        elif argv[:2] == ["git", "commit"]:
            with (cwd / ".git" / "COMMITS").open("a") as f:
                f.write(argv[argv.index("-m") + 1] + "\n")
        elif argv[:2] == ["poetry", "init"]:
            name = argv[argv.index("--name") + 1]
            python = argv[argv.index("--python") + 1]
            deps = [argv[i + 1] for i, arg in enumerate(argv) if arg == "--dependency"]
            lines = [
                "[tool.poetry]",
                f'name = "{name}"',
                'version = "0.1.0"',
                "",
                "[tool.poetry.dependencies]",
                f'python = "{python}"',
            ]
            lines += [f'"{dep}" = "*"' for dep in deps]
            lines += [
                "",
                "[build-system]",
                'requires = ["poetry-core"]',
                'build-backend = "poetry.core.masonry.api"',
            ]
            (cwd / "pyproject.toml").write_text("\n".join(lines) + "\n")
        elif argv[:2] == ["poetry", "add"]:
            with (cwd / "pyproject.toml").open("a") as f:
                f.write('\n[tool.poetry.group.dev.dependencies]\npre-commit = "^3.6"\n')
        elif "startproject" in argv:
            name = argv[argv.index("startproject") + 1]
            (cwd / name).mkdir()
            (cwd / name / "__init__.py").touch()
            (cwd / name / "settings.py").write_text(DJANGO_SETTINGS.format(name=name))
            (cwd / "manage.py").write_text("# manage.py\n")
        elif "startapp" in argv:
            name = argv[argv.index("startapp") + 1]
            (cwd / name / "migrations").mkdir(parents=True)
            (cwd / name / "migrations" / "__init__.py").touch()
            (cwd / name / "models.py").write_text(STARTAPP_MODELS)
        elif "makemigrations" in argv:
            # Only apps that declare a model get a migration
            for migrations in cwd.glob("*/migrations"):
                models = migrations.parent / "models.py"
                if models.is_file() and MODEL_CLASS.search(models.read_text()):
                    (migrations / "0001_initial.py").write_text("# initial\n")
        elif "migrate" in argv:
            applied = database_state(cwd)
            if "--check" in argv:
                current = migration_files(cwd)
                return 0 if applied.is_file() and applied.read_text() == current else 1
            applied.parent.mkdir(parents=True, exist_ok=True)
            applied.write_text(migration_files(cwd))
        return 0


def database_state(workspace: Path) -> Path:
    """
    Where the simulated database records applied migrations.

    It lives outside the workspace, like a real PostgreSQL server.
    """
    return workspace.parent / ".postgres" / f"{workspace.name}.applied"


def migration_files(workspace: Path) -> str:
    names = sorted(
        str(p.relative_to(workspace))
        for p in workspace.glob("*/migrations/*.py")
        if p.name != "__init__.py"
    )
    # Django's built-in apps always have migrations to apply
    return "\n".join(["django.contrib", *names]) + "\n"


def snapshot(root: Path) -> dict[str, bytes]:
    """Map every file under ``root`` to its content."""
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def config(tmp_path: Path) -> ProvisionConfig:
    """Default configuration with the workspace under tmp_path."""
    return ProvisionConfig(base_dir=tmp_path)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=200)


@pytest.fixture
def settings_text() -> str:
    return DJANGO_SETTINGS.format(name="some_app_host")


@pytest.fixture
def scaffolded(config: ProvisionConfig, settings_text: str) -> ProvisionConfig:
    """
    Workspace in the state left by project-init: git dir, manifest,
    settings.py, manage.py and the app with an empty migrations package.
    """
    workspace = config.workspace
    (workspace / ".git").mkdir(parents=True)
    (workspace / "pyproject.toml").write_text(
        '[tool.poetry]\nname = "some_app"\nversion = "0.1.0"\n'
    )
    config.settings_path.parent.mkdir()
    config.settings_path.write_text(settings_text)
    (workspace / "manage.py").write_text("# manage.py\n")
    config.migrations_dir.mkdir(parents=True)
    (config.migrations_dir / "__init__.py").touch()
    return config
