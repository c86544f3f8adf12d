"""
superinit.steps - Provisioning Steps
====================================

Each provisioning step is a pair of plain functions:

- a **completion predicate** ``(StepContext) -> bool`` that inspects the
  workspace for evidence the step already ran, and
- an **action** ``(StepContext) -> None`` that performs the step, raising
  on the first failing external command.

``STEPS`` lists them in execution order. The order is a contract: each
action assumes the previous steps' output exists and raises
``PreconditionError`` otherwise.

    #  name                 completion marker
    1  repository-init      <workspace>/.git
    2  project-init         pyproject.toml
    3  database-configure   engine identifier in settings.py
    4  framework-extend     'rest_framework' in settings.py
    5  schema-materialize   `manage.py migrate --check` succeeds
    6  config-emit          .gitignore
    7  hooks-setup          .pre-commit-config.yaml
    8  finalize-commit      HEAD resolves

See Also
--------
- provisioner.py: Runs this table
- editor.py: Settings patching primitives
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import tomlkit
from jinja2 import Environment, PackageLoader, select_autoescape
from rich.console import Console

from superinit.editor import ArtifactEditor, Insertion, Replacement
from superinit.errors import PreconditionError
from superinit.models import ProvisionConfig
from superinit.runner import CommandRunner


# =============================================================================
# Module-Level Configuration
# =============================================================================

# Generated config files: template_name -> output path relative to workspace
CONFIG_TEMPLATES: dict[str, str] = {
    "gitignore.j2": ".gitignore",
    "pylintrc.j2": ".pylintrc",
    "isort.cfg.j2": ".isort.cfg",
    "env.j2": ".env",
}

HOOKS_TEMPLATE = "pre-commit-config.yaml.j2"
HOOKS_DESCRIPTOR = ".pre-commit-config.yaml"

REST_FRAMEWORK_APP = "rest_framework"

# Matches the quoted staticfiles entry in INSTALLED_APPS, single or double quotes
STATICFILES_ANCHOR = (
    r"^(?P<indent>\s*)(?P<quote>['\"])django\.contrib\.staticfiles(?P=quote)\s*,"
)
REST_FRAMEWORK_ENTRY = rf"['\"]{REST_FRAMEWORK_APP}['\"]\s*,"

SQLITE_ENGINE = (
    r"(?P<q>['\"])ENGINE(?P=q)(?P<sep>\s*:\s*)"
    r"['\"]django\.db\.backends\.sqlite3['\"]"
)
SQLITE_NAME = (
    r"^(?P<indent>[ \t]*)(?P<q>['\"])NAME(?P=q)\s*:\s*"
    r"BASE_DIR\s*/\s*['\"]db\.sqlite3['\"][ \t]*,?[ \t]*$"
)


# =============================================================================
# Step Context and Table Entry
# =============================================================================

@dataclass
class StepContext:
    """
    Everything a step needs: configuration, command runner and console.

    Commands issued through ``run`` execute in the workspace root.
    """

    config: ProvisionConfig
    runner: CommandRunner
    console: Console

    @property
    def workspace(self) -> Path:
        return self.config.workspace

    def run(self, *command: str) -> None:
        self.runner.run(command, cwd=self.workspace)

    def poetry_run(self, *command: str) -> None:
        """Run a command inside the Poetry-managed virtualenv."""
        self.run("poetry", "run", *command)

    def say(self, message: str) -> None:
        self.console.print(f"  {message}")


@dataclass(frozen=True)
class Step:
    """
    One row of the step table.

    Attributes
    ----------
    name : str
        Stable identifier used in results and the dry-run table.

    start_message : str
        Printed before the action runs.

    done_message : str
        Printed when the completion predicate holds.

    is_done : Callable[[StepContext], bool]
        Completion predicate.

    action : Callable[[StepContext], None]
        The work itself.
    """

    name: str
    start_message: str
    done_message: str
    is_done: Callable[[StepContext], bool]
    action: Callable[[StepContext], None]


# =============================================================================
# Template Rendering
# =============================================================================

def create_jinja_env() -> Environment:
    """
    Create the Jinja2 environment for the bundled templates.

    Autoescaping is disabled because the output is config files, not HTML.
    """
    return Environment(
        loader=PackageLoader("superinit", "templates"),
        autoescape=select_autoescape([]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_template(env: Environment, template_name: str, config: ProvisionConfig) -> str:
    """Render one template with ``config`` in its context."""
    return env.get_template(template_name).render(config=config)


def write_files(workspace: Path, files: dict[str, str]) -> list[Path]:
    """Write rendered files relative to ``workspace``, overwriting."""
    created: list[Path] = []
    for relative_path, content in files.items():
        full_path = workspace / relative_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content, encoding="utf-8")
        created.append(full_path)
    return created


# =============================================================================
# 1. Repository Init
# =============================================================================

def repository_initialized(ctx: StepContext) -> bool:
    return (ctx.workspace / ".git").exists()


def init_repository(ctx: StepContext) -> None:
    ctx.config.base_dir.mkdir(parents=True, exist_ok=True)
    ctx.runner.run(["git", "init", str(ctx.workspace)], cwd=ctx.config.base_dir)


# =============================================================================
# 2. Project Init
# =============================================================================

def project_initialized(ctx: StepContext) -> bool:
    return ctx.config.manifest_path.is_file()


def init_project(ctx: StepContext) -> None:
    """
    Create the Poetry manifest, install dependencies and scaffold Django.

    ``poetry install --no-root`` is used because the workspace package does
    not exist yet when dependencies are installed.
    """
    config = ctx.config
    if not repository_initialized(ctx):
        raise PreconditionError(f"{ctx.workspace} is not a git repository yet")

    command = ["poetry", "init", "--name", config.project_name]
    for dependency in config.dependencies:
        command += ["--dependency", dependency]
    command += ["--python", config.python_version, "--no-interaction"]
    ctx.run(*command)

    (ctx.workspace / "README.md").touch()

    ctx.say("Installing dependencies...")
    ctx.run("poetry", "install", "--no-root")

    ctx.say("Creating Django project...")
    ctx.poetry_run("django-admin", "startproject", config.django_project_name, ".")

    ctx.say(f"Creating Django app: {config.app_name}...")
    ctx.poetry_run("python", "manage.py", "startapp", config.app_name)


# =============================================================================
# 3. Database Configure
# =============================================================================

def _literal(value: str, quote: str) -> str:
    """Python string literal for ``value`` delimited by ``quote``."""
    escaped = value.replace("\\", "\\\\").replace(quote, "\\" + quote)
    return f"{quote}{escaped}{quote}"


def database_replacements(config: ProvisionConfig) -> list[Replacement]:
    """
    Edits that turn Django's default SQLite block into the configured database.

    The ``NAME`` line is expanded into NAME, USER, PASSWORD, HOST and PORT
    entries at the same indentation. Both edits reuse the quote character
    found in the file.
    """
    db = config.database

    def engine(match: re.Match[str]) -> str:
        q = match["q"]
        return f"{q}ENGINE{q}{match['sep']}{_literal(db.engine, q)}"

    def connection(match: re.Match[str]) -> str:
        indent, q = match["indent"], match["q"]
        entries = [
            ("NAME", db.name),
            ("USER", db.user),
            ("PASSWORD", db.password),
            ("HOST", db.host),
            ("PORT", str(db.port)),
        ]
        return "\n".join(
            f"{indent}{q}{key}{q}: {_literal(value, q)}," for key, value in entries
        )

    return [
        Replacement(pattern=SQLITE_ENGINE, replacement=engine),
        Replacement(pattern=SQLITE_NAME, replacement=connection),
    ]


def database_configured(ctx: StepContext) -> bool:
    return ArtifactEditor(ctx.config.settings_path).contains(ctx.config.database.engine)


def configure_database(ctx: StepContext) -> None:
    """
    Rewrite the default SQLite block.

    Both the ENGINE and NAME lines must still be Django's defaults. The
    engine string is the completion marker, so rewriting it alone would
    leave a half-configured block that later runs never revisit.
    """
    editor = ArtifactEditor(ctx.config.settings_path)
    for pattern, key in ((SQLITE_ENGINE, "ENGINE"), (SQLITE_NAME, "NAME")):
        if not editor.contains(pattern, regex=True):
            raise PreconditionError(
                f"No default SQLite {key} entry found in {ctx.config.settings_path}"
            )
    editor.replace(database_replacements(ctx.config))


# =============================================================================
# 4. Framework Extend
# =============================================================================

def installed_apps_insertion(config: ProvisionConfig) -> Insertion:
    """The REST framework and app entries, placed after staticfiles."""
    return Insertion(
        anchor=STATICFILES_ANCHOR,
        lines=(
            "{indent}{quote}" + REST_FRAMEWORK_APP + "{quote},",
            "{indent}{quote}" + config.app_name + "{quote},",
        ),
    )


def rest_framework_installed(ctx: StepContext) -> bool:
    return ArtifactEditor(ctx.config.settings_path).contains(
        REST_FRAMEWORK_ENTRY, regex=True
    )


def extend_installed_apps(ctx: StepContext) -> None:
    ArtifactEditor(ctx.config.settings_path).insert_after(
        installed_apps_insertion(ctx.config)
    )


# =============================================================================
# 5. Schema Materialize
# =============================================================================

def schema_materialized(ctx: StepContext) -> bool:
    """
    True once the database has every migration applied.

    Neither the migrations directory nor its content is usable evidence:
    ``startapp`` already creates ``migrations/__init__.py``, and an app
    without models never gets a migration file. ``migrate --check`` asks
    the database instead; it exits non-zero while Django's own or the
    app's migrations are unapplied.
    """
    if not (ctx.workspace / "manage.py").is_file():
        return False
    return ctx.runner.succeeds(
        ["poetry", "run", "python", "manage.py", "migrate", "--check"],
        cwd=ctx.workspace,
    )


def materialize_schema(ctx: StepContext) -> None:
    if not (ctx.workspace / "manage.py").is_file():
        raise PreconditionError(f"No manage.py in {ctx.workspace}")

    ctx.poetry_run("python", "manage.py", "makemigrations")

    ctx.say("Applying migrations...")
    ctx.poetry_run("python", "manage.py", "migrate")


# =============================================================================
# 6. Config Emit
# =============================================================================

def config_emitted(ctx: StepContext) -> bool:
    # Only the ignore list is checked; the sibling files are not guarded
    return (ctx.workspace / ".gitignore").is_file()


def add_black_config(manifest: Path, config: ProvisionConfig) -> None:
    """
    Set ``[tool.black]`` in the Poetry manifest.

    The table is replaced wholesale, so re-emitting never duplicates it.
    """
    if not manifest.is_file():
        raise PreconditionError(f"{manifest} does not exist")

    doc = tomlkit.parse(manifest.read_text(encoding="utf-8"))
    if "tool" not in doc:
        doc["tool"] = tomlkit.table(is_super_table=True)

    black = tomlkit.table()
    black["line-length"] = config.black_line_length
    black["target-version"] = [config.black_target_version]
    doc["tool"]["black"] = black

    manifest.write_text(tomlkit.dumps(doc), encoding="utf-8")


def emit_config_files(ctx: StepContext) -> None:
    env = create_jinja_env()
    rendered = {
        output: render_template(env, template, ctx.config)
        for template, output in CONFIG_TEMPLATES.items()
    }
    add_black_config(ctx.config.manifest_path, ctx.config)
    for path in write_files(ctx.workspace, rendered):
        ctx.say(f"Created {path.relative_to(ctx.workspace)}")


# =============================================================================
# 7. Hooks Setup
# =============================================================================

def hooks_configured(ctx: StepContext) -> bool:
    return (ctx.workspace / HOOKS_DESCRIPTOR).is_file()


def setup_hooks(ctx: StepContext) -> None:
    """
    Install pre-commit and run every hook once over the whole tree.

    A hook that fails or rewrites files makes ``pre-commit run`` exit
    non-zero, which stops the pipeline like any other tool failure.
    """
    ctx.run("poetry", "add", "--group", "dev", "pre-commit")

    content = render_template(create_jinja_env(), HOOKS_TEMPLATE, ctx.config)
    write_files(ctx.workspace, {HOOKS_DESCRIPTOR: content})

    ctx.poetry_run("pre-commit", "install")
    ctx.poetry_run("pre-commit", "autoupdate")
    ctx.run("git", "add", HOOKS_DESCRIPTOR)
    ctx.poetry_run("pre-commit", "run", "--all-files")


# =============================================================================
# 8. Finalize Commit
# =============================================================================

def initial_commit_exists(ctx: StepContext) -> bool:
    if not repository_initialized(ctx):
        return False
    return ctx.runner.succeeds(["git", "rev-parse", "--verify", "HEAD"], cwd=ctx.workspace)


def commit_workspace(ctx: StepContext) -> None:
    ctx.run("git", "add", ".")
    ctx.run("git", "commit", "-m", ctx.config.commit_message)


# =============================================================================
# Step Table
# =============================================================================

STEPS: tuple[Step, ...] = (
    Step(
        name="repository-init",
        start_message="Initializing Git repository...",
        done_message="Git repository already initialized.",
        is_done=repository_initialized,
        action=init_repository,
    ),
    Step(
        name="project-init",
        start_message="Initializing Poetry...",
        done_message="Poetry and Django project already initialized.",
        is_done=project_initialized,
        action=init_project,
    ),
    Step(
        name="database-configure",
        start_message="Configuring PostgreSQL database in Django settings...",
        done_message="PostgreSQL already configured in Django settings.",
        is_done=database_configured,
        action=configure_database,
    ),
    Step(
        name="framework-extend",
        start_message="Adding Django REST Framework to installed apps...",
        done_message="Django REST Framework already added to installed apps.",
        is_done=rest_framework_installed,
        action=extend_installed_apps,
    ),
    Step(
        name="schema-materialize",
        start_message="Creating initial migrations...",
        done_message="Migrations already created and applied.",
        is_done=schema_materialized,
        action=materialize_schema,
    ),
    Step(
        name="config-emit",
        start_message="Generating configuration files for Python tools...",
        done_message="Configuration files already generated.",
        is_done=config_emitted,
        action=emit_config_files,
    ),
    Step(
        name="hooks-setup",
        start_message="Setting up pre-commit hooks...",
        done_message="Pre-commit hooks already set up.",
        is_done=hooks_configured,
        action=setup_hooks,
    ),
    Step(
        name="finalize-commit",
        start_message="Finalizing Git configuration...",
        done_message="Git already initialized with initial commit.",
        is_done=initial_commit_exists,
        action=commit_workspace,
    ),
)
