"""
superinit.models - Configuration Models and Results
===================================================

This module defines the data models used throughout superinit. Configuration
is expressed with Pydantic so invalid names or ports are rejected before any
external tool runs; results are plain dataclasses.

Architecture Notes
------------------
The models are organized in a hierarchy:

    ProvisionConfig (main)
    ├── DatabaseConfig
    │   ├── engine: str
    │   └── name/user/password/host/port
    └── HookSpec (list)
        ├── repo: str
        ├── rev: str
        └── hook_id: str

    ProvisionResult
    └── StepResult (list)
        └── status: StepStatus

Usage Example
-------------
>>> from superinit.models import ProvisionConfig
>>> config = ProvisionConfig(project_name="blog", app_name="posts")
>>> config.settings_path
PosixPath('/current/dir/blog/some_app_host/settings.py')
"""

from __future__ import annotations

import keyword
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Enumerations
# =============================================================================

class StepStatus(str, Enum):
    """
    Outcome of a single provisioning step.

    Attributes
    ----------
    RAN : str
        The step's action was executed.

    SKIPPED : str
        The completion marker was present, nothing was done.

    FAILED : str
        The action raised; the pipeline stopped here.

    PENDING : str
        Dry-run only: the step would run.

    DONE : str
        Dry-run only: the step would be skipped.
    """

    RAN = "ran"
    SKIPPED = "skipped"
    FAILED = "failed"
    PENDING = "pending"
    DONE = "done"


# =============================================================================
# Configuration Sub-Models
# =============================================================================

class DatabaseConfig(BaseModel):
    """
    Connection settings written into the Django settings module and `.env`.

    The engine identifier doubles as the completion marker for the
    database-configure step: if it appears anywhere in settings.py the step
    is skipped.
    """

    engine: str = Field(
        default="django.db.backends.postgresql",
        description="Django database backend path",
    )
    name: str = Field(default="postgres", min_length=1)
    user: str = Field(default="postgres", min_length=1)
    password: str = Field(default="postgres")
    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=5432, ge=1, le=65535)

    @property
    def url(self) -> str:
        """Connection string in ``postgres://`` URL form for `.env`."""
        return (
            f"postgres://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.name}"
        )


class HookSpec(BaseModel):
    """
    One entry of `.pre-commit-config.yaml`.

    Attributes
    ----------
    repo : str
        Upstream repository URL.

    rev : str
        Pinned tag or commit. `pre-commit autoupdate` moves it forward
        after the descriptor is written.

    hook_id : str
        Hook identifier within the repository.
    """

    repo: str
    rev: str
    hook_id: str


def _default_hooks() -> list[HookSpec]:
    return [
        HookSpec(repo="https://github.com/PyCQA/pylint", rev="v2.16.0", hook_id="pylint"),
        HookSpec(repo="https://github.com/psf/black", rev="23.1.0", hook_id="black"),
        HookSpec(
            repo="https://github.com/pre-commit/mirrors-isort",
            rev="v5.10.1",
            hook_id="isort",
        ),
    ]


# =============================================================================
# Main Configuration Model
# =============================================================================

class ProvisionConfig(BaseModel):
    """
    Complete configuration for one provisioning run.

    Every value has a default, so ``ProvisionConfig()`` reproduces the
    standard layout: a `some_app` workspace holding the `some_app_host`
    Django project and the `some_app` Django app.

    Attributes
    ----------
    project_name : str
        Workspace directory name and Poetry package name.

    django_project_name : str
        Name passed to ``django-admin startproject``. Its directory holds
        settings.py.

    app_name : str
        Name passed to ``manage.py startapp`` and registered in
        INSTALLED_APPS.

    python_version : str
        Poetry constraint for the Python runtime.

    django_version : str
        Poetry constraint appended to the ``django`` dependency.

    rest_framework_package, database_driver : str
        The other two fixed dependencies.

    database : DatabaseConfig
        Connection settings.

    hooks : list[HookSpec]
        Pre-commit hooks, in descriptor order.

    commit_message : str
        Message of the single initial commit.

    base_dir : Path
        Directory in which the workspace is created.

    Examples
    --------
    >>> config = ProvisionConfig(project_name="shop", app_name="orders")
    >>> config.dependencies
    ['django^4.2', 'djangorestframework', 'psycopg2-binary']
    """

    # -------------------------------------------------------------------------
    # Names
    # -------------------------------------------------------------------------
    project_name: Annotated[str, Field(
        default="some_app",
        description="Workspace directory and Poetry package name",
        min_length=1,
        max_length=100,
    )]
    django_project_name: str = Field(
        default="some_app_host",
        description="Django project (settings package) name",
    )
    app_name: str = Field(
        default="some_app",
        description="Django app name",
    )

    # -------------------------------------------------------------------------
    # Dependencies
    # -------------------------------------------------------------------------
    python_version: str = Field(default="^3.11")
    django_version: str = Field(default="^4.2")
    rest_framework_package: str = Field(default="djangorestframework")
    # Binary wheel, so no local PostgreSQL headers are needed
    database_driver: str = Field(default="psycopg2-binary")

    # -------------------------------------------------------------------------
    # Generated configuration
    # -------------------------------------------------------------------------
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    hooks: list[HookSpec] = Field(default_factory=_default_hooks)
    black_line_length: int = Field(default=88, ge=40, le=240)
    black_target_version: str = Field(default="py311")
    secret_key: str = Field(default="your_secret_key_here")
    debug: bool = Field(default=True)
    commit_message: str = Field(
        default=(
            "Initial commit: Set up Django REST API project "
            "with Poetry and common tools."
        ),
        min_length=1,
    )

    base_dir: Path = Field(
        default_factory=Path.cwd,
        description="Directory in which the workspace is created",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @field_validator("project_name")
    @classmethod
    def validate_project_name(cls, v: str) -> str:
        """Workspace names become a directory and a Poetry package name."""
        v = v.strip()
        if not v or "/" in v or "\\" in v or v in {".", ".."}:
            msg = f"Invalid project name '{v}'. It must be a plain directory name."
            raise ValueError(msg)
        return v

    @field_validator("django_project_name", "app_name")
    @classmethod
    def validate_module_name(cls, v: str) -> str:
        """
        Django refuses project and app names that are not importable.

        Raises
        ------
        ValueError
            If the name is not a Python identifier or is a keyword.
        """
        v = v.strip()
        if not v.isidentifier():
            msg = f"'{v}' is not a valid Python identifier."
            raise ValueError(msg)
        if keyword.iskeyword(v):
            msg = f"'{v}' is a Python reserved word and cannot be used as a module name."
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_distinct_names(self) -> ProvisionConfig:
        """The Django project and app share the workspace root."""
        if self.django_project_name == self.app_name:
            msg = (
                f"Django project and app cannot both be named '{self.app_name}'."
            )
            raise ValueError(msg)
        return self

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def workspace(self) -> Path:
        """Root of the generated project."""
        return self.base_dir / self.project_name

    @property
    def manifest_path(self) -> Path:
        return self.workspace / "pyproject.toml"

    @property
    def settings_path(self) -> Path:
        return self.workspace / self.django_project_name / "settings.py"

    @property
    def migrations_dir(self) -> Path:
        return self.workspace / self.app_name / "migrations"

    @property
    def dependencies(self) -> list[str]:
        """Dependency specifiers handed to ``poetry init``."""
        return [
            f"django{self.django_version}",
            self.rest_framework_package,
            self.database_driver,
        ]

    # -------------------------------------------------------------------------
    # Serialization Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_toml(cls, path: Path, **overrides: object) -> ProvisionConfig:
        """
        Load configuration from a TOML file.

        Keys mirror the field names; the database settings live in a
        ``[database]`` table and hooks in ``[[hooks]]`` arrays.

        Parameters
        ----------
        path : Path
            Path to the TOML configuration file.

        **overrides
            Values that take precedence over the file (e.g. ``base_dir``).

        Raises
        ------
        FileNotFoundError
            If the config file doesn't exist.
        pydantic.ValidationError
            If the config file has invalid values.
        """
        with open(path, "rb") as f:
            data = tomllib.load(f)

        data.update(overrides)
        return cls(**data)


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class StepResult:
    """
    Outcome of one step.

    Attributes
    ----------
    name : str
        Step identifier, e.g. ``"database-configure"``.

    status : StepStatus
        What happened.

    message : str
        The line printed for this step.
    """

    name: str
    status: StepStatus
    message: str = ""


@dataclass
class ProvisionResult:
    """
    Result of a provisioning run.

    ``success`` stays False when a step failed; the failing step is the last
    entry of ``steps``.
    """

    success: bool
    workspace: Path
    steps: list[StepResult] = field(default_factory=list)

    @property
    def ran(self) -> list[str]:
        """Names of steps whose action executed."""
        return [s.name for s in self.steps if s.status == StepStatus.RAN]

    @property
    def skipped(self) -> list[str]:
        """Names of steps that found their completion marker."""
        return [s.name for s in self.steps if s.status == StepStatus.SKIPPED]
