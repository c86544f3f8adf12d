"""
superinit - Django REST API Project Bootstrapper
================================================

A CLI tool that provisions a Django REST API backend managed with Poetry:
git repository, Poetry manifest, Django project and app, PostgreSQL
settings, lint/format configuration, pre-commit hooks and an initial commit.

Features
--------
- **Rerunnable**: every step checks for its own completion marker and skips
- **Fail-fast**: the first failing tool stops the run with its exit code
- **Configurable**: defaults can be overridden from a TOML file
- **Task runner**: lint, test, docs and tooling tasks for this repository

Quick Start
-----------
```bash
pip install superinit
superinit
```

Example
-------
>>> from superinit import ProvisionConfig, provision
>>> result = provision(ProvisionConfig(project_name="blog"))
>>> [step.status.value for step in result.steps]
['ran', 'ran', 'ran', 'ran', 'ran', 'ran', 'ran', 'ran']

Architecture
------------
- ``cli``: Typer-based command line interface
- ``provisioner``: Runs the step table in order and reports progress
- ``steps``: Completion predicates and actions for each step
- ``editor``: Pattern replacement and anchor insertion for settings.py
- ``runner``: Subprocess execution that raises on failure
- ``tasks``: Named development tasks
- ``models``: Pydantic models for configuration
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__author__ = "Technical-1"
__license__ = "MIT"

# =============================================================================
# Public API Exports
# =============================================================================

from superinit.errors import CommandError, PreconditionError, SuperinitError
from superinit.models import ProvisionConfig, ProvisionResult, StepStatus
from superinit.provisioner import plan_provisioning, provision


__all__ = [
    "CommandError",
    "PreconditionError",
    # Configuration models
    "ProvisionConfig",
    "ProvisionResult",
    "StepStatus",
    "SuperinitError",
    # Version info
    "__version__",
    # Core functions
    "plan_provisioning",
    "provision",
]
