"""
superinit test suite
====================

No test here needs git, poetry or Django installed: the pipeline runs
against ``conftest.FakeRunner``, which reproduces the files those tools
create. Only test_runner.py spawns real processes, using the current
interpreter.

Test Modules
------------
- test_models.py: Configuration models and TOML loading
- test_editor.py: Settings patching primitives
- test_runner.py: Subprocess execution and exit statuses
- test_steps.py: Each provisioning step and the bundled templates
- test_provisioner.py: End-to-end runs, idempotence and fail-fast
- test_tasks.py: Development task runner
- test_cli.py: Command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Run specific module
    pytest tests/test_steps.py

    # Run specific test class
    pytest tests/test_provisioner.py::TestIdempotence
"""
