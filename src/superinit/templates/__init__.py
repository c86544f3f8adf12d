"""
superinit.templates - Jinja2 Template Files
===========================================

Templates for the files the config-emit and hooks-setup steps write into a
new workspace. They are rendered by ``superinit.steps.render_template``.

Template Naming Convention
--------------------------
- Templates end with `.j2` extension
- Output filename = template name without `.j2`, prefixed with a dot
  (`gitignore.j2` → `.gitignore`, `env.j2` → `.env`)

Available Templates
-------------------
- gitignore.j2: Python, Django, macOS, VS Code and Poetry ignore patterns
- pylintrc.j2: Disables missing-docstring checks
- isort.cfg.j2: Black-compatible import sorting
- env.j2: DEBUG, SECRET_KEY and DATABASE_URL placeholders
- pre-commit-config.yaml.j2: pylint, black and isort hooks

Template Context
----------------
    config : ProvisionConfig
        Full provisioning configuration object
"""

# Templates are loaded dynamically by Jinja2's PackageLoader.
