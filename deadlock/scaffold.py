"""Generation of the files of a new Python project."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Union

log = logging.getLogger(__name__)

PathLike = Union[str, Path]

_GITIGNORE_LINES = (
    "# Ignore Python virtual environments",
    "venv/",
    ".env",
    ".venv",
    "env/",
    "venv/",
    "ENV/",
    "env.bak/",
    "venv.bak/",
    "",
    "# Ignore python cache",
    "__pycache__/",
    "*.py[cod]",
    "*$py.class",
    "",
    "# Ignore C shared objects",
    ".so",
    "",
    "# Ignore Distribution / Packaging items",
    ".Python",
    "build/",
    "develop-eggs/",
    "dist/",
    "downloads/",
    "eggs/",
    ".eggs/",
    "lib/",
    "lib64/",
    "parts/",
    "sdist/",
    "var/",
    "wheels/",
    "share/python-wheels/",
    "*.egg-info/",
    ".installed.cfg",
    "*.egg",
    "MANIFEST",
)


def _notebook() -> dict[str, Any]:
    return {
        "cells": [
            {
                "cell_type": "markdown",
                "metadata": {},
                "source": ["# Hello World"],
            }
        ],
        "metadata": {
            "kernelspec": {
                "display_name": "Python 3",
                "language": "python",
                "name": "python3",
            },
            "language_info": {
                "codemirror_mode": {"name": "ipython", "version": 3},
                "file_extension": ".py",
                "mimetype": "text/x-python",
                "name": "python",
                "nbconvert_exporter": "python",
                "pygments_lexer": "ipython3",
                "version": "3.11",
            },
            "orig_nbformat": 4,
        },
        "nbformat": 4,
        "nbformat_minor": 2,
    }


def notebook_content() -> str:
    """Return the JSON text of a notebook holding one markdown cell."""
    return json.dumps(_notebook(), indent=4, sort_keys=True)


def pyproject_content(project_name: str) -> str:
    """Return the text of a minimal ``pyproject.toml``."""
    return (
        "[project]\n"
        f'name = "{project_name}"\n'
        'version = "0.0.1"\n'
        'description = "Add project description"\n'
        'readme = "README.md"\n'
    )


def readme_content(project_name: str) -> str:
    """Return the text of the project's README."""
    return f"# {project_name}\n\nAdd project description here.\n"


def gitignore_content() -> str:
    """Return the text of a ``.gitignore`` suited to Python projects."""
    return "\n".join(_GITIGNORE_LINES) + "\n"


def create_project(project_name: str, base_dir: PathLike = ".") -> list[Path]:
    """Create the project directory and its starter files in ``base_dir``.

    Returns the paths of the files written.
    """
    base = Path(base_dir)
    (base / project_name).mkdir(parents=True, exist_ok=True)

    files = {
        base / f"{project_name}.ipynb": notebook_content(),
        base / f"{project_name}.py": 'print("Hello World!")',
        base / "pyproject.toml": pyproject_content(project_name),
        base / ".gitignore": gitignore_content(),
        base / "README.md": readme_content(project_name),
    }
    for path, content in files.items():
        path.write_text(content, encoding="utf-8")
        log.info("Wrote %s", path)
    return list(files)