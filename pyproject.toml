[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "deadlock"
version = "1.0.0"
description = "Scaffold Python projects, install PyPI wheels into a local venv and record them in a dead.lock file"
requires-python = ">=3.10"
dependencies = []
keywords = ["pypi", "wheel", "lockfile", "virtualenv", "package-manager", "scaffold"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Software Distribution",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
deadlock = "deadlock.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["deadlock"]

[tool.pytest.ini_options]
addopts = "-ra"
