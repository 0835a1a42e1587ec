# deadlock

A small command-line tool for Python projects. It creates starter files for a
new project, installs packages straight from PyPI wheels into a local `venv`,
and records what was installed in a `dead.lock` file that can be listed,
validated and replayed.

It uses only the standard library.

## Installation

```
pip install .
```

## Commands

```
deadlock create NAME          # create NAME/ and write NAME.ipynb, NAME.py, pyproject.toml, README.md, .gitignore
deadlock pip PKG [PKG ...]    # install the latest release of each package into ./venv, stopping at the first failure
deadlock download PKG [...]   # install the latest release of each package, trying every one
deadlock info PKG             # show the latest version of a package on PyPI
deadlock lock                 # write a fresh, empty dead.lock in the current directory
deadlock sync                 # reinstall every package listed in dead.lock
deadlock list                 # show the packages recorded in dead.lock
deadlock validate             # check the structure of dead.lock
```

All commands work in the current directory. `create` and `pip` first check
that a `python` command is on the search path. Progress messages go to
standard error; the exit status is 0 on success and 1 on failure.

`create` makes an empty directory named after the project and writes the
starter files next to it, in the current directory.

Installing a package fetches the release's document from PyPI and picks the
first wheel that suits the running platform (Windows, macOS or Linux) or a
pure-Python `py3-none-any` / `py2.py3-none-any` wheel. The wheel is saved in
`downloads/`, a virtual environment is created at `venv/` if there is none,
the wheel is unpacked into its `site-packages`, the package is imported with
the environment's interpreter as a check, and the package is then recorded in
`dead.lock`. Only stored and deflated archive entries are supported.

`list` creates an empty `dead.lock` when none exists.

## The dead.lock file

`dead.lock` is JSON, written with its keys in sorted order:

```json
{
    "generated": "Mon Jan  1 00:00:00 2024",
    "metadata": {
        "deadlock_version": "1.0.0",
        "platform": "linux",
        "python_version": ""
    },
    "packages": {
        "requests": {
            "dependencies": ["charset-normalizer", "idna", "urllib3", "certifi"],
            "hash": "...",
            "install_date": "Mon Jan  1 00:00:00 2024",
            "is_dev": false,
            "source": "pypi",
            "version": "2.32.3"
        }
    },
    "version": "1.0"
}
```

`dependencies` holds the names taken from the package's `requires_dist` on
PyPI. `hash` is a decimal number derived from the name and version. Before
each write, an existing file is copied to `dead.lock.backup`.

## Using it from Python

```python
from deadlock.lockfile import LockFile

lock = LockFile(".")
for package in lock.load():
    print(package.name, package.version)
```

- `deadlock.lockfile.LockFile` loads, generates, updates, removes and
  validates entries; entries are `PackageDependency` dataclasses.
- `deadlock.pypi.PyPIClient` queries the PyPI JSON API
  (`get_package_info`, `get_release_info`, `get_latest_version`,
  `get_package_dependencies`); `select_wheel` picks a wheel URL.
- `deadlock.installer.Installer` ties the client, the virtual environment and
  the lock file together (`install`, `install_many`, `download`, `sync`).
- `deadlock.venv` creates environments and unpacks wheels into them;
  `deadlock.zipextract` extracts ZIP archives.
- `deadlock.scaffold.create_project` writes the starter files.

Errors are raised as `InstallError`, `LockFileError`, `PyPIError`,
`VenvError` and `ZipExtractError`.

## What it does not do

- Dependencies of a package are recorded in `dead.lock` but not installed.
- Only wheels are installed; source distributions are not built.
- There is no command to uninstall a package; `LockFile.remove` only drops
  the entry from `dead.lock`.
- `python_version` in the lock file's metadata is always left empty.