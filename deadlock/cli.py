"""Command line interface for creating projects and managing their packages."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Optional, Sequence

from deadlock.installer import InstallError, Installer
from deadlock.lockfile import LockFile, LockFileError, PackageDependency
from deadlock.pypi import PyPIClient, PyPIError
from deadlock.scaffold import create_project
from deadlock.venv import VenvError, is_python_available
from deadlock.zipextract import ZipExtractError

PROJECT_URL = "https://pypi.org/project/{}/"

_ERRORS = (InstallError, LockFileError, PyPIError, VenvError, ZipExtractError, OSError)


def _error(message: str) -> None:
    print(message, file=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="deadlock", description="DeadLock CLI")
    commands = parser.add_subparsers(dest="command")

    create = commands.add_parser("create", help="Create a new project")
    create.add_argument("name", help="Project name")

    pip = commands.add_parser("pip", help="Install Python packages from PyPI")
    pip.add_argument("packages", nargs="+", help="Package names to install")

    download = commands.add_parser(
        "download", help="Download Python packages from PyPI without installing"
    )
    download.add_argument("packages", nargs="+", help="Package names to download")

    info = commands.add_parser(
        "info", help="Get information about a Python package from PyPI"
    )
    info.add_argument("package", help="Package name to get information about")

    commands.add_parser("lock", help="Generate or update dead.lock file")
    commands.add_parser("sync", help="Install packages from dead.lock file")
    commands.add_parser("list", help="List all installed packages from dead.lock file")
    commands.add_parser("validate", help="Validate dead.lock file structure")
    return parser


def _create(args: argparse.Namespace) -> int:
    if not is_python_available():
        _error(
            "Python not available! Please download latest version from "
            "https://www.python.org/"
        )
        return 1
    create_project(args.name, ".")
    print(f"Project {args.name} created successfully!")
    return 0


def _pip(args: argparse.Namespace) -> int:
    if not is_python_available():
        _error("Python is not available. Please install Python and add it to your PATH.")
        return 1
    print("Installing packages from PyPI: " + " ".join(args.packages))
    try:
        for package in Installer().install_many(args.packages):
            print(f"Successfully installed {package.name}")
    except (InstallError, LockFileError) as exc:
        _error(str(exc))
        _error("Failed to install packages.")
        return 1
    print("Successfully installed packages!")
    return 0


def _download(args: argparse.Namespace) -> int:
    print("Downloading packages from PyPI: " + " ".join(args.packages))
    installer = Installer()
    success = True
    for package in args.packages:
        try:
            installer.download(package)
        except (InstallError, LockFileError) as exc:
            _error(str(exc))
            _error(f"Failed to download package: {package}")
            success = False
    if not success:
        _error("Failed to download some packages.")
        return 1
    print("Successfully downloaded all packages!")
    return 0


def _info(args: argparse.Namespace) -> int:
    print(f"Getting information for package: {args.package}")
    try:
        version = PyPIClient().get_latest_version(args.package)
    except PyPIError as exc:
        _error(str(exc))
        _error(f"Failed to get information for package: {args.package}")
        return 1
    print(f"Package: {args.package}")
    print(f"Latest version: {version}")
    print(f"PyPI URL: {PROJECT_URL.format(args.package)}")
    return 0


def _lock(args: argparse.Namespace) -> int:
    print("Generating/updating dead.lock file...")
    try:
        LockFile(".").generate()
    except LockFileError as exc:
        _error(str(exc))
        _error("Failed to generate dead.lock file.")
        return 1
    print("Successfully generated dead.lock file!")
    return 0


def _sync(args: argparse.Namespace) -> int:
    print("Syncing packages from dead.lock file...")
    try:
        Installer().sync()
    except (InstallError, LockFileError) as exc:
        _error(str(exc))
        _error("Failed to sync packages from dead.lock file.")
        return 1
    print("Successfully synced all packages!")
    return 0


def _describe(package: PackageDependency) -> str:
    lines = [f"{package.name} @ {package.version}" + (" (dev)" if package.is_dev else "")]
    lines.append(f"  Source: {package.source}")
    lines.append(f"  Install Date: {package.install_date}")
    if package.dependencies:
        lines.append("  Dependencies: " + ", ".join(package.dependencies))
    return "\n".join(lines) + "\n"


def _list(args: argparse.Namespace) -> int:
    print("Loading packages from dead.lock file...")
    try:
        packages = LockFile(".").load()
    except LockFileError as exc:
        _error(str(exc))
        _error("Failed to load dead.lock file.")
        return 1
    if not packages:
        print("No packages found in dead.lock file.")
        return 0
    print("\nInstalled packages:")
    print("===================")
    for package in packages:
        print(_describe(package))
    return 0


def _validate(args: argparse.Namespace) -> int:
    print("Validating dead.lock file...")
    try:
        LockFile(".").validate()
    except LockFileError as exc:
        _error(str(exc))
        _error("dead.lock file validation failed.")
        return 1
    print("dead.lock file is valid!")
    return 0


_COMMANDS: dict[str, Callable[[argparse.Namespace], int]] = {
    "create": _create,
    "pip": _pip,
    "download": _download,
    "info": _info,
    "lock": _lock,
    "sync": _sync,
    "list": _list,
    "validate": _validate,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line interface; returns the exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger = logging.getLogger("deadlock")
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        return _COMMANDS[args.command](args)
    except _ERRORS as exc:
        _error(f"Error: {exc}")
        return 1
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)


if __name__ == "__main__":
    sys.exit(main())