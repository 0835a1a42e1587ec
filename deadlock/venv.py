"""Virtual environments: creation, wheel installation and import checks."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Union

from deadlock.pypi import current_platform
from deadlock.zipextract import extract_zip_file, wheel_to_zip

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


class VenvError(Exception):
    """Raised when a virtual environment cannot be created or used."""


def is_python_available() -> bool:
    """Return whether a ``python`` command is on the search path."""
    return shutil.which("python") is not None


def venv_python(venv_path: PathLike) -> Path:
    """Return the path of the interpreter inside a virtual environment."""
    venv = Path(venv_path)
    if current_platform() == "windows":
        return venv / "Scripts" / "python.exe"
    return venv / "bin" / "python"


def site_packages_dir(venv_path: PathLike) -> Path:
    """Return the ``site-packages`` directory of a virtual environment."""
    venv = Path(venv_path)
    if current_platform() == "windows":
        return venv / "Lib" / "site-packages"
    lib = venv / "lib"
    if lib.is_dir():
        for entry in sorted(lib.iterdir()):
            if entry.name.startswith("python"):
                return entry / "site-packages"
    return lib / "python3" / "site-packages"


def _exists(venv: Path) -> bool:
    if current_platform() == "windows":
        return site_packages_dir(venv).exists()
    return venv_python(venv).exists()


def create_virtual_environment(venv_path: PathLike) -> bool:
    """Create a virtual environment unless one exists.

    Returns ``True`` if one was created and ``False`` if it already existed.
    """
    venv = Path(venv_path)
    if _exists(venv):
        log.info("Virtual environment already exists at: %s", venv)
        return False

    interpreter = "python" if current_platform() == "windows" else "python3"
    log.info("Creating virtual environment: %s", venv)
    try:
        result = subprocess.run([interpreter, "-m", "venv", str(venv)])
    except OSError as exc:
        raise VenvError(f"Failed to create virtual environment: {exc}") from exc
    if result.returncode != 0 or not _exists(venv):
        raise VenvError("Failed to create virtual environment")
    return True


def extract_wheel_to_venv(wheel_path: PathLike, venv_path: PathLike) -> Path:
    """Unpack a wheel into the environment's ``site-packages``; returns that path."""
    zip_path = wheel_to_zip(wheel_path)
    site_packages = site_packages_dir(venv_path)
    with tempfile.TemporaryDirectory(prefix="temp_extract") as temp_dir:
        extract_zip_file(zip_path, temp_dir)
        log.info("Copying package contents to site-packages...")
        try:
            site_packages.mkdir(parents=True, exist_ok=True)
            shutil.copytree(temp_dir, site_packages, dirs_exist_ok=True)
        except OSError as exc:
            raise VenvError("Failed to copy package contents to site-packages") from exc
    zip_path.unlink(missing_ok=True)
    log.info("Package successfully extracted to virtual environment!")
    return site_packages


def verify_import(package_name: str, venv_path: PathLike) -> None:
    """Import the package with the environment's interpreter; raise if it fails."""
    command = [
        str(venv_python(venv_path)),
        "-c",
        f"import {package_name}; print('Package {package_name} imported successfully')",
    ]
    log.info("Testing package installation: %s", package_name)
    try:
        result = subprocess.run(command)
    except OSError as exc:
        raise VenvError(f"Failed to run the environment's interpreter: {exc}") from exc
    if result.returncode != 0:
        raise VenvError(
            "Package installation verification failed. The package might not be "
            "properly installed or importable."
        )