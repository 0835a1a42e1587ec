"""Reading and writing of the ``dead.lock`` file."""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Union

from deadlock.pypi import current_platform

log = logging.getLogger(__name__)

PathLike = Union[str, Path]
DependencyResolver = Callable[[str, str], list]

LOCK_FILE_NAME = "dead.lock"
LOCK_FORMAT_VERSION = "1.0"
DEADLOCK_VERSION = "1.0.0"


@dataclass
class PackageDependency:
    """One package entry of the lock file."""

    name: str = ""
    version: str = ""
    source: str = "pypi"
    install_date: str = ""
    dependencies: list[str] = field(default_factory=list)
    hash: str = ""
    is_dev: bool = False


class LockFileError(Exception):
    """Raised when the lock file is missing, malformed or cannot be written."""


def lock_file_path(project_path: PathLike = ".") -> Path:
    """Return the path of the lock file inside a project directory."""
    return Path(project_path) / LOCK_FILE_NAME


def current_timestamp() -> str:
    """Return the local time in the ``Wed Jun 30 21:49:08 1993`` form."""
    return time.ctime()


def package_hash(package_name: str, version: str) -> str:
    """Return a stable decimal hash of a package name and version."""
    digest = hashlib.sha256((package_name + version).encode("utf-8")).digest()
    return str(int.from_bytes(digest[:8], "little"))


def _value(info: dict, key: str, default: Any, kind: type) -> Any:
    value = info.get(key, default)
    valid = type(value) is bool if kind is bool else isinstance(value, kind)
    if not valid:
        raise LockFileError(f"Invalid type for '{key}'")
    return value


def _package_from_json(name: str, info: Any) -> PackageDependency:
    if not isinstance(info, dict):
        raise LockFileError(f"Invalid package entry: {name}")
    dependencies = info.get("dependencies")
    names: list[str] = []
    if isinstance(dependencies, list):
        for dependency in dependencies:
            if not isinstance(dependency, str):
                raise LockFileError(f"Invalid dependency in package entry: {name}")
            names.append(dependency)
    return PackageDependency(
        name=name,
        version=_value(info, "version", "", str),
        source=_value(info, "source", "pypi", str),
        install_date=_value(info, "install_date", "", str),
        dependencies=names,
        hash=_value(info, "hash", "", str),
        is_dev=_value(info, "is_dev", False, bool),
    )


def _package_to_json(package: PackageDependency) -> dict[str, Any]:
    return {
        "version": package.version,
        "source": package.source,
        "install_date": package.install_date,
        "hash": package.hash,
        "is_dev": package.is_dev,
        "dependencies": list(package.dependencies),
    }


class LockFile:
    """The packages recorded in a project's ``dead.lock`` file."""

    def __init__(
        self,
        project_path: PathLike = ".",
        dependency_resolver: Optional[DependencyResolver] = None,
    ) -> None:
        self.path = lock_file_path(project_path)
        self._resolve = dependency_resolver
        self._packages: dict[str, PackageDependency] = {}

    def _dependencies_of(self, package_name: str, version: str) -> list[str]:
        if self._resolve is None:
            return []
        return list(self._resolve(package_name, version))

    def _document(self) -> dict[str, Any]:
        return {
            "version": LOCK_FORMAT_VERSION,
            "generated": current_timestamp(),
            "packages": {
                name: _package_to_json(self._packages[name])
                for name in sorted(self._packages)
            },
            "metadata": {
                "python_version": "",
                "platform": current_platform(),
                "deadlock_version": DEADLOCK_VERSION,
            },
        }

    def _write(self, document: dict[str, Any]) -> None:
        content = json.dumps(document, indent=4, sort_keys=True, ensure_ascii=False)
        if self.path.is_file():
            backup = self.path.with_name(self.path.name + ".backup")
            try:
                shutil.copyfile(self.path, backup)
            except OSError:
                log.warning("Failed to create backup file: %s", backup)
        try:
            self.path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise LockFileError(f"Failed to write to dead.lock file: {self.path}") from exc

    def _read(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError:
            return ""

    def generate(self) -> Path:
        """Write a lock file with no packages; returns its path."""
        document = self._document()
        document["packages"] = {}
        self._write(document)
        log.info("Generated dead.lock file at: %s", self.path)
        return self.path

    def load(self) -> list[PackageDependency]:
        """Load the lock file, creating an empty one when there is none."""
        content = self._read()
        if not content:
            log.info("No dead.lock file found. Creating new one...")
            self.generate()
            return self.packages()

        try:
            document = json.loads(content)
        except ValueError as exc:
            raise LockFileError(f"Error parsing dead.lock file: {exc}") from exc
        if not isinstance(document, dict) or not isinstance(document.get("packages"), dict):
            raise LockFileError("Invalid dead.lock format: missing packages section")

        self._packages = {
            name: _package_from_json(name, info)
            for name, info in document["packages"].items()
        }
        log.info("Loaded %d packages from dead.lock file", len(self._packages))
        return self.packages()

    def update(
        self,
        package_name: str,
        version: str,
        source: str = "pypi",
        is_dev: bool = False,
    ) -> PackageDependency:
        """Record a package and rewrite the lock file."""
        package = PackageDependency(
            name=package_name,
            version=version,
            source=source,
            install_date=current_timestamp(),
            dependencies=self._dependencies_of(package_name, version),
            hash=package_hash(package_name, version),
            is_dev=is_dev,
        )
        self._packages[package_name] = package
        self._write(self._document())
        log.info("Updated dead.lock file with package: %s@%s", package_name, version)
        return package

    def remove(self, package_name: str) -> None:
        """Drop a package from the lock file and rewrite it."""
        if package_name not in self._packages:
            raise LockFileError(f"Package {package_name} not found in dead.lock file")
        del self._packages[package_name]
        self._write(self._document())
        log.info("Removed package %s from dead.lock file", package_name)

    def validate(self) -> int:
        """Check the lock file on disk; returns the number of package entries."""
        content = self._read()
        if not content:
            raise LockFileError(f"No dead.lock file found at: {self.path}")
        try:
            document = json.loads(content)
        except ValueError as exc:
            raise LockFileError(f"Error parsing dead.lock file: {exc}") from exc
        if (
            not isinstance(document, dict)
            or "version" not in document
            or "packages" not in document
        ):
            raise LockFileError("Invalid dead.lock file structure")

        packages = document["packages"]
        if not isinstance(packages, dict):
            raise LockFileError("Invalid dead.lock file structure")
        for name, info in packages.items():
            if not isinstance(info, dict):
                raise LockFileError(f"Invalid package entry: {name}")
            version = _value(info, "version", "", str)
            _value(info, "source", "", str)
            _value(info, "hash", "", str)
            if not name or not version:
                raise LockFileError(f"Invalid package entry: {name}")
        return len(packages)

    def packages(self) -> list[PackageDependency]:
        """Return the recorded packages ordered by name."""
        return [self._packages[name] for name in sorted(self._packages)]

    def get(self, package_name: str) -> Optional[PackageDependency]:
        """Return the entry for a package, or ``None`` if it is not recorded."""
        return self._packages.get(package_name)

    def __contains__(self, package_name: object) -> bool:
        return package_name in self._packages