"""Installation of packages from PyPI into a project's virtual environment."""

from __future__ import annotations

import logging
import shutil
import urllib.error
import urllib.request
from pathlib import Path
from typing import Iterable, Optional, Union

from deadlock.lockfile import LockFile, LockFileError, PackageDependency
from deadlock.pypi import USER_AGENT, PyPIClient, PyPIError, select_wheel
from deadlock.venv import (
    VenvError,
    create_virtual_environment,
    extract_wheel_to_venv,
    verify_import,
)
from deadlock.zipextract import ZipExtractError

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


class InstallError(Exception):
    """Raised when a package cannot be downloaded or installed."""


class Installer:
    """Downloads wheels, installs them into a venv and records them in the lock file."""

    def __init__(
        self,
        client: Optional[PyPIClient] = None,
        lock_file: Optional[LockFile] = None,
        downloads_dir: PathLike = "downloads",
        venv_path: PathLike = "venv",
    ) -> None:
        self.client = client or PyPIClient()
        self.lock_file = lock_file or LockFile(".", dependency_resolver=self._dependencies)
        self.downloads_dir = Path(downloads_dir)
        self.venv_path = Path(venv_path)

    def _dependencies(self, package_name: str, version: str) -> list[str]:
        try:
            return self.client.get_package_dependencies(package_name)
        except PyPIError as exc:
            log.warning("Error parsing dependencies for %s: %s", package_name, exc)
            return []

    def _download(self, url: str) -> Path:
        self.downloads_dir.mkdir(parents=True, exist_ok=True)
        target = self.downloads_dir / url.rsplit("/", 1)[-1]
        log.info("Downloading %s...", target.name)
        request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        try:
            with urllib.request.urlopen(request) as response, target.open("wb") as out:
                code = response.getcode()
                if code is not None and code != 200:
                    raise InstallError(f"Failed to download wheel, HTTP code: {code}")
                shutil.copyfileobj(response, out)
        except (urllib.error.URLError, OSError) as exc:
            raise InstallError(f"Failed to download wheel: {exc}") from exc
        log.info("Download completed successfully!")
        return target

    def install(self, package: str, version: str) -> PackageDependency:
        """Install one release of a package and record it in the lock file."""
        try:
            release = self.client.get_release_info(package, version)
            if "urls" not in release:
                raise PyPIError("Cannot find valid url to download package")
            wheel = self._download(select_wheel(release["urls"]))
            create_virtual_environment(self.venv_path)
            extract_wheel_to_venv(wheel, self.venv_path)
            verify_import(package, self.venv_path)
        except (PyPIError, ZipExtractError, VenvError) as exc:
            raise InstallError(f"Failed to install {package}: {exc}") from exc
        log.info("Package %s successfully installed and verified!", package)
        return self.lock_file.update(package, version)

    def _latest(self, package: str) -> str:
        try:
            return self.client.get_latest_version(package)
        except PyPIError as exc:
            raise InstallError(
                f"Failed to get latest version for package: {package}"
            ) from exc

    def install_many(self, packages: Iterable[str]) -> list[PackageDependency]:
        """Install the latest release of each package, stopping at the first failure."""
        names = list(packages)
        if not names:
            raise InstallError("No packages specified for installation.")
        return [self.install(name, self._latest(name)) for name in names]

    def download(self, package: str) -> PackageDependency:
        """Install the latest release of a package."""
        return self.install(package, self._latest(package))

    def sync(self) -> list[PackageDependency]:
        """Install every package recorded in the lock file.

        All packages are attempted; if any fail, an error naming them is raised.
        """
        try:
            recorded = self.lock_file.load()
        except LockFileError as exc:
            raise InstallError(f"Failed to load dead.lock file: {exc}") from exc

        installed = []
        failed = []
        for package in recorded:
            log.info("Installing %s@%s...", package.name, package.version)
            try:
                installed.append(self.install(package.name, package.version))
            except InstallError as exc:
                log.error("Failed to install package: %s (%s)", package.name, exc)
                failed.append(package.name)
        if failed:
            raise InstallError(f"Failed to install packages: {', '.join(failed)}")
        return installed