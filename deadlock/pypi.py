"""Access to the PyPI JSON API and helpers for reading its answers."""

from __future__ import annotations

import json
import sys
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Iterable, Mapping, Optional

DEFAULT_BASE_URL = "https://pypi.org/pypi"
USER_AGENT = "DeadLock/1.0"

_VERSION_ERROR = "error retrieving version. Retry or report an issue on GitHub."

_UNIVERSAL_MARKERS = ("py3-none-any.whl", "py2.py3-none-any.whl")
_WHEEL_MARKERS = {
    "windows": ("win32.whl", "win_amd64.whl") + _UNIVERSAL_MARKERS,
    "macos": ("macosx_", "universal2.whl") + _UNIVERSAL_MARKERS,
    "linux": ("linux_x86_64.whl", "linux_aarch64.whl") + _UNIVERSAL_MARKERS,
}
_PLATFORM_LABELS = {"windows": "Windows", "macos": "macOS", "linux": "Linux"}

_REQUIREMENT_STOPS = " (;><="


class PyPIError(Exception):
    """Raised when PyPI cannot be queried or answers with unusable data."""


def requirement_name(requirement: str) -> str:
    """Return the package name of a ``requires_dist`` entry."""
    end = len(requirement)
    for stop in _REQUIREMENT_STOPS:
        position = requirement.find(stop)
        if position != -1:
            end = min(end, position)
    return requirement[:end]


def latest_version_from(data: Mapping[str, Any]) -> str:
    """Extract the version from a PyPI package document."""
    if "info" in data:
        info = data["info"]
        if not isinstance(info, Mapping) or "version" not in info:
            raise PyPIError(_VERSION_ERROR)
        version = info["version"]
    elif "version" in data:
        version = data["version"]
    else:
        raise PyPIError(_VERSION_ERROR)
    if not isinstance(version, str):
        raise PyPIError(_VERSION_ERROR)
    return version


def dependencies_from(data: Mapping[str, Any]) -> list[str]:
    """Return the names of the packages listed in ``info.requires_dist``."""
    info = data.get("info")
    if not isinstance(info, Mapping):
        return []
    requirements = info.get("requires_dist") or []
    names = []
    for requirement in requirements:
        if requirement is None:
            continue
        name = requirement_name(str(requirement))
        if name:
            names.append(name)
    return names


def current_platform() -> str:
    """Return ``windows``, ``macos`` or ``linux`` for the running system."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    return "linux"


def select_wheel(
    urls: Iterable[Mapping[str, Any]], platform_name: Optional[str] = None
) -> str:
    """Return the download URL of the first wheel that suits the platform."""
    platform_name = platform_name or current_platform()
    try:
        markers = _WHEEL_MARKERS[platform_name]
    except KeyError:
        raise ValueError(f"Unknown platform: {platform_name}") from None

    entries = list(urls)
    if not entries:
        raise PyPIError("No download URLs available for this package")

    for entry in entries:
        if "filename" not in entry or "url" not in entry:
            continue
        filename = str(entry["filename"])
        if any(marker in filename for marker in markers):
            return str(entry["url"])
    raise PyPIError(
        f"No {_PLATFORM_LABELS[platform_name]} compatible wheel found for this package"
    )


class PyPIClient:
    """A small client for the PyPI JSON API."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _fetch(self, *parts: str) -> dict[str, Any]:
        path = "/".join(urllib.parse.quote(part, safe="") for part in parts)
        url = f"{self.base_url}/{path}/json"
        request = urllib.request.Request(
            url, method="GET", headers={"User-Agent": USER_AGENT}
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                body = response.read()
        except (urllib.error.URLError, OSError) as exc:
            raise PyPIError(f"Failed to query PyPI: {exc}") from exc
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise PyPIError(f"error parsing json: {exc}") from exc
        if not isinstance(data, dict):
            raise PyPIError("error parsing json: expected an object")
        return data

    def get_package_info(self, package_name: str) -> dict[str, Any]:
        """Return the JSON document describing a package."""
        return self._fetch(package_name)

    def get_release_info(self, package_name: str, version: str) -> dict[str, Any]:
        """Return the JSON document describing one release of a package."""
        return self._fetch(package_name, version)

    def get_latest_version(self, package_name: str) -> str:
        """Return the latest released version of a package."""
        return latest_version_from(self.get_package_info(package_name))

    def get_package_dependencies(self, package_name: str) -> list[str]:
        """Return the names of the packages the package depends on."""
        return dependencies_from(self.get_package_info(package_name))