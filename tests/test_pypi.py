import io
import json
import sys
import urllib.error
from unittest import mock

import pytest

from deadlock.pypi import (
    PyPIClient,
    PyPIError,
    current_platform,
    dependencies_from,
    latest_version_from,
    requirement_name,
    select_wheel,
)


@pytest.mark.parametrize(
    "requirement, expected",
    [
        ("requests (>=2.0)", "requests"),
        ("idna>=2.5", "idna"),
        ("charset-normalizer<4,>=2", "charset-normalizer"),
        ("urllib3; extra == 'socks'", "urllib3"),
        ("pkg==1.0", "pkg"),
        ("certifi", "certifi"),
        (">=1.0", ""),
    ],
)
def test_requirement_name(requirement, expected):
    assert requirement_name(requirement) == expected


def test_latest_version_from_info():
    assert latest_version_from({"info": {"version": "2.31.0"}}) == "2.31.0"


def test_latest_version_from_top_level():
    assert latest_version_from({"version": "1.2"}) == "1.2"


@pytest.mark.parametrize("data", [{}, {"info": {}}, {"info": {"version": 3}}])
def test_latest_version_errors(data):
    with pytest.raises(PyPIError, match="error retrieving version"):
        latest_version_from(data)


def test_dependencies_from():
    data = {"info": {"requires_dist": ["idna (<4,>=2.5)", None, "certifi>=2017", ";x"]}}
    assert dependencies_from(data) == ["idna", "certifi"]


@pytest.mark.parametrize("data", [{}, {"info": {}}, {"info": {"requires_dist": None}}])
def test_dependencies_absent(data):
    assert dependencies_from(data) == []


@pytest.mark.parametrize(
    "value, expected",
    [("win32", "windows"), ("darwin", "macos"), ("linux", "linux")],
)
def test_current_platform(value, expected):
    with mock.patch.object(sys, "platform", value):
        assert current_platform() == expected


URLS = [
    {"filename": "demo-1.0.tar.gz", "url": "https://files.example.com/demo-1.0.tar.gz"},
    {"filename": "demo-1.0-cp311-win_amd64.whl", "url": "https://files.example.com/win"},
    {"filename": "demo-1.0-cp311-macosx_11_0_arm64.whl", "url": "https://files.example.com/mac"},
    {"filename": "demo-1.0-cp311-linux_x86_64.whl", "url": "https://files.example.com/linux"},
    {"filename": "demo-1.0-py3-none-any.whl", "url": "https://files.example.com/any"},
]


@pytest.mark.parametrize(
    "platform_name, expected",
    [
        ("windows", "https://files.example.com/win"),
        ("macos", "https://files.example.com/mac"),
        ("linux", "https://files.example.com/linux"),
    ],
)
def test_select_wheel(platform_name, expected):
    assert select_wheel(URLS, platform_name) == expected


def test_select_wheel_universal_fallback():
    urls = [URLS[0], URLS[4]]
    assert select_wheel(urls, "linux") == "https://files.example.com/any"


def test_select_wheel_empty():
    with pytest.raises(PyPIError, match="No download URLs"):
        select_wheel([], "linux")


def test_select_wheel_no_compatible():
    with pytest.raises(PyPIError, match="No Linux compatible wheel"):
        select_wheel([URLS[0], URLS[1]], "linux")


def test_select_wheel_unknown_platform():
    with pytest.raises(ValueError):
        select_wheel(URLS, "plan9")


def _response(payload):
    return io.BytesIO(json.dumps(payload).encode())


def test_client_latest_version():
    client = PyPIClient("https://pypi.example.com/pypi")
    with mock.patch("urllib.request.urlopen", return_value=_response({"info": {"version": "4.5"}})) as opened:
        assert client.get_latest_version("demo") == "4.5"
    request = opened.call_args.args[0]
    assert request.get_header("User-agent") == "DeadLock/1.0"
    assert request.full_url.startswith("https://pypi.example.com/pypi/demo")


def test_client_release_info_url():
    client = PyPIClient("https://pypi.example.com/pypi")
    payload = {"urls": URLS}
    with mock.patch("urllib.request.urlopen", return_value=_response(payload)) as opened:
        assert client.get_release_info("demo", "1.0") == payload
    assert opened.call_args.args[0].full_url == "https://pypi.example.com/pypi/demo/1.0/json"


def test_client_dependencies():
    client = PyPIClient()
    payload = {"info": {"requires_dist": ["idna>=2", "certifi"]}}
    with mock.patch("urllib.request.urlopen", return_value=_response(payload)):
        assert client.get_package_dependencies("demo") == ["idna", "certifi"]


def test_client_network_error():
    client = PyPIClient()
    with mock.patch("urllib.request.urlopen", side_effect=urllib.error.URLError("down")):
        with pytest.raises(PyPIError, match="Failed to query PyPI"):
            client.get_package_info("demo")


def test_client_bad_json():
    client = PyPIClient()
    with mock.patch("urllib.request.urlopen", return_value=io.BytesIO(b"Not Found")):
        with pytest.raises(PyPIError, match="error parsing json"):
            client.get_package_info("demo")