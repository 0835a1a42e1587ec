import json
import time

import pytest

from deadlock.lockfile import (
    LockFile,
    LockFileError,
    PackageDependency,
    current_timestamp,
    lock_file_path,
    package_hash,
)
from deadlock.pypi import current_platform


def _resolver(calls=None):
    def resolve(name, version):
        if calls is not None:
            calls.append((name, version))
        return ["idna", "certifi"]

    return resolve


def test_lock_file_path(tmp_path):
    assert lock_file_path(tmp_path) == tmp_path / "dead.lock"


def test_current_timestamp_is_ctime_format():
    stamp = current_timestamp()
    parsed = time.strptime(stamp, "%a %b %d %H:%M:%S %Y")
    assert parsed.tm_year >= 2000
    assert not stamp.endswith("\n")


def test_package_hash_is_stable_digits():
    first = package_hash("requests", "2.31.0")
    assert first == package_hash("requests", "2.31.0")
    assert first.isdigit()
    assert first != package_hash("requests", "2.31.1")


def test_generate_writes_initial_structure(tmp_path):
    path = LockFile(tmp_path).generate()
    document = json.loads(path.read_text())
    assert document["version"] == "1.0"
    assert document["packages"] == {}
    assert document["metadata"]["deadlock_version"] == "1.0.0"
    assert document["metadata"]["platform"] == current_platform()
    assert document["metadata"]["python_version"] == ""


def test_update_and_load_round_trip(tmp_path):
    calls = []
    lock = LockFile(tmp_path, _resolver(calls))
    written = lock.update("requests", "2.31.0", is_dev=True)
    assert calls == [("requests", "2.31.0")]
    assert written.hash == package_hash("requests", "2.31.0")

    loaded = LockFile(tmp_path).load()
    assert loaded == [written]
    assert loaded[0].dependencies == ["idna", "certifi"]
    assert loaded[0].is_dev is True
    assert loaded[0].source == "pypi"


def test_packages_sorted_and_lookup(tmp_path):
    lock = LockFile(tmp_path)
    lock.update("zeta", "1")
    lock.update("alpha", "2")
    assert [p.name for p in lock.packages()] == ["alpha", "zeta"]
    assert "alpha" in lock
    assert "beta" not in lock
    assert lock.get("zeta").version == "1"
    assert lock.get("beta") is None


def test_update_makes_backup(tmp_path):
    lock = LockFile(tmp_path)
    lock.update("alpha", "1")
    first = (tmp_path / "dead.lock").read_text()
    lock.update("beta", "1")
    assert (tmp_path / "dead.lock.backup").read_text() == first
    assert "beta" in json.loads((tmp_path / "dead.lock").read_text())["packages"]


def test_remove(tmp_path):
    lock = LockFile(tmp_path)
    lock.update("alpha", "1")
    lock.remove("alpha")
    assert "alpha" not in lock
    assert json.loads((tmp_path / "dead.lock").read_text())["packages"] == {}


def test_remove_missing(tmp_path):
    with pytest.raises(LockFileError, match="not found"):
        LockFile(tmp_path).remove("alpha")


def test_load_missing_creates_file(tmp_path):
    assert LockFile(tmp_path).load() == []
    assert (tmp_path / "dead.lock").is_file()


def test_load_defaults(tmp_path):
    (tmp_path / "dead.lock").write_text(json.dumps({"packages": {"alpha": {}}}))
    [package] = LockFile(tmp_path).load()
    assert package == PackageDependency(name="alpha")
    assert package.source == "pypi"


@pytest.mark.parametrize(
    "content",
    ["{not json", json.dumps({"version": "1.0"}), json.dumps({"packages": {"a": {"is_dev": "yes"}}})],
)
def test_load_invalid(tmp_path, content):
    (tmp_path / "dead.lock").write_text(content)
    with pytest.raises(LockFileError):
        LockFile(tmp_path).load()


def test_validate_valid(tmp_path):
    lock = LockFile(tmp_path)
    lock.update("alpha", "1")
    lock.update("beta", "2")
    assert LockFile(tmp_path).validate() == 2


def test_validate_missing_file(tmp_path):
    with pytest.raises(LockFileError, match="No dead.lock file found"):
        LockFile(tmp_path).validate()


def test_validate_bad_structure(tmp_path):
    (tmp_path / "dead.lock").write_text(json.dumps({"packages": {}}))
    with pytest.raises(LockFileError, match="Invalid dead.lock file structure"):
        LockFile(tmp_path).validate()


def test_validate_entry_without_version(tmp_path):
    document = {"version": "1.0", "packages": {"alpha": {"source": "pypi"}}}
    (tmp_path / "dead.lock").write_text(json.dumps(document))
    with pytest.raises(LockFileError, match="Invalid package entry: alpha"):
        LockFile(tmp_path).validate()


def test_validate_bad_json(tmp_path):
    (tmp_path / "dead.lock").write_text("[")
    with pytest.raises(LockFileError, match="Error parsing"):
        LockFile(tmp_path).validate()