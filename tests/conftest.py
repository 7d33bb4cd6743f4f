import os
from pathlib import Path

import pytest

from ccenv.file_ops import FileOperations
from ccenv.store import EnvironmentStore


@pytest.fixture(autouse=True)
def restore_environ():
    """Keep global environment stable across CLI invocations."""
    original = os.environ.copy()
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(original)


@pytest.fixture()
def temp_config_dir(tmp_path, monkeypatch):
    """Put the home directory (settings, cache and tool config) in a temp location."""
    home_dir = tmp_path / "home"
    home_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("USERPROFILE", str(home_dir))
    monkeypatch.setattr(Path, "home", lambda: home_dir)

    return home_dir


class MemoryHost:
    """Host file access kept in a dict; records every write."""

    def __init__(self, home="/home/tester"):
        self.home = Path(home)
        self.files = {}
        self.writes = []
        self.fail_reads = None
        self.fail_writes = None

    def get_home_dir(self):
        return self.home

    def read_file(self, file_path):
        if self.fail_reads is not None:
            raise self.fail_reads
        return self.files.get(str(file_path))

    def write_file(self, file_path, content):
        if self.fail_writes is not None:
            raise self.fail_writes
        self.files[str(file_path)] = content
        self.writes.append(str(file_path))
        return f"File written: {file_path}"


@pytest.fixture()
def memory_host():
    return MemoryHost()


@pytest.fixture()
def file_ops(memory_host):
    return FileOperations(memory_host)


@pytest.fixture()
def store(file_ops):
    return EnvironmentStore(file_ops)
