"""Shared fixtures for pkgindex tests."""

from pathlib import Path

import pytest
import yaml

from pkgindex.config import Settings
from pkgindex.domain import PackageRecord


def _make_record(name, version="1.0.0", deps=(), compilers=None, **extra):
    data = {
        'name': name,
        'version': version,
        'dependencies': list(deps),
        'compilers': compilers or {},
    }
    data.update(extra)
    return PackageRecord.from_dict(data)


@pytest.fixture
def make_record():
    """Factory for PackageRecords: make_record("a", "1.0.0", deps=["b"])."""
    return _make_record


@pytest.fixture
def write_spec(tmp_path):
    """Write a package.yaml into a fresh directory and return the directory."""
    def _write(name, version="1.0.0", deps=(), compilers=None, dirname=None, **extra):
        spec_dir = tmp_path / (dirname or f"src-{name}")
        spec_dir.mkdir(parents=True, exist_ok=True)
        data = {'name': name, 'version': version, **extra}
        if deps:
            data['dependencies'] = list(deps)
        if compilers:
            data['compilers'] = compilers
        (spec_dir / 'package.yaml').write_text(yaml.safe_dump(data, sort_keys=False))
        return spec_dir
    return _write


@pytest.fixture
def settings(tmp_path):
    """Settings rooted in tmp_path with a fixed compiler."""
    return Settings.from_config({
        'index': {
            'path': str(tmp_path / 'index'),
            'snapshot': str(tmp_path / 'index.json'),
            'install_cache': str(tmp_path / 'cache'),
        },
        'package_manager': {'command': 'pkgtool', 'overrides': {'prefix': '/opt/pkg'}},
        'compiler': {'name': 'ghc', 'version': '9.4.7'},
        'pipeline': {'stats_dir': '', 'rebuild_on_rollback': True},
    })


class FakePackageManager:
    """
    Stands in for PackageManagerClient.

    `codes` maps a step name to the exit code it should return for every
    package, or `(step, package_name)` to a code for one package.
    """

    def __init__(self, codes=None, stats_text=None):
        self.codes = dict(codes or {})
        self.stats_text = stats_text
        self.calls = []
        self.workdirs = []

    def _code(self, step, name):
        return self.codes.get((step, name), self.codes.get(step, 0))

    def checkout(self, name, version, dest: Path):
        self.calls.append(('checkout', name, version))
        self.workdirs.append(dest.parent)
        self._current = name
        code = self._code('checkout', name)
        if code == 0:
            dest.mkdir()
        return code

    def install(self, source: Path, bin_dir: Path):
        self.calls.append(('install', self._current, str(bin_dir)))
        return self._code('install', self._current)

    def test(self, source: Path, stats_file=None):
        self.calls.append(('test', self._current, stats_file))
        if stats_file is not None and isinstance(self.stats_text, bytes):
            stats_file.write_bytes(self.stats_text)
        elif stats_file is not None and self.stats_text is not None:
            stats_file.write_text(self.stats_text)
        return self._code('test', self._current)

    def uninstall(self, source: Path, name):
        self.calls.append(('uninstall', name))
        return self._code('uninstall', name)

    def steps(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_manager():
    return FakePackageManager
