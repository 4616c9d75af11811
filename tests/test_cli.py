"""
Tests for the pkgindex command line through click's CliRunner.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from pkgindex.cli import cli
from pkgindex.config import get_default_config, merge_configs
from pkgindex.infra.index_store import IndexStore
from pkgindex.services.pipeline import ReleasePipeline


@pytest.fixture
def config(tmp_path):
    return merge_configs(get_default_config(), {
        'index': {
            'path': str(tmp_path / 'index'),
            'snapshot': str(tmp_path / 'index.json'),
            'install_cache': str(tmp_path / 'cache'),
        },
        'compiler': {'name': 'ghc', 'version': '9.4.7'},
    })


@pytest.fixture
def store(tmp_path):
    return IndexStore(tmp_path / 'index', tmp_path / 'index.json')


@pytest.fixture
def invoke(config, tmp_path):
    """Run the CLI with config patched and package-manager calls faked."""
    def _invoke(args, manager=None, cfg=None):
        pipeline = ReleasePipeline(manager, temp_root=tmp_path) if manager else None
        with patch('pkgindex.cli_utils.load_config', return_value=cfg or config), \
             patch('pkgindex.cli_utils.configure_logging'), \
             patch.object(ReleasePipeline, 'from_settings', return_value=pipeline):
            return CliRunner().invoke(cli, args)
    return _invoke


@pytest.fixture
def populated(store, make_record):
    store.append(make_record("app", "1.0.0", deps=["web", "json"]))
    store.append(make_record("web", "1.0.0", deps=["base"]))
    store.append(make_record("json", "0.9.0", deps=["base"]))
    store.append(make_record("base", "1.0.0"))
    store.append(make_record("base", "2.0.0", compilers={'ghc': '<9'}))
    store.append(make_record("legacy", "0.1.0", compilers={'ghc': '<8'}))
    return store


class TestTestAll:
    """Tests for 'pkgindex test-all'."""

    def test_all_pass(self, invoke, populated, fake_manager):
        manager = fake_manager()
        result = invoke(['test-all'], manager)
        assert result.exit_code == 0, result.output
        tested = [c[1] for c in manager.calls if c[0] == 'checkout']
        # sorted by name, incompatible 'legacy' excluded, base at its compatible version
        assert tested == ["app", "base", "json", "web"]
        assert ('checkout', 'base', '1.0.0') in manager.calls

    def test_failure_named_in_summary(self, invoke, populated, fake_manager):
        manager = fake_manager({('test', 'json'): 1})
        result = invoke(['test-all'], manager)
        assert result.exit_code == 1
        assert "json-0.9.0" in result.output
        # sweep continued after the failure
        assert ('checkout', 'web', '1.0.0') in manager.calls

    def test_json_output(self, invoke, populated, fake_manager):
        result = invoke(['test-all', '--json', 'web', 'app'], fake_manager({('install', 'web'): 2}))
        lines = [json.loads(line) for line in result.output.splitlines() if line.startswith('{')]
        assert [l['package'] for l in lines] == ["app-1.0.0", "web-1.0.0"]
        assert lines[1]['failed_step'] == "install"
        assert result.exit_code == 1

    def test_unknown_package(self, invoke, populated, fake_manager):
        result = invoke(['test-all', 'nope'], fake_manager())
        assert result.exit_code == 1
        assert "nope" in result.output

    def test_requires_compiler(self, invoke, populated, fake_manager):
        cfg = merge_configs(get_default_config(), {'index': {'path': str(populated.root)}})
        result = invoke(['test-all'], fake_manager(), cfg=cfg)
        assert result.exit_code == 1
        assert "compiler" in result.output


class TestAdd:
    """Tests for 'pkgindex add' and 'pkgindex update'."""

    def test_add_prints_follow_up(self, invoke, store, fake_manager, write_spec):
        result = invoke(['add', str(write_spec("a", "1.0.0"))], fake_manager())
        assert result.exit_code == 0, result.output
        assert "Admitted a-1.0.0" in result.output
        assert "git add a/a-1.0.0.yaml" in result.output
        assert [r.identity for r in store.list_all()] == ["a-1.0.0"]

    def test_add_failure_rolls_back(self, invoke, store, fake_manager, write_spec):
        result = invoke(['add', str(write_spec("a", "1.0.0"))], fake_manager({'test': 1}))
        assert result.exit_code == 1
        assert "test failed" in result.output
        assert store.list_all() == []

    def test_add_duplicate(self, invoke, populated, fake_manager, write_spec):
        result = invoke(['add', str(write_spec("web", "1.0.0"))], fake_manager())
        assert result.exit_code == 1
        assert "already in the index" in result.output

    def test_compensation_failure_reported(self, invoke, store, fake_manager, write_spec):
        with patch('pkgindex.services.admission.remove_cache_dir', side_effect=OSError("busy")):
            result = invoke(['add', str(write_spec("a", "1.0.0"))], fake_manager({'test': 1}))
        assert result.exit_code == 1
        assert "ROLLBACK INCOMPLETE" in result.output
        assert "install cache" in result.output

    def test_update(self, invoke, populated, fake_manager, write_spec):
        result = invoke(['update', str(write_spec("web", "1.0.0")), '--bump', 'minor'], fake_manager())
        assert result.exit_code == 0, result.output
        assert "Admitted web-1.1.0" in result.output


class TestDeps:
    """Tests for 'pkgindex show-deps' and 'pkgindex write-deps'."""

    def test_show_deps_json(self, invoke, populated):
        result = invoke(['show-deps', 'web', '--json'])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [n['id'] for n in data['nodes']] == ["base", "web"]
        assert data['edges'] == [{'from': 'web', 'to': 'base'}]

    def test_show_deps_reverse(self, invoke, populated):
        result = invoke(['show-deps', 'json', '--reverse', '--json'])
        data = json.loads(result.output)
        assert [n['id'] for n in data['nodes']] == ["app", "json"]

    def test_show_deps_full_graph(self, invoke, populated):
        result = invoke(['show-deps'])
        assert result.exit_code == 0
        assert "app -> web" in result.output
        assert "legacy" not in result.output  # no edges, so not listed

    def test_show_deps_unknown(self, invoke, populated):
        result = invoke(['show-deps', 'nope'])
        assert result.exit_code == 1

    def test_write_deps_dot(self, invoke, populated, tmp_path):
        output = tmp_path / "deps.dot"
        result = invoke(['write-deps', str(output), 'app'])
        assert result.exit_code == 0, result.output
        text = output.read_text()
        assert '"app" -> "web";' in text
        assert '"app" [style=filled' in text


class TestSumStats:
    """Tests for 'pkgindex sum-stats'."""

    def test_sum_stats(self, invoke, tmp_path):
        stats_dir = tmp_path / "stats"
        stats_dir.mkdir()
        (stats_dir / "b.csv").write_text("b-1.0.0,t,10,20,30,40,50,60,X\n")
        (stats_dir / "a.csv").write_text("a-1.0.0,t,1,2,3,4,5,6,M\n")
        result = invoke(['sum-stats', str(stats_dir)])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[1].startswith("a-1.0.0")
        assert lines[-1] == "TOTAL,t,11,22,33,44,55,66,"

    def test_sum_stats_malformed(self, invoke, tmp_path):
        stats_dir = tmp_path / "stats"
        stats_dir.mkdir()
        (stats_dir / "a.csv").write_text("a-1.0.0,t,1,2\n")
        result = invoke(['sum-stats', str(stats_dir)])
        assert result.exit_code == 1
        assert "Malformed statistics" in result.output

    def test_sum_stats_undecodable(self, invoke, tmp_path):
        stats_dir = tmp_path / "stats"
        stats_dir.mkdir()
        (stats_dir / "a.csv").write_bytes(b"a-1.0.0,t,1,2,3,4,5,6,\xff\xfe\n")
        result = invoke(['sum-stats', str(stats_dir)])
        assert result.exit_code == 1
        assert "Malformed statistics" in result.output
        assert not isinstance(result.exception, UnicodeDecodeError)


class TestListAndRebuild:
    """Tests for 'pkgindex list' and 'pkgindex rebuild'."""

    def test_list_json_includes_incompatible(self, invoke, populated):
        result = invoke(['list', '--json'])
        items = [json.loads(line) for line in result.output.splitlines()]
        assert [i['name'] for i in items] == ["app", "base", "json", "legacy", "web"]
        legacy = items[3]
        assert legacy['compatible'] is False
        assert items[1]['version'] == "1.0.0"
        assert items[1]['versions'] == ["1.0.0", "2.0.0"]

    def test_rebuild(self, invoke, populated, tmp_path):
        result = invoke(['rebuild'])
        assert result.exit_code == 0
        snapshot = json.loads((tmp_path / 'index.json').read_text())
        assert len(snapshot['packages']) == 6
