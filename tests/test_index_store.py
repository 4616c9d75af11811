"""Tests for the persisted index store and the package.yaml loader."""

import json

import pytest

from pkgindex.exit_codes import DuplicateVersion, SpecInvalid
from pkgindex.infra import spec_loader
from pkgindex.infra.index_store import IndexStore, remove_cache_dir


@pytest.fixture
def store(tmp_path):
    return IndexStore(tmp_path / "index", tmp_path / "index.json")


class TestIndexStore:
    """Tests for IndexStore."""

    def test_empty(self, store):
        assert store.list_all() == []

    def test_append_and_list(self, store, make_record):
        path = store.append(make_record("a", "1.0.0", deps=["b"]))
        assert path == store.root / "a" / "a-1.0.0.yaml"
        assert [r.identity for r in store.list_all()] == ["a-1.0.0"]
        assert store.list_all()[0].dependency_names == ("b",)

    def test_append_duplicate(self, store, make_record):
        store.append(make_record("a", "1.0.0"))
        with pytest.raises(DuplicateVersion):
            store.append(make_record("a", "1.0.0", synopsis="different"))
        assert store.list_all()[0].synopsis == ""

    def test_append_equal_version_rejected(self, store, make_record):
        store.append(make_record("a", "1.0.0"))
        with pytest.raises(DuplicateVersion) as excinfo:
            store.append(make_record("a", "1.0.0.0"))
        assert excinfo.value.identity == "a-1.0.0"
        assert [r.identity for r in store.list_all()] == ["a-1.0.0"]

    def test_append_distinct_build_accepted(self, store, make_record):
        store.append(make_record("a", "1.0.0"))
        store.append(make_record("a", "1.0.0.1"))
        assert len(store.list_all()) == 2

    def test_remove_by_identity(self, store, make_record):
        store.append(make_record("a", "1.0.0"))
        store.append(make_record("a", "1.1.0"))
        assert store.remove_by_identity("a-1.0.0")
        assert [r.identity for r in store.list_all()] == ["a-1.1.0"]
        assert not store.remove_by_identity("a-1.0.0")

    def test_remove_last_version_removes_dir(self, store, make_record):
        store.append(make_record("a", "1.0.0"))
        store.remove_by_identity("a-1.0.0")
        assert not (store.root / "a").exists()

    def test_misplaced_file_rejected(self, store, make_record):
        store.append(make_record("a", "1.0.0"))
        (store.root / "a" / "a-1.0.0.yaml").rename(store.root / "a" / "a-9.9.9.yaml")
        with pytest.raises(SpecInvalid):
            store.list_all()

    def test_rebuild_snapshot(self, store, make_record, tmp_path):
        store.append(make_record("b", "1.0.0"))
        store.append(make_record("a", "1.0.0"))
        assert store.rebuild() == 2
        snapshot = json.loads((tmp_path / "index.json").read_text())
        assert [p['name'] for p in snapshot['packages']] == ["a", "b"]
        assert 'generated_at' in snapshot

    def test_remove_cache_dir(self, tmp_path):
        (tmp_path / "cache" / "a-1.0.0").mkdir(parents=True)
        assert remove_cache_dir(tmp_path / "cache", "a-1.0.0")
        assert not remove_cache_dir(tmp_path / "cache", "a-1.0.0")


class TestSpecLoader:
    """Tests for package.yaml loading."""

    def test_load(self, write_spec):
        spec_dir = write_spec("parser-kit", "1.2.0", deps=["base"], compilers={'ghc': '>=9.2'},
                              synopsis="Parsers")
        record = spec_loader.load(spec_dir)
        assert record.identity == "parser-kit-1.2.0"
        assert record.synopsis == "Parsers"

    def test_missing(self, tmp_path):
        with pytest.raises(SpecInvalid):
            spec_loader.load(tmp_path)

    def test_bad_yaml(self, tmp_path):
        (tmp_path / "package.yaml").write_text("name: [unclosed\n")
        with pytest.raises(SpecInvalid):
            spec_loader.load(tmp_path)

    def test_not_a_mapping(self, tmp_path):
        (tmp_path / "package.yaml").write_text("- just\n- a list\n")
        with pytest.raises(SpecInvalid):
            spec_loader.load(tmp_path)

    def test_yml_extension(self, tmp_path):
        (tmp_path / "package.yml").write_text("name: a\nversion: 0.1.0\n")
        assert spec_loader.load(tmp_path).identity == "a-0.1.0"


class TestFileStore:
    """Tests for the atomic JSON FileStore."""

    def test_missing_file_default(self, tmp_path):
        from pkgindex.infra.file_store import FileStore
        assert FileStore(tmp_path / "nope.json").read(default={}) == {}

    def test_write_then_read(self, tmp_path):
        from pkgindex.infra.file_store import FileStore
        store = FileStore(tmp_path / "deep" / "doc.json")
        store.write({'packages': [1, 2]})
        assert store.read() == {'packages': [1, 2]}
        # no temp files left behind
        assert [p.name for p in (tmp_path / "deep").iterdir()] == ["doc.json"]
