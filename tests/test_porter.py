import json
from pathlib import Path
from unittest.mock import mock_open, patch

import pytest
import yaml

from aliasmate.errors import ImportFormatError
from aliasmate.models import Alias
from aliasmate.porter import AliasPorter, ImportMode, merge_aliases, parse_payload


@pytest.fixture
def porter(storage):
    return AliasPorter(storage)


@pytest.fixture
def current():
    return [Alias(name="a", command="echo a"), Alias(name="b", command="echo b")]


@pytest.fixture
def incoming():
    return [Alias(name="b", command="echo B"), Alias(name="c", command="echo c")]


class TestMergeAliases:
    """The three import policies"""

    def test_merge(self, current, incoming):
        result = merge_aliases(current, incoming, ImportMode.MERGE)

        assert [(a.name, a.command) for a in result] == [("a", "echo a"), ("b", "echo b"), ("c", "echo c")]

    def test_merge__idempotent(self, current, incoming):
        once = merge_aliases(current, incoming, ImportMode.MERGE)
        twice = merge_aliases(once, incoming, ImportMode.MERGE)

        assert twice == once

    def test_overwrite(self, current, incoming):
        assert merge_aliases(current, incoming, ImportMode.OVERWRITE) == incoming

    def test_append__keeps_duplicates(self, current, incoming):
        result = merge_aliases(current, incoming, ImportMode.APPEND)

        assert [a.name for a in result] == ["a", "b", "b", "c"]

    def test_inputs_not_mutated(self, current, incoming):
        before = list(current)

        merge_aliases(current, incoming, ImportMode.APPEND)

        assert current == before


@pytest.mark.parametrize("data", [
    None,
    [],
    "aliases",
    {},
    {"alias": []},
    {"aliases": {"gs": "git status"}},
    {"aliases": [{"name": "gs"}]},
])
def test_parse_payload__invalid(data):
    with pytest.raises(ImportFormatError):
        parse_payload(data)


def test_parse_payload(storage_file_data, alias_list):
    assert parse_payload(storage_file_data) == alias_list


def test_export_to_dict(porter, storage, alias_list, storage_file_data):
    storage.set_all(alias_list)

    assert porter.export_to_dict() == storage_file_data


def test_export_to_dict__given_aliases(porter, storage, alias_list, alias):
    storage.set_all(alias_list)

    assert porter.export_to_dict([alias]) == {"aliases": [alias.to_dict()]}
    assert porter.export_to_dict(None) == porter.export_to_dict()


def test_export_to_file__json(porter, storage, alias_list, storage_file_data, tmp_path):
    storage.set_all(alias_list)
    target = tmp_path / "out" / "aliases.json"

    result = porter.export_to_file(target)

    assert result == (True, f"Exported 2 aliases to {target}")
    assert json.loads(target.read_text()) == storage_file_data


def test_export_to_file__yaml(porter, storage, alias_list, storage_file_data, tmp_path):
    storage.set_all(alias_list)
    target = tmp_path / "aliases.yaml"

    success, _ = porter.export_to_file(target)

    assert success is True
    assert yaml.safe_load(target.read_text()) == storage_file_data


def test_export_to_file__fail(porter, storage, alias_list):
    storage.set_all(alias_list)
    mocked_open = mock_open()
    mocked_open.side_effect = PermissionError("File write error")

    with patch("aliasmate.porter.open", mocked_open):
        result = porter.export_to_file(Path("/tmp/aliases.json"))

    assert result == (False, "Export failed: File write error")


def test_export_then_import_overwrite_reproduces(porter, storage, alias_list, tmp_path):
    storage.set_all(alias_list)
    target = tmp_path / "export.json"
    porter.export_to_file(target)
    storage.set_all([Alias(name="zz", command="echo zz")])

    success, _ = porter.import_from_file(target, ImportMode.OVERWRITE)

    assert success is True
    assert storage.get_all() == alias_list


def test_import_from_file__merge(porter, storage, current, incoming, tmp_path):
    storage.set_all(current)
    source = tmp_path / "import.json"
    source.write_text(json.dumps({"aliases": [a.to_dict() for a in incoming]}))

    result = porter.import_from_file(source)

    assert result == (True, f"Imported 1 aliases from {source} (merge) (skipped 1 existing)")
    assert [a.command for a in storage.get_all()] == ["echo a", "echo b", "echo c"]


def test_import_from_file__append_yaml(porter, storage, current, incoming, tmp_path):
    storage.set_all(current)
    source = tmp_path / "import.yml"
    source.write_text(yaml.dump({"aliases": [a.to_dict() for a in incoming]}))

    success, _ = porter.import_from_file(source, ImportMode.APPEND)

    assert success is True
    assert [a.name for a in storage.get_all()] == ["a", "b", "b", "c"]


def test_import_aliases__summary(porter, storage, current, incoming):
    storage.set_all(current)

    summary = porter.import_aliases(incoming, ImportMode.OVERWRITE)

    assert (summary.incoming, summary.added, summary.skipped, summary.total) == (2, 2, 0, 2)


def test_import_from_file__missing(porter):
    assert porter.import_from_file(Path("/nonexistent/aliases.json")) == (
        False, "File not found: /nonexistent/aliases.json"
    )


@pytest.mark.parametrize("content", [
    "not json at all",
    json.dumps({"items": []}),
    json.dumps({"aliases": "nope"}),
    json.dumps({"aliases": [{"name": "x", "command": ""}]}),
])
def test_import_from_file__invalid_leaves_store_untouched(porter, storage, current, tmp_path, content):
    storage.set_all(current)
    source = tmp_path / "import.json"
    source.write_text(content)

    success, message = porter.import_from_file(source, ImportMode.OVERWRITE)

    assert success is False
    assert message.startswith("Import failed:")
    assert storage.get_all() == current
