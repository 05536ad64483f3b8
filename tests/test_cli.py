"""
CLI tests for collection-views.

Run every command through click's CliRunner against a note graph file.
"""
import json
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from collection_views.cli import cli
from collection_views.domain.view_config import MISSING_QUERY
from collection_views.exit_codes import (
    CONFIG_ERROR,
    DATA_ERROR,
    NO_NOTES_FOUND,
    NOTE_NOT_FOUND,
    USAGE_ERROR,
)
from collection_views.infra.etapi_client import EtapiClient

GRAPH = {
    'notes': [
        {'noteId': 'books', 'title': 'Books', 'attributes': [
            {'type': 'label', 'name': 'query', 'value': '#book'},
            {'type': 'label', 'name': 'sort', 'value': 'year'},
            {'type': 'label', 'name': 'attribute', 'value': 'year,header=Year'},
            {'type': 'label', 'name': 'attribute', 'value': 'status,badge'},
            {'type': 'label', 'name': 'search', 'value': ''},
        ]},
        {'noteId': 'board', 'title': 'Board', 'attributes': [
            {'type': 'label', 'name': 'view', 'value': 'board'},
            {'type': 'label', 'name': 'query', 'value': '#book'},
            {'type': 'label', 'name': 'groupBy', 'value': 'status'},
        ]},
        {'noteId': 'empty', 'title': 'Empty', 'attributes': [
            {'type': 'label', 'name': 'query', 'value': '#magazine'},
        ]},
        {'noteId': 'broken', 'title': 'Broken', 'attributes': [
            {'type': 'label', 'name': 'view', 'value': 'gallery'},
        ]},
        {'noteId': 'b1', 'title': 'Dune', 'attributes': [
            {'type': 'label', 'name': 'book', 'value': ''},
            {'type': 'label', 'name': 'year', 'value': '1965'},
            {'type': 'label', 'name': 'status', 'value': 'reading'},
        ]},
        {'noteId': 'b2', 'title': 'Emma', 'attributes': [
            {'type': 'label', 'name': 'book', 'value': ''},
            {'type': 'label', 'name': 'year', 'value': '1815'},
        ]},
    ],
}


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("COLLECTION_VIEWS_CONFIG", raising=False)
    monkeypatch.delenv("COLLECTION_VIEWS_FORMAT", raising=False)
    monkeypatch.delenv("COLLECTION_VIEWS_ETAPI_URL", raising=False)
    monkeypatch.delenv("COLLECTION_VIEWS_ETAPI_TOKEN", raising=False)
    return CliRunner()


@pytest.fixture
def graph(tmp_path):
    path = tmp_path / "notes.yaml"
    path.write_text(yaml.safe_dump(GRAPH), encoding="utf-8")
    return str(path)


class TestRenderCommand:
    """Test `collection-views render`."""

    def test_table(self, runner, graph):
        result = runner.invoke(cli, ['render', graph, 'books'])
        assert result.exit_code == 0, result.output
        assert "Year" in result.output
        assert result.output.index("Emma") < result.output.index("Dune")
        assert " reading " in result.output

    def test_board(self, runner, graph):
        result = runner.invoke(cli, ['render', graph, 'board'])
        assert result.exit_code == 0, result.output
        assert "reading" in result.output
        assert "None" in result.output

    def test_json(self, runner, graph):
        result = runner.invoke(cli, ['render', graph, 'board', '--json'])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data['query'] == "#book"
        assert data['noteIds'] == ["b1", "b2"]
        assert data['groups'] == [
            {'name': 'reading', 'relatedNoteId': None, 'noteIds': ['b1']},
            {'name': None, 'relatedNoteId': None, 'noteIds': ['b2']},
        ]

    def test_yaml_format(self, runner, graph):
        result = runner.invoke(cli, ['render', graph, 'books', '-f', 'yaml'])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output)['noteIds'] == ["b2", "b1"]

    def test_format_from_environment(self, runner, graph, monkeypatch):
        monkeypatch.setenv("COLLECTION_VIEWS_FORMAT", "jsonl")
        result = runner.invoke(cli, ['render', graph, 'books'])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output.strip())['noteIds'] == ["b2", "b1"]

    def test_search_keyword(self, runner, graph):
        result = runner.invoke(cli, ['render', graph, 'books', '--search', 'Emma', '--json'])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)['noteIds'] == ["b2"]

    def test_no_notes_found(self, runner, graph):
        result = runner.invoke(cli, ['render', graph, 'empty'])
        assert result.exit_code == NO_NOTES_FOUND
        assert "No notes found." in result.output

    def test_configuration_error(self, runner, graph):
        result = runner.invoke(cli, ['render', graph, 'broken'])
        assert result.exit_code == CONFIG_ERROR
        assert MISSING_QUERY in result.output

    def test_missing_note(self, runner, graph):
        result = runner.invoke(cli, ['render', graph, 'nope'])
        assert result.exit_code == NOTE_NOT_FOUND
        assert "Note not found: nope" in result.output

    def test_missing_graph_file(self, runner, tmp_path):
        result = runner.invoke(cli, ['render', str(tmp_path / "missing.yaml"), 'books'])
        assert result.exit_code == DATA_ERROR

    def test_empty_source_needs_url(self, runner):
        result = runner.invoke(cli, ['render', '', 'books'])
        assert result.exit_code == USAGE_ERROR

    def test_etapi_source(self, runner):
        records = {
            'books': {'noteId': 'books', 'title': 'Books', 'attributes': [
                {'type': 'label', 'name': 'query', 'value': '#book'},
            ]},
        }
        search_results = [
            {'noteId': 'b1', 'title': 'Dune', 'attributes': []},
        ]
        with patch.object(EtapiClient, 'get_note', side_effect=lambda note_id: records.get(note_id)), \
                patch.object(EtapiClient, 'search_notes', return_value=search_results) as mock_search:
            result = runner.invoke(cli, ['render', 'http://localhost:8080', 'books', '--json'])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)['noteIds'] == ["b1"]
        mock_search.assert_called_once_with("#book")


class TestQueryCommand:
    """Test `collection-views query`."""

    def test_json(self, runner, graph):
        result = runner.invoke(cli, ['query', graph, 'books', '--search', 'dune', '--json'])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data['noteId'] == "books"
        assert data['query'] == "#book"
        assert data['resolvedQuery'].startswith("#book AND ((note.title *=* 'dune')")
        assert data['noteIds'] == ["b1"]
        assert 'errors' not in data

    def test_table(self, runner, graph):
        result = runner.invoke(cli, ['query', graph, 'board'])
        assert result.exit_code == 0, result.output
        assert "Matching notes (2)" in result.output
        assert "Dune" in result.output

    def test_missing_query(self, runner, graph):
        result = runner.invoke(cli, ['query', graph, 'broken', '--json'])
        assert result.exit_code == CONFIG_ERROR
        data = json.loads(result.output)
        assert data['errors'] == [MISSING_QUERY]
        assert data['noteIds'] == []


class TestConfigCommand:
    """Test `collection-views config`."""

    def test_show(self, runner):
        result = runner.invoke(cli, ['config', 'show'])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)['render']['color'] is True

    def test_show_path(self, runner, tmp_path):
        result = runner.invoke(cli, ['config', 'show', '--path'])
        assert json.loads(result.output)['config_path'] == str(
            tmp_path / ".collection-views" / "config.json"
        )

    def test_generate(self, runner, tmp_path):
        result = runner.invoke(cli, ['config', 'generate'])
        assert result.exit_code == 0, result.output
        assert (tmp_path / ".collection-views" / "config.json").exists()

        result = runner.invoke(cli, ['config', 'generate'])
        assert "already exists" in result.output

    def test_show_invalid_config(self, runner, tmp_path):
        config_dir = tmp_path / ".collection-views"
        config_dir.mkdir()
        (config_dir / "config.json").write_text("{broken")
        result = runner.invoke(cli, ['config', 'show'])
        assert result.exit_code == CONFIG_ERROR
        assert "Error loading config" in result.output


def test_help(runner):
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    for command in ('render', 'query', 'config'):
        assert command in result.output
