"""Tests for the index-spine CLI."""

import json
import re

import pytest
import structlog
from typer.testing import CliRunner

from indexspine.cli.app import app

runner = CliRunner()

GUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}")


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return str(tmp_path / "cli.db")


def _add_text(db: str, text: str, handle: str, *extra: str) -> str:
    result = runner.invoke(app, ["add-text", text, "--title", handle, "--handle", handle, "--db", db, *extra])
    assert result.exit_code == 0, result.output
    return GUID_RE.search(result.output).group(0)


class TestVersion:
    """Test --version."""

    def test_version(self):
        """--version prints the package name."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "index-spine" in result.output


class TestAdd:
    """Test add-text and add-file."""

    def test_add_text(self, db):
        """add-text indexes text and reports terms."""
        result = runner.invoke(app, ["add-text", "quick brown fox", "--title", "Fox", "--handle", "mem://fox",
                                     "--db", db])
        assert result.exit_code == 0, result.output
        assert "Indexed" in result.output
        assert "3/3 terms" in result.output

    def test_add_text_json(self, db):
        """add-text --json prints the ingestion result."""
        result = runner.invoke(app, ["add-text", "quick fox", "--title", "Fox", "--handle", "mem://fox",
                                     "--tag", "news", "--db", db, "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["terms_recorded"] == 3
        assert payload["cancelled"] is False

    def test_add_file(self, db, tmp_path):
        """add-file defaults title and handle from the file."""
        path = tmp_path / "notes.txt"
        path.write_text("blue whale migration")
        result = runner.invoke(app, ["add-file", str(path), "--source", "upload", "--db", db])
        assert result.exit_code == 0, result.output

        search = runner.invoke(app, ["search", "whale", "--db", db, "--json"])
        docs = json.loads(search.stdout)
        assert docs[0]["title"] == "notes.txt"
        assert docs[0]["source"] == "upload"
        assert docs[0]["handle"] == str(path.resolve())

    def test_add_file_missing(self, db, tmp_path):
        """A missing file fails."""
        result = runner.invoke(app, ["add-file", str(tmp_path / "nope.txt"), "--db", db])
        assert result.exit_code != 0

    def test_add_text_requires_title(self, db):
        """add-text requires --title."""
        result = runner.invoke(app, ["add-text", "quick", "--handle", "h", "--db", db])
        assert result.exit_code != 0


class TestSearch:
    """Test the search command."""

    def test_search_json(self, db):
        """search --json prints matching documents."""
        guid = _add_text(db, "quick brown fox", "mem://fox")
        _add_text(db, "blue whale", "mem://whale")

        result = runner.invoke(app, ["search", "FOX", "--db", db, "--json"])
        assert result.exit_code == 0, result.output
        assert [d["guid"] for d in json.loads(result.stdout)] == [guid]

    def test_search_paging(self, db):
        """--start and --max page the results."""
        for n in range(3):
            _add_text(db, "brown bear", f"mem://bear/{n}")
        result = runner.invoke(app, ["search", "bear", "--start", "1", "--max", "1", "--db", db, "--json"])
        assert len(json.loads(result.stdout)) == 1

    def test_search_table(self, db):
        """search prints a table by default."""
        _add_text(db, "quick fox", "mem://fox")
        result = runner.invoke(app, ["search", "fox", "--db", db])
        assert result.exit_code == 0
        assert "1 document(s)" in result.output

    def test_search_no_results(self, db):
        """search reports when nothing matches."""
        result = runner.invoke(app, ["search", "unicorn", "--db", db])
        assert result.exit_code == 0
        assert "No documents" in result.output


class TestLookups:
    """Test get, exists and count."""

    def test_get(self, db):
        """get describes a document."""
        guid = _add_text(db, "quick fox", "mem://fox")
        result = runner.invoke(app, ["get", guid, "--db", db])
        assert result.exit_code == 0
        assert "mem://fox" in result.output
        assert guid in result.output

    def test_get_missing(self, db):
        """get fails for an unknown GUID."""
        result = runner.invoke(app, ["get", "missing-guid", "--db", db])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output

    def test_exists(self, db):
        """exists prints true or false and sets the exit code."""
        _add_text(db, "quick fox", "mem://fox")
        assert runner.invoke(app, ["exists", "mem://fox", "--db", db]).exit_code == 0
        missing = runner.invoke(app, ["exists", "mem://nope", "--db", db])
        assert missing.exit_code == 1
        assert "false" in missing.output

    def test_count(self, db):
        """count prints the reference count."""
        _add_text(db, "bear bear", "mem://a")
        _add_text(db, "bear", "mem://b")
        result = runner.invoke(app, ["count", "bear", "--db", db])
        assert result.exit_code == 0
        assert result.stdout.strip() == "3"


class TestMaintenance:
    """Test delete and backup."""

    def test_delete(self, db):
        """delete removes a document."""
        guid = _add_text(db, "quick fox", "mem://fox")
        result = runner.invoke(app, ["delete", guid, "--db", db])
        assert result.exit_code == 0
        assert "Deleted 1 document(s)" in result.output
        assert runner.invoke(app, ["exists", "mem://fox", "--db", db]).exit_code == 1

    def test_backup(self, db, tmp_path):
        """backup writes a copy of the index."""
        _add_text(db, "quick fox", "mem://fox")
        dest = tmp_path / "backup.db"
        result = runner.invoke(app, ["backup", str(dest), "--db", db])
        assert result.exit_code == 0, result.output
        assert dest.exists()

        search = runner.invoke(app, ["search", "fox", "--db", str(dest), "--json"])
        assert len(json.loads(search.stdout)) == 1


class TestLogging:
    """Test CLI logging configuration."""

    def test_log_settings_come_from_environment(self, db, monkeypatch):
        """Log level and format default to INDEXSPINE_ settings."""
        monkeypatch.setenv("INDEXSPINE_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("INDEXSPINE_JSON_LOGS", "true")
        result = runner.invoke(app, ["count", "fox", "--db", db])
        assert result.exit_code == 0, result.output
        assert "schema_ensured" in result.output

    def test_log_level_option_overrides_environment(self, db, monkeypatch):
        """--log-level wins over the environment."""
        monkeypatch.setenv("INDEXSPINE_LOG_LEVEL", "DEBUG")
        result = runner.invoke(app, ["--log-level", "ERROR", "count", "fox", "--db", db])
        assert result.exit_code == 0, result.output
        assert "schema_ensured" not in result.output
