"""
Tests for CLI commands.

These tests verify the command-line interface functionality including:
- create-analysis with event type parsing
- list-analyses and show-analysis output
- export-csv from a JSON events file, with and without normalization
- db init/status and config commands
"""

import json

import click
import pytest

from click.testing import CliRunner

from eventmark.cli import cli, parse_event_type
from eventmark.constants import EventCategory
from eventmark.database.repository import AnalysisRepository
from eventmark.database.storage import Storage


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch, isolated_config):
    """Keep CLI runs from configuring file logging in the user's home."""
    monkeypatch.setattr("eventmark.cli.setup_logging", lambda **kwargs: None)


@pytest.fixture
def db_arg(temp_db):
    return ["--db", str(temp_db)]


@pytest.fixture
def populated_test_db(temp_db):
    """Create a database with one analysis holding Jump and Duck."""
    with Storage.open(temp_db) as storage:
        repository = AnalysisRepository(storage)
        analysis_id = repository.create_analysis(
            "Match 3",
            "/videos/match3.mp4",
            125.0,
            [
                {"name": "Jump", "keyboard_key": "j", "category": "single"},
                {"name": "Duck", "keyboard_key": "d", "category": "range"},
            ],
        )
        ids = {et.name: et.id for et in repository.get_event_types(analysis_id)}

    return analysis_id, ids


class TestParseEventType:
    """Test NAME:KEY:CATEGORY parsing."""

    def test_valid(self):
        spec = parse_event_type("Jump:j:single")

        assert spec.name == "Jump"
        assert spec.keyboard_key == "j"
        assert spec.category is EventCategory.SINGLE

    def test_category_case_insensitive(self):
        assert parse_event_type("Duck:d:RANGE").category is EventCategory.RANGE

    def test_name_may_contain_colons(self):
        assert parse_event_type("Half:time:x:range").name == "Half:time"

    @pytest.mark.parametrize("value", ["Jump", "Jump:j", "Jump:j:instant", ":j:single"])
    def test_invalid(self, value):
        with pytest.raises(click.BadParameter):
            parse_event_type(value)


class TestCreateAnalysis:
    """Test create-analysis command."""

    def test_creates_analysis(self, cli_runner, db_arg, temp_db):
        result = cli_runner.invoke(
            cli,
            [
                "create-analysis",
                "Match 3",
                "/videos/match3.mp4",
                "--duration",
                "90",
                "-e",
                "Jump:j:single",
                "-e",
                "Duck:d:range",
                *db_arg,
            ],
        )

        assert result.exit_code == 0, result.output
        assert "✓ Created analysis 1 with 2 event types" in result.output

        with Storage.open(temp_db) as storage:
            event_types = AnalysisRepository(storage).get_event_types(1)
        assert sorted(et.name for et in event_types) == ["Duck", "Jump"]

    def test_without_event_types(self, cli_runner, db_arg):
        result = cli_runner.invoke(
            cli, ["create-analysis", "Clip", "/clip.mp4", "-d", "5", *db_arg]
        )

        assert result.exit_code == 0, result.output
        assert "with 0 event types" in result.output

    def test_bad_event_type(self, cli_runner, db_arg):
        result = cli_runner.invoke(
            cli,
            ["create-analysis", "Clip", "/clip.mp4", "-d", "5", "-e", "Jump", *db_arg],
        )

        assert result.exit_code != 0
        assert "NAME:KEY:CATEGORY" in result.output

    def test_duration_required(self, cli_runner, db_arg):
        result = cli_runner.invoke(cli, ["create-analysis", "Clip", "/clip.mp4", *db_arg])

        assert result.exit_code != 0


class TestListAndShow:
    """Test list-analyses and show-analysis commands."""

    def test_list_empty(self, cli_runner, db_arg):
        result = cli_runner.invoke(cli, ["list-analyses", *db_arg])

        assert result.exit_code == 0
        assert "No analyses found in database" in result.output

    def test_list(self, cli_runner, db_arg, populated_test_db):
        analysis_id, _ = populated_test_db

        result = cli_runner.invoke(cli, ["list-analyses", *db_arg])

        assert result.exit_code == 0
        assert f"[{analysis_id}] Match 3" in result.output
        assert "Media: /videos/match3.mp4" in result.output
        assert "Duration: 2m 5.0s" in result.output

    def test_show(self, cli_runner, db_arg, populated_test_db):
        analysis_id, ids = populated_test_db

        result = cli_runner.invoke(cli, ["show-analysis", str(analysis_id), *db_arg])

        assert result.exit_code == 0
        assert f"Analysis {analysis_id}: Match 3" in result.output
        assert f"[{ids['Jump']}] Jump (key: j, single)" in result.output
        assert f"[{ids['Duck']}] Duck (key: d, range)" in result.output

    def test_show_json(self, cli_runner, db_arg, populated_test_db):
        analysis_id, _ = populated_test_db

        result = cli_runner.invoke(
            cli, ["show-analysis", str(analysis_id), "--json", *db_arg]
        )

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["analysis"]["name"] == "Match 3"
        assert {et["category"] for et in payload["event_types"]} == {"single", "range"}

    def test_show_without_event_types(self, cli_runner, db_arg, temp_db):
        with Storage.open(temp_db) as storage:
            analysis_id = AnalysisRepository(storage).create_analysis(
                "Bare", "/bare.mp4", 1.0, []
            )

        result = cli_runner.invoke(cli, ["show-analysis", str(analysis_id), *db_arg])

        assert result.exit_code == 0
        assert "No event types defined" in result.output

    def test_show_missing(self, cli_runner, db_arg):
        result = cli_runner.invoke(cli, ["show-analysis", "42", *db_arg])

        assert result.exit_code == 1
        assert "Analysis with id 42 not found" in result.output


class TestExportCsv:
    """Test export-csv command."""

    def write_events(self, path, events):
        path.write_text(json.dumps(events))
        return str(path)

    def test_export(self, cli_runner, db_arg, populated_test_db, tmp_path):
        analysis_id, ids = populated_test_db
        events_file = self.write_events(
            tmp_path / "events.json",
            [
                {"event_type_id": ids["Jump"], "start_timestamp": 0.5},
                {
                    "event_type_id": ids["Duck"],
                    "start_timestamp": 1.0,
                    "end_timestamp": 2.5,
                },
            ],
        )
        output = tmp_path / "out.csv"

        result = cli_runner.invoke(
            cli,
            ["export-csv", str(analysis_id), events_file, "-o", str(output), *db_arg],
        )

        assert result.exit_code == 0, result.output
        assert f"✓ Exported 2 events to {output}" in result.output
        assert (
            output.read_bytes()
            == b"Event Type,Start Time,End Time\nJump,0.5,\nDuck,1,2.5\n"
        )

    def test_export_merge(self, cli_runner, db_arg, populated_test_db, tmp_path):
        analysis_id, ids = populated_test_db
        duck = ids["Duck"]
        events_file = self.write_events(
            tmp_path / "events.json",
            [
                {"event_type_id": duck, "start_timestamp": 1.0, "end_timestamp": 3.0},
                {"event_type_id": duck, "start_timestamp": 2.0, "end_timestamp": 5.0},
            ],
        )
        output = tmp_path / "out.csv"

        result = cli_runner.invoke(
            cli,
            [
                "export-csv",
                str(analysis_id),
                events_file,
                "-o",
                str(output),
                "--normalize",
                "merge",
                *db_arg,
            ],
        )

        assert result.exit_code == 0, result.output
        assert output.read_text().splitlines()[1:] == ["Duck,1,5"]

    def test_export_unknown_event_type(
        self, cli_runner, db_arg, populated_test_db, tmp_path
    ):
        analysis_id, _ = populated_test_db
        events_file = self.write_events(
            tmp_path / "events.json",
            [{"event_type_id": 999, "start_timestamp": 1.0}],
        )
        output = tmp_path / "out.csv"

        result = cli_runner.invoke(
            cli,
            ["export-csv", str(analysis_id), events_file, "-o", str(output), *db_arg],
        )

        assert result.exit_code == 1
        assert "Failed to export events: Event type 999 not found" in result.output
        assert not output.exists()

    def test_export_invalid_events_file(
        self, cli_runner, db_arg, populated_test_db, tmp_path
    ):
        analysis_id, _ = populated_test_db
        events_file = tmp_path / "events.json"
        events_file.write_text('[{"start_timestamp": "soon"}]')

        result = cli_runner.invoke(
            cli,
            [
                "export-csv",
                str(analysis_id),
                str(events_file),
                "-o",
                str(tmp_path / "out.csv"),
                *db_arg,
            ],
        )

        assert result.exit_code == 1
        assert "Invalid events file" in result.output


class TestDbCommands:
    """Test db init and db status."""

    def test_init_creates_database(self, cli_runner, db_arg, temp_db):
        result = cli_runner.invoke(cli, ["db", "init", *db_arg])

        assert result.exit_code == 0
        assert "✓ Database initialized at" in result.output
        assert temp_db.exists()

    def test_status(self, cli_runner, db_arg, populated_test_db):
        result = cli_runner.invoke(cli, ["db", "status", *db_arg])

        assert result.exit_code == 0
        assert "Schema revision: 8e07b5d2c6fa" in result.output
        assert "Journal mode: wal" in result.output
        assert "Analyses: 1" in result.output

    def test_init_failure(self, cli_runner, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        result = cli_runner.invoke(
            cli, ["db", "init", "--db", str(blocker / "app.sqlite")]
        )

        assert result.exit_code == 1
        assert "Error" in result.output


class TestConfigCommands:
    """Test config show/set-db-path/unset-db-path."""

    def test_show_empty(self, cli_runner, isolated_config):
        result = cli_runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert f"Config file: {isolated_config}" in result.output
        assert "No configuration set" in result.output

    def test_set_then_used_by_commands(self, cli_runner, tmp_path):
        db_path = tmp_path / "configured.sqlite"

        result = cli_runner.invoke(cli, ["config", "set-db-path", str(db_path)])
        assert result.exit_code == 0

        result = cli_runner.invoke(cli, ["db", "init"])
        assert result.exit_code == 0
        assert db_path.exists()

        result = cli_runner.invoke(cli, ["config", "show"])
        assert str(db_path) in result.output

    def test_unset(self, cli_runner, isolated_config, tmp_path):
        cli_runner.invoke(cli, ["config", "set-db-path", str(tmp_path / "x.sqlite")])

        result = cli_runner.invoke(cli, ["config", "unset-db-path"])

        assert result.exit_code == 0
        assert "✓ Default database path removed" in result.output
        assert not isolated_config.exists()
