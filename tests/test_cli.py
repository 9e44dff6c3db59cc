# tests/test_cli.py
import json

import pytest

from lexiflow import cli
from lexiflow.core.domain.exceptions import InvalidRequestError


@pytest.fixture
def run_cli(container, monkeypatch, capsys):
    """Runs the CLI against the test container and returns (exit code, JSON output)."""
    monkeypatch.setattr(cli, "container", container)

    def run(*argv):
        code = cli.main(list(argv))
        out = capsys.readouterr().out
        return code, json.loads(out) if out.strip() else None

    return run


class TestParser:

    def test_translate_arguments(self):
        args = cli.build_parser().parse_args(["translate", "hello world", "--to", "es", "--from", "en", "--no-cache"])

        assert (args.text, args.to, args.from_lang, args.no_cache) == ("hello world", "es", "en", True)

    def test_assignments_are_json_decoded(self):
        updates = cli._parse_assignments(["prThreshold=25", "autoTrigger=false", "label=plain"])

        assert updates == {"prThreshold": 25, "autoTrigger": False, "label": "plain"}

    def test_assignment_without_equals(self):
        with pytest.raises(InvalidRequestError):
            cli._parse_assignments(["prThreshold"])

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 0
        assert "usage" in capsys.readouterr().out


class TestCommands:

    def test_translate(self, run_cli):
        code, payload = run_cli("translate", "hello", "--to", "es")

        assert code == 0
        assert payload["translated"] == "hola"
        assert payload["from"] == "auto"

    def test_etymology(self, run_cli):
        code, payload = run_cli("etymology", "hello")

        assert code == 0
        assert payload["source"] == "dictionary"

    def test_config_update(self, run_cli):
        code, payload = run_cli("config", "--set", "prThreshold=3", "autoTrigger=false")

        assert code == 0
        assert payload["prThreshold"] == 3
        assert payload["autoTrigger"] is False

    def test_domain_error_exits_1(self, run_cli):
        code, payload = run_cli("config", "--set", "colour=blue")

        assert code == 1
        assert payload["error"] == "invalid_request"

    def test_bulk_upload_from_file(self, run_cli, tmp_path, ledger_store):
        """
        Scenario: A {"words": [...]} file with two valid entries.
        Expected: Both are added and queued.
        """
        # Arrange
        path = tmp_path / "words.json"
        path.write_text(
            json.dumps({"words": [
                {"word": "casa", "translations": {"en": "house"}},
                {"word": "gato", "translations": {"en": "cat"}},
            ]}),
            encoding="utf-8",
        )

        # Act
        code, payload = run_cli("bulk-upload", str(path), "--tier", "small", "--source-language", "es")

        # Assert
        assert code == 0
        assert payload["added"] == 2
        assert payload["pendingCount"] == 2

    def test_bulk_upload_bad_json(self, run_cli, tmp_path):
        path = tmp_path / "words.json"
        path.write_text("{oops", encoding="utf-8")

        code, payload = run_cli("bulk-upload", str(path))

        assert code == 1
        assert "not valid JSON" in payload["message"]

    def test_clear_cache_and_stats(self, run_cli):
        code, payload = run_cli("clear-cache")
        assert code == 0
        assert payload["success"] is True

        code, payload = run_cli("stats")
        assert payload["lexicon"]["wordCount"] > 0
        assert payload["learning"]["pendingCount"] == 0

    def test_define(self, run_cli, mock_reference):
        code, payload = run_cli("define", "zorp")

        assert code == 0
        assert payload["definitions"] == []
        assert payload["related"]["cognates"] == []
        mock_reference.fetch_entry.assert_awaited()

    def test_languages(self, run_cli):
        code, payload = run_cli("languages")

        assert code == 0
        assert {"code": "es", "name": "Spanish"} in payload["languages"]
        assert "es" in payload["dictionaryTargets"]
