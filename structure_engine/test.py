"""Tests for the command line interface."""

import json

import pytest

from structure_engine.__main__ import main


@pytest.fixture
def person_file(tmp_path, person_schema):
    path = tmp_path / "person.json"
    path.write_text(json.dumps(person_schema), encoding="utf-8")
    return path


class TestCli:
    """Tests for the CLI commands."""

    @pytest.mark.unit
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    @pytest.mark.unit
    def test_inspect_tree(self, person_file, tmp_path, capsys):
        value = tmp_path / "value.json"
        value.write_text('{"name": "Ada"}', encoding="utf-8")
        assert main(["inspect", str(person_file), "--value", str(value)]) == 0
        out = capsys.readouterr().out
        assert out.splitlines()[0] == "Person <object>"
        assert "Name <string> * = 'Ada'" in out

    @pytest.mark.unit
    def test_inspect_json(self, person_file, capsys):
        assert main(["inspect", str(person_file), "--format", "json", "--read-only"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["kind"] == "object"
        assert data["disabled"] is True

    @pytest.mark.unit
    def test_inspect_bad_value_file(self, person_file, tmp_path):
        value = tmp_path / "value.json"
        value.write_text("{nope", encoding="utf-8")
        assert main(["inspect", str(person_file), "--value", str(value)]) == 1

    @pytest.mark.unit
    def test_resolve(self, person_file, capsys):
        assert main(["resolve", str(person_file), "Address"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["required"] == ["city"]
        assert main(["resolve", str(person_file), "Nope"]) == 1

    @pytest.mark.unit
    def test_defaults(self, person_file, capsys):
        assert main(["defaults", str(person_file)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert isinstance(data, dict)

    @pytest.mark.unit
    def test_check(self, person_file, tmp_path, capsys):
        assert main(["check", str(person_file)]) == 0
        broken = tmp_path / "broken.json"
        broken.write_text('{"$root": "#/definitions/Gone"}', encoding="utf-8")
        assert main(["check", str(broken)]) == 1
        assert "/$root: Unresolvable $root" in capsys.readouterr().out

    @pytest.mark.unit
    def test_missing_schema_file(self, tmp_path):
        assert main(["check", str(tmp_path / "missing.json")]) == 1
