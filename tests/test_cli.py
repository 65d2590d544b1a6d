"""
Tests for the lifeplan command-line interface.
"""

import json

import pytest
from conftest import SCHEMA_PATH
from lifeplanlab import __version__
from lifeplanlab.cli import EXAMPLE_PLAN, EXAMPLE_SCHEMA, main


def run(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


@pytest.fixture
def plan_file(tmp_path):
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(EXAMPLE_PLAN), encoding="utf-8")
    return path


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(EXAMPLE_SCHEMA), encoding="utf-8")
    return path


class TestExample:
    def test_plan(self, capsys):
        assert run(["example"]) == 0
        assert json.loads(capsys.readouterr().out) == EXAMPLE_PLAN

    def test_schema(self, capsys):
        assert run(["example", "schema"]) == 0
        assert json.loads(capsys.readouterr().out)["events"][0]["type"] == "job"

    def test_version(self, capsys):
        assert run(["--version"]) == 0
        assert __version__ in capsys.readouterr().out


class TestValidate:
    def test_example_plan_is_valid(self, capsys, plan_file, schema_file):
        assert run(["validate", "-i", str(plan_file), "-s", str(schema_file)]) == 0
        assert capsys.readouterr().out.startswith("✅")

    def test_json_report(self, capsys, plan_file):
        """The example plan also matches the bundled test schema."""
        code = run(["validate", "-i", str(plan_file), "-s", str(SCHEMA_PATH), "--format", "json"])
        report = json.loads(capsys.readouterr().out)
        assert report["exit_code"] == code
        assert report["has_errors"] is False

    def test_unknown_type_fails(self, capsys, tmp_path, schema_file):
        document = dict(EXAMPLE_PLAN, events=[{"id": 7, "type": "yacht", "parameters": []}])
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        assert run(["validate", "-i", str(path), "-s", str(schema_file)]) == 1
        assert "yacht" in capsys.readouterr().out

    def test_missing_file(self, capsys, tmp_path, schema_file):
        missing = tmp_path / "missing.json"
        assert run(["validate", "-i", str(missing), "-s", str(schema_file), "--format", "json"]) == 1
        report = json.loads(capsys.readouterr().out)
        assert report["is_valid"] is False
        assert "error" in report


class TestExpand:
    def test_json(self, capsys, plan_file, schema_file):
        assert run(["expand", "-i", str(plan_file), "-s", str(schema_file)]) == 0
        records = json.loads(capsys.readouterr().out)
        assert len(records) == 8
        assert records[0]["display_id"] == "start-1"
        assert [r["day"] for r in records] == sorted(r["day"] for r in records)

    def test_csv_file(self, plan_file, schema_file, tmp_path):
        out = tmp_path / "occurrences.csv"
        code = run(
            ["expand", "-i", str(plan_file), "-s", str(schema_file), "--format", "csv", "-o", str(out)]
        )
        assert code == 0
        lines = out.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("day,")
        assert len(lines) == 9

    def test_locked_plan_shadows(self, capsys, plan_file, schema_file):
        argv = ["expand", "-i", str(plan_file), "-s", str(schema_file), "--locked", str(plan_file)]
        assert run(argv) == 0
        records = json.loads(capsys.readouterr().out)
        assert sum(r["is_shadow_mode"] for r in records) == 8

    def test_bad_schema(self, capsys, plan_file, tmp_path):
        assert run(["expand", "-i", str(plan_file), "-s", str(tmp_path / "nope.yaml")]) == 1
        assert "Error expanding plan" in capsys.readouterr().err


class TestSummary:
    def test_summary(self, capsys, plan_file, schema_file):
        argv = [
            "--log-level",
            "DEBUG",
            "summary",
            "-i",
            str(plan_file),
            "-s",
            str(schema_file),
            "--today",
            "2019-01-01",
        ]
        assert run(argv) == 0
        out = capsys.readouterr().out
        assert out.startswith("Snapshot as of 2019-01-01.")
        assert "Retirement goal: $1,500,000" in out
        assert "- Engineer [type=job] (recurring)" in out

    def test_bad_date(self, capsys, plan_file):
        assert run(["summary", "-i", str(plan_file), "--today", "soon"]) == 1
        assert "Error summarizing plan" in capsys.readouterr().err
