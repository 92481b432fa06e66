"""CLI tests: input sources, layout modes, and error exits."""

import json

from click.testing import CliRunner

from erd_layout.__main__ import main

SCHEMA = {
    "tables": [
        {"id": "users", "name": "users", "fields": [{"name": "id", "type": "int"}]},
        {"id": "orders", "name": "orders", "fields": [{"name": "user_id", "type": "int"}]},
        {"id": "items", "name": "items", "fields": []},
    ],
    "refs": [
        {"fromTableId": "orders", "toTableId": "users"},
        {"fromTableId": "items", "toTableId": "orders"},
    ],
}


def invoke(args, stdin=None):
    return CliRunner().invoke(main, args, input=stdin)


def test_cli_help():
    result = invoke(["--help"])
    assert result.exit_code == 0
    assert "ERD schema JSON" in result.output


def test_stdin_force_layout():
    result = invoke([], stdin=json.dumps(SCHEMA))
    assert result.exit_code == 0
    out = json.loads(result.output)
    assert list(out) == ["users", "orders", "items"]
    assert out["users"]["tableId"] == "users"
    assert out["users"]["pinned"] is False


def test_file_input_and_output(tmp_path):
    src = tmp_path / "schema.json"
    dst = tmp_path / "layout.json"
    src.write_text(json.dumps(SCHEMA))
    result = invoke([str(src), "-o", str(dst)])
    assert result.exit_code == 0
    assert result.output == ""
    assert set(json.loads(dst.read_text())) == {"users", "orders", "items"}


def test_collapsed_flag():
    result = invoke(["--collapsed"], stdin=json.dumps(SCHEMA))
    assert result.exit_code == 0
    out = json.loads(result.output)
    assert {node["size"]["height"] for node in out.values()} == {44.0}


def test_focus_mode():
    result = invoke(["--mode", "focus", "--center", "items"], stdin=json.dumps(SCHEMA))
    assert result.exit_code == 0
    out = json.loads(result.output)
    assert out["focusTableIds"] == ["items", "orders"]
    assert set(out) == {"items", "orders", "focusTableIds"}


def test_focus_requires_center():
    result = invoke(["-m", "focus"], stdin=json.dumps(SCHEMA))
    assert result.exit_code == 1
    assert "requires --center" in result.output


def test_incremental_keeps_pinned(tmp_path):
    existing = tmp_path / "existing.json"
    existing.write_text(
        json.dumps(
            {
                "orders": {
                    "tableId": "orders",
                    "position": {"x": -40, "y": 7.5},
                    "size": {"width": 1, "height": 1},
                    "pinned": True,
                }
            }
        )
    )
    result = invoke(["-m", "incremental", "-e", str(existing)], stdin=json.dumps(SCHEMA))
    assert result.exit_code == 0
    out = json.loads(result.output)
    assert out["orders"]["position"] == {"x": -40.0, "y": 7.5}
    assert out["orders"]["pinned"] is True
    assert out["users"]["pinned"] is False


def test_bad_existing_positions(tmp_path):
    existing = tmp_path / "existing.json"
    existing.write_text(json.dumps({"orders": {"tableId": "orders"}}))
    result = invoke(["-m", "incremental", "-e", str(existing)], stdin=json.dumps(SCHEMA))
    assert result.exit_code == 1
    assert "bad existing positions" in result.output


def test_invalid_json():
    result = invoke([], stdin="{not json")
    assert result.exit_code == 1
    assert "invalid JSON" in result.output


def test_schema_error():
    result = invoke([], stdin=json.dumps({"tables": [{"fields": []}]}))
    assert result.exit_code == 1
    assert "schema error" in result.output
