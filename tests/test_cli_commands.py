"""
===============================================================================
Unit‑tests ▸ prompt_shelf.cli subcommands (in‑process)
===============================================================================

`cli.main(argv)` returns the exit code instead of exiting, so each subcommand
is driven directly and stdout is inspected through `capsys`.
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from prompt_shelf import cli, get_version
from prompt_shelf.cli import main


def _catalog_dir(tmp_path: Path) -> Path:
    d = tmp_path / "catalog"
    d.mkdir()
    (d / "ut.md").write_text("Test [function] with [framework].\n", encoding="utf-8")
    (d / "catalog.json").write_text(
        json.dumps(
            {
                "templates": [
                    {
                        "id": "unit-test",
                        "file": "ut.md",
                        "description": "Unit tests",
                        "defaults": {"framework": "testing"},
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    return d


# =============================================================================
# render
# =============================================================================
def test_render_with_defines(template_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--dir", str(template_dir), "render", "greet", "-D", "name=Ada", "-D", "place=Go"])
    assert rc == 0
    assert capsys.readouterr().out == "Hello Ada, welcome to Go.\n"


def test_render_missing_binding_still_succeeds(template_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--dir", str(template_dir), "render", "greet", "-D", "name=Ada"])
    assert rc == 0
    assert capsys.readouterr().out == "Hello Ada, welcome to .\n"


def test_render_strict_fails_without_output(template_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--dir", str(template_dir), "render", "greet", "-D", "name=Ada", "--strict"])
    assert rc == 1
    assert capsys.readouterr().out == ""


def test_render_unknown_identifier(template_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--dir", str(template_dir), "render", "does-not-exist"])
    assert rc == 1
    assert capsys.readouterr().out == ""


def test_render_static_template_unchanged(template_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--dir", str(template_dir), "render", "static"]) == 0
    assert capsys.readouterr().out == "No placeholders here.\n"


def test_bindings_file_overridden_by_define(
    template_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    vars_file = tmp_path / "vars.json"
    vars_file.write_text(json.dumps({"name": "File", "place": "Disk"}), encoding="utf-8")

    rc = main(
        ["--dir", str(template_dir), "render", "greet", "--bindings", str(vars_file), "-D", "name=Flag"]
    )
    assert rc == 0
    assert capsys.readouterr().out == "Hello Flag, welcome to Disk.\n"


def test_invalid_bindings_file(template_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    vars_file = tmp_path / "vars.json"
    vars_file.write_text(json.dumps({"name": 1}), encoding="utf-8")

    rc = main(["--dir", str(template_dir), "render", "greet", "--bindings", str(vars_file)])
    assert rc == 1
    assert capsys.readouterr().out == ""


def test_render_to_output_file(template_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "prompt.md"
    rc = main(
        ["--dir", str(template_dir), "render", "greet", "-D", "name=A", "-D", "place=B", "-o", str(out)]
    )
    assert rc == 0
    assert out.read_text(encoding="utf-8") == "Hello A, welcome to B.\n"
    assert capsys.readouterr().out == ""


@pytest.mark.parametrize("bad", ["novalue", "bad name=x", "=x"])
def test_malformed_define_is_usage_error(template_dir: Path, bad: str) -> None:
    assert main(["--dir", str(template_dir), "render", "greet", "-D", bad]) == 2


def test_catalog_defaults_apply(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    d = _catalog_dir(tmp_path)
    rc = main(["--dir", str(d), "render", "unit-test", "-D", "function=Parse", "--strict"])
    assert rc == 0
    assert capsys.readouterr().out == "Test Parse with testing.\n"


def test_bundled_render(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["render", "unit-test", "-D", "function=Parse", "-D", "code=func Parse() {}"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "`TestParse`" in out
    assert "the standard testing package" in out


# =============================================================================
# list / show / placeholders
# =============================================================================
def test_list(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    d = _catalog_dir(tmp_path)
    assert main(["--dir", str(d), "list"]) == 0
    assert capsys.readouterr().out == "unit-test  Unit tests\n"


def test_show_prints_raw_body(template_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--dir", str(template_dir), "show", "greet"]) == 0
    assert capsys.readouterr().out == "Hello [name], welcome to [place].\n"


def test_placeholders_marks_defaults(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    d = _catalog_dir(tmp_path)
    assert main(["--dir", str(d), "placeholders", "unit-test"]) == 0
    assert capsys.readouterr().out.splitlines() == [
        "framework  (default: 'testing')",
        "function",
    ]


def test_show_unknown_identifier(template_dir: Path) -> None:
    assert main(["--dir", str(template_dir), "show", "nope"]) == 1


def test_missing_template_dir(tmp_path: Path) -> None:
    assert main(["--dir", str(tmp_path / "absent"), "list"]) == 1


# =============================================================================
# validate / schema / version
# =============================================================================
def test_validate_catalog(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    d = _catalog_dir(tmp_path)
    assert main(["validate", "--catalog", str(d / "catalog.json")]) == 0
    assert "Catalog is valid" in capsys.readouterr().out


def test_validate_catalog_rejects_duplicates(tmp_path: Path) -> None:
    p = tmp_path / "catalog.json"
    p.write_text(
        json.dumps({"templates": [{"id": "a", "file": "a.md"}, {"id": "a", "file": "b.md"}]}),
        encoding="utf-8",
    )
    assert main(["validate", "--catalog", str(p)]) == 1


def test_validate_bindings(tmp_path: Path) -> None:
    good = tmp_path / "good.json"
    good.write_text('{"function": "Parse"}', encoding="utf-8")
    bad = tmp_path / "bad.json"
    bad.write_text('{"function": ["Parse"]}', encoding="utf-8")
    assert main(["validate", "--bindings", str(good)]) == 0
    assert main(["validate", "--bindings", str(bad)]) == 1
    assert main(["validate", "--bindings", str(tmp_path / "missing.json")]) == 1


@pytest.mark.parametrize("kind", ["catalog", "bindings"])
def test_schema_prints_json(kind: str, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["schema", kind]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["type"] == "object"


def test_version_flag_and_subcommand(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--version"]) == 0
    assert main(["version"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [get_version(), get_version()]


def test_no_subcommand_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 2
    assert "usage" in capsys.readouterr().out.lower()


# =============================================================================
# Undecodable input
# =============================================================================
def test_non_utf8_bindings_file(template_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    vars_file = tmp_path / "vars.json"
    vars_file.write_bytes(b'{"name": "\xff"}')

    rc = main(["--dir", str(template_dir), "render", "greet", "--bindings", str(vars_file)])
    assert rc == 1
    assert capsys.readouterr().out == ""


@pytest.mark.parametrize("flag", ["--catalog", "--bindings"])
def test_validate_non_utf8_file(tmp_path: Path, flag: str, capsys: pytest.CaptureFixture[str]) -> None:
    p = tmp_path / "doc.json"
    p.write_bytes(b'{"templates": "\xff"}')
    assert main(["validate", flag, str(p)]) == 1
    assert capsys.readouterr().out == ""


# =============================================================================
# Strict default from the environment
# =============================================================================
def test_no_strict_overrides_environment_default(
    template_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(cli, "DEFAULT_STRICT", True)
    argv = ["--dir", str(template_dir), "render", "greet", "-D", "name=Ada"]

    assert main(argv) == 1
    assert capsys.readouterr().out == ""

    assert main(argv + ["--no-strict"]) == 0
    assert capsys.readouterr().out == "Hello Ada, welcome to .\n"
