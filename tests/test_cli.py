from __future__ import annotations

import argparse
import json
from pathlib import Path

import pytest

from stencil.cli import _parse_key_value_pairs, main


def test_parse_key_value_pairs():
    context = _parse_key_value_pairs(["name=demo", "version=1.0", "expr=a=b"])
    assert context == {"name": "demo", "version": "1.0", "expr": "a=b"}

    with pytest.raises(argparse.ArgumentTypeError):
        _parse_key_value_pairs(["invalid"])
    with pytest.raises(argparse.ArgumentTypeError):
        _parse_key_value_pairs([" =value"])


def test_cli_render_writes_to_output(tmp_path: Path):
    template_path = tmp_path / "template.txt"
    template_path.write_text("Hello {{ name }}{% if user.role == \"Admin\" %}!{% endif %}", encoding="utf-8")
    output_path = tmp_path / "output.txt"
    exit_code = main(
        ["render", str(template_path), "-c", "name=world", "-c", "user.role=Admin", "-o", str(output_path)]
    )
    assert exit_code == 0
    assert output_path.read_text(encoding="utf-8") == "Hello world!"


def test_cli_render_to_stdout(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    template_path = tmp_path / "template.txt"
    template_path.write_text("Hi {{name}}", encoding="utf-8")
    assert main(["render", str(template_path)]) == 0
    assert capsys.readouterr().out == "Hi {{name}}\n"


def test_cli_variables(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    template_path = tmp_path / "template.txt"
    template_path.write_text("{% if show %}{{name}} {{age}}{% endif %}", encoding="utf-8")

    assert main(["variables", str(template_path)]) == 0
    assert capsys.readouterr().out.split() == ["name", "age", "show"]

    assert main(["variables", str(template_path), "--missing", "-c", "name=Bob"]) == 0
    assert capsys.readouterr().out.split() == ["age"]


def _write_bundle(tmp_path: Path, bundle: dict) -> Path:
    path = tmp_path / "bundle.json"
    path.write_text(json.dumps(bundle), encoding="utf-8")
    return path


def test_cli_validate(tmp_path: Path, capsys: pytest.CaptureFixture[str], sample_bundle):
    bundle_path = _write_bundle(tmp_path, sample_bundle)
    assert main(["validate", str(bundle_path)]) == 0
    assert "Template is valid and ready to use" in capsys.readouterr().out

    sample_bundle["files"].append({"path": "README.md", "content": "dup"})
    bundle_path = _write_bundle(tmp_path, sample_bundle)
    assert main(["validate", str(bundle_path), "--json", "--id", "sample"]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["template_id"] == "sample"
    assert payload["files"]["errors"] == ["Duplicate file paths: README.md"]


def test_cli_init_creates_project(tmp_path: Path, sample_bundle):
    bundle_path = _write_bundle(tmp_path, sample_bundle)
    project_dir = tmp_path / "output"
    exit_code = main(
        ["init", str(bundle_path), "--directory", str(project_dir), "-c", "projectName=demo", "-c", "withTests=false"]
    )
    assert exit_code == 0
    assert (project_dir / "README.md").read_text(encoding="utf-8") == "# demo\n"
    assert (project_dir / "src" / "demo" / "__init__.py").exists()
    assert not (project_dir / "tests").exists()


def test_cli_init_reports_configuration_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str], sample_bundle):
    bundle_path = _write_bundle(tmp_path, sample_bundle)
    assert main(["init", str(bundle_path), "-d", str(tmp_path / "out")]) == 2
    assert "projectName" in capsys.readouterr().err


def test_cli_init_rejects_invalid_bundle(tmp_path: Path, capsys: pytest.CaptureFixture[str], sample_bundle):
    sample_bundle["version"] = ""
    bundle_path = _write_bundle(tmp_path, sample_bundle)
    assert main(["init", str(bundle_path), "-d", str(tmp_path / "out"), "-c", "projectName=x"]) == 1
    assert "Template version is required" in capsys.readouterr().err


def test_cli_render_infers_numbers_and_booleans(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    template_path = tmp_path / "template.txt"
    template_path.write_text(
        "{% if count > 5 %}many{% endif %}{% if flag %} flagged{% endif %}{% if ratio < 1 %} small{% endif %}",
        encoding="utf-8",
    )
    assert main(["render", str(template_path), "-c", "count=7", "-c", "flag=false", "-c", "ratio=0.5"]) == 0
    assert capsys.readouterr().out == "many small\n"

    assert main(["render", str(template_path), "-c", "count=3", "-c", "flag=True"]) == 0
    assert capsys.readouterr().out == " flagged\n"


def test_cli_init_reports_existing_files(tmp_path: Path, capsys: pytest.CaptureFixture[str], sample_bundle):
    bundle_path = _write_bundle(tmp_path, sample_bundle)
    arguments = ["init", str(bundle_path), "-d", str(tmp_path / "out"), "-c", "projectName=demo"]
    assert main(arguments) == 0
    capsys.readouterr()

    assert main(arguments) == 1
    assert "already exists" in capsys.readouterr().err
    assert main(arguments + ["--force"]) == 0


def test_cli_init_refuses_paths_outside_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str], sample_bundle):
    bundle_path = _write_bundle(tmp_path, sample_bundle)
    target = tmp_path / "out"
    assert main(["init", str(bundle_path), "-d", str(target), "-c", "projectName=../../elsewhere"]) == 1
    assert "outside" in capsys.readouterr().err
    assert not target.exists()
