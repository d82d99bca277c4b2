"""
Tests for the command layer and the click entrypoint.

The run_* functions are exercised directly; a few CliRunner tests cover
argument parsing and exit codes.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from click.testing import CliRunner

from changegov.cli import cli
from changegov.commands.changelog_cmd import run_audit, run_changelog_show
from changegov.commands.record_cmd import run_bump, run_classify, run_message, run_record
from changegov.config import GovernanceConfig
from changegov.models import ChangeDescriptor


def test_classify_json(project_config: GovernanceConfig, capsys) -> None:
    exit_code = run_classify(project_config, ChangeDescriptor("fix off-by-one in loop"), output_json=True)
    assert exit_code == 0
    data = json.loads(capsys.readouterr().out)
    assert data == {"type": "fix", "breaking": False, "rule_id": "defect"}


def test_classify_ambiguous(project_config: GovernanceConfig, capsys) -> None:
    exit_code = run_classify(project_config, ChangeDescriptor("tweak things"))
    assert exit_code == 1
    assert "explicit commit type" in capsys.readouterr().err


def test_bump(capsys) -> None:
    assert run_bump("1.4.2", "feat") == 0
    assert capsys.readouterr().out.strip() == "1.5.0"

    assert run_bump("1.5.1", "fix", breaking=True) == 0
    assert capsys.readouterr().out.strip() == "2.0.0"

    assert run_bump("1.2", "fix") == 1
    assert "Invalid version" in capsys.readouterr().err


def test_message_reports_every_violation(project_config: GovernanceConfig, capsys) -> None:
    descriptor = ChangeDescriptor("fix off-by-one in loop", subject="x" * 60, body="costs $5")
    assert run_message(project_config, descriptor) == 1
    err = capsys.readouterr().err
    assert "subject" in err
    assert "also:" in err


def test_message_json(project_config: GovernanceConfig, capsys) -> None:
    assert run_message(project_config, ChangeDescriptor("remove the --legacy flag"), output_json=True) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["subject"] == "feat!: remove legacy flag"
    assert data["footer"] == ["BREAKING CHANGE: remove legacy flag"]


def test_record_writes_changelog(project_config: GovernanceConfig, capsys) -> None:
    exit_code = run_record(
        project_config,
        ChangeDescriptor("remove the --legacy flag"),
        current="3.2.1",
        timestamp=datetime(2026, 10, 17, 14, 32),
    )
    assert exit_code == 0
    captured = capsys.readouterr()
    assert captured.out.startswith("feat!: remove legacy flag\n\nBREAKING CHANGE:")
    assert "3.2.1 -> 4.0.0" in captured.err

    text = project_config.changelog.read_text(encoding="utf-8")
    assert "### 2026-10-17 14:32 (v4.0.0)\n- feat!: remove legacy flag\n" in text


def test_record_reads_manifest_version(project_config: GovernanceConfig, capsys) -> None:
    project_config.manifest.write_text('[project]\nname = "demo"\nversion = "0.9.0"\n', encoding="utf-8")
    exit_code = run_record(project_config, ChangeDescriptor("fix off-by-one in loop"), output_json=True)
    assert exit_code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["version"]["new"] == "0.9.1"
    assert data["entry"]["label"] == "v0.9.1"
    assert data["dry_run"] is False


def test_record_dry_run_writes_nothing(project_config: GovernanceConfig, capsys) -> None:
    exit_code = run_record(project_config, ChangeDescriptor("fix off-by-one in loop"), current="1.0.0", dry_run=True)
    assert exit_code == 0
    assert "Would record" in capsys.readouterr().err
    assert not project_config.changelog.exists()
    assert not project_config.state_dir.exists()


def test_record_bad_label_is_reported(project_config: GovernanceConfig, capsys) -> None:
    exit_code = run_record(project_config, ChangeDescriptor("fix off-by-one in loop"), current="0.9.0", label="a\nb")
    assert exit_code == 1
    assert "label" in capsys.readouterr().err
    assert not project_config.changelog.exists()


def test_record_without_manifest_fails(project_config: GovernanceConfig, capsys) -> None:
    assert run_record(project_config, ChangeDescriptor("fix off-by-one in loop")) == 1
    assert "Invalid version" in capsys.readouterr().err
    assert not project_config.changelog.exists()


def test_changelog_show_and_audit(project_config: GovernanceConfig, capsys) -> None:
    for minute, (summary, current) in enumerate([("fix off-by-one in loop", "0.9.0"), ("add new export command", "0.9.1")]):
        run_record(project_config, ChangeDescriptor(summary), current=current, timestamp=datetime(2026, 10, 17, 9, minute))
    capsys.readouterr()

    assert run_changelog_show(project_config, output_json=True) == 0
    entries = json.loads(capsys.readouterr().out)
    assert [e["label"] for e in entries] == ["v0.10.0", "v0.9.1"]

    assert run_changelog_show(project_config, limit=1, output_json=True) == 0
    assert len(json.loads(capsys.readouterr().out)) == 1

    assert run_changelog_show(project_config) == 0
    assert "v0.10.0" in capsys.readouterr().out

    assert run_audit(project_config, output_json=True) == 0
    audit = json.loads(capsys.readouterr().out)
    assert [a["version_after"] for a in audit] == ["0.9.1", "0.10.0"]

    assert run_audit(project_config, last_n=1) == 0
    out = capsys.readouterr().out
    assert "0.9.1 -> 0.10.0" in out
    assert "Type: feat" in out


def test_changelog_show_empty(project_config: GovernanceConfig, capsys) -> None:
    assert run_changelog_show(project_config) == 0
    assert "No changelog entries" in capsys.readouterr().err


# -----------------------------------------------------------------------------
# click entrypoint
# -----------------------------------------------------------------------------


def test_cli_record(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "--root",
            str(tmp_path),
            "record",
            "remove the --legacy flag",
            "--version",
            "3.2.1",
            "--at",
            "2026-10-17 14:32",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "feat!: remove legacy flag" in result.output
    text = (tmp_path / "CHANGELOG.md").read_text(encoding="utf-8")
    assert "### 2026-10-17 14:32 (v4.0.0)" in text


def test_cli_summary_words_are_joined(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--root", str(tmp_path), "classify", "--json", "fix", "off-by-one", "in", "loop"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["rule_id"] == "defect"


def test_cli_explicit_type(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--root", str(tmp_path), "classify", "--type", "chore", "tweak things"])
    assert result.exit_code == 0, result.output
    assert "chore" in result.output


def test_cli_failure_exit_code(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--root", str(tmp_path), "record", "tweak things", "--version", "1.0.0"])
    assert result.exit_code == 1
    assert not (tmp_path / "CHANGELOG.md").exists()


def test_cli_bump(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--root", str(tmp_path), "bump", "1.4.2", "--type", "feat"])
    assert result.exit_code == 0
    assert result.output.startswith("1.5.0")


def test_cli_bad_config(tmp_path: Path) -> None:
    (tmp_path / "changegov.yml").write_text("changelg: x\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["--root", str(tmp_path), "bump", "1.4.2", "--type", "feat"])
    assert result.exit_code == 1
    assert "Unknown config keys" in result.output


def test_cli_bad_label_exit_code(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["--root", str(tmp_path), "record", "fix off-by-one in loop", "--version", "0.9.0", "--label", "a\nb"],
    )
    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert not (tmp_path / "CHANGELOG.md").exists()
