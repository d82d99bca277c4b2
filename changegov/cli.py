"""CLI entrypoint for changegov."""

import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from . import __version__
from .models import CommitType

_COMMIT_TYPES = [t.value for t in CommitType]


@click.group()
@click.version_option(__version__, prog_name="changegov")
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Project root (defaults to the directory holding changegov.yml, else the working directory)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Explicit config file (default: nearest changegov.yml)",
)
@click.option("--verbose", is_flag=True, help="Log rule matches and version decisions to stderr")
@click.pass_context
def cli(ctx: click.Context, root: Path | None, config_path: Path | None, verbose: bool) -> None:
    """changegov - classify changes, bump versions, keep the changelog.

    Turns a change description into a commit type, a semantic version
    transition, a validated commit message and a changelog entry.
    """
    from .config import load_config
    from .errors import ConfigError

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path, root=root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def descriptor_options(fn):
    """Options shared by every command that takes a change description."""
    options = [
        click.argument("summary", nargs=-1, required=True),
        click.option("--scope", "-s", default=None, help="Scope label, e.g. cli or parser"),
        click.option("--breaking", is_flag=True, help="Mark the change as breaking"),
        click.option(
            "--type",
            "commit_type",
            type=click.Choice(_COMMIT_TYPES),
            default=None,
            help="Commit type to use instead of the rule table",
        ),
        click.option("--subject", default=None, help="Explicit subject text (default: derived from SUMMARY)"),
        click.option("--body", default=None, help="Body text; wrapped at 72 columns"),
        click.option("--issue", "issues", multiple=True, help="Issue reference, e.g. 42 or #42. Repeatable."),
        click.option("--breaking-note", default=None, help="Explanation for the BREAKING CHANGE footer"),
        click.option("--target-version", default=None, help="Force the resulting version (must be a legal bump)"),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _descriptor(
    summary: tuple[str, ...],
    scope: str | None,
    breaking: bool,
    commit_type: str | None,
    subject: str | None,
    body: str | None,
    issues: tuple[str, ...],
    breaking_note: str | None,
    target_version: str | None,
):
    from .models import ChangeDescriptor

    try:
        return ChangeDescriptor(
            summary=" ".join(summary),
            scope=scope,
            breaking=breaking,
            target_version=target_version,
            commit_type=CommitType(commit_type) if commit_type else None,
            subject=subject,
            body=body,
            issues=issues,
            breaking_note=breaking_note,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="SUMMARY") from exc


@cli.command()
@descriptor_options
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def classify(ctx: click.Context, output_json: bool, **kwargs) -> None:
    """Classify a change description.

    Examples:

        changegov classify "fix off-by-one in loop"

        changegov classify "remove the --legacy flag"
    """
    from .commands.record_cmd import run_classify

    sys.exit(run_classify(ctx.obj["config"], _descriptor(**kwargs), output_json=output_json))


@cli.command()
@click.argument("current", type=str)
@click.option("--type", "commit_type", type=click.Choice(_COMMIT_TYPES), required=True, help="Commit type")
@click.option("--breaking", is_flag=True, help="Breaking change (major bump)")
@click.option("--to", "target", default=None, help="Explicit target version to validate")
def bump(current: str, commit_type: str, breaking: bool, target: str | None) -> None:
    """Compute the next version from CURRENT.

    Examples:

        changegov bump 1.4.2 --type feat

        changegov bump 1.5.1 --type fix --breaking
    """
    from .commands.record_cmd import run_bump

    sys.exit(run_bump(current, commit_type, breaking=breaking, target=target))


@cli.command()
@descriptor_options
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def message(ctx: click.Context, output_json: bool, **kwargs) -> None:
    """Render the commit message for a change without recording it."""
    from .commands.record_cmd import run_message

    sys.exit(run_message(ctx.obj["config"], _descriptor(**kwargs), output_json=output_json))


@cli.command()
@descriptor_options
@click.option(
    "--version",
    "current",
    default=None,
    help="Current version (default: project.version from the manifest)",
)
@click.option("--label", default=None, help="Changelog entry label (default: v<new version>)")
@click.option(
    "--at",
    "timestamp",
    type=click.DateTime(formats=["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S"]),
    default=None,
    help="Entry timestamp (default: now)",
)
@click.option("--dry-run", is_flag=True, help="Show what would be recorded without writing")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def record(
    ctx: click.Context,
    current: str | None,
    label: str | None,
    timestamp: datetime | None,
    dry_run: bool,
    output_json: bool,
    **kwargs,
) -> None:
    """Record a change: decide the version, build the message, prepend the changelog.

    Nothing is written if any step fails.

    Examples:

        changegov record "fix off-by-one in loop" --version 0.9.0

        changegov record "remove the --legacy flag" --breaking-note "use mode instead"

        changegov record "add --json output" --scope cli --dry-run
    """
    from .commands.record_cmd import run_record

    exit_code = run_record(
        ctx.obj["config"],
        _descriptor(**kwargs),
        current=current,
        label=label,
        timestamp=timestamp,
        dry_run=dry_run,
        output_json=output_json,
    )
    sys.exit(exit_code)


# -----------------------------------------------------------------------------
# Changelog commands
# -----------------------------------------------------------------------------


@cli.group()
def changelog() -> None:
    """Inspect the changelog ledger (read-only)."""
    pass


@changelog.command("show")
@click.option("--limit", type=int, default=20, show_default=True, help="Max entries to show (0 for all)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def changelog_show(ctx: click.Context, limit: int, output_json: bool) -> None:
    """Show changelog entries, newest first."""
    from .commands.changelog_cmd import run_changelog_show

    sys.exit(run_changelog_show(ctx.obj["config"], limit=limit, output_json=output_json))


@cli.command()
@click.option("--last", "last_n", type=int, default=None, help="Show only the last N entries")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def audit(ctx: click.Context, last_n: int | None, output_json: bool) -> None:
    """Show the audit log of recorded changes."""
    from .commands.changelog_cmd import run_audit

    sys.exit(run_audit(ctx.obj["config"], last_n=last_n, output_json=output_json))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
