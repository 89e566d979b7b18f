"""Command-line entry point for codeowners-git.

Commands receive a ``SimpleNamespace`` of their options. This module is the
only place a ``CodeownersGitError`` becomes an exit status: 1 for failures,
130 when interrupted.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Annotated, Callable

import typer

from . import __version__
from . import log as codeowners_log
from .commands.branch import create_branch as branch_cmd
from .commands.extract import extract_files as extract_cmd
from .commands.list import list_owners as list_cmd
from .commands.multi_branch import create_multi_branch as multi_branch_cmd
from .commands.recover import recover_operation as recover_cmd
from .config import load_settings
from .errors import BranchOperationError, CodeownersGitError
from .signals import INTERRUPT_EXIT_CODE, install_handlers, report_interrupted

FAILURE_EXIT_CODE = 1

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Split working-tree changes into branches by CODEOWNERS owner.",
)


def _report_failure(error: CodeownersGitError) -> None:
    codeowners_log.error(f"Error: {error}")
    if isinstance(error, BranchOperationError) and error.preserved:
        codeowners_log.info(f"Preserved: {error.preserved}")
    if error.recovery_hint:
        codeowners_log.info(f"Next: {error.recovery_hint}")


def _invoke(command: Callable[[SimpleNamespace], None], **options: object) -> None:
    install_handlers()
    try:
        command(SimpleNamespace(**options))
    except KeyboardInterrupt:
        report_interrupted()
        raise typer.Exit(code=INTERRUPT_EXIT_CODE) from None
    except CodeownersGitError as error:
        _report_failure(error)
        raise typer.Exit(code=FAILURE_EXIT_CODE) from None


def _validate_log_level(value: str | None) -> str | None:
    if value is None:
        return None
    if not codeowners_log.is_level_name(value):
        raise typer.BadParameter(f"expected one of: {', '.join(codeowners_log.LEVEL_NAMES)}")
    return value.strip().lower()


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"codeowners-git {__version__}")
        raise typer.Exit()


@app.callback()
def root(
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Log level: trace, debug, info, success, warning, error.",
            callback=_validate_log_level,
        ),
    ] = None,
    no_color: Annotated[
        bool, typer.Option("--no-color", help="Disable colorized output.")
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", help="Show the version and exit.", callback=_show_version, is_eager=True
        ),
    ] = False,
) -> None:
    """Split working-tree changes into branches by CODEOWNERS owner."""
    try:
        settings = load_settings(use_default_path=True)
    except CodeownersGitError as error:
        _report_failure(error)
        raise typer.Exit(code=FAILURE_EXIT_CODE) from None
    level = log_level or settings.log_level
    if level is not None:
        codeowners_log.set_level(level)
    if no_color or settings.no_color:
        codeowners_log.set_no_color(True)


@app.command("list", help="List changed files with their codeowners.")
def list_command(
    owner: Annotated[
        str | None, typer.Option("--owner", "-o", help="Show only files owned by this owner.")
    ] = None,
    include: Annotated[
        str | None,
        typer.Option("--include", "-i", help="Comma-separated owner globs to show."),
    ] = None,
) -> None:
    _invoke(list_cmd, owner=owner, include=include)


@app.command("branch", help="Commit one owner's changed files to a branch.")
def branch_command(
    owner: Annotated[str | None, typer.Option("--owner", "-o", help="Codeowner to filter by.")] = None,
    branch: Annotated[str | None, typer.Option("--branch", "-b", help="Branch name.")] = None,
    message: Annotated[str | None, typer.Option("--message", "-m", help="Commit message.")] = None,
    no_verify: Annotated[
        bool, typer.Option("--no-verify", "-n", help="Skip commit and push hooks.")
    ] = False,
    push: Annotated[bool, typer.Option("--push", "-p", help="Push to the remote.")] = False,
    remote: Annotated[
        str | None, typer.Option("--remote", "-r", help="Remote name (default: origin).")
    ] = None,
    upstream: Annotated[
        str | None, typer.Option("--upstream", "-u", help="Remote branch name to push to.")
    ] = None,
    force: Annotated[bool, typer.Option("--force", "-f", help="Force push.")] = False,
    keep_branch_on_failure: Annotated[
        bool,
        typer.Option(
            "--keep-branch-on-failure", "-k", help="Keep the created branch if a step fails."
        ),
    ] = False,
    append: Annotated[
        bool, typer.Option("--append", "-a", help="Add a commit to an existing branch.")
    ] = False,
    pr: Annotated[bool, typer.Option("--pr", help="Open a pull request (needs --push).")] = False,
    draft_pr: Annotated[
        bool, typer.Option("--draft-pr", help="Open a draft pull request (needs --push).")
    ] = False,
) -> None:
    _invoke(
        branch_cmd,
        owner=owner or "",
        branch=branch or "",
        message=message or "",
        no_verify=no_verify,
        push=push,
        remote=remote,
        upstream=upstream,
        force=force,
        keep_branch_on_failure=keep_branch_on_failure,
        append=append,
        pr=pr,
        draft_pr=draft_pr,
    )


@app.command("multi-branch", help="Create one branch per codeowner of the changed files.")
def multi_branch_command(
    branch: Annotated[
        str | None, typer.Option("--branch", "-b", help="Base branch name; owners are appended.")
    ] = None,
    message: Annotated[
        str | None, typer.Option("--message", "-m", help="Base commit message.")
    ] = None,
    no_verify: Annotated[
        bool, typer.Option("--no-verify", "-n", help="Skip commit and push hooks.")
    ] = False,
    push: Annotated[bool, typer.Option("--push", "-p", help="Push to the remote.")] = False,
    remote: Annotated[
        str | None, typer.Option("--remote", "-r", help="Remote name (default: origin).")
    ] = None,
    upstream: Annotated[
        str | None,
        typer.Option("--upstream", "-u", help="Remote branch prefix; the owner is appended."),
    ] = None,
    force: Annotated[bool, typer.Option("--force", "-f", help="Force push.")] = False,
    keep_branch_on_failure: Annotated[
        bool,
        typer.Option(
            "--keep-branch-on-failure", "-k", help="Keep created branches if a step fails."
        ),
    ] = False,
    default_owner: Annotated[
        str | None,
        typer.Option("--default-owner", "-d", help="Owner for files without a codeowner."),
    ] = None,
    ignore: Annotated[
        str | None, typer.Option("--ignore", help="Comma-separated owner globs to skip.")
    ] = None,
    include: Annotated[
        str | None,
        typer.Option("--include", "-i", help="Comma-separated owner globs to process."),
    ] = None,
    append: Annotated[
        bool, typer.Option("--append", "-a", help="Add commits to existing branches.")
    ] = False,
    pr: Annotated[bool, typer.Option("--pr", help="Open pull requests (needs --push).")] = False,
    draft_pr: Annotated[
        bool, typer.Option("--draft-pr", help="Open draft pull requests (needs --push).")
    ] = False,
) -> None:
    _invoke(
        multi_branch_cmd,
        branch=branch or "",
        message=message or "",
        no_verify=no_verify,
        push=push,
        remote=remote,
        upstream=upstream,
        force=force,
        keep_branch_on_failure=keep_branch_on_failure,
        default_owner=default_owner,
        ignore=ignore,
        include=include,
        append=append,
        pr=pr,
        draft_pr=draft_pr,
    )


@app.command("extract", help="Copy files changed on a branch or commit into the working tree.")
def extract_command(
    source: Annotated[
        str | None, typer.Option("--source", "-s", help="Branch or commit to extract from.")
    ] = None,
    owner: Annotated[
        str | None, typer.Option("--owner", "-o", help="Owner glob to filter files by.")
    ] = None,
    compare_main: Annotated[
        bool,
        typer.Option("--compare-main", help="Diff against the default branch, not the merge-base."),
    ] = False,
    remote: Annotated[
        str | None, typer.Option("--remote", "-r", help="Remote used to find the default branch.")
    ] = None,
) -> None:
    _invoke(extract_cmd, source=source or "", owner=owner, compare_main=compare_main, remote=remote)


@app.command("recover", help="Recover from a failed or interrupted operation.")
def recover_command(
    list_: Annotated[
        bool, typer.Option("--list", help="List incomplete operations.")
    ] = False,
    id_: Annotated[
        str | None, typer.Option("--id", help="Operation id to recover.")
    ] = None,
    auto: Annotated[
        bool, typer.Option("--auto", help="Recover the most recent operation without asking.")
    ] = False,
    keep_branches: Annotated[
        bool, typer.Option("--keep-branches", help="Keep branches created by the operation.")
    ] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt.")] = False,
) -> None:
    _invoke(recover_cmd, list=list_, id=id_, auto=auto, keep_branches=keep_branches, yes=yes)


def main() -> None:
    app(prog_name="codeowners-git")
