import sys

import pytest

from codeowners_git.errors import ExternalCommandFailedError
from codeowners_git.exec import CommandRequest, SubprocessCommandRunner, run_checked


def test_subprocess_runner_captures_output() -> None:
    request = CommandRequest(argv=(sys.executable, "-c", "print('hi')"))

    result = SubprocessCommandRunner().run(request)

    assert result is not None
    assert result.returncode == 0
    assert result.stdout.strip() == "hi"


def test_missing_executable_returns_none() -> None:
    request = CommandRequest(argv=("definitely-not-a-real-command-xyz",))

    assert SubprocessCommandRunner().run(request) is None


def test_run_checked_includes_stderr_in_error() -> None:
    request = CommandRequest(
        argv=(sys.executable, "-c", "import sys; sys.stderr.write('bad ref'); sys.exit(3)")
    )

    with pytest.raises(ExternalCommandFailedError) as excinfo:
        run_checked(request)

    assert "bad ref" in str(excinfo.value)
    assert excinfo.value.code == "external_command_failed"


def test_run_checked_reports_missing_command() -> None:
    with pytest.raises(ExternalCommandFailedError, match="missing required command"):
        run_checked(CommandRequest(argv=("definitely-not-a-real-command-xyz",)))
