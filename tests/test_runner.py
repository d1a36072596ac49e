import sys

import pytest

from yamlmigrator.runner import CommandResult, ProcessRunner, SubprocessRunner


def test_process_runner_is_abstract():
    with pytest.raises(TypeError):
        ProcessRunner()


def test_runner_without_run_cannot_be_built():
    class Incomplete(ProcessRunner):
        pass

    with pytest.raises(TypeError):
        Incomplete()


def test_subprocess_runner_captures_output(tmp_path):
    result = SubprocessRunner().run(
        [sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read().upper())"],
        cwd=tmp_path,
        input=b"package main\n",
        capture=True,
    )
    assert result.ok
    assert result.stdout == b"PACKAGE MAIN\n"


def test_subprocess_runner_reports_exit_status(tmp_path):
    result = SubprocessRunner().run(
        [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"],
        cwd=tmp_path,
        capture=True,
    )
    assert not result.ok
    assert result.returncode == 3
    assert result.describe() == "exit status 3: boom"


def test_subprocess_runner_reports_launch_failure(tmp_path):
    result = SubprocessRunner().run(["yamlmigrator-no-such-binary"], cwd=tmp_path)
    assert result.returncode == -1
    assert not result.ok
    assert result.error.startswith("could not run yamlmigrator-no-such-binary")


def test_command_result_describe():
    assert CommandResult(("go",), 0).describe() == "ok"
    assert CommandResult(("go",), 1).describe() == "exit status 1"
