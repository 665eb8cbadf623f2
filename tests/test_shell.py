"""Tests for external command execution."""

import sys

import pytest

from nativebuild.errors import ToolError
from nativebuild.shell import run_command


def test_run_command_captures_stdout_and_stderr_separately(tmp_path):
    result = run_command(
        tmp_path,
        sys.executable,
        "-c",
        "import sys; print('out'); print('err', file=sys.stderr)",
    )
    assert result.returncode == 0
    assert result.stdout.strip() == "out"
    assert result.stderr.strip() == "err"
    assert result.args[0] == sys.executable


def test_run_command_uses_cwd(tmp_path):
    result = run_command(tmp_path, sys.executable, "-c", "import os; print(os.getcwd())")
    assert result.stdout.strip() == str(tmp_path.resolve())


def test_run_command_merges_env(tmp_path):
    result = run_command(
        tmp_path,
        sys.executable,
        "-c",
        "import os; print(os.environ['NB_TEST_VALUE'])",
        env={"NB_TEST_VALUE": "42"},
    )
    assert result.stdout.strip() == "42"


def test_run_command_nonzero_exit_embeds_stderr(tmp_path):
    with pytest.raises(ToolError) as exc:
        run_command(tmp_path, sys.executable, "-c", "import sys; sys.stderr.write('kaput'); sys.exit(3)")
    assert exc.value.returncode == 3
    assert exc.value.stderr == "kaput"
    assert str(exc.value).endswith(" - kaput")


def test_run_command_missing_executable(tmp_path):
    with pytest.raises(ToolError) as exc:
        run_command(tmp_path, "nativebuild-no-such-tool")
    assert "could not run" in str(exc.value)


def test_run_command_timeout(tmp_path):
    with pytest.raises(ToolError) as exc:
        run_command(tmp_path, sys.executable, "-c", "import time; time.sleep(5)", timeout=0.2)
    assert "timed out" in str(exc.value)
