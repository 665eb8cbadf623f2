"""Synchronous execution of external build tools."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

from .errors import ToolError

logger = logging.getLogger("nativebuild.shell")


@dataclass
class CommandResult:
    """Outcome of a finished external command."""

    args: list[str]
    returncode: int
    stdout: str
    stderr: str
    elapsed_seconds: float = 0.0


class CommandRunner(Protocol):
    def __call__(
        self,
        cwd: Union[str, Path],
        command: str,
        *args: str,
        env: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult: ...


def run_command(
    cwd: Union[str, Path],
    command: str,
    *args: str,
    env: Optional[dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """Run *command* with *args* in *cwd* and wait for it to finish.

    Standard output and standard error are captured separately. *env* is
    merged over the current environment. Raises :class:`ToolError` when the
    process cannot be started, times out, or exits non-zero.
    """
    argv = [str(command), *(str(a) for a in args)]
    run_env = os.environ.copy()
    if env:
        run_env.update(env)

    logger.debug("Running: %s (cwd=%s, timeout=%s)", " ".join(argv), cwd, timeout)
    t0 = time.monotonic()

    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd),
            env=run_env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        elapsed = time.monotonic() - t0
        logger.error("Command TIMED OUT after %.1fs: %s", elapsed, " ".join(argv))
        stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
        raise ToolError(f"{argv[0]} timed out after {elapsed:.0f}s", command=argv, stderr=stderr) from e
    except OSError as e:
        logger.error("Could not start %s: %s", argv[0], e)
        raise ToolError(f"could not run {argv[0]}: {e}", command=argv) from e

    elapsed = time.monotonic() - t0
    if proc.returncode != 0:
        logger.warning(
            "Command failed (exit=%d) in %.1fs: %s\nstderr:\n%s",
            proc.returncode, elapsed, " ".join(argv), proc.stderr.strip() or "(empty)",
        )
        raise ToolError(
            f"{argv[0]} exited with status {proc.returncode}",
            command=argv,
            returncode=proc.returncode,
            stderr=proc.stderr,
        )

    logger.info("Command succeeded (exit=0) in %.1fs: %s", elapsed, " ".join(argv))
    return CommandResult(
        args=argv,
        returncode=proc.returncode,
        stdout=proc.stdout,
        stderr=proc.stderr,
        elapsed_seconds=elapsed,
    )
