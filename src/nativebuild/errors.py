"""Error types raised by the build pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class BuildError(Exception):
    """Raised when a build operation fails."""


class ConfigurationError(BuildError):
    """The build configuration or project file cannot be used."""


class ToolError(BuildError):
    """An external tool exited non-zero, timed out or could not be started.

    The message embeds the captured standard error as ``"<reason> - <stderr>"``
    so the first failure can be surfaced verbatim to the user.
    """

    def __init__(
        self,
        reason: str,
        *,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        self.reason = reason
        self.command = list(command or [])
        self.returncode = returncode
        self.stderr = stderr
        message = f"{reason} - {stderr.strip()}" if stderr.strip() else reason
        super().__init__(message)


class HookError(ToolError):
    """A pre- or post-build hook failed."""

    def __init__(self, phase: str, hook: str, cause: ToolError) -> None:
        self.phase = phase
        self.hook = hook
        super().__init__(
            f"{phase}-build hook '{hook}' failed: {cause.reason}",
            command=cause.command,
            returncode=cause.returncode,
            stderr=cause.stderr,
        )


class CleanupError(BuildError):
    """A temporary build artifact could not be removed."""

    def __init__(self, path: Path, cause: OSError) -> None:
        self.path = Path(path)
        super().__init__(f"cleanup failed: could not remove {path}: {cause}")
