"""Pre- and post-build hook execution.

Hooks are declared in the project file keyed by ``"<platform>/<arch>"``,
``"<platform>/*"`` or ``"*/*"``. For each phase the keys are tried in that
order and only the first key with a non-empty command runs.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Union

from .config import VERBOSE, ProjectMetadata, host_platform
from .errors import HookError, ToolError
from .log_config import LogCallback, emit
from .shell import CommandResult, CommandRunner, run_command

logger = logging.getLogger("nativebuild.hooks")

PRE = "pre"
POST = "post"

PLATFORM_TOKEN = "${platform}"
BIN_TOKEN = "${bin}"


def hook_keys(platform: str, arch: str) -> tuple[str, str, str]:
    """Hook keys for a target, most specific first."""
    return (f"{platform}/{arch}", f"{platform}/*", "*/*")


def split_command(template: Union[str, Sequence[str]]) -> list[str]:
    """Turn a hook command into an argument list.

    Strings are split shell-style (quotes respected, no empty tokens);
    sequences are taken as an explicit argument list.
    """
    if isinstance(template, str):
        return shlex.split(template)
    return [str(t) for t in template]


def substitute_args(tokens: Sequence[str], substitutions: Mapping[str, str]) -> list[str]:
    """Replace whole tokens found in *substitutions*.

    A token mapped to an empty string is left as is.
    """
    return [substitutions.get(token) or token for token in tokens]


def is_native_hook(key: str, host: str) -> bool:
    """True if the hook key's platform is the host platform, ``*`` or global."""
    if not key:
        return True
    platform_of_hook = key.split("/", 1)[0]
    return platform_of_hook in ("*", host)


@dataclass(frozen=True)
class HookContext:
    """Substitution values for one hook phase, rebuilt per phase."""

    platform: str
    arch: str
    binary: Optional[str] = None

    def substitutions(self) -> Mapping[str, str]:
        values = {PLATFORM_TOKEN: f"{self.platform}/{self.arch}"}
        if self.binary is not None:
            values[BIN_TOKEN] = self.binary
        return MappingProxyType(values)


@dataclass(frozen=True)
class HookInvocation:
    """A resolved hook: which phase, which key, which command template."""

    phase: str
    key: str
    template: tuple[str, ...]

    def argv(self, substitutions: Mapping[str, str]) -> list[str]:
        return substitute_args(self.template, substitutions)


class HookExecutor:
    """Runs the project's build hooks in the build output directory."""

    def __init__(
        self,
        project: ProjectMetadata,
        *,
        bin_dir: Path,
        verbosity: int = 1,
        runner: CommandRunner = run_command,
        host: Optional[str] = None,
        timeout: Optional[float] = None,
        on_log: Optional[LogCallback] = None,
    ) -> None:
        self.project = project
        self.bin_dir = Path(bin_dir)
        self.verbosity = verbosity
        self.runner = runner
        self.host = host or host_platform()
        self.timeout = timeout
        self.on_log = on_log

    def hooks_for(self, phase: str) -> Mapping[str, Union[str, list[str]]]:
        if phase == PRE:
            return self.project.pre_build_hooks
        if phase == POST:
            return self.project.post_build_hooks
        raise ValueError(f"Unknown hook phase: {phase}")

    def resolve(self, phase: str, platform: str, arch: str) -> Optional[HookInvocation]:
        """Return the first hook with a non-empty command for the target."""
        hooks = self.hooks_for(phase)
        for key in hook_keys(platform, arch):
            template = split_command(hooks.get(key) or "")
            if template:
                return HookInvocation(phase=phase, key=key, template=tuple(template))
        return None

    def run_phase(self, phase: str, context: HookContext) -> Optional[CommandResult]:
        """Run the winning hook for *phase*, if any.

        Returns the command result, or None when there was nothing to run
        or the hook was skipped as non-native.
        """
        invocation = self.resolve(phase, context.platform, context.arch)
        if invocation is None:
            logger.debug("No %s-build hook for %s/%s", phase, context.platform, context.arch)
            return None
        return self.execute(invocation, context.substitutions())

    def execute(self, invocation: HookInvocation, substitutions: Mapping[str, str]) -> Optional[CommandResult]:
        if not self.project.run_non_native_build_hooks and not is_native_hook(invocation.key, self.host):
            emit(self.on_log, f"  - Non native build hook '{invocation.key}': Skipping.", logger)
            return None

        argv = invocation.argv(substitutions)
        emit(self.on_log, f"  - Executing {invocation.phase} build hook '{invocation.key}'", logger)
        if self.verbosity == VERBOSE:
            emit(self.on_log, "    " + shlex.join(argv))

        self.bin_dir.mkdir(parents=True, exist_ok=True)
        try:
            result = self.runner(self.bin_dir, argv[0], *argv[1:], timeout=self.timeout)
        except ToolError as e:
            raise HookError(invocation.phase, invocation.key, e) from e

        if self.verbosity == VERBOSE and result.stdout:
            emit(self.on_log, result.stdout.rstrip())
        return result
