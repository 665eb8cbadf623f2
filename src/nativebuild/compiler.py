"""Application compilation, including darwin universal binaries."""

from __future__ import annotations

import dataclasses
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

from .builders.base import Builder
from .config import UNIVERSAL, VERBOSE, BuildConfiguration
from .errors import BuildError, CleanupError, ConfigurationError
from .log_config import LogCallback, emit
from .packager import Packager
from .shell import CommandRunner, run_command

logger = logging.getLogger("nativebuild.compiler")

UNIVERSAL_ARCHES = ("amd64", "arm64")
FUSION_TOOL = "lipo"
EXP_WEBVIEW2_LOADER_TAG = "exp_gowebview2loader"


@contextmanager
def removing(paths: Sequence[Path]) -> Iterator[None]:
    """Delete *paths* when the block exits, however it exits.

    If the block raised, removal failures are logged and the original
    error propagates. Otherwise the first removal failure raises
    :class:`CleanupError` after every path has been attempted.
    """
    try:
        yield
    except BaseException:
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                logger.error("Could not remove %s after failed build: %s", path, e)
        raise

    failure: Optional[CleanupError] = None
    for path in paths:
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logger.error("Could not remove %s: %s", path, e)
            failure = failure or CleanupError(Path(path), e)
    if failure is not None:
        raise failure


class PlatformCompiler:
    """Turns prepared sources into the final binary for one target."""

    def __init__(
        self,
        builder: Builder,
        packager: Optional[Packager] = None,
        *,
        runner: CommandRunner = run_command,
        host: str = "",
        fusion_tool: str = FUSION_TOOL,
        on_log: Optional[LogCallback] = None,
    ) -> None:
        self.builder = builder
        self.runner = runner
        self.packager = packager or Packager(runner, on_log=on_log)
        self.host = host
        self.fusion_tool = fusion_tool
        self.on_log = on_log

    def _log(self, msg: str) -> None:
        emit(self.on_log, msg, logger)

    def compile(self, config: BuildConfiguration) -> Path:
        """Compile (and optionally package) the application.

        Sets and returns ``config.compiled_binary``.
        """
        if config.project is None:
            raise BuildError("no project data to compile")

        resource_files: list[Path] = []
        if config.pack and config.platform == "windows":
            self._log("  - Generating bundle assets")
            syso, generated = self.packager.generate_windows_resources(config)
            for path in generated:
                self.builder.track_generated_file(path)
            resource_files.append(syso)

        with removing(resource_files):
            self._log("  - Compiling application")
            if config.is_universal:
                self.compile_universal(config)
            else:
                self.builder.compile_project(config)

        if config.pack and config.platform != "windows":
            self._log("  - Packaging application")
            # TODO: package for config.platform instead of the host once cross-packaging is supported
            self.packager.package(config, self.host or config.platform)

        if config.platform == "windows":
            self._webview2_loader_nudge(config)

        if config.compiled_binary is None:
            raise BuildError("compilation produced no binary")
        return Path(config.compiled_binary)

    # ------------------------------------------------------------------
    # Universal binaries
    # ------------------------------------------------------------------

    @staticmethod
    def variant_config(config: BuildConfiguration, arch: str, output_file: str) -> BuildConfiguration:
        """Scratch copy of *config* for one architecture of a universal build."""
        return dataclasses.replace(
            config,
            arch=arch,
            output_file=output_file,
            clean_bin_dir=False,
            compiled_binary=None,
            user_tags=list(config.user_tags),
        )

    def compile_universal(self, config: BuildConfiguration) -> Path:
        if config.platform != "darwin":
            raise ConfigurationError(f"{UNIVERSAL} binaries are only supported for darwin, not {config.platform}")
        if config.bin_dir is None:
            raise BuildError("bin directory is not set")

        bin_dir = Path(config.bin_dir)
        output_file = self.builder.output_filename(config)
        variants = [self.variant_config(config, arch, f"{output_file}-{arch}") for arch in UNIVERSAL_ARCHES]
        intermediates = [bin_dir / v.output_file for v in variants]

        with removing(intermediates):
            for variant in variants:
                if config.verbosity == VERBOSE:
                    self._log(f"  Building {variant.arch.upper()} Target: {bin_dir / variant.output_file}")
                self.builder.compile_project(variant)
            fused = self.fuse(bin_dir, output_file, [Path(v.output_file) for v in variants], config)

        config.compiled_binary = fused
        return fused

    def fuse(
        self,
        bin_dir: Path,
        output_file: str,
        inputs: Sequence[Path],
        config: BuildConfiguration,
    ) -> Path:
        """Merge per-architecture binaries into one universal binary."""
        args = ["-create", "-output", output_file, *(str(p) for p in inputs)]
        if config.verbosity == VERBOSE:
            self._log(f"  Running {self.fusion_tool}: {self.fusion_tool} {' '.join(args)}")
        self.runner(bin_dir, self.fusion_tool, *args, timeout=config.command_timeout)
        return Path(bin_dir) / output_file

    # ------------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------------

    def _webview2_loader_nudge(self, config: BuildConfiguration) -> None:
        tags = config.effective_tags()
        if EXP_WEBVIEW2_LOADER_TAG in tags:
            message = (
                "Thanks for testing the experimental native WebView2 loader. "
                "Please report any feedback or bugs you think might be related to it."
            )
        else:
            suggested = ",".join([*tags, EXP_WEBVIEW2_LOADER_TAG])
            message = (
                "An experimental native WebView2 loader is available. "
                f"Try it by building with `--tags {suggested}`."
            )
        self._log(f"  - {message}")
