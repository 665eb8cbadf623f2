"""Build pipeline: hooks, embeds, bindings, frontend, compile, package."""

from __future__ import annotations

import dataclasses
import logging
import time
from pathlib import Path
from typing import Optional

from .bindings import BindingsGenerator, BindingsOptions
from .builders.base import Builder
from .builders.registry import get_builder
from .compiler import PlatformCompiler
from .config import UNIVERSAL, VERBOSE, BuildConfiguration, ProjectMetadata, host_platform
from .embed import EmbedDirectoryProvisioner
from .errors import BuildError, ConfigurationError
from .hooks import POST, PRE, HookContext, HookExecutor
from .log_config import LogCallback, emit
from .packager import Packager
from .shell import CommandRunner, run_command

logger = logging.getLogger("nativebuild.pipeline")


class BuildPipeline:
    """Runs every build stage in order for one configuration.

    Stages run sequentially; the first failing stage aborts the rest. The
    builder's clean-up runs on every exit path. The caller's configuration
    only receives ``compiled_binary``, and only after success.
    """

    def __init__(
        self,
        config: BuildConfiguration,
        *,
        runner: CommandRunner = run_command,
        embed_provisioner: Optional[EmbedDirectoryProvisioner] = None,
        bindings_generator: Optional[BindingsGenerator] = None,
        packager: Optional[Packager] = None,
        host: Optional[str] = None,
        on_log: Optional[LogCallback] = None,
    ) -> None:
        if config.project is None:
            raise BuildError("build configuration has no project data")
        self.config = config
        self.runner = runner
        self.on_log = on_log
        self.host = host or host_platform()
        self.embed_provisioner = embed_provisioner or EmbedDirectoryProvisioner(on_log=on_log)
        self.bindings_generator = bindings_generator or BindingsGenerator(runner)
        self.packager = packager or Packager(runner, on_log=on_log)

    def _log(self, msg: str) -> None:
        emit(self.on_log, msg, logger)

    @staticmethod
    def _require_project(options: BuildConfiguration) -> ProjectMetadata:
        if options.project is None:
            raise BuildError("build configuration has no project data")
        return options.project

    def run(self) -> Optional[Path]:
        """Build the project. Returns the compiled binary, or None if compile was skipped."""
        options = dataclasses.replace(self.config, user_tags=list(self.config.user_tags))
        project = self._require_project(options)

        builder = get_builder(options, runner=self.runner, on_log=self.on_log)
        if options.is_universal and options.platform != "darwin":
            raise ConfigurationError(f"{UNIVERSAL} binaries are only supported for darwin, not {options.platform}")

        if options.bin_dir is None:
            options.bin_dir = project.build_dir / "bin"
        t0 = time.monotonic()
        try:
            builder.set_project_data(project)
            compiled = self._run_stages(builder, options)
        finally:
            builder.clean_up()

        self.config.compiled_binary = compiled
        logger.info("Build of %s for %s finished in %.1fs", project.name, options.target, time.monotonic() - t0)
        return compiled

    def _run_stages(self, builder: Builder, options: BuildConfiguration) -> Optional[Path]:
        project = self._require_project(options)

        hooks = HookExecutor(
            project,
            bin_dir=Path(options.bin_dir or project.build_dir / "bin"),
            verbosity=options.verbosity,
            runner=self.runner,
            host=self.host,
            timeout=options.command_timeout,
            on_log=self.on_log,
        )
        hooks.run_phase(PRE, HookContext(options.platform, options.arch))

        self.embed_provisioner.provision(project.path)

        if not options.skip_bindings:
            self.generate_bindings(options)

        if not options.skip_frontend:
            builder.build_frontend()

        compiled: Optional[Path] = None
        if not options.skip_application:
            compiler = PlatformCompiler(
                builder,
                self.packager,
                runner=self.runner,
                host=self.host,
                on_log=self.on_log,
            )
            compiled = compiler.compile(options)
            self._log("  - Compiled application: Done.")

        hooks.run_phase(POST, HookContext(options.platform, options.arch, str(compiled) if compiled else ""))
        return compiled

    def generate_bindings(self, options: BuildConfiguration) -> str:
        project = self._require_project(options)

        if options.obfuscated:
            self._log("  - Generating obfuscated bindings")
        else:
            self._log("  - Generating bindings")

        output = self.bindings_generator.generate(
            BindingsOptions(
                project_dir=project.path,
                output_dir=project.bindings_path,
                tags=options.effective_tags(),
                tidy=not options.skip_mod_tidy,
                compiler=options.compiler,
                timeout=options.command_timeout,
            )
        )
        if options.verbosity == VERBOSE and output:
            self._log(output)
        return output


def build(config: BuildConfiguration, **kwargs) -> Optional[Path]:
    """Run a :class:`BuildPipeline` for *config*."""
    return BuildPipeline(config, **kwargs).run()
