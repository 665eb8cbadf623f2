"""Bindings generation.

The generator is an opaque tool: the application is compiled with the
``bindings`` tag into a throwaway executable which, when run, writes the
client bindings into ``NATIVEBUILD_BINDINGS_DIR``.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .shell import CommandRunner, run_command

logger = logging.getLogger("nativebuild.bindings")

BINDINGS_TAG = "bindings"
BINDINGS_DIR_ENV = "NATIVEBUILD_BINDINGS_DIR"


@dataclass
class BindingsOptions:
    project_dir: Path
    output_dir: Path
    tags: list[str] = field(default_factory=list)
    tidy: bool = True
    compiler: str = "go"
    timeout: Optional[float] = None


class BindingsGenerator:
    """Runs the bindings tool and returns its output text."""

    def __init__(self, runner: CommandRunner = run_command) -> None:
        self.runner = runner

    def generate(self, options: BindingsOptions) -> str:
        project_dir = Path(options.project_dir)
        output: list[str] = []

        if options.tidy:
            result = self.runner(project_dir, options.compiler, "mod", "tidy", timeout=options.timeout)
            output.append(result.stdout)

        tags = [*options.tags, BINDINGS_TAG]
        tmp_dir = Path(tempfile.mkdtemp(prefix="nativebuild-bindings-"))
        try:
            generator = tmp_dir / "bindings-generator"
            result = self.runner(
                project_dir,
                options.compiler,
                "build",
                "-buildvcs=false",
                "-tags",
                ",".join(tags),
                "-o",
                str(generator),
                ".",
                timeout=options.timeout,
            )
            output.append(result.stdout)

            Path(options.output_dir).mkdir(parents=True, exist_ok=True)
            result = self.runner(
                project_dir,
                str(generator),
                env={BINDINGS_DIR_ENV: str(options.output_dir)},
                timeout=options.timeout,
            )
            output.append(result.stdout)
        finally:
            shutil.rmtree(tmp_dir, ignore_errors=True)

        logger.debug("Bindings written to %s", options.output_dir)
        return "\n".join(s.rstrip() for s in output if s and s.strip())
