"""Base builder interface for all output types."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..config import BuildConfiguration, ProjectMetadata
from ..errors import BuildError
from ..log_config import LogCallback, emit
from ..shell import CommandRunner, run_command

_logger = logging.getLogger("nativebuild.builders")


class Builder(ABC):
    """Capability set implemented once per output type.

    One builder instance serves exactly one pipeline run; the pipeline
    calls :meth:`clean_up` on every exit path.
    """

    def __init__(
        self,
        config: BuildConfiguration,
        *,
        runner: CommandRunner = run_command,
        on_log: Optional[LogCallback] = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.on_log = on_log
        self.project: Optional[ProjectMetadata] = None
        self._generated_files: list[Path] = []

    @property
    @abstractmethod
    def output_type(self) -> str:
        """Return the output type identifier (desktop, dev, ...)."""

    def set_project_data(self, project: ProjectMetadata) -> None:
        self.project = project

    @abstractmethod
    def output_filename(self, config: BuildConfiguration) -> str:
        """File name (not path) of the binary the configuration produces."""

    @abstractmethod
    def build_frontend(self) -> None:
        """Install and build the frontend assets."""

    @abstractmethod
    def compile_project(self, config: BuildConfiguration) -> Path:
        """Compile for ``config.platform``/``config.arch``.

        Sets ``config.compiled_binary`` and returns it.
        """

    def track_generated_file(self, path: Path) -> None:
        """Register a generated asset to be removed by :meth:`clean_up`."""
        self._generated_files.append(Path(path))

    def clean_up(self) -> None:
        """Remove generated assets unless the configuration keeps them."""
        if self.config.keep_assets:
            self._generated_files.clear()
            return
        while self._generated_files:
            path = self._generated_files.pop()
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                _logger.warning("Could not remove generated file %s: %s", path, e)

    # ------------------------------------------------------------------
    # Helpers shared by all builders
    # ------------------------------------------------------------------

    def _require_project(self) -> ProjectMetadata:
        if self.project is None:
            raise BuildError("builder has no project data")
        return self.project

    def _log(self, msg: str) -> None:
        emit(self.on_log, msg, _logger)
