"""Builder registry – resolve the right Builder for an output type."""

from __future__ import annotations

from typing import Optional

from ..config import BuildConfiguration
from ..errors import ConfigurationError
from ..log_config import LogCallback
from ..shell import CommandRunner, run_command
from .base import Builder
from .desktop import DesktopBuilder

_BUILDERS: dict[str, type[Builder]] = {
    "desktop": DesktopBuilder,
    "dev": DesktopBuilder,
}


def register_builder(output_type: str, builder_cls: type[Builder]) -> None:
    """Register (or replace) the builder class for an output type."""
    _BUILDERS[output_type] = builder_cls


def builder_types() -> list[str]:
    return sorted(_BUILDERS)


def get_builder(
    config: BuildConfiguration,
    *,
    runner: CommandRunner = run_command,
    on_log: Optional[LogCallback] = None,
) -> Builder:
    """Return a new builder for ``config.output_type``."""
    builder_cls = _BUILDERS.get(config.output_type)
    if builder_cls is None:
        raise ConfigurationError(f"cannot build assets for output type {config.output_type}")
    return builder_cls(config, runner=runner, on_log=on_log)
