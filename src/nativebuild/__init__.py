"""nativebuild – build orchestration for native desktop applications"""

__version__ = "0.1.0"

from .bindings import BindingsGenerator, BindingsOptions
from .builders import Builder, DesktopBuilder, get_builder, register_builder
from .compiler import PlatformCompiler
from .config import (
    BuildConfiguration,
    Mode,
    ProjectMetadata,
    load_project,
)
from .embed import EmbedDetail, EmbedDirectoryProvisioner, find_embed_details
from .errors import BuildError, CleanupError, ConfigurationError, HookError, ToolError
from .hooks import HookContext, HookExecutor, HookInvocation
from .packager import Packager
from .pipeline import BuildPipeline, build
from .shell import CommandResult, run_command

__all__ = [
    # Pipeline
    "BuildPipeline",
    "build",
    # Configuration
    "BuildConfiguration",
    "Mode",
    "ProjectMetadata",
    "load_project",
    # Stages
    "BindingsGenerator",
    "BindingsOptions",
    "Builder",
    "DesktopBuilder",
    "get_builder",
    "register_builder",
    "PlatformCompiler",
    "EmbedDetail",
    "EmbedDirectoryProvisioner",
    "find_embed_details",
    "HookContext",
    "HookExecutor",
    "HookInvocation",
    "Packager",
    # Shell
    "CommandResult",
    "run_command",
    # Errors
    "BuildError",
    "CleanupError",
    "ConfigurationError",
    "HookError",
    "ToolError",
    "__version__",
]
