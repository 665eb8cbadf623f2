"""Configuration models for nativebuild projects and builds."""

import os
import platform as _platform

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .errors import ConfigurationError

# Verbosity levels
SILENT = 0
DEFAULT = 1
VERBOSE = 2

UNIVERSAL = "universal"

PROJECT_FILENAMES = ("project.yaml", "project.yml", "project.json")

HookCommand = Union[str, list[str]]

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
}


def host_platform() -> str:
    """Return the host OS using the compiler's naming (linux, darwin, windows)."""
    return _platform.system().lower()


def host_arch() -> str:
    """Return the host architecture using the compiler's naming (amd64, arm64)."""
    machine = _platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine)


class Mode(str, Enum):
    """Build mode."""

    DEV = "dev"
    PRODUCTION = "production"
    DEBUG = "debug"


@dataclass(frozen=True)
class ProjectMetadata:
    """Description of the project being built. Read-only for a build."""

    name: str
    path: Path
    build_dir: Optional[Path] = None
    output_filename: str = ""
    pre_build_hooks: dict[str, HookCommand] = field(default_factory=dict)
    post_build_hooks: dict[str, HookCommand] = field(default_factory=dict)
    run_non_native_build_hooks: bool = False
    frontend_dir: str = "frontend"
    frontend_install: str = "npm install"
    frontend_build: str = "npm run build"
    bindings_dir: str = "frontend/bindings"
    info: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        if self.build_dir is None:
            object.__setattr__(self, "build_dir", self.path / "build")
        else:
            object.__setattr__(self, "build_dir", self.path / Path(self.build_dir))

    @property
    def frontend_path(self) -> Path:
        return self.path / self.frontend_dir

    @property
    def bindings_path(self) -> Path:
        return self.path / self.bindings_dir

    @classmethod
    def from_dict(cls, data: dict, path: Union[str, Path]) -> "ProjectMetadata":
        """Create project metadata from a dictionary (parsed project file)."""
        if not isinstance(data, dict):
            raise ConfigurationError("project file must contain a mapping")
        name = data.get("name")
        if not name:
            raise ConfigurationError("project file is missing 'name'")

        frontend = data.get("frontend", {}) or {}
        return cls(
            name=str(name),
            path=Path(path),
            build_dir=data.get("build_dir"),
            output_filename=data.get("output_filename", "") or "",
            pre_build_hooks=_hooks_from(data.get("pre_build_hooks"), "pre_build_hooks"),
            post_build_hooks=_hooks_from(data.get("post_build_hooks"), "post_build_hooks"),
            run_non_native_build_hooks=bool(data.get("run_non_native_build_hooks", False)),
            frontend_dir=frontend.get("dir", "frontend"),
            frontend_install=frontend.get("install", "npm install") or "",
            frontend_build=frontend.get("build", "npm run build") or "",
            bindings_dir=data.get("bindings_dir", "frontend/bindings"),
            info={str(k): str(v) for k, v in (data.get("info") or {}).items()},
        )

    @classmethod
    def from_file(cls, path: Path) -> "ProjectMetadata":
        """Load project metadata from a YAML or JSON file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid project file {path}: {e}") from e
        return cls.from_dict(data or {}, path=Path(path).resolve().parent)


def _hooks_from(raw: Any, key: str) -> dict[str, HookCommand]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"'{key}' must be a mapping of 'platform/arch' to command")
    hooks: dict[str, HookCommand] = {}
    for hook_key, command in raw.items():
        if isinstance(command, list):
            hooks[str(hook_key)] = [str(c) for c in command]
        else:
            hooks[str(hook_key)] = "" if command is None else str(command)
    return hooks


def load_project(path: Union[str, Path]) -> ProjectMetadata:
    """Load project metadata from a file, or from a project directory."""
    path = Path(path)
    if path.is_dir():
        for name in PROJECT_FILENAMES:
            candidate = path / name
            if candidate.exists():
                return ProjectMetadata.from_file(candidate)
        raise FileNotFoundError(f"No project file ({', '.join(PROJECT_FILENAMES)}) in {path}")
    if not path.exists():
        raise FileNotFoundError(f"Project file not found: {path}")
    return ProjectMetadata.from_file(path)


def _default_timeout() -> Optional[float]:
    raw = os.environ.get("NATIVEBUILD_COMMAND_TIMEOUT", "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"NATIVEBUILD_COMMAND_TIMEOUT must be a number of seconds, got {raw!r}") from e


@dataclass
class BuildConfiguration:
    """All recognised build options plus the project metadata.

    The pipeline works on a private copy; only ``compiled_binary`` is
    written back once the build succeeds.
    """

    output_type: str = "desktop"
    mode: Mode = Mode.PRODUCTION
    platform: str = field(default_factory=host_platform)
    arch: str = field(default_factory=host_arch)
    compiler: str = "go"
    ld_flags: str = ""
    user_tags: list[str] = field(default_factory=list)
    verbosity: int = DEFAULT
    pack: bool = False
    compress: bool = False
    compress_flags: str = ""
    output_file: str = ""
    bin_dir: Optional[Path] = None
    clean_bin_dir: bool = False
    compiled_binary: Optional[Path] = None
    keep_assets: bool = False
    skip_frontend: bool = False
    skip_application: bool = False
    skip_bindings: bool = False
    skip_mod_tidy: bool = False
    obfuscated: bool = False
    garble_args: str = "-literals -tiny -seed=random"
    trim_path: bool = False
    race_detector: bool = False
    windows_console: bool = False
    webview2_strategy: str = ""
    force_build: bool = False
    bundle_name: str = ""
    command_timeout: Optional[float] = field(default_factory=_default_timeout)
    project: Optional[ProjectMetadata] = None

    @property
    def target(self) -> str:
        return f"{self.platform}/{self.arch}"

    @property
    def is_universal(self) -> bool:
        return self.arch == UNIVERSAL

    def effective_tags(self) -> list[str]:
        """User tags, plus ``obfuscated`` when obfuscation is requested."""
        tags = list(self.user_tags)
        if self.obfuscated and "obfuscated" not in tags:
            tags.append("obfuscated")
        return tags

    @classmethod
    def from_dict(cls, data: dict, project: Optional[ProjectMetadata] = None) -> "BuildConfiguration":
        """Create a configuration from a dictionary of option values."""
        known = set(cls.__dataclass_fields__) - {"project"}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown build options: {', '.join(sorted(unknown))}")

        values = dict(data)
        if "mode" in values:
            try:
                values["mode"] = Mode(str(values["mode"]).lower())
            except ValueError as e:
                raise ConfigurationError(f"Unknown build mode: {values['mode']}") from e
        if isinstance(values.get("user_tags"), str):
            values["user_tags"] = [t for t in values["user_tags"].replace(",", " ").split() if t]
        if values.get("bin_dir") is not None:
            values["bin_dir"] = Path(values["bin_dir"])
        return cls(project=project, **values)
