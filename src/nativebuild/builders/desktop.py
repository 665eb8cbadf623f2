"""Builder for desktop applications (Go backend + web frontend)."""

from __future__ import annotations

import hashlib
import shlex
import shutil
from pathlib import Path

from ..config import VERBOSE, BuildConfiguration, Mode
from ..errors import BuildError
from .base import Builder


class DesktopBuilder(Builder):
    """Compiles the application into a native desktop executable."""

    @property
    def output_type(self) -> str:
        return self.config.output_type

    # ------------------------------------------------------------------
    # Output filename
    # ------------------------------------------------------------------

    def output_filename(self, config: BuildConfiguration) -> str:
        if config.output_file:
            return config.output_file

        project = self._require_project()
        target = project.output_filename or project.name
        if target.endswith(".exe"):
            target = target[: -len(".exe")]
        if config.output_type == "dev":
            target += "-dev"
        if config.platform == "windows":
            target += ".exe"
        return target

    # ------------------------------------------------------------------
    # Frontend
    # ------------------------------------------------------------------

    def build_frontend(self) -> None:
        project = self._require_project()
        frontend_dir = project.frontend_path
        if not frontend_dir.is_dir():
            raise BuildError(f"frontend directory '{frontend_dir}' does not exist")

        install_cmd = shlex.split(project.frontend_install)
        if install_cmd:
            if self._needs_install(frontend_dir):
                self._log(f"  - Installing frontend dependencies: {shlex.join(install_cmd)}")
                result = self.runner(frontend_dir, *install_cmd, timeout=self.config.command_timeout)
                self._verbose_output(result.stdout)
                self._store_package_hash(frontend_dir)
            else:
                self._log("  - Frontend dependencies up to date: Skipping install.")

        build_cmd = shlex.split(project.frontend_build)
        if build_cmd:
            self._log(f"  - Compiling frontend: {shlex.join(build_cmd)}")
            result = self.runner(frontend_dir, *build_cmd, timeout=self.config.command_timeout)
            self._verbose_output(result.stdout)

    @staticmethod
    def _package_hash(frontend_dir: Path) -> str:
        package_json = frontend_dir / "package.json"
        if not package_json.exists():
            return ""
        return hashlib.md5(package_json.read_bytes()).hexdigest()

    @classmethod
    def _needs_install(cls, frontend_dir: Path) -> bool:
        """Install when node_modules is missing or package.json changed."""
        if not (frontend_dir / "node_modules").is_dir():
            return True
        stored = frontend_dir / "package.json.md5"
        if not stored.exists():
            return True
        return stored.read_text().strip() != cls._package_hash(frontend_dir)

    @classmethod
    def _store_package_hash(cls, frontend_dir: Path) -> None:
        digest = cls._package_hash(frontend_dir)
        if digest:
            (frontend_dir / "package.json.md5").write_text(digest)

    # ------------------------------------------------------------------
    # Compile
    # ------------------------------------------------------------------

    def compile_project(self, config: BuildConfiguration) -> Path:
        project = self._require_project()
        if config.bin_dir is None:
            raise BuildError("bin directory is not set")
        bin_dir = Path(config.bin_dir)

        if config.clean_bin_dir and bin_dir.exists():
            shutil.rmtree(bin_dir)
        bin_dir.mkdir(parents=True, exist_ok=True)

        output = bin_dir / self.output_filename(config)
        command, args = self.compile_command(config, output)
        if config.verbosity == VERBOSE:
            self._log(f"  - Compile command: {shlex.join([command, *args])}")

        result = self.runner(
            project.path,
            command,
            *args,
            env=self.compile_env(config),
            timeout=config.command_timeout,
        )
        self._verbose_output(result.stdout)

        if config.compress:
            self._compress(config, output)

        config.compiled_binary = output
        return output

    @staticmethod
    def compile_tags(config: BuildConfiguration) -> list[str]:
        tags = ["desktop", config.mode.value]
        if config.platform == "windows" and config.webview2_strategy:
            tags.append(f"wv2runtime.{config.webview2_strategy}")
        for tag in config.effective_tags():
            if tag not in tags:
                tags.append(tag)
        return tags

    @staticmethod
    def compile_ld_flags(config: BuildConfiguration) -> str:
        flags: list[str] = []
        if config.mode == Mode.PRODUCTION:
            flags += ["-w", "-s"]
            if config.platform == "windows" and not config.windows_console:
                flags += ["-H", "windowsgui"]
        if config.ld_flags:
            flags.append(config.ld_flags)
        return " ".join(flags)

    @classmethod
    def compile_command(cls, config: BuildConfiguration, output: Path) -> tuple[str, list[str]]:
        """Return ``(command, args)`` for compiling to *output*."""
        args: list[str] = []
        command = config.compiler
        if config.obfuscated:
            command = "garble"
            args += shlex.split(config.garble_args)

        args += ["build", "-buildvcs=false"]
        if config.force_build:
            args.append("-a")
        args += ["-tags", ",".join(cls.compile_tags(config))]
        ld_flags = cls.compile_ld_flags(config)
        if ld_flags:
            args += ["-ldflags", ld_flags]
        if config.trim_path:
            args.append("-trimpath")
        if config.race_detector:
            args.append("-race")
        args += ["-o", str(output)]
        return command, args

    @staticmethod
    def compile_env(config: BuildConfiguration) -> dict[str, str]:
        env = {
            "GOOS": config.platform,
            "GOARCH": config.arch,
            "CGO_ENABLED": "1",
        }
        if config.platform == "darwin":
            env["CGO_CFLAGS"] = "-mmacosx-version-min=10.13"
            env["CGO_LDFLAGS"] = "-mmacosx-version-min=10.13"
        return env

    def _compress(self, config: BuildConfiguration, binary: Path) -> None:
        self._log(f"  - Compressing application: {binary.name}")
        args = [*shlex.split(config.compress_flags), str(binary)]
        result = self.runner(binary.parent, "upx", *args, timeout=config.command_timeout)
        self._verbose_output(result.stdout)

    def _verbose_output(self, text: str) -> None:
        if self.config.verbosity == VERBOSE and text and text.strip():
            self._log(text.rstrip())
