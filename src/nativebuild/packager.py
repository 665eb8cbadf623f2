"""Post-compile packaging (darwin app bundles, Windows resources)."""

from __future__ import annotations

import logging
import plistlib
import shutil
from pathlib import Path
from typing import Optional

from .config import BuildConfiguration, ProjectMetadata
from .errors import BuildError, ToolError
from .log_config import LogCallback, emit
from .shell import CommandRunner, run_command

logger = logging.getLogger("nativebuild.packager")


def windows_resource_path(project: ProjectMetadata) -> Path:
    """Linker resource file produced for Windows builds, in the project root."""
    return project.path / f"{project.name}-res.syso"


def _rc_escape(value: str) -> str:
    return value.replace('"', '""')


def _version_tuple(version: str) -> str:
    parts = [p for p in version.split(".") if p.isdigit()][:4]
    parts += ["0"] * (4 - len(parts))
    return ",".join(parts)


class Packager:
    """Produces platform packages around a compiled binary."""

    def __init__(
        self,
        runner: CommandRunner = run_command,
        *,
        on_log: Optional[LogCallback] = None,
    ) -> None:
        self.runner = runner
        self.on_log = on_log

    # ------------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------------

    def render_windows_rc(self, project: ProjectMetadata) -> str:
        info = project.info
        version = info.get("version", "1.0.0")
        product = info.get("product", project.name)
        lines: list[str] = []

        icon = project.build_dir / "windows" / "icon.ico"
        if icon.exists():
            lines.append(f'1 ICON "{icon.as_posix()}"')
            lines.append("")

        lines += [
            "1 VERSIONINFO",
            f"FILEVERSION {_version_tuple(version)}",
            f"PRODUCTVERSION {_version_tuple(version)}",
            "BEGIN",
            '  BLOCK "StringFileInfo"',
            "  BEGIN",
            '    BLOCK "040904B0"',
            "    BEGIN",
            f'      VALUE "CompanyName", "{_rc_escape(info.get("company", ""))}"',
            f'      VALUE "FileDescription", "{_rc_escape(info.get("comments", product))}"',
            f'      VALUE "FileVersion", "{_rc_escape(version)}"',
            f'      VALUE "LegalCopyright", "{_rc_escape(info.get("copyright", ""))}"',
            f'      VALUE "ProductName", "{_rc_escape(product)}"',
            f'      VALUE "ProductVersion", "{_rc_escape(version)}"',
            "    END",
            "  END",
            '  BLOCK "VarFileInfo"',
            "  BEGIN",
            '    VALUE "Translation", 0x0409, 0x04B0',
            "  END",
            "END",
        ]
        return "\n".join(lines) + "\n"

    def generate_windows_resources(self, config: BuildConfiguration) -> tuple[Path, list[Path]]:
        """Compile the icon/version resource into ``<name>-res.syso``.

        Returns the ``.syso`` path and the intermediate files generated on
        the way (for the builder to remove at clean-up).
        """
        project = config.project
        if project is None:
            raise BuildError("no project data to package")

        rc_file = project.build_dir / "windows" / f"{project.name}.rc"
        rc_file.parent.mkdir(parents=True, exist_ok=True)
        rc_file.write_text(self.render_windows_rc(project))

        syso = windows_resource_path(project)
        target = "pe-x86-64" if config.arch == "amd64" else ("pe-i386" if config.arch == "386" else "pe-aarch64")
        try:
            self.runner(
                project.path,
                "windres",
                "-i", str(rc_file),
                "-O", "coff",
                "-F", target,
                "-o", str(syso),
                timeout=config.command_timeout,
            )
        except ToolError:
            if not config.keep_assets:
                rc_file.unlink(missing_ok=True)
            raise
        return syso, [rc_file]

    # ------------------------------------------------------------------
    # Packages
    # ------------------------------------------------------------------

    def package(self, config: BuildConfiguration, host_platform: str) -> Path:
        """Package the compiled binary for *host_platform*."""
        if config.compiled_binary is None:
            raise BuildError("nothing to package: no compiled binary")
        if host_platform == "darwin":
            return self._package_darwin(config)
        raise BuildError(f"packaging not supported for {host_platform} yet")

    def _package_darwin(self, config: BuildConfiguration) -> Path:
        project = config.project
        if project is None:
            raise BuildError("no project data to package")

        binary = Path(config.compiled_binary)
        bundle_name = config.bundle_name or f"{project.name}.app"
        if not bundle_name.endswith(".app"):
            bundle_name += ".app"
        bundle = binary.parent / bundle_name
        contents = bundle / "Contents"
        macos_dir = contents / "MacOS"
        resources_dir = contents / "Resources"

        if bundle.exists():
            shutil.rmtree(bundle)
        macos_dir.mkdir(parents=True)
        resources_dir.mkdir(parents=True)

        info = project.info
        plist = {
            "CFBundlePackageType": "APPL",
            "CFBundleName": info.get("product", project.name),
            "CFBundleExecutable": binary.name,
            "CFBundleIdentifier": info.get("bundle_id", f"com.nativebuild.{project.name}"),
            "CFBundleVersion": info.get("version", "1.0.0"),
            "CFBundleShortVersionString": info.get("version", "1.0.0"),
            "CFBundleIconFile": "iconfile",
            "LSMinimumSystemVersion": "10.13.0",
            "NSHighResolutionCapable": True,
            "NSHumanReadableCopyright": info.get("copyright", ""),
        }
        with open(contents / "Info.plist", "wb") as f:
            plistlib.dump(plist, f)

        icon = project.build_dir / "darwin" / "iconfile.icns"
        if icon.exists():
            shutil.copy2(icon, resources_dir / "iconfile.icns")

        bundled = macos_dir / binary.name
        shutil.move(str(binary), str(bundled))
        config.compiled_binary = bundled
        emit(self.on_log, f"  - Created bundle: {bundle}", logger)
        return bundle
