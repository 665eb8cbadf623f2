"""Discovery and provisioning of ``//go:embed`` directories.

The Go toolchain refuses to compile when an embedded directory is missing
or empty, so every directory named by an embed directive is created (with
a marker file inside) before compilation.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .log_config import LogCallback, emit

logger = logging.getLogger("nativebuild.embed")

MARKER_FILENAME = "gitkeep"

_EMBED_DIRECTIVE = re.compile(r"^\s*//go:embed\s+(?P<patterns>.+?)\s*$")
_GLOB_CHARS = set("*?[")
_SKIP_DIRS = {"vendor", "node_modules"}


@dataclass(frozen=True)
class EmbedDetail:
    """One pattern from an embed directive."""

    base_dir: Path
    embed_path: str
    source_file: Optional[Path] = None
    all_files: bool = False

    @property
    def full_path(self) -> Path:
        return self.base_dir / self.embed_path


EmbedAnalyzer = Callable[[Path], list[EmbedDetail]]


def _directory_part(pattern: str) -> str:
    """Leading literal directory of a glob pattern ('' if there is none)."""
    parts = pattern.split("/")
    literal: list[str] = []
    for part in parts:
        if _GLOB_CHARS & set(part):
            return "/".join(literal)
        literal.append(part)
    return pattern


def parse_embed_directive(line: str) -> list[tuple[str, bool]]:
    """Return ``(path, all_files)`` pairs for a ``//go:embed`` line."""
    m = _EMBED_DIRECTIVE.match(line)
    if not m:
        return []
    try:
        patterns = shlex.split(m.group("patterns").replace("`", '"'))
    except ValueError:
        logger.warning("Unparseable embed directive: %s", line.strip())
        return []

    result: list[tuple[str, bool]] = []
    for pattern in patterns:
        all_files = pattern.startswith("all:")
        if all_files:
            pattern = pattern[len("all:"):]
        path = _directory_part(pattern).rstrip("/")
        if path and path != ".":
            result.append((path, all_files))
    return result


def find_embed_details(root: Path) -> list[EmbedDetail]:
    """Scan the Go sources under *root* for embed directives, in file order."""
    root = Path(root)
    details: list[EmbedDetail] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS and not d.startswith("."))
        for filename in sorted(filenames):
            if not filename.endswith(".go"):
                continue
            source = Path(dirpath) / filename
            try:
                text = source.read_text(errors="replace")
            except OSError as e:
                logger.warning("Could not read %s: %s", source, e)
                continue
            for line in text.splitlines():
                for path, all_files in parse_embed_directive(line):
                    details.append(
                        EmbedDetail(base_dir=Path(dirpath), embed_path=path, source_file=source, all_files=all_files)
                    )
    return details


class EmbedDirectoryProvisioner:
    """Creates missing embed directories with a placeholder marker file."""

    def __init__(
        self,
        analyzer: EmbedAnalyzer = find_embed_details,
        *,
        marker_name: str = MARKER_FILENAME,
        on_log: Optional[LogCallback] = None,
    ) -> None:
        self.analyzer = analyzer
        self.marker_name = marker_name
        self.on_log = on_log

    def provision(self, project_root: Path) -> list[Path]:
        """Ensure every embed directory exists. Returns the directories created.

        OSErrors propagate; nothing is compiled after a failure here.
        """
        created: list[Path] = []
        for detail in self.analyzer(Path(project_root)):
            full_path = detail.full_path
            if full_path.exists():
                continue
            full_path.mkdir(parents=True, exist_ok=True)
            (full_path / self.marker_name).touch()
            created.append(full_path)
            emit(self.on_log, f"  - Created embed directory: {full_path}", logger)
        return created
