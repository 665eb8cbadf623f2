from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import pytest
from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_SRC = (_PROJECT_ROOT / "src").resolve()
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

# Load .env from project root (e.g. NATIVEBUILD_COMMAND_TIMEOUT)
load_dotenv(_PROJECT_ROOT / ".env", override=False)

from nativebuild.config import BuildConfiguration, ProjectMetadata  # noqa: E402
from nativebuild.errors import ToolError  # noqa: E402
from nativebuild.shell import CommandResult  # noqa: E402


@dataclass
class Call:
    cwd: Path
    argv: list[str]
    env: Optional[dict[str, str]] = None

    @property
    def command(self) -> str:
        return self.argv[0]


@dataclass
class FakeRunner:
    """Records external commands instead of running them.

    Commands that write an output file (``-o <path>`` for compilers and
    ``-output <path>`` for lipo) get that file created, so later stages
    see real artifacts on disk.
    """

    calls: list[Call] = field(default_factory=list)
    fail: Optional[Callable[[Call], bool]] = None
    stdout: str = ""

    def __call__(self, cwd, command, *args, env=None, timeout=None) -> CommandResult:
        call = Call(cwd=Path(cwd), argv=[str(command), *map(str, args)], env=env)
        self.calls.append(call)
        if self.fail is not None and self.fail(call):
            raise ToolError(f"{command} exited with status 1", command=call.argv, returncode=1, stderr="boom")

        for flag in ("-o", "-output"):
            if flag in call.argv:
                out = Path(call.argv[call.argv.index(flag) + 1])
                if not out.is_absolute():
                    out = call.cwd / out
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_bytes(b"\x7fELF")
                break
        return CommandResult(args=call.argv, returncode=0, stdout=self.stdout, stderr="")

    def commands(self) -> list[str]:
        return [c.command for c in self.calls]

    def find(self, command: str) -> list[Call]:
        return [c for c in self.calls if c.command == command]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def project(tmp_path: Path) -> ProjectMetadata:
    root = tmp_path / "myapp"
    (root / "frontend").mkdir(parents=True)
    (root / "frontend" / "package.json").write_text('{"name": "frontend"}')
    (root / "main.go").write_text("package main\n\nfunc main() {}\n")
    return ProjectMetadata(name="myapp", path=root)


@pytest.fixture
def make_config(project: ProjectMetadata) -> Callable[..., BuildConfiguration]:
    def _make(**kw) -> BuildConfiguration:
        defaults = dict(platform="linux", arch="amd64", command_timeout=None, project=project)
        defaults.update(kw)
        return BuildConfiguration(**defaults)

    return _make
