"""Tests for embed directive discovery and provisioning."""

from pathlib import Path

import pytest

from nativebuild.embed import (
    MARKER_FILENAME,
    EmbedDetail,
    EmbedDirectoryProvisioner,
    find_embed_details,
    parse_embed_directive,
)


def _write_go(path: Path, *directives: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["package main", "", 'import "embed"', ""]
    for d in directives:
        lines += [d, "var assets embed.FS", ""]
    path.write_text("\n".join(lines))


def test_parse_embed_directive_variants():
    assert parse_embed_directive("//go:embed all:frontend/dist") == [("frontend/dist", True)]
    assert parse_embed_directive("//go:embed static templates") == [("static", False), ("templates", False)]
    assert parse_embed_directive('//go:embed "with space/dir"') == [("with space/dir", False)]
    assert parse_embed_directive("//go:embed assets/*.png") == [("assets", False)]
    assert parse_embed_directive("//go:embed *.txt") == []
    assert parse_embed_directive("// go:embed nothing") == []
    assert parse_embed_directive("var x = 1") == []


def test_find_embed_details_in_file_order(tmp_path):
    _write_go(tmp_path / "main.go", "//go:embed all:frontend/dist")
    _write_go(tmp_path / "pkg" / "ui" / "ui.go", "//go:embed templates")
    _write_go(tmp_path / "node_modules" / "x" / "x.go", "//go:embed ignored")
    _write_go(tmp_path / ".cache" / "y.go", "//go:embed hidden")

    details = find_embed_details(tmp_path)
    assert [d.full_path for d in details] == [
        tmp_path / "frontend" / "dist",
        tmp_path / "pkg" / "ui" / "templates",
    ]
    assert details[0].all_files is True
    assert details[0].source_file == tmp_path / "main.go"


def test_provision_creates_missing_dirs_with_marker(tmp_path):
    _write_go(tmp_path / "main.go", "//go:embed all:frontend/dist")
    created = EmbedDirectoryProvisioner().provision(tmp_path)

    target = tmp_path / "frontend" / "dist"
    assert created == [target]
    assert target.is_dir()
    assert (target / MARKER_FILENAME).exists()


def test_provision_leaves_existing_dirs_untouched(tmp_path):
    _write_go(tmp_path / "main.go", "//go:embed static")
    (tmp_path / "static").mkdir()
    (tmp_path / "static" / "index.html").write_text("<html></html>")

    assert EmbedDirectoryProvisioner().provision(tmp_path) == []
    assert not (tmp_path / "static" / MARKER_FILENAME).exists()


def test_provision_is_idempotent(tmp_path):
    _write_go(tmp_path / "main.go", "//go:embed all:frontend/dist", "//go:embed assets")
    provisioner = EmbedDirectoryProvisioner()

    first = provisioner.provision(tmp_path)
    snapshot = sorted(p.relative_to(tmp_path) for p in tmp_path.rglob("*"))
    second = provisioner.provision(tmp_path)

    assert len(first) == 2
    assert second == []
    assert sorted(p.relative_to(tmp_path) for p in tmp_path.rglob("*")) == snapshot


def test_provision_uses_injected_analyzer(tmp_path):
    detail = EmbedDetail(base_dir=tmp_path, embed_path="generated/web")
    provisioner = EmbedDirectoryProvisioner(lambda root: [detail], marker_name=".keep")
    provisioner.provision(tmp_path)
    assert (tmp_path / "generated" / "web" / ".keep").exists()


def test_provision_failure_propagates(tmp_path):
    blocker = tmp_path / "blocked"
    blocker.write_text("a file, not a directory")
    detail = EmbedDetail(base_dir=blocker, embed_path="sub")
    with pytest.raises(OSError):
        EmbedDirectoryProvisioner(lambda root: [detail]).provision(tmp_path)
