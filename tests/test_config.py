"""Tests for nativebuild configuration."""

import json
from pathlib import Path

import pytest

from nativebuild.config import (
    BuildConfiguration,
    Mode,
    ProjectMetadata,
    host_arch,
    host_platform,
    load_project,
)
from nativebuild.errors import ConfigurationError


def test_project_from_dict_defaults(tmp_path):
    project = ProjectMetadata.from_dict({"name": "demo"}, path=tmp_path)
    assert project.name == "demo"
    assert project.path == tmp_path
    assert project.build_dir == tmp_path / "build"
    assert project.frontend_path == tmp_path / "frontend"
    assert project.pre_build_hooks == {}
    assert project.run_non_native_build_hooks is False


def test_project_from_dict_hooks_and_frontend(tmp_path):
    project = ProjectMetadata.from_dict({
        "name": "demo",
        "build_dir": "out",
        "pre_build_hooks": {"*/*": "echo pre ${platform}"},
        "post_build_hooks": {"linux/*": ["cp", "${bin}", "/tmp/app copy"]},
        "run_non_native_build_hooks": True,
        "frontend": {"dir": "ui", "install": "pnpm install", "build": ""},
    }, path=tmp_path)
    assert project.build_dir == tmp_path / "out"
    assert project.pre_build_hooks["*/*"] == "echo pre ${platform}"
    assert project.post_build_hooks["linux/*"] == ["cp", "${bin}", "/tmp/app copy"]
    assert project.run_non_native_build_hooks is True
    assert project.frontend_path == tmp_path / "ui"
    assert project.frontend_install == "pnpm install"
    assert project.frontend_build == ""


def test_project_requires_name(tmp_path):
    with pytest.raises(ConfigurationError):
        ProjectMetadata.from_dict({}, path=tmp_path)


def test_project_hooks_must_be_mapping(tmp_path):
    with pytest.raises(ConfigurationError):
        ProjectMetadata.from_dict({"name": "x", "pre_build_hooks": ["echo"]}, path=tmp_path)


def test_load_project_yaml_from_directory(tmp_path):
    (tmp_path / "project.yaml").write_text(
        "name: yamlapp\n"
        "pre_build_hooks:\n"
        "  '*/*': make assets\n"
    )
    project = load_project(tmp_path)
    assert project.name == "yamlapp"
    assert project.path == tmp_path.resolve()
    assert project.pre_build_hooks == {"*/*": "make assets"}


def test_load_project_json_file(tmp_path):
    path = tmp_path / "project.json"
    path.write_text(json.dumps({"name": "jsonapp", "output_filename": "app-bin"}))
    project = load_project(path)
    assert project.name == "jsonapp"
    assert project.output_filename == "app-bin"


def test_load_project_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_project(tmp_path)
    with pytest.raises(FileNotFoundError):
        load_project(tmp_path / "nope.yaml")


def test_load_project_invalid_yaml(tmp_path):
    path = tmp_path / "project.yaml"
    path.write_text("name: [unclosed\n")
    with pytest.raises(ConfigurationError):
        load_project(path)


def test_build_configuration_defaults():
    config = BuildConfiguration()
    assert config.output_type == "desktop"
    assert config.mode == Mode.PRODUCTION
    assert config.platform == host_platform()
    assert config.arch == host_arch()
    assert config.compiler == "go"
    assert config.target == f"{host_platform()}/{host_arch()}"


def test_effective_tags_adds_obfuscated_without_mutating():
    config = BuildConfiguration(user_tags=["a"], obfuscated=True)
    assert config.effective_tags() == ["a", "obfuscated"]
    assert config.user_tags == ["a"]


def test_effective_tags_no_duplicate_obfuscated():
    config = BuildConfiguration(user_tags=["obfuscated"], obfuscated=True)
    assert config.effective_tags() == ["obfuscated"]


def test_build_configuration_from_dict():
    config = BuildConfiguration.from_dict({
        "platform": "darwin",
        "arch": "universal",
        "mode": "dev",
        "user_tags": "one, two",
        "bin_dir": "/tmp/bin",
    })
    assert config.is_universal
    assert config.mode == Mode.DEV
    assert config.user_tags == ["one", "two"]
    assert config.bin_dir == Path("/tmp/bin")


def test_build_configuration_from_dict_rejects_unknown_option():
    with pytest.raises(ConfigurationError):
        BuildConfiguration.from_dict({"colour": "blue"})


def test_build_configuration_from_dict_rejects_unknown_mode():
    with pytest.raises(ConfigurationError):
        BuildConfiguration.from_dict({"mode": "fast"})


def test_command_timeout_from_env(monkeypatch):
    monkeypatch.setenv("NATIVEBUILD_COMMAND_TIMEOUT", "12.5")
    assert BuildConfiguration().command_timeout == 12.5
    monkeypatch.setenv("NATIVEBUILD_COMMAND_TIMEOUT", "")
    assert BuildConfiguration().command_timeout is None


def test_invalid_command_timeout_from_env(monkeypatch):
    monkeypatch.setenv("NATIVEBUILD_COMMAND_TIMEOUT", "soon")
    with pytest.raises(ConfigurationError, match="soon"):
        BuildConfiguration()
    # an explicit value does not consult the environment
    assert BuildConfiguration(command_timeout=5).command_timeout == 5
