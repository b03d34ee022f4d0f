from __future__ import annotations

from pathlib import Path

import pytest

from buildconf.descriptor import BuildDescriptor
from buildconf.errors import DescriptorError
from buildconf.models import Coordinate


def test_descriptor_loads_json(tmp_path: Path) -> None:
    path = tmp_path / "build.json"
    path.write_text(
        """
{
  \"repositories\": [\"mavenCentral\"],
  \"forced_versions\": {\"com.squareup:okio\": \"3.6.0\"},
  \"subprojects\": [\"app\", {\"name\": \"core\", \"dependencies\": [\"com.squareup:okio:3.2.0\"]}]
}
"""
    )
    descriptor = BuildDescriptor.from_file(path)
    assert [repo.name for repo in descriptor.repositories] == ["mavenCentral"]
    assert descriptor.forced_versions == [(Coordinate("com.squareup", "okio"), "3.6.0")]
    assert descriptor.project_names() == ["app", "core"]
    assert str(descriptor.get("core").dependencies[0]) == "com.squareup:okio:3.2.0"


def test_descriptor_loads_yaml_with_stock_defaults(tmp_path: Path) -> None:
    path = tmp_path / "build.yaml"
    path.write_text("subprojects:\n  - app\n")
    descriptor = BuildDescriptor.from_file(path)
    assert [repo.name for repo in descriptor.repositories] == ["google", "mavenCentral"]
    assert len(descriptor.forced_versions) == 5
    assert descriptor.output.relocate == "../../build"
    assert descriptor.compiler.flags == ["-Xskip-metadata-version-check"]
    assert descriptor.evaluation_prerequisite == "app"
    assert descriptor.clean_task == "clean"


def test_descriptor_loads_toml(tmp_path: Path) -> None:
    path = tmp_path / "build.toml"
    path.write_text(
        """
subprojects = ["app"]
evaluation_prerequisite = "app"

[compiler]
task_kind = "JavaCompile"
flags = ["-Xlint:none"]
"""
    )
    descriptor = BuildDescriptor.from_file(path)
    assert descriptor.compiler.task_kind == "JavaCompile"
    assert descriptor.compiler.flags == ["-Xlint:none"]


def test_descriptor_requires_subprojects(tmp_path: Path) -> None:
    path = tmp_path / "build.yaml"
    path.write_text("repositories: [google]\n")
    with pytest.raises(DescriptorError):
        BuildDescriptor.from_file(path)


def test_descriptor_rejects_unknown_repository_shorthand(tmp_path: Path) -> None:
    path = tmp_path / "build.yaml"
    path.write_text("repositories: [jcenter]\nsubprojects: [app]\n")
    with pytest.raises(DescriptorError, match="jcenter"):
        BuildDescriptor.from_file(path)


def test_forced_versions_list_form_keeps_duplicates(tmp_path: Path) -> None:
    descriptor = BuildDescriptor.from_dict(
        tmp_path / "build.yaml",
        {"forced_versions": ["a:b:1.0", "a:b:2.0"], "subprojects": ["app"]},
    )
    assert descriptor.forced_versions == [
        (Coordinate("a", "b"), "1.0"),
        (Coordinate("a", "b"), "2.0"),
    ]


def test_sample_descriptor_parses() -> None:
    sample = Path(__file__).resolve().parents[1] / "android" / "build.yaml"
    descriptor = BuildDescriptor.from_file(sample)
    assert descriptor.project_names() == ["app", "shared_preferences_android"]
    assert descriptor.get("app").tasks[0].kind == "KotlinCompile"


@pytest.mark.parametrize(
    "body",
    [
        "output:\nsubprojects: [app]\n",
        "compiler:\nsubprojects: [app]\n",
        "subprojects:\n  - name: app\n    dependencies:\n    tasks:\n",
    ],
)
def test_empty_sections_take_defaults(tmp_path: Path, body: str) -> None:
    path = tmp_path / "build.yaml"
    path.write_text(body)
    descriptor = BuildDescriptor.from_file(path)
    assert descriptor.output.relocate == "../../build"
    assert descriptor.compiler.flags == ["-Xskip-metadata-version-check"]
    assert descriptor.get("app").dependencies == []
    assert descriptor.get("app").tasks == []


@pytest.mark.parametrize(
    "body",
    [
        "output: [build]\nsubprojects: [app]\n",
        "compiler: fast\nsubprojects: [app]\n",
        "subprojects: app\n",
        "subprojects:\n  - name: app\n    dependencies: com.acme:widgets:1.0\n",
        "subprojects:\n  - name: app\n    tasks:\n      - compileKotlin\n",
        "subprojects:\n  - name: app\n    tasks:\n      - name: compileKotlin\n        flags: -x\n",
        "forced_versions:\n  com.acme:widgets: 1.10\nsubprojects: [app]\n",
        "compiler:\n  flags: -Xlint\nsubprojects: [app]\n",
    ],
)
def test_wrongly_typed_sections_are_rejected(tmp_path: Path, body: str) -> None:
    path = tmp_path / "build.yaml"
    path.write_text(body)
    with pytest.raises(DescriptorError):
        BuildDescriptor.from_file(path)


def test_quoted_forced_version_keeps_trailing_zero(tmp_path: Path) -> None:
    path = tmp_path / "build.yaml"
    path.write_text('forced_versions:\n  com.acme:widgets: "1.10"\nsubprojects: [app]\n')
    descriptor = BuildDescriptor.from_file(path)
    assert descriptor.forced_versions == [(Coordinate("com.acme", "widgets"), "1.10")]


def test_undecodable_descriptor_is_descriptor_error(tmp_path: Path) -> None:
    path = tmp_path / "build.yaml"
    path.write_bytes(b"subprojects: [\xff\xfe]\n")
    with pytest.raises(DescriptorError, match="Cannot read"):
        BuildDescriptor.from_file(path)


@pytest.mark.parametrize("name", ["evaluate", "status", "projects"])
def test_clean_task_cannot_shadow_builtin_commands(tmp_path: Path, name: str) -> None:
    with pytest.raises(DescriptorError, match="clashes"):
        BuildDescriptor.from_dict(tmp_path / "build.yaml", {"clean_task": name, "subprojects": ["app"]})
