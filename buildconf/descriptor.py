from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

try:  # pragma: no cover - tomllib is stdlib from 3.11 onwards
    import tomllib  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - fallback for 3.10
    import tomli as tomllib  # type: ignore

from .errors import DescriptorError
from .models import Coordinate, Repository, SubProject, as_list, as_mapping, as_string_list

logger = logging.getLogger(__name__)

DEFAULT_REPOSITORIES = ("google", "mavenCentral")
DEFAULT_FORCED_VERSIONS = (
    ("org.jetbrains.kotlin:kotlin-stdlib", "2.0.0"),
    ("org.jetbrains.kotlin:kotlin-stdlib-jdk7", "2.0.0"),
    ("org.jetbrains.kotlin:kotlin-stdlib-jdk8", "2.0.0"),
    ("org.jetbrains.kotlinx:kotlinx-serialization-core-jvm", "1.6.3"),
    ("org.jetbrains.kotlinx:kotlinx-serialization-json-jvm", "1.6.3"),
)
DEFAULT_TASK_KIND = "KotlinCompile"
DEFAULT_COMPILER_FLAGS = ("-Xskip-metadata-version-check",)
# CLI commands the clean task must not shadow.
RESERVED_TASK_NAMES = frozenset({"projects", "repositories", "resolve", "evaluate", "status"})


@dataclass
class OutputSettings:
    default_dir: str = "build"
    relocate: str = "../../build"

    @classmethod
    def from_dict(cls, data: Any) -> "OutputSettings":
        data = as_mapping(data, "output")
        return cls(
            default_dir=_string(data.get("default_dir", "build"), "output.default_dir"),
            relocate=_string(data.get("relocate", "../../build"), "output.relocate"),
        )


@dataclass
class CompilerSettings:
    task_kind: str = DEFAULT_TASK_KIND
    flags: List[str] = field(default_factory=lambda: list(DEFAULT_COMPILER_FLAGS))

    @classmethod
    def from_dict(cls, data: Any) -> "CompilerSettings":
        data = as_mapping(data, "compiler")
        flags = data.get("flags")
        return cls(
            task_kind=_string(data.get("task_kind", DEFAULT_TASK_KIND), "compiler.task_kind"),
            flags=list(DEFAULT_COMPILER_FLAGS) if flags is None else as_string_list(flags, "compiler.flags"),
        )


@dataclass
class BuildDescriptor:
    """Root build configuration shared by every sub-project."""

    path: Path
    repositories: List[Repository] = field(
        default_factory=lambda: [Repository.from_dict(name) for name in DEFAULT_REPOSITORIES]
    )
    forced_versions: List[Tuple[Coordinate, str]] = field(
        default_factory=lambda: [(Coordinate.parse(c), v) for c, v in DEFAULT_FORCED_VERSIONS]
    )
    output: OutputSettings = field(default_factory=OutputSettings)
    compiler: CompilerSettings = field(default_factory=CompilerSettings)
    evaluation_prerequisite: Optional[str] = "app"
    clean_task: str = "clean"
    subprojects: List[SubProject] = field(default_factory=list)

    @classmethod
    def default(cls, path: str | Path, subprojects: List[SubProject] | None = None) -> "BuildDescriptor":
        if subprojects is None:
            subprojects = [SubProject("app")]
        return cls(path=Path(path), subprojects=list(subprojects))

    @classmethod
    def from_file(cls, path: str | Path) -> "BuildDescriptor":
        path = Path(path)
        try:
            raw_text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DescriptorError(f"Cannot read build descriptor {path}: {exc}") from exc
        raw_data = _parse(path, raw_text)
        logger.debug("Loaded build descriptor %s", path)
        return cls.from_dict(path, raw_data)

    @classmethod
    def from_dict(cls, path: str | Path, raw_data: Any) -> "BuildDescriptor":
        if not isinstance(raw_data, dict) or "subprojects" not in raw_data:
            raise DescriptorError("Build descriptor must contain a top-level 'subprojects' list")

        descriptor = cls.default(path, subprojects=[])
        if "repositories" in raw_data:
            descriptor.repositories = [
                Repository.from_dict(entry) for entry in as_list(raw_data["repositories"], "repositories")
            ]
        if "forced_versions" in raw_data:
            descriptor.forced_versions = _parse_forced_versions(raw_data["forced_versions"])
        descriptor.output = OutputSettings.from_dict(raw_data.get("output"))
        descriptor.compiler = CompilerSettings.from_dict(raw_data.get("compiler"))
        prerequisite = raw_data.get("evaluation_prerequisite", "app")
        descriptor.evaluation_prerequisite = (
            None if prerequisite is None else _string(prerequisite, "evaluation_prerequisite")
        )
        descriptor.clean_task = _clean_task(raw_data.get("clean_task", "clean"))
        descriptor.subprojects = [
            SubProject.from_dict(entry) for entry in as_list(raw_data["subprojects"], "subprojects")
        ]
        return descriptor

    def project_names(self) -> List[str]:
        return [project.name for project in self.subprojects]

    def get(self, name: str) -> SubProject:
        for project in self.subprojects:
            if project.name == name:
                return project
        raise DescriptorError(f"Unknown sub-project: {name}")

    def __contains__(self, name: str) -> bool:
        return name in self.project_names()


def _parse(path: Path, raw_text: str) -> Any:
    if path.suffix == ".toml":
        try:
            return tomllib.loads(raw_text)
        except tomllib.TOMLDecodeError as exc:
            raise DescriptorError(f"Invalid TOML in {path}: {exc}") from exc
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError:
        import yaml

        try:
            return yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise DescriptorError(f"Invalid YAML in {path}: {exc}") from exc


def _parse_forced_versions(data: Any) -> List[Tuple[Coordinate, str]]:
    # Accepts a mapping or a list of "group:artifact:version" strings. Only the
    # list form can express duplicates; those are rejected by the pinning table.
    if isinstance(data, Mapping):
        return [
            (Coordinate.parse(str(key)), _string(version, f"forced version of {key}"))
            for key, version in data.items()
        ]
    rules: List[Tuple[Coordinate, str]] = []
    for entry in as_string_list(data, "forced_versions"):
        coordinate, sep, version = entry.rpartition(":")
        if not sep or not version:
            raise DescriptorError(f"Expected 'group:artifact:version', got {entry!r}")
        rules.append((Coordinate.parse(coordinate), version))
    return rules


def _string(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise DescriptorError(f"{what} must be a non-empty string, got {value!r}")
    return value


def _clean_task(value: Any) -> str:
    name = _string(value, "clean_task")
    if name in RESERVED_TASK_NAMES:
        raise DescriptorError(f"clean_task {name!r} clashes with a built-in command")
    return name
