from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .errors import DescriptorError

# "group:artifact" -> version -> transitive requests ("group:artifact:version")
Inventory = Dict[str, Dict[str, List[str]]]


def as_mapping(value: Any, what: str) -> Dict[str, Any]:
    """Read an optional mapping section; an empty YAML key counts as absent."""

    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise DescriptorError(f"{what} must be a mapping, got {type(value).__name__}")
    return dict(value)


def as_list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DescriptorError(f"{what} must be a list, got {type(value).__name__}")
    return value


def as_string_list(value: Any, what: str) -> List[str]:
    items = as_list(value, what)
    for item in items:
        if not isinstance(item, str):
            raise DescriptorError(f"{what} entries must be strings, got {item!r}")
    return list(items)


@dataclass(frozen=True, order=True)
class Coordinate:
    """Package coordinate made of a group and an artifact identifier."""

    group: str
    artifact: str

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        parts = text.strip().split(":")
        if len(parts) != 2 or not all(parts):
            raise DescriptorError(f"Expected 'group:artifact', got {text!r}")
        return cls(group=parts[0], artifact=parts[1])

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}"


@dataclass(frozen=True)
class DependencyRequest:
    coordinate: Coordinate
    version: str

    @classmethod
    def parse(cls, text: str) -> "DependencyRequest":
        group, sep, rest = text.strip().partition(":")
        artifact, sep2, version = rest.partition(":")
        if not (sep and sep2 and group and artifact and version):
            raise DescriptorError(f"Expected 'group:artifact:version', got {text!r}")
        return cls(coordinate=Coordinate(group, artifact), version=version)

    def __str__(self) -> str:
        return f"{self.coordinate}:{self.version}"


@dataclass(frozen=True)
class Repository:
    """A package source.

    ``inventory`` is ``None`` for an open repository, which serves any
    coordinate at any version and publishes no transitive metadata.
    """

    name: str
    url: str = ""
    inventory: Optional[Inventory] = field(default=None, compare=False, hash=False)

    @classmethod
    def from_dict(cls, data: Any) -> "Repository":
        if isinstance(data, str):
            try:
                return WELL_KNOWN_REPOSITORIES[data]
            except KeyError as exc:
                raise DescriptorError(f"Unknown repository shorthand: {data}") from exc
        if not isinstance(data, Mapping) or "name" not in data:
            raise DescriptorError("Repository entries need at least a 'name'")
        inventory = data.get("inventory")
        if inventory is not None:
            what = f"inventory of {data['name']}"
            inventory = {
                str(coordinate): {
                    str(version): as_string_list(deps, f"{what} ({coordinate}:{version})")
                    for version, deps in as_mapping(versions, f"{what} ({coordinate})").items()
                }
                for coordinate, versions in as_mapping(inventory, what).items()
            }
        return cls(name=data["name"], url=data.get("url", ""), inventory=inventory)

    def serves(self, request: DependencyRequest) -> bool:
        if self.inventory is None:
            return True
        return request.version in self.inventory.get(str(request.coordinate), {})

    def metadata(self, request: DependencyRequest) -> List[DependencyRequest]:
        if self.inventory is None:
            return []
        deps = self.inventory.get(str(request.coordinate), {}).get(request.version, [])
        return [DependencyRequest.parse(dep) for dep in deps]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "url": self.url}


WELL_KNOWN_REPOSITORIES: Dict[str, Repository] = {
    "google": Repository("google", "https://dl.google.com/dl/android/maven2/"),
    "mavenCentral": Repository("mavenCentral", "https://repo.maven.apache.org/maven2/"),
}


@dataclass
class CompileTask:
    name: str
    kind: str
    flags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "CompileTask":
        if not isinstance(data, Mapping) or "name" not in data:
            raise DescriptorError("Task entries need at least a 'name'")
        return cls(
            name=data["name"],
            kind=data.get("kind") or "KotlinCompile",
            flags=as_string_list(data.get("flags"), f"flags of task {data['name']}"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind, "flags": list(self.flags)}


@dataclass
class SubProject:
    """A sub-project as declared in the build descriptor."""

    name: str
    dependencies: List[DependencyRequest] = field(default_factory=list)
    tasks: List[CompileTask] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "SubProject":
        if isinstance(data, str):
            return cls(name=data)
        try:
            name = data["name"]
        except (KeyError, TypeError) as exc:
            raise DescriptorError("Sub-project entries need a 'name'") from exc
        return cls(
            name=name,
            dependencies=[
                DependencyRequest.parse(dep)
                for dep in as_string_list(data.get("dependencies"), f"dependencies of {name}")
            ],
            tasks=[CompileTask.from_dict(task) for task in as_list(data.get("tasks"), f"tasks of {name}")],
        )


@dataclass
class StageResult:
    """Summary emitted by a configuration stage."""

    name: str
    status: str
    details: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"stage": self.name, "status": self.status, "details": self.details}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StageResult":
        return cls(
            name=data.get("stage", ""),
            status=data.get("status", "unknown"),
            details=data.get("details", {}),
        )
