from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .descriptor import BuildDescriptor
from .errors import OrderingViolation
from .graph import EvaluationGraph
from .layout import Directory, OutputLayout
from .models import StageResult, SubProject
from .repositories import RepositoryRegistry
from .resolution import DependencyResolver, ResolvedDependency, VersionPinningTable
from .tasks import FlagInjector, TaskRegistry
from .utils import dump_json, ensure_directory, fingerprint, load_json

logger = logging.getLogger(__name__)

REPORT_NAME = "configuration.json"


class Stage(Enum):
    REPOSITORIES = auto()
    RESOLUTION = auto()
    LAYOUT = auto()
    TASKS = auto()

    @classmethod
    def ordered(cls) -> Iterable["Stage"]:
        return (
            cls.REPOSITORIES,
            cls.RESOLUTION,
            cls.LAYOUT,
            cls.TASKS,
        )


@dataclass(frozen=True)
class BuildSettings:
    """Shared configuration built once per invocation and handed to every sub-project."""

    descriptor: BuildDescriptor
    registry: RepositoryRegistry
    pinning: VersionPinningTable
    layout: OutputLayout
    injector: FlagInjector
    graph: EvaluationGraph

    @classmethod
    def from_descriptor(cls, descriptor: BuildDescriptor) -> "BuildSettings":
        return cls(
            descriptor=descriptor,
            registry=RepositoryRegistry(descriptor.repositories),
            pinning=VersionPinningTable(descriptor.forced_versions),
            layout=OutputLayout.from_descriptor(descriptor),
            injector=FlagInjector(descriptor.compiler.task_kind, descriptor.compiler.flags),
            graph=EvaluationGraph.for_projects(
                descriptor.project_names(), descriptor.evaluation_prerequisite
            ),
        )


@dataclass
class ProjectContext:
    project: SubProject
    settings: BuildSettings
    tasks: TaskRegistry
    resolved: List[ResolvedDependency] = field(default_factory=list)
    build_dir: Optional[Directory] = None

    @property
    def name(self) -> str:
        return self.project.name

    @property
    def report_path(self) -> Path:
        return self.settings.layout.build_dir(self.name).path / REPORT_NAME


@dataclass
class ProjectEvaluation:
    name: str
    build_dir: Directory
    stages: List[StageResult]
    fingerprint: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "project": self.name,
            "build_dir": str(self.build_dir),
            "fingerprint": self.fingerprint,
            "stages": [stage.to_dict() for stage in self.stages],
        }


StageHandler = Callable[[ProjectContext], StageResult]


def _stage_repositories(context: ProjectContext) -> StageResult:
    repositories = context.settings.registry.view()
    return StageResult(
        "repositories",
        "completed",
        {"repositories": [repo.to_dict() for repo in repositories]},
    )


def _stage_resolution(context: ProjectContext) -> StageResult:
    resolver = DependencyResolver(context.settings.registry, context.settings.pinning)
    context.resolved = resolver.resolve(context.project)
    return StageResult(
        "resolution",
        "completed",
        {
            "forced_versions": context.settings.pinning.as_dict(),
            "dependencies": [dep.to_dict() for dep in context.resolved],
        },
    )


def _stage_layout(context: ProjectContext) -> StageResult:
    context.build_dir = context.settings.layout.build_dir(context.name)
    return StageResult(
        "layout",
        "completed",
        {"root": str(context.settings.layout.root), "build_dir": str(context.build_dir)},
    )


def _stage_tasks(context: ProjectContext) -> StageResult:
    injector = context.settings.injector
    changed = injector.apply(context.tasks)
    return StageResult(
        "tasks",
        "completed",
        {
            "task_kind": injector.kind,
            "flags": list(injector.flags),
            "changed": changed,
            "tasks": [task.to_dict() for task in context.tasks],
        },
    )


_STAGE_HANDLERS: Dict[Stage, StageHandler] = {
    Stage.REPOSITORIES: _stage_repositories,
    Stage.RESOLUTION: _stage_resolution,
    Stage.LAYOUT: _stage_layout,
    Stage.TASKS: _stage_tasks,
}


class ConfigurationPipeline:
    """Evaluates sub-project configurations against one ``BuildSettings``."""

    def __init__(self, settings: BuildSettings) -> None:
        self.settings = settings
        self._contexts: Dict[str, ProjectContext] = {}
        self._evaluated: Dict[str, ProjectEvaluation] = {}

    @classmethod
    def from_descriptor(cls, descriptor: BuildDescriptor) -> "ConfigurationPipeline":
        return cls(BuildSettings.from_descriptor(descriptor))

    def _context(self, name: str) -> ProjectContext:
        if name not in self._contexts:
            project = self.settings.descriptor.get(name)
            self._contexts[name] = ProjectContext(
                project=project,
                settings=self.settings,
                tasks=TaskRegistry(replace(task, flags=list(task.flags)) for task in project.tasks),
            )
        return self._contexts[name]

    def evaluate_project(self, name: str) -> ProjectEvaluation:
        context = self._context(name)
        pending = sorted(self.settings.graph.prerequisites(name) - set(self._evaluated))
        if pending:
            raise OrderingViolation(
                f"Project ':{name}' evaluated before its prerequisite(s): "
                + ", ".join(f":{p}" for p in pending)
            )

        results = [_STAGE_HANDLERS[stage](context) for stage in Stage.ordered()]
        payload = {result.name: result.details for result in results}
        evaluation = ProjectEvaluation(
            name=name,
            build_dir=self.settings.layout.build_dir(name),
            stages=results,
            fingerprint=fingerprint(payload),
        )
        ensure_directory(evaluation.build_dir.path)
        dump_json(context.report_path, evaluation.to_dict())
        self._evaluated[name] = evaluation
        logger.info("Configured :%s -> %s", name, evaluation.build_dir)
        return evaluation

    def evaluate_all(self) -> List[ProjectEvaluation]:
        return [self.evaluate_project(name) for name in self.settings.graph.topological_sort()]

    def evaluated(self) -> List[str]:
        return list(self._evaluated)

    def status(self) -> Dict[str, str]:
        statuses: Dict[str, str] = {}
        for name in self.settings.descriptor.project_names():
            report_path = self.settings.layout.build_dir(name).path / REPORT_NAME
            if report_path.exists():
                statuses[name] = load_json(report_path).get("fingerprint", "unknown")
            else:
                statuses[name] = "not configured"
        return statuses

    def clean(self) -> bool:
        removed = self.settings.layout.clean()
        self._evaluated.clear()
        return removed
