from __future__ import annotations

from typing import Callable, Dict, Iterable, Iterator, List, Sequence

from .errors import ConfigurationError
from .models import CompileTask

TaskPredicate = Callable[[CompileTask], bool]


class TaskRegistry:
    """Compile tasks of one sub-project, keyed by task name."""

    def __init__(self, tasks: Iterable[CompileTask] = ()) -> None:
        self._tasks: Dict[str, CompileTask] = {}
        for task in tasks:
            self.register(task)

    def register(self, task: CompileTask) -> CompileTask:
        if task.name in self._tasks:
            raise ConfigurationError(f"Task registered twice: {task.name}")
        self._tasks[task.name] = task
        return task

    def matching(self, predicate: TaskPredicate) -> List[CompileTask]:
        return [task for task in self._tasks.values() if predicate(task)]

    def get(self, name: str) -> CompileTask:
        return self._tasks[name]

    def __iter__(self) -> Iterator[CompileTask]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)


class FlagInjector:
    """Append fixed compiler flags to every task of one kind.

    Flags already present on a task are left alone, so applying the injector
    again in a later configuration pass changes nothing.
    """

    def __init__(self, kind: str, flags: Sequence[str]) -> None:
        self.kind = kind
        self.flags = tuple(flags)

    def matches(self, task: CompileTask) -> bool:
        return task.kind == self.kind

    def visit(self, task: CompileTask) -> bool:
        added = False
        for flag in self.flags:
            if flag not in task.flags:
                task.flags.append(flag)
                added = True
        return added

    def apply(self, registry: TaskRegistry) -> int:
        return sum(1 for task in registry.matching(self.matches) if self.visit(task))
