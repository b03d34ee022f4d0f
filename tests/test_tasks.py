from __future__ import annotations

from buildconf.models import CompileTask
from buildconf.tasks import FlagInjector, TaskRegistry

FLAG = "-Xskip-metadata-version-check"


def test_injector_appends_flag_to_matching_tasks_only() -> None:
    kotlin = CompileTask("compileDebugKotlin", "KotlinCompile", ["-jvm-target=17", "-progressive"])
    java = CompileTask("compileDebugJavaWithJavac", "JavaCompile", ["-Xlint"])
    registry = TaskRegistry([kotlin, java])

    changed = FlagInjector("KotlinCompile", [FLAG]).apply(registry)

    assert changed == 1
    assert kotlin.flags == ["-jvm-target=17", "-progressive", FLAG]
    assert java.flags == ["-Xlint"]


def test_reapplying_injector_does_not_duplicate_flag() -> None:
    task = CompileTask("compileReleaseKotlin", "KotlinCompile", ["-jvm-target=17"])
    registry = TaskRegistry([task])
    injector = FlagInjector("KotlinCompile", [FLAG])

    injector.apply(registry)
    assert injector.apply(registry) == 0
    assert task.flags.count(FLAG) == 1
    assert len(task.flags) == 2
