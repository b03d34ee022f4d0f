from __future__ import annotations

import argparse
import json
import logging
import sys

from .descriptor import BuildDescriptor
from .errors import BuildConfigError
from .pipeline import ConfigurationPipeline
from .resolution import DependencyResolver

DEFAULT_DESCRIPTOR = "android/build.yaml"


def _load_pipeline(args: argparse.Namespace) -> ConfigurationPipeline:
    descriptor = BuildDescriptor.from_file(args.descriptor)
    return ConfigurationPipeline.from_descriptor(descriptor)


def cmd_projects(args: argparse.Namespace) -> None:
    pipeline = _load_pipeline(args)
    for name in pipeline.settings.graph.topological_sort():
        print(f"{name}\t{pipeline.settings.layout.build_dir(name)}")


def cmd_repositories(args: argparse.Namespace) -> None:
    pipeline = _load_pipeline(args)
    for repo in pipeline.settings.registry:
        print(f"{repo.name}\t{repo.url}")


def cmd_resolve(args: argparse.Namespace) -> None:
    pipeline = _load_pipeline(args)
    settings = pipeline.settings
    resolver = DependencyResolver(settings.registry, settings.pinning)
    resolved = resolver.resolve(settings.descriptor.get(args.project))
    print(json.dumps([dep.to_dict() for dep in resolved], indent=2))


def cmd_evaluate(args: argparse.Namespace) -> None:
    pipeline = _load_pipeline(args)
    evaluations = pipeline.evaluate_all()
    print(json.dumps([evaluation.to_dict() for evaluation in evaluations], indent=2))


def cmd_status(args: argparse.Namespace) -> None:
    pipeline = _load_pipeline(args)
    print(json.dumps(pipeline.status(), indent=2))


def cmd_clean(args: argparse.Namespace) -> None:
    _load_pipeline(args).clean()


def build_parser(clean_task: str = "clean") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Multi-project build configuration")
    parser.add_argument(
        "--descriptor",
        default=DEFAULT_DESCRIPTOR,
        help="Path to the root build descriptor (YAML, JSON or TOML).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log configuration steps.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    projects_parser = subparsers.add_parser("projects", help="List sub-projects in evaluation order")
    projects_parser.set_defaults(func=cmd_projects)

    repos_parser = subparsers.add_parser("repositories", help="List the shared repositories")
    repos_parser.set_defaults(func=cmd_repositories)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve dependencies of one sub-project")
    resolve_parser.add_argument("--project", required=True)
    resolve_parser.set_defaults(func=cmd_resolve)

    evaluate_parser = subparsers.add_parser("evaluate", help="Configure every sub-project")
    evaluate_parser.set_defaults(func=cmd_evaluate)

    status_parser = subparsers.add_parser("status", help="Show configuration status per sub-project")
    status_parser.set_defaults(func=cmd_status)

    clean_parser = subparsers.add_parser(clean_task, help="Delete the shared build output root")
    clean_parser.set_defaults(func=cmd_clean)

    return parser


def _clean_task_name(argv: list[str] | None) -> str:
    # The clean task name lives in the descriptor, so peek at --descriptor first.
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--descriptor", default=DEFAULT_DESCRIPTOR)
    known, _ = pre.parse_known_args(argv)
    try:
        return BuildDescriptor.from_file(known.descriptor).clean_task
    except BuildConfigError:
        return "clean"


def main(argv: list[str] | None = None) -> int:
    parser = build_parser(_clean_task_name(argv))
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except BuildConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
