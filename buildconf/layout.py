from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from .descriptor import BuildDescriptor
from .errors import CleanupError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Directory:
    """Filesystem directory value with ``dir(name)`` derivation."""

    path: Path

    def dir(self, name: str) -> "Directory":
        return Directory(Path(os.path.normpath(self.path / name)))

    def exists(self) -> bool:
        return self.path.is_dir()

    def __str__(self) -> str:
        return str(self.path)


class OutputLayout:
    """Relocates every sub-project's output below one shared root.

    The root is computed once, at construction, and the same ``Directory``
    object backs every sub-project's build directory.
    """

    def __init__(self, root: Directory) -> None:
        self.root = root

    @classmethod
    def from_descriptor(cls, descriptor: BuildDescriptor) -> "OutputLayout":
        base = Path(descriptor.path).parent
        default_dir = Directory(base / descriptor.output.default_dir)
        root = default_dir.dir(descriptor.output.relocate)
        logger.debug("Relocating build output from %s to %s", default_dir, root)
        return cls(root)

    def build_dir(self, project_name: str) -> Directory:
        return self.root.dir(project_name)

    def clean(self) -> bool:
        """Delete the shared root recursively. Returns False when it was absent."""

        if not self.root.path.exists():
            return False
        try:
            shutil.rmtree(self.root.path)
        except OSError as exc:
            raise CleanupError(f"Failed to delete {self.root}: {exc}") from exc
        logger.info("Deleted %s", self.root)
        return True
