from __future__ import annotations


class BuildConfigError(RuntimeError):
    """Base class for every failure raised while evaluating a build descriptor."""


class DescriptorError(BuildConfigError):
    """Raised when the build descriptor cannot be parsed."""


class ConfigurationError(BuildConfigError):
    """Raised when a parsed descriptor is internally inconsistent."""


class ResolutionError(BuildConfigError):
    """Raised when a dependency cannot be served by any registered repository."""


class OrderingViolation(BuildConfigError):
    """Raised when a sub-project is evaluated before its prerequisite."""


class CircularDependencyError(BuildConfigError):
    pass


class CleanupError(BuildConfigError):
    """Raised when the shared output root cannot be deleted."""
