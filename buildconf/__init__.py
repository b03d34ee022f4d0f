"""Root build configuration for multi-project builds."""

from .descriptor import BuildDescriptor
from .pipeline import BuildSettings, ConfigurationPipeline, Stage

__all__ = ["BuildDescriptor", "BuildSettings", "ConfigurationPipeline", "Stage"]
