"""YAML descriptor loading."""

from sqlforge.parser.loader import (
    DescriptorLoader,
    DescriptorLoadError,
    DescriptorSet,
    YAMLSafetyError,
)

__all__ = ["DescriptorLoadError", "DescriptorLoader", "DescriptorSet", "YAMLSafetyError"]
