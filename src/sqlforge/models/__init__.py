"""Descriptor and diagnostic models."""

from sqlforge.models.descriptors import (
    EntityDescriptor,
    FieldDescriptor,
    MethodDescriptor,
    ParameterDescriptor,
    SemanticType,
)
from sqlforge.models.errors import Diagnostic, ProcessingResult, SourceSpan

__all__ = [
    "Diagnostic",
    "EntityDescriptor",
    "FieldDescriptor",
    "MethodDescriptor",
    "ParameterDescriptor",
    "ProcessingResult",
    "SemanticType",
    "SourceSpan",
]
