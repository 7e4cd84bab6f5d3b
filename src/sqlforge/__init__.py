"""sqlforge: compile database-agnostic SQL templates to dialect-specific SQL."""

from sqlforge.models.descriptors import (
    EntityDescriptor,
    FieldDescriptor,
    MethodDescriptor,
    ParameterDescriptor,
    SemanticType,
)
from sqlforge.models.errors import Diagnostic, ProcessingResult
from sqlforge.settings import ParameterStyle, Settings
from sqlforge.template.engine import TemplateEngine, process_template

__version__ = "0.1.0"

__all__ = [
    "Diagnostic",
    "EntityDescriptor",
    "FieldDescriptor",
    "MethodDescriptor",
    "ParameterDescriptor",
    "ParameterStyle",
    "ProcessingResult",
    "SemanticType",
    "Settings",
    "TemplateEngine",
    "process_template",
]
