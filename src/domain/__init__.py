"""Domain layer: errors and schemas."""

from .errors import (
    ErrorCodes,
    TemplateError,
    TemplateNotFoundError,
    TemplateTransportError,
    TemplateValidationError,
)
from .schemas import (
    SaveTemplateInput,
    TemplateMeta,
    TemplateRecord,
    TemplateStatus,
    TemplateVersion,
    UpdateTemplateMetaInput,
)

__all__ = [
    # errors
    "ErrorCodes",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateTransportError",
    "TemplateValidationError",
    # schemas
    "SaveTemplateInput",
    "TemplateMeta",
    "TemplateRecord",
    "TemplateStatus",
    "TemplateVersion",
    "UpdateTemplateMetaInput",
]
