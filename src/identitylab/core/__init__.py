"""
Core building blocks for identitylab models and metadata handling.
"""

from .fields import AutoField, Field, FieldError, IntegerField, StringField
from .model import Model, ModelConfigurationError, ModelMeta, ModelOptions, table_name_for

__all__ = [
    "AutoField",
    "Field",
    "FieldError",
    "IntegerField",
    "Model",
    "ModelConfigurationError",
    "ModelMeta",
    "ModelOptions",
    "StringField",
    "table_name_for",
]
