"""Schema lookup and validation APIs."""

from .catalog import list_schema_names, schema_path_for
from .validate import validate

__all__ = ["list_schema_names", "schema_path_for", "validate"]
