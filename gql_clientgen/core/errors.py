"""Exceptions raised by a generation run.

Every fatal condition aborts the whole run; nothing is emitted for it.
"""

from typing import Sequence


class CodeGenError(Exception):
    """Base exception for code generation errors."""


class UnresolvedTypeReference(CodeGenError):
    """A field, argument or member names a type absent from the schema."""

    def __init__(self, type_name: str, path: Sequence[str]):
        self.type_name = type_name
        self.path = tuple(path)
        location = ".".join(self.path) or "<schema>"
        super().__init__(f"Unknown type '{type_name}' referenced at {location}")


class UnsupportedRootType(CodeGenError):
    """A selected operation name is not a root field of its operation type."""

    def __init__(self, operation_name: str, operation_type: str):
        self.operation_name = operation_name
        self.operation_type = operation_type
        super().__init__(
            f"'{operation_name}' is not a field of the {operation_type} root type"
        )


class InvalidDepthConfiguration(CodeGenError):
    """max_projection_depth is set to something other than a positive integer."""

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"max_projection_depth must be a positive integer or None, got {value!r}"
        )


class SchemaParseError(CodeGenError):
    """A schema source could not be parsed."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Error parsing {source}: {message}")
