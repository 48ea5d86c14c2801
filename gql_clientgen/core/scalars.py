"""Scalar type mapping for generated code.

Maps GraphQL scalars to the Python types used in generated annotations and
collects the imports those types need.

Example usage:
    from gql_clientgen.core.scalars import NativeType, ScalarRegistry

    registry = ScalarRegistry()
    registry.register("Money", NativeType.from_dotted("decimal.Decimal"))
    registry.python_type("Money")        # "Decimal"
    registry.get_all_imports(["Money"])  # {"from decimal import Decimal"}

A schema can also choose the type itself:

    scalar Money @pythonType(name: "decimal.Decimal")
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol, runtime_checkable

from .ir import ScalarTypeDef, SchemaModel

logger = logging.getLogger(__name__)

# Fallback for scalars nobody mapped
ANY_TYPE_NAME = "Any"


@runtime_checkable
class ScalarHandler(Protocol):
    """Protocol for scalar mappings.

    Attributes:
        python_type: The Python type name used in annotations (e.g. "datetime")
        import_statement: The import needed for this type, or "" for builtins
    """

    python_type: str
    import_statement: str


@dataclass(frozen=True)
class NativeType:
    """A Python type plus the import that brings it into scope."""
    python_type: str
    import_statement: str = ""

    @classmethod
    def from_dotted(cls, dotted: str) -> "NativeType":
        """Build from a dotted path: 'datetime.date' -> date + 'from datetime import date'.

        Names without a module ('int', 'str') are treated as builtins.
        """
        module, _, name = dotted.rpartition(".")
        if not name:
            raise ValueError(f"Invalid type path: {dotted!r}")
        if not module or module == "builtins":
            return cls(name)
        return cls(name, f"from {module} import {name}")


BUILTIN_SCALAR_TYPES = {
    "String": NativeType("str"),
    "Int": NativeType("int"),
    "Float": NativeType("float"),
    "Boolean": NativeType("bool"),
    "ID": NativeType("str"),
}

DEFAULT_SCALAR_TYPES = {
    "DateTime": NativeType.from_dotted("datetime.datetime"),
    "Date": NativeType.from_dotted("datetime.date"),
    "LocalTime": NativeType.from_dotted("datetime.time"),
    "Time": NativeType.from_dotted("datetime.time"),
    "UUID": NativeType.from_dotted("uuid.UUID"),
    "Long": NativeType("int"),
    "BigInteger": NativeType("int"),
    "BigDecimal": NativeType.from_dotted("decimal.Decimal"),
    "Decimal": NativeType.from_dotted("decimal.Decimal"),
    "JSON": NativeType.from_dotted("typing.Any"),
    "JSONObject": NativeType.from_dotted("typing.Any"),
    "Object": NativeType.from_dotted("typing.Any"),
}


class ScalarRegistry:
    """Registry of scalar mappings.

    Lookups fall back from explicit registrations to the built-in GraphQL
    scalars; a scalar nobody mapped is annotated as Any.

    Example:
        registry = ScalarRegistry.from_schema(schema, {"Long": "int"})
        registry.python_type("Long")  # "int"
    """

    def __init__(self):
        self._handlers: dict[str, ScalarHandler] = {}
        # Register default handlers
        self._register_defaults()

    @classmethod
    def from_schema(
        cls, schema: SchemaModel, type_mapping: dict[str, str] | None = None
    ) -> "ScalarRegistry":
        """Registry with the schema's @pythonType choices and a mapping on top.

        The mapping wins over the directive, the directive over the defaults.
        """
        registry = cls()
        for scalar in schema.types_of(ScalarTypeDef):
            if scalar.native_type:
                registry.register_path(scalar.name, scalar.native_type)
        for scalar_name, dotted in (type_mapping or {}).items():
            registry.register_path(scalar_name, dotted)
        return registry

    def _register_defaults(self):
        """Register built-in default handlers."""
        for name, native in DEFAULT_SCALAR_TYPES.items():
            self.register(name, native)

    def register(self, scalar_name: str, handler: ScalarHandler):
        """Register a handler for a scalar type."""
        self._handlers[scalar_name] = handler

    def register_path(self, scalar_name: str, dotted: str):
        """Register a scalar by dotted Python type path."""
        self.register(scalar_name, NativeType.from_dotted(dotted))

    def get(self, scalar_name: str) -> ScalarHandler | None:
        """Get the handler for a scalar type, or None if not registered."""
        return self._handlers.get(scalar_name) or BUILTIN_SCALAR_TYPES.get(scalar_name)

    def has(self, scalar_name: str) -> bool:
        """Check if a handler is registered for a scalar type."""
        return self.get(scalar_name) is not None

    def python_type(self, scalar_name: str) -> str:
        handler = self.get(scalar_name)
        if handler is None:
            logger.debug("No Python type for scalar %s; using %s", scalar_name, ANY_TYPE_NAME)
            return ANY_TYPE_NAME
        return handler.python_type

    def get_all_imports(self, scalar_names: Iterable[str] | None = None) -> set[str]:
        """Get the import statements needed for the given scalars (default: all)."""
        if scalar_names is None:
            handlers = list(self._handlers.values())
        else:
            handlers = [self.get(name) for name in scalar_names]
        imports = set()
        for handler in handlers:
            if handler is None:
                imports.add("from typing import Any")
            elif handler.import_statement:
                imports.add(handler.import_statement)
        return imports
