"""Operation argument binding.

Every operation gets an argument carrier: an ordered list of QueryArguments
and, for each one, a policy deciding when it is written into the carrier's
input map.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from .errors import UnresolvedTypeReference
from .ir import FieldDef, OperationDef, SchemaModel, TypeRef
from .naming import GeneratedClassName, NameResolver, escape_member_name, safe_identifier, to_snake_case

logger = logging.getLogger(__name__)

# Methods of GraphQLQueryBuilder that generated builder methods must not replace
BUILDER_MEMBER_NAMES = frozenset({"build", "set", "query_name"})


class ArgumentPresence(Enum):
    """When an argument appears in the input map."""
    ALWAYS = "always"      # required: written unconditionally
    WHEN_SET = "when_set"  # nullable: written once explicitly set, even to None


@dataclass(frozen=True)
class QueryArgument:
    """One argument of an operation carrier."""
    name: str
    type_ref: TypeRef
    description: str | None = None
    default_value: str | None = None

    @classmethod
    def parse(cls, name: str, notation: str, **kwargs) -> "QueryArgument":
        """Shorthand used by generated code: QueryArgument.parse("id", "ID!")."""
        return cls(name=name, type_ref=TypeRef.parse(notation), **kwargs)

    @classmethod
    def from_field(cls, field_def: FieldDef) -> "QueryArgument":
        return cls(
            name=field_def.name,
            type_ref=field_def.type_ref,
            description=field_def.description,
            default_value=field_def.default_value,
        )

    @property
    def required(self) -> bool:
        return self.type_ref.non_null

    @property
    def presence(self) -> ArgumentPresence:
        return ArgumentPresence.ALWAYS if self.required else ArgumentPresence.WHEN_SET

    @property
    def member_name(self) -> str:
        """Builder method name; schema names pass through unless reserved."""
        if self.name in BUILDER_MEMBER_NAMES:
            return f"_{self.name}"
        return safe_identifier(escape_member_name(self.name))

    @property
    def param_name(self) -> str:
        """snake_case keyword parameter name for Python signatures."""
        return safe_identifier(to_snake_case(self.name))


@dataclass(frozen=True)
class OperationBinding:
    """The argument carrier descriptor of one operation."""
    operation: OperationDef
    class_name: GeneratedClassName
    arguments: tuple[QueryArgument, ...] = ()

    @property
    def name(self) -> str:
        return self.class_name.name

    @property
    def required_arguments(self) -> list[QueryArgument]:
        return [a for a in self.arguments if a.presence is ArgumentPresence.ALWAYS]

    @property
    def optional_arguments(self) -> list[QueryArgument]:
        return [a for a in self.arguments if a.presence is ArgumentPresence.WHEN_SET]

    def query_class(self) -> type:
        """Create a runtime carrier class for this operation.

        Generated modules declare the same class statically; this is the
        dynamic equivalent for callers working straight from a schema.
        """
        from .query import GraphQLQuery

        return type(
            self.name,
            (GraphQLQuery,),
            {
                "operation": self.operation.operation_type,
                "operation_name": self.operation.name,
                "arguments": self.arguments,
                "__doc__": self.operation.description,
            },
        )


class ArgumentBinder:
    """Binds operation arguments for one generation run."""

    def __init__(self, schema: SchemaModel, resolver: NameResolver | None = None):
        self.schema = schema
        self.resolver = resolver or NameResolver()

    def bind(self, operation: OperationDef) -> OperationBinding:
        """Build the ordered argument list of an operation.

        Raises:
            UnresolvedTypeReference: if an argument names an unknown type
        """
        arguments = []
        for arg in operation.arguments:
            if self.schema.get_type(arg.type_name) is None:
                raise UnresolvedTypeReference(arg.type_name, (operation.name, arg.name))
            arguments.append(QueryArgument.from_field(arg))

        binding = OperationBinding(
            operation=operation,
            class_name=self.resolver.operation_name(operation.name),
            arguments=tuple(arguments),
        )
        logger.debug(
            "Bound %s: %d required, %d optional arguments",
            binding.name, len(binding.required_arguments), len(binding.optional_arguments),
        )
        return binding
