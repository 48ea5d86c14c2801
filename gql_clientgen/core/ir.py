"""Intermediate Representation (IR) for GraphQL schemas.

This module defines immutable dataclasses that represent a finalized GraphQL
schema: extensions are already merged and directives are already resolved into
plain flags, so everything downstream only reads from it.
"""

import re
from dataclasses import dataclass, field

from .naming import to_snake_case


@dataclass(frozen=True)
class TypeRef:
    """A named type plus its list/non-null wrapping.

    A named reference has ``name`` set; a list reference has ``of_type`` set.
    ``non_null`` applies to the reference itself, so ``[String!]!`` is a
    non-null list of non-null ``String``.
    """
    name: str | None = None
    of_type: "TypeRef | None" = None
    non_null: bool = False

    @classmethod
    def named(cls, name: str, non_null: bool = False) -> "TypeRef":
        return cls(name=name, non_null=non_null)

    @classmethod
    def list_of(cls, item: "TypeRef", non_null: bool = False) -> "TypeRef":
        return cls(of_type=item, non_null=non_null)

    @classmethod
    def parse(cls, notation: str) -> "TypeRef":
        """Parse GraphQL type notation such as ``[Show!]!``."""
        text = notation.strip()
        non_null = text.endswith("!")
        if non_null:
            text = text[:-1].rstrip()
        if text.startswith("[") and text.endswith("]"):
            return cls.list_of(cls.parse(text[1:-1]), non_null=non_null)
        if not re.fullmatch(r"[_A-Za-z][_0-9A-Za-z]*", text):
            raise ValueError(f"Invalid type notation: {notation!r}")
        return cls.named(text, non_null=non_null)

    @property
    def base_name(self) -> str:
        """The named type with every wrapper stripped."""
        ref = self
        while ref.of_type is not None:
            ref = ref.of_type
        return ref.name

    @property
    def is_list(self) -> bool:
        return self.of_type is not None

    @property
    def is_optional(self) -> bool:
        return not self.non_null

    def __str__(self) -> str:
        inner = f"[{self.of_type}]" if self.of_type is not None else self.name
        return f"{inner}!" if self.non_null else inner


@dataclass(frozen=True)
class FieldDef:
    """A field of an object/interface/input type, or an argument of a field."""
    name: str
    type_ref: TypeRef
    arguments: tuple["FieldDef", ...] = ()
    owner: str = ""
    description: str | None = None
    # GraphQL literal text of the default value, e.g. '"abc"' or 'MOVIE'
    default_value: str | None = None
    skip: bool = False

    @property
    def type_name(self) -> str:
        return self.type_ref.base_name


@dataclass(frozen=True)
class TypeDef:
    """Common base of every named schema type."""
    name: str
    description: str | None = None
    skip: bool = False


@dataclass(frozen=True)
class ScalarTypeDef(TypeDef):
    # Dotted Python type resolved from @pythonType or the config type mapping
    native_type: str | None = None


@dataclass(frozen=True)
class EnumTypeDef(TypeDef):
    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class ObjectTypeDef(TypeDef):
    fields: tuple[FieldDef, ...] = ()
    interfaces: tuple[str, ...] = ()


@dataclass(frozen=True)
class InterfaceTypeDef(TypeDef):
    fields: tuple[FieldDef, ...] = ()


@dataclass(frozen=True)
class UnionTypeDef(TypeDef):
    members: tuple[str, ...] = ()


@dataclass(frozen=True)
class InputTypeDef(TypeDef):
    fields: tuple[FieldDef, ...] = ()


OPERATION_TYPES = ("query", "mutation", "subscription")

BUILTIN_SCALARS = {
    name: ScalarTypeDef(name=name)
    for name in ("String", "Int", "Float", "Boolean", "ID")
}


@dataclass(frozen=True)
class OperationDef:
    """A root field of Query, Mutation or Subscription."""
    name: str
    operation_type: str  # 'query', 'mutation' or 'subscription'
    return_type: TypeRef
    arguments: tuple[FieldDef, ...] = ()
    description: str | None = None
    skip: bool = False

    @property
    def full_name(self) -> str:
        """Return the snake_case name, e.g. 'person_search'."""
        return to_snake_case(self.name)


@dataclass(frozen=True)
class SchemaModel:
    """Complete, finalized representation of a GraphQL schema."""
    types: dict[str, TypeDef] = field(default_factory=dict)
    queries: tuple[OperationDef, ...] = ()
    mutations: tuple[OperationDef, ...] = ()
    subscriptions: tuple[OperationDef, ...] = ()

    def get_type(self, name: str) -> TypeDef | None:
        """Look up a type by name, falling back to the built-in scalars."""
        if name in self.types:
            return self.types[name]
        return BUILTIN_SCALARS.get(name)

    def types_of(self, kind: type) -> list:
        """Return all types of one variant, in declaration order."""
        return [t for t in self.types.values() if isinstance(t, kind)]

    def possible_types(self, name: str) -> list[ObjectTypeDef]:
        """Concrete object types behind an interface or union.

        Interfaces yield their implementations in declaration order; unions
        yield their members in the order they are listed.
        """
        type_def = self.get_type(name)
        if isinstance(type_def, UnionTypeDef):
            members = [self.get_type(m) for m in type_def.members]
            return [m for m in members if isinstance(m, ObjectTypeDef)]
        if isinstance(type_def, InterfaceTypeDef):
            return [
                t for t in self.types_of(ObjectTypeDef)
                if name in t.interfaces
            ]
        return []

    def missing_members(self, name: str) -> list[str]:
        """Union members that name no type in the schema."""
        type_def = self.get_type(name)
        if not isinstance(type_def, UnionTypeDef):
            return []
        return [m for m in type_def.members if self.get_type(m) is None]

    def operations_of(self, operation_type: str) -> tuple[OperationDef, ...]:
        if operation_type == "query":
            return self.queries
        if operation_type == "mutation":
            return self.mutations
        if operation_type == "subscription":
            return self.subscriptions
        raise ValueError(f"Unknown operation type: {operation_type}")

    @property
    def all_operations(self) -> list[OperationDef]:
        """Return all queries, mutations and subscriptions."""
        return [*self.queries, *self.mutations, *self.subscriptions]
