"""GraphQL schema parser using graphql-core.

Parses .graphql/.graphqls files (or SDL strings) and produces a finalized
SchemaModel: `extend` declarations are merged into their base definitions and
the code generation directives are resolved into plain values.

Supported directives:
    @skipcodegen                 on a type, field or root field; sets `skip`
    @pythonType(name: "a.b.C")   on a scalar; sets `native_type`
"""

import logging
import os
from dataclasses import dataclass, field

from graphql import (
    EnumTypeDefinitionNode,
    EnumTypeExtensionNode,
    GraphQLError,
    InputObjectTypeDefinitionNode,
    InputObjectTypeExtensionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    ListTypeNode,
    NamedTypeNode,
    NonNullTypeNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    ScalarTypeDefinitionNode,
    SchemaDefinitionNode,
    SchemaExtensionNode,
    StringValueNode,
    TypeExtensionNode,
    TypeNode,
    UnionTypeDefinitionNode,
    UnionTypeExtensionNode,
    parse,
    print_ast,
)

from .errors import SchemaParseError
from .ir import (
    EnumTypeDef,
    FieldDef,
    InputTypeDef,
    InterfaceTypeDef,
    ObjectTypeDef,
    OperationDef,
    ScalarTypeDef,
    SchemaModel,
    TypeDef,
    TypeRef,
    UnionTypeDef,
)

logger = logging.getLogger(__name__)

SCHEMA_EXTENSIONS = (".graphqls", ".graphql")

SKIP_DIRECTIVE = "skipcodegen"
PYTHON_TYPE_DIRECTIVE = "pythonType"

_DEFAULT_ROOTS = {"query": "Query", "mutation": "Mutation", "subscription": "Subscription"}


@dataclass
class _PendingType:
    """Mutable accumulator for a type while definitions and extensions arrive."""
    kind: type
    name: str
    description: str | None = None
    skip: bool = False
    defined: bool = False
    fields: list[FieldDef] = field(default_factory=list)
    extension_fields: list[FieldDef] = field(default_factory=list)
    interfaces: list[str] = field(default_factory=list)
    members: list[str] = field(default_factory=list)
    values: list[str] = field(default_factory=list)
    native_type: str | None = None


class SchemaParser:
    """Parses GraphQL schema files into a SchemaModel."""

    def __init__(self, schema_path: str | None = None):
        """Initialize a parser with an optional path to a schema file or directory."""
        self.schema_path = schema_path
        self.current_file = "<sdl>"
        self._pending: dict[str, _PendingType] = {}
        self._roots = dict(_DEFAULT_ROOTS)

    def parse_all(self) -> SchemaModel:
        """Parse all schema files under schema_path and return the model."""
        if not self.schema_path:
            raise ValueError("No schema path configured")
        for file_path in self._collect_schema_files():
            self.current_file = os.path.basename(file_path)
            with open(file_path) as f:
                self._parse_source(f.read())
        return self._finalize()

    def parse_sdl(self, *sources: str) -> SchemaModel:
        """Parse one or more SDL strings and return the model."""
        for index, source in enumerate(sources):
            self.current_file = f"<sdl {index}>"
            self._parse_source(source)
        return self._finalize()

    def _collect_schema_files(self) -> list[str]:
        """Collect all schema files from path."""
        files = []
        if os.path.isfile(self.schema_path):
            if self.schema_path.endswith(SCHEMA_EXTENSIONS):
                files.append(self.schema_path)
        else:
            for root, _, filenames in os.walk(self.schema_path):
                for filename in filenames:
                    if filename.endswith(SCHEMA_EXTENSIONS):
                        files.append(os.path.join(root, filename))
        return sorted(files)

    def _parse_source(self, content: str):
        try:
            ast = parse(content)
        except GraphQLError as e:
            logger.error("Error parsing %s: %s", self.current_file, e.message)
            raise SchemaParseError(self.current_file, e.message) from e
        self._process_ast(ast)

    def _process_ast(self, ast):
        """Process GraphQL AST and accumulate pending types."""
        for definition in ast.definitions:
            if isinstance(definition, (SchemaDefinitionNode, SchemaExtensionNode)):
                self._process_schema_definition(definition)
            elif isinstance(definition, ScalarTypeDefinitionNode):
                self._process_scalar(definition)
            elif isinstance(definition, (EnumTypeDefinitionNode, EnumTypeExtensionNode)):
                self._process_enum(definition)
            elif isinstance(
                definition, (InterfaceTypeDefinitionNode, InterfaceTypeExtensionNode)
            ):
                self._process_fields_owner(definition, InterfaceTypeDef)
            elif isinstance(definition, (ObjectTypeDefinitionNode, ObjectTypeExtensionNode)):
                pending = self._process_fields_owner(definition, ObjectTypeDef)
                for interface in definition.interfaces or ():
                    if interface.name.value not in pending.interfaces:
                        pending.interfaces.append(interface.name.value)
            elif isinstance(
                definition, (InputObjectTypeDefinitionNode, InputObjectTypeExtensionNode)
            ):
                self._process_fields_owner(definition, InputTypeDef)
            elif isinstance(definition, (UnionTypeDefinitionNode, UnionTypeExtensionNode)):
                self._process_union(definition)

    def _process_schema_definition(self, node):
        for operation_type in node.operation_types or ():
            self._roots[operation_type.operation.value] = operation_type.type.name.value

    def _pending_type(self, node, kind: type) -> _PendingType:
        """Get or create the accumulator for a definition or extension node."""
        name = node.name.value
        pending = self._pending.get(name)
        if pending is None:
            pending = _PendingType(kind=kind, name=name)
            self._pending[name] = pending
        elif pending.kind is not kind:
            raise SchemaParseError(
                self.current_file,
                f"'{name}' is declared as both {pending.kind.__name__} and {kind.__name__}",
            )
        if not _is_extension(node):
            pending.defined = True
            pending.description = _description(node)
        pending.skip = pending.skip or _has_directive(node, SKIP_DIRECTIVE)
        return pending

    def _process_scalar(self, node: ScalarTypeDefinitionNode):
        pending = self._pending_type(node, ScalarTypeDef)
        python_type = _directive_argument(node, PYTHON_TYPE_DIRECTIVE, "name")
        if python_type:
            pending.native_type = python_type

    def _process_enum(self, node):
        pending = self._pending_type(node, EnumTypeDef)
        for value in node.values or ():
            if value.name.value not in pending.values:
                pending.values.append(value.name.value)

    def _process_union(self, node):
        pending = self._pending_type(node, UnionTypeDef)
        for member in node.types or ():
            if member.name.value not in pending.members:
                pending.members.append(member.name.value)

    def _process_fields_owner(self, node, kind: type) -> _PendingType:
        """Accumulate fields of an object, interface or input type.

        Extension fields are kept apart so they follow the base fields no
        matter which of the two was declared first.
        """
        pending = self._pending_type(node, kind)
        target = pending.extension_fields if _is_extension(node) else pending.fields
        known = {f.name for f in pending.fields} | {f.name for f in pending.extension_fields}
        for field_def in self._process_fields(node.fields or (), pending.name):
            if field_def.name not in known:
                target.append(field_def)
                known.add(field_def.name)
        return pending

    def _process_fields(self, field_nodes, owner: str) -> list[FieldDef]:
        """Process field (or input value) definitions into FieldDefs."""
        fields = []
        for node in field_nodes:
            args = tuple(
                self._process_fields(getattr(node, "arguments", None) or (), owner)
            )
            default = getattr(node, "default_value", None)
            fields.append(
                FieldDef(
                    name=node.name.value,
                    type_ref=self._get_type_ref(node.type),
                    arguments=args,
                    owner=owner,
                    description=_description(node),
                    default_value=print_ast(default) if default is not None else None,
                    skip=_has_directive(node, SKIP_DIRECTIVE),
                )
            )
        return fields

    @staticmethod
    def _get_type_ref(type_node: TypeNode) -> TypeRef:
        """Convert a type node into a TypeRef, keeping every wrapper."""
        if isinstance(type_node, NonNullTypeNode):
            inner = SchemaParser._get_type_ref(type_node.type)
            return TypeRef(name=inner.name, of_type=inner.of_type, non_null=True)
        if isinstance(type_node, ListTypeNode):
            return TypeRef.list_of(SchemaParser._get_type_ref(type_node.type))
        assert isinstance(type_node, NamedTypeNode), f"Expected NamedTypeNode, got {type(type_node)}"
        return TypeRef.named(type_node.name.value)

    def _finalize(self) -> SchemaModel:
        """Freeze accumulated types and split the root types into operations."""
        root_names = {name: op_type for op_type, name in self._roots.items()}
        types: dict[str, TypeDef] = {}
        operations: dict[str, list[OperationDef]] = {op: [] for op in _DEFAULT_ROOTS}

        for name, pending in self._pending.items():
            if name in root_names and pending.kind is ObjectTypeDef:
                op_type = root_names[name]
                for field_def in pending.fields + pending.extension_fields:
                    operations[op_type].append(
                        OperationDef(
                            name=field_def.name,
                            operation_type=op_type,
                            return_type=field_def.type_ref,
                            arguments=field_def.arguments,
                            description=field_def.description,
                            skip=field_def.skip or pending.skip,
                        )
                    )
                continue
            if not pending.defined:
                logger.debug("Type %s only appears in extensions", name)
            types[name] = self._freeze(pending)

        schema = SchemaModel(
            types=types,
            queries=tuple(operations["query"]),
            mutations=tuple(operations["mutation"]),
            subscriptions=tuple(operations["subscription"]),
        )
        logger.info(
            "Parsed schema: %d types, %d queries, %d mutations, %d subscriptions",
            len(types), len(schema.queries), len(schema.mutations), len(schema.subscriptions),
        )
        self._pending = {}
        self._roots = dict(_DEFAULT_ROOTS)
        return schema

    @staticmethod
    def _freeze(pending: _PendingType) -> TypeDef:
        common = {"name": pending.name, "description": pending.description, "skip": pending.skip}
        if pending.kind is ScalarTypeDef:
            return ScalarTypeDef(native_type=pending.native_type, **common)
        if pending.kind is EnumTypeDef:
            return EnumTypeDef(values=tuple(pending.values), **common)
        if pending.kind is UnionTypeDef:
            return UnionTypeDef(members=tuple(pending.members), **common)
        fields = tuple(pending.fields + pending.extension_fields)
        if pending.kind is ObjectTypeDef:
            return ObjectTypeDef(fields=fields, interfaces=tuple(pending.interfaces), **common)
        if pending.kind is InterfaceTypeDef:
            return InterfaceTypeDef(fields=fields, **common)
        if pending.kind is InputTypeDef:
            return InputTypeDef(fields=fields, **common)
        raise TypeError(f"Unhandled type kind: {pending.kind.__name__}")


def _is_extension(node) -> bool:
    return isinstance(node, TypeExtensionNode)


def _description(node) -> str | None:
    description = getattr(node, "description", None)
    return description.value if description else None


def _has_directive(node, name: str) -> bool:
    return any(d.name.value == name for d in getattr(node, "directives", None) or ())


def _directive_argument(node, directive: str, argument: str) -> str | None:
    for d in getattr(node, "directives", None) or ():
        if d.name.value != directive:
            continue
        for arg in d.arguments or ():
            if arg.name.value == argument and isinstance(arg.value, StringValueNode):
                return arg.value.value
    return None
