"""Generation run orchestration.

A CodeGen instance owns every piece of mutable state of one run (the name
table, the projection arenas) and assembles the CodeGenResult only after all
steps succeeded, so a failing run produces nothing.

Example:
    schema = SchemaParser("schema/").parse_all()
    result = CodeGen(schema, CodeGenConfig(max_projection_depth=3)).generate()
    for tree in result.projections:
        print(tree.class_names)
"""

import logging
from dataclasses import dataclass, field

from .arguments import ArgumentBinder, OperationBinding
from .config import CodeGenConfig
from .errors import UnresolvedTypeReference, UnsupportedRootType
from .ir import (
    OPERATION_TYPES,
    EnumTypeDef,
    InputTypeDef,
    InterfaceTypeDef,
    ObjectTypeDef,
    OperationDef,
    SchemaModel,
    TypeDef,
    UnionTypeDef,
)
from .naming import NameResolver
from .projections import ProjectionBuilder, ProjectionNode, ProjectionTree
from .pruner import ReachabilityPruner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolymorphismMarker:
    """An interface or union with its concrete members, in schema order."""
    name: str
    kind: str  # 'interface' or 'union'
    members: tuple[str, ...]


@dataclass
class CodeGenResult:
    """Everything the emitter needs from one run."""
    operations: list[OperationBinding] = field(default_factory=list)
    projections: list[ProjectionTree] = field(default_factory=list)
    # Exact reachability closure of the selected operations
    required_input_types: list[InputTypeDef] = field(default_factory=list)
    required_enum_types: list[EnumTypeDef] = field(default_factory=list)
    # Types to emit: everything, or the closure when data types are off
    data_types: list[TypeDef] = field(default_factory=list)
    enum_types: list[EnumTypeDef] = field(default_factory=list)
    polymorphism_markers: list[PolymorphismMarker] = field(default_factory=list)

    @property
    def client_projections(self) -> list[ProjectionNode]:
        """All projection nodes of all operations, tree by tree."""
        return [node for tree in self.projections for node in tree.nodes]

    def projection_for(
        self, operation_name: str, operation_type: str | None = None
    ) -> ProjectionTree | None:
        for tree in self.projections:
            if tree.operation.name == operation_name and operation_type in (None, tree.operation.operation_type):
                return tree
        return None

    def binding_for(
        self, operation_name: str, operation_type: str | None = None
    ) -> OperationBinding | None:
        for binding in self.operations:
            if binding.operation.name == operation_name and operation_type in (None, binding.operation.operation_type):
                return binding
        return None


class CodeGen:
    """Runs the pruner, binder and projection builder for one schema."""

    def __init__(self, schema: SchemaModel, config: CodeGenConfig | None = None):
        self.schema = schema
        self.config = config or CodeGenConfig()

    def generate(self) -> CodeGenResult:
        """Build the generation model.

        Raises:
            InvalidDepthConfiguration: before any traversal, for a bad depth
            UnsupportedRootType: if an included operation does not exist
            UnresolvedTypeReference: if any reachable reference is dangling
        """
        self.config.validate()
        operations = self.select_operations()

        resolver = NameResolver(short=self.config.short_projection_names)
        reachable = ReachabilityPruner(self.schema).prune(operations)

        bindings: list[OperationBinding] = []
        trees: list[ProjectionTree] = []
        if self.config.generate_client_api:
            binder = ArgumentBinder(self.schema, resolver)
            builder = ProjectionBuilder(self.schema, resolver, self.config.max_projection_depth)
            for operation in operations:
                bindings.append(binder.bind(operation))
                tree = builder.build(operation)
                if tree is not None:
                    trees.append(tree)

        if self.config.generate_data_types:
            data_types = [
                t for t in self.schema.types.values()
                if isinstance(t, (ObjectTypeDef, InputTypeDef)) and not t.skip
            ]
            enum_types = [t for t in self.schema.types_of(EnumTypeDef) if not t.skip]
        else:
            data_types = list(reachable.input_types)
            enum_types = list(reachable.enum_types)

        result = CodeGenResult(
            operations=bindings,
            projections=trees,
            required_input_types=list(reachable.input_types),
            required_enum_types=list(reachable.enum_types),
            data_types=data_types,
            enum_types=enum_types,
            polymorphism_markers=self._collect_markers(trees),
        )
        logger.info(
            "Generated %d operations, %d projections, %d data types, %d enums",
            len(result.operations), len(result.client_projections),
            len(result.data_types), len(result.enum_types),
        )
        return result

    def select_operations(self) -> list[OperationDef]:
        """Operations of this run: included by config and not skipped.

        Raises:
            UnsupportedRootType: if an included name is not a root field
        """
        selected = []
        for operation_type in OPERATION_TYPES:
            available = self.schema.operations_of(operation_type)
            names = self.config.includes(operation_type)
            if names is not None:
                missing = names - {op.name for op in available}
                if missing:
                    raise UnsupportedRootType(sorted(missing)[0], operation_type)

            for operation in available:
                if names is not None and operation.name not in names:
                    continue
                if operation.skip:
                    logger.debug("Skipping %s %s (@skipcodegen)", operation_type, operation.name)
                    continue
                selected.append(operation)
        return selected

    def _collect_markers(self, trees: list[ProjectionTree]) -> list[PolymorphismMarker]:
        """Markers for polymorphic types in the trees, then (with data types) the rest."""
        names: list[str] = []
        for tree in trees:
            for node in tree.nodes:
                if node.kind != "object" and node.type_name not in names:
                    names.append(node.type_name)
        if self.config.generate_data_types:
            for type_def in self.schema.types.values():
                if isinstance(type_def, (InterfaceTypeDef, UnionTypeDef)) and type_def.name not in names:
                    names.append(type_def.name)

        markers = []
        for name in names:
            for missing in self.schema.missing_members(name):
                raise UnresolvedTypeReference(missing, (name, missing))
            members = tuple(m.name for m in self.schema.possible_types(name))
            if len(members) < 2:
                continue
            kind = "union" if isinstance(self.schema.get_type(name), UnionTypeDef) else "interface"
            markers.append(PolymorphismMarker(name=name, kind=kind, members=members))
        return markers
