"""Projection graph construction.

A projection is a selection-set builder for one path from an operation root.
The builder expands an operation's return type field by field into a tree of
ProjectionNodes:

- scalar and enum fields become leaf accessors on the node;
- object fields become child nodes;
- interface and union fields become a node plus one fragment child per
  concrete implementation, restricted to the fields the interface does not
  already declare;
- a type that is already on the current path is generated once more as a
  terminal back-reference and is not expanded further;
- with a depth ceiling, nodes at the ceiling keep only their leaf accessors.

Node identity is the path: the same type reached through two different paths
yields two nodes with two class names. Nodes are appended to an arena list in
creation order and never point back at their ancestors.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator

from .errors import UnresolvedTypeReference
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
from .naming import GeneratedClassName, NameResolver, escape_member_name, fragment_accessor_name

logger = logging.getLogger(__name__)

LEAF_TYPES = (ScalarTypeDef, EnumTypeDef)
COMPOSITE_TYPES = (ObjectTypeDef, InterfaceTypeDef, UnionTypeDef)


@dataclass(frozen=True)
class ProjectionField:
    """A scalar or enum field selectable on a projection."""
    name: str
    type_ref: TypeRef
    arguments: tuple[FieldDef, ...] = ()

    accessor_kind = "field"

    @property
    def member_name(self) -> str:
        return escape_member_name(self.name)


@dataclass(frozen=True)
class ProjectionLink:
    """An object field of a back-reference node.

    Selecting it continues on the class already generated for the same field
    at the earlier occurrence of the type on the path.
    """
    name: str
    type_ref: TypeRef
    target_class_name: str
    arguments: tuple[FieldDef, ...] = ()

    accessor_kind = "link"

    @property
    def member_name(self) -> str:
        return escape_member_name(self.name)


@dataclass
class ProjectionNode:
    """One generated projection class."""
    path: tuple[str, ...]
    type_ref: TypeRef
    type_name: str
    kind: str  # 'object', 'interface' or 'union'
    class_name: GeneratedClassName
    root_class_name: str
    parent_class_name: str | None = None
    # Field of the parent that leads here; None for the root and for fragments
    field_name: str | None = None
    field_arguments: tuple[FieldDef, ...] = ()
    depth: int = 0
    is_fragment: bool = False
    back_reference: bool = False
    truncated: bool = False
    fields: list[ProjectionField] = field(default_factory=list)
    children: list["ProjectionNode"] = field(default_factory=list)
    fragments: list["ProjectionNode"] = field(default_factory=list)
    links: list[ProjectionLink] = field(default_factory=list)
    # Schema field names in declaration order, across fields/children/links
    field_order: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.class_name.name

    @property
    def is_root(self) -> bool:
        return len(self.path) == 1

    @property
    def member_name(self) -> str:
        """Accessor name on the parent class that leads to this node."""
        if self.is_fragment:
            return fragment_accessor_name(self.type_name)
        return escape_member_name(self.field_name)

    @property
    def member_names(self) -> list[str]:
        """All accessor names of this class, fields first, fragments last."""
        names = [escape_member_name(n) for n in self.field_order]
        names.extend(f.member_name for f in self.fragments)
        return names

    @property
    def accessor_kind(self) -> str:
        return "fragment" if self.is_fragment else "child"

    @property
    def accessors(self) -> list:
        """Fields, children and links in declaration order, then fragments."""
        by_name = {f.name: f for f in self.fields}
        by_name.update((c.field_name, c) for c in self.children)
        by_name.update((link.name, link) for link in self.links)
        return [by_name[name] for name in self.field_order] + list(self.fragments)

    def walk(self) -> Iterator["ProjectionNode"]:
        """Yield this node and its descendants, children before fragments."""
        yield self
        for child in self.children:
            yield from child.walk()
        for fragment in self.fragments:
            yield from fragment.walk()


@dataclass
class ProjectionTree:
    """All projection nodes of one operation."""
    operation: OperationDef
    root: ProjectionNode
    nodes: list[ProjectionNode]

    def __iter__(self) -> Iterator[ProjectionNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def class_names(self) -> list[str]:
        return [node.name for node in self.nodes]

    def find(self, class_name: str) -> ProjectionNode | None:
        for node in self.nodes:
            if node.name == class_name:
                return node
        return None


@dataclass(frozen=True)
class _PathState:
    """Traversal state for one path; a new value is derived for every step."""
    path: tuple[str, ...]
    type_chain: tuple[str, ...] = ()
    # Path of the node that pushed each entry of type_chain
    anchors: tuple[tuple[str, ...], ...] = ()
    depth: int = 0

    def visiting(self, type_name: str) -> bool:
        return type_name in self.type_chain

    def anchor_of(self, type_name: str) -> tuple[str, ...]:
        return self.anchors[self.type_chain.index(type_name)]

    def push(self, type_name: str) -> "_PathState":
        return _PathState(
            path=self.path,
            type_chain=self.type_chain + (type_name,),
            anchors=self.anchors + (self.path,),
            depth=self.depth,
        )

    def child(self, field_name: str) -> "_PathState":
        return _PathState(self.path + (field_name,), self.type_chain, self.anchors, self.depth + 1)

    def fragment(self, type_name: str) -> "_PathState":
        return _PathState(self.path + (type_name,), self.type_chain, self.anchors, self.depth)


@dataclass
class _Arena:
    """Nodes of the tree under construction plus links awaiting their targets."""
    nodes: list[ProjectionNode] = field(default_factory=list)
    # (back-reference node, object field, path of the earlier occurrence)
    pending_links: list[tuple[ProjectionNode, FieldDef, tuple[str, ...]]] = field(
        default_factory=list
    )
    root_class_name: str | None = None


class ProjectionBuilder:
    """Builds projection trees for operations of one schema.

    Example:
        builder = ProjectionBuilder(schema, NameResolver(), max_depth=3)
        tree = builder.build(operation)
        for node in tree:
            print(node.name, node.member_names)
    """

    def __init__(
        self,
        schema: SchemaModel,
        resolver: NameResolver | None = None,
        max_depth: int | None = None,
    ):
        self.schema = schema
        self.resolver = resolver or NameResolver()
        self.max_depth = max_depth

    def build(self, operation: OperationDef) -> ProjectionTree | None:
        """Expand an operation's return type into a projection tree.

        Returns:
            The tree, or None when the operation returns a scalar or enum and
            there is nothing to select

        Raises:
            UnresolvedTypeReference: if any field on the way names an unknown type
        """
        state = _PathState(path=(operation.name,))
        type_def = self._lookup(operation.return_type, state.path)
        if not isinstance(type_def, COMPOSITE_TYPES):
            return None

        arena = _Arena()
        root = self._expand(arena, type_def, operation.return_type, state, parent=None)
        self._resolve_links(arena)
        logger.debug(
            "Built %d projections for %s %s",
            len(arena.nodes), operation.operation_type, operation.name,
        )
        return ProjectionTree(operation=operation, root=root, nodes=arena.nodes)

    def _lookup(self, type_ref: TypeRef, path: tuple[str, ...]) -> TypeDef:
        type_def = self.schema.get_type(type_ref.base_name)
        if type_def is None:
            raise UnresolvedTypeReference(type_ref.base_name, path)
        return type_def

    def _at_depth_limit(self, state: _PathState) -> bool:
        return self.max_depth is not None and state.depth >= self.max_depth

    def _expand(
        self,
        arena: _Arena,
        type_def: TypeDef,
        type_ref: TypeRef,
        state: _PathState,
        parent: ProjectionNode | None,
        field_def: FieldDef | None = None,
    ) -> ProjectionNode:
        if isinstance(type_def, ObjectTypeDef):
            return self._expand_object(arena, type_def, type_ref, state, parent, field_def)
        if isinstance(type_def, (InterfaceTypeDef, UnionTypeDef)):
            return self._expand_abstract(arena, type_def, type_ref, state, parent, field_def)
        raise TypeError(f"Cannot project type kind: {type(type_def).__name__}")

    def _new_node(
        self,
        arena: _Arena,
        type_def: TypeDef,
        type_ref: TypeRef,
        state: _PathState,
        parent: ProjectionNode | None,
        field_def: FieldDef | None,
        is_fragment: bool = False,
    ) -> ProjectionNode:
        class_name = self.resolver.resolve(state.path)
        if arena.root_class_name is None:
            arena.root_class_name = class_name.name
        node = ProjectionNode(
            path=state.path,
            type_ref=type_ref,
            type_name=type_def.name,
            kind=_kind_of(type_def),
            class_name=class_name,
            root_class_name=arena.root_class_name,
            parent_class_name=parent.name if parent else None,
            field_name=field_def.name if field_def else None,
            field_arguments=field_def.arguments if field_def else (),
            depth=state.depth,
            is_fragment=is_fragment,
            back_reference=state.visiting(type_def.name),
        )
        arena.nodes.append(node)
        if node.back_reference:
            logger.debug("%s revisits %s; not expanding further", node.name, type_def.name)
        return node

    def _expand_object(
        self,
        arena: _Arena,
        type_def: ObjectTypeDef,
        type_ref: TypeRef,
        state: _PathState,
        parent: ProjectionNode | None,
        field_def: FieldDef | None,
        shared: frozenset[str] = frozenset(),
        is_fragment: bool = False,
    ) -> ProjectionNode:
        node = self._new_node(arena, type_def, type_ref, state, parent, field_def, is_fragment)
        inner = state if node.back_reference else state.push(type_def.name)
        fields = [f for f in type_def.fields if f.name not in shared]
        self._expand_fields(arena, node, type_def.name, fields, inner)
        return node

    def _expand_abstract(
        self,
        arena: _Arena,
        type_def: InterfaceTypeDef | UnionTypeDef,
        type_ref: TypeRef,
        state: _PathState,
        parent: ProjectionNode | None,
        field_def: FieldDef | None,
    ) -> ProjectionNode:
        node = self._new_node(arena, type_def, type_ref, state, parent, field_def)
        inner = state if node.back_reference else state.push(type_def.name)

        shared: frozenset[str] = frozenset()
        if isinstance(type_def, InterfaceTypeDef):
            self._expand_fields(arena, node, type_def.name, type_def.fields, inner)
            shared = frozenset(f.name for f in type_def.fields)

        for missing in self.schema.missing_members(type_def.name):
            raise UnresolvedTypeReference(missing, state.path + (missing,))
        for member in self.schema.possible_types(type_def.name):
            fragment = self._expand_object(
                arena, member, TypeRef.named(member.name), inner.fragment(member.name),
                parent=node, field_def=None, shared=shared, is_fragment=True,
            )
            node.fragments.append(fragment)
        return node

    def _expand_fields(
        self,
        arena: _Arena,
        node: ProjectionNode,
        owner: str,
        fields,
        state: _PathState,
    ):
        """Add accessors, children or links for each field of the node's type.

        `state` already has the owner pushed unless the node is a
        back-reference.
        """
        for field_def in fields:
            if field_def.skip:
                continue
            field_path = state.path + (field_def.name,)
            field_type = self._lookup(field_def.type_ref, field_path)

            if isinstance(field_type, LEAF_TYPES):
                node.fields.append(
                    ProjectionField(field_def.name, field_def.type_ref, field_def.arguments)
                )
                node.field_order.append(field_def.name)
            elif isinstance(field_type, COMPOSITE_TYPES):
                if node.back_reference:
                    arena.pending_links.append((node, field_def, state.anchor_of(owner)))
                    node.field_order.append(field_def.name)
                elif self._at_depth_limit(state):
                    logger.debug(
                        "Depth limit %s reached; omitting %s", self.max_depth, ".".join(field_path)
                    )
                    node.truncated = True
                else:
                    child = self._expand(
                        arena, field_type, field_def.type_ref, state.child(field_def.name),
                        parent=node, field_def=field_def,
                    )
                    node.children.append(child)
                    node.field_order.append(field_def.name)
            elif isinstance(field_type, InputTypeDef):
                logger.warning(
                    "Field %s has input type %s and cannot be selected",
                    ".".join(field_path), field_type.name,
                )
            else:
                raise TypeError(f"Unhandled type kind: {type(field_type).__name__}")

    @staticmethod
    def _resolve_links(arena: _Arena):
        """Point back-reference accessors at the classes generated for them.

        Targets are looked up after the whole tree exists because the earlier
        occurrence may still have been expanding when the link was recorded.
        A fragment anchor does not project its interface's fields; those are
        looked up on the interface node. A target missing from the tree (depth
        limit, skipped field) drops the accessor.
        """
        by_path = {node.path: node for node in arena.nodes}
        for node, field_def, anchor in arena.pending_links:
            target = by_path.get(anchor + (field_def.name,))
            if target is None and by_path[anchor].is_fragment:
                target = by_path.get(anchor[:-1] + (field_def.name,))
            if target is None:
                logger.debug(
                    "No projection for %s.%s; %s.%s is not selectable",
                    ".".join(anchor), field_def.name, node.name, field_def.name,
                )
                node.field_order.remove(field_def.name)
                continue
            node.links.append(
                ProjectionLink(
                    name=field_def.name,
                    type_ref=field_def.type_ref,
                    target_class_name=target.name,
                    arguments=field_def.arguments,
                )
            )


def _kind_of(type_def: TypeDef) -> str:
    if isinstance(type_def, ObjectTypeDef):
        return "object"
    if isinstance(type_def, InterfaceTypeDef):
        return "interface"
    if isinstance(type_def, UnionTypeDef):
        return "union"
    raise TypeError(f"Cannot project type kind: {type(type_def).__name__}")
