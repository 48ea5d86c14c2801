"""Runtime support for generated client code.

Generated argument carriers subclass GraphQLQuery and generated projections
subclass ProjectionRoot / BaseSubProjectionNode. GraphQLQueryRequest turns a
carrier plus a projection into GraphQL request text.

Example:
    query = MoviesGraphQLQuery.builder().titleFilter("Rush").build()
    projection = MoviesProjectionRoot().title().actors().name().root()
    # query {
    #   movies(titleFilter: "Rush") {
    #     title
    #     actors {
    #       name
    #     }
    #   }
    # }
    text = GraphQLQueryRequest(query, projection).serialize()
"""

import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from .arguments import ArgumentPresence, QueryArgument

INDENT = "  "


class GraphQLQueryBuilder:
    """Collects argument values for a carrier.

    Each call to set() records the value and marks the argument as explicitly
    set, so a nullable argument set to None still reaches the input map.
    Arguments can also be set by calling their name: builder.nameFilter(None).
    """

    def __init__(self, query_class: type["GraphQLQuery"]):
        self._query_class = query_class
        self._values: dict[str, Any] = {}
        self._fields_set: set[str] = set()
        self._query_name: str | None = None

    def set(self, name: str, value: Any) -> "GraphQLQueryBuilder":
        self._query_class.argument(name)
        self._values[name] = value
        self._fields_set.add(name)
        return self

    def query_name(self, name: str) -> "GraphQLQueryBuilder":
        """Name the operation in the request text, e.g. 'query MoviesByTitle'."""
        self._query_name = name
        return self

    def build(self) -> "GraphQLQuery":
        return self._query_class(
            values=dict(self._values),
            fields_set=set(self._fields_set),
            query_name=self._query_name,
        )

    def __getattr__(self, name: str):
        query_class = self.__dict__.get("_query_class")
        if query_class is not None:
            for arg in query_class.arguments:
                if arg.member_name == name:
                    return lambda value: self.set(arg.name, value)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")


class GraphQLQuery:
    """Base class of operation argument carriers.

    Subclasses declare the operation they call and its arguments; `input`
    holds the arguments to send. Required arguments are always present,
    nullable ones only once they were set.
    """

    operation: str = "query"
    operation_name: str = ""
    arguments: tuple[QueryArgument, ...] = ()
    Builder = GraphQLQueryBuilder

    def __init__(
        self,
        values: dict[str, Any] | None = None,
        fields_set: set[str] | None = None,
        query_name: str | None = None,
    ):
        values = values or {}
        fields_set = fields_set or set()
        self.query_name = query_name
        self.input: dict[str, Any] = {}
        for arg in self.arguments:
            value = values.get(arg.name)
            if arg.presence is ArgumentPresence.ALWAYS:
                self.input[arg.name] = value
            elif value is not None or arg.name in fields_set:
                self.input[arg.name] = value

    @classmethod
    def builder(cls) -> GraphQLQueryBuilder:
        return cls.Builder(cls)

    @classmethod
    def argument(cls, name: str) -> QueryArgument:
        for arg in cls.arguments:
            if arg.name == name:
                return arg
        raise KeyError(f"{cls.__name__} has no argument '{name}'")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(input={self.input!r})"


class BaseProjectionNode:
    """Selection-set builder base class.

    Internal attributes are underscore-prefixed so they never collide with
    generated accessors, which carry schema field names.
    """

    # Concrete type name on fragment classes; rendered as '... on <type>'
    _schema_type: str | None = None

    def __init__(self):
        self._selected: dict[str, BaseProjectionNode | None] = {}
        self._arguments: dict[str, dict[str, Any]] = {}
        self._fragments: list[BaseProjectionNode] = []

    def _select(self, name: str, arguments: dict[str, Any] | None = None) -> "BaseProjectionNode":
        """Select a leaf field and stay on this projection.

        Field arguments left at None are not sent.
        """
        self._selected[name] = None
        self._set_arguments(name, arguments)
        return self

    def _child(
        self,
        name: str,
        projection: "BaseProjectionNode",
        arguments: dict[str, Any] | None = None,
    ):
        """Select an object field and continue on its projection."""
        self._selected[name] = projection
        self._set_arguments(name, arguments)
        return projection

    def _set_arguments(self, name: str, arguments: dict[str, Any] | None):
        given = {key: value for key, value in (arguments or {}).items() if value is not None}
        if given:
            self._arguments[name] = given
        else:
            self._arguments.pop(name, None)

    def _fragment(self, projection: "BaseProjectionNode"):
        """Add an inline fragment and continue on it."""
        self._fragments.append(projection)
        return projection

    @property
    def _selected_fields(self) -> dict[str, "BaseProjectionNode | None"]:
        return dict(self._selected)

    @property
    def _selected_fragments(self) -> list["BaseProjectionNode"]:
        return list(self._fragments)


class ProjectionRoot(BaseProjectionNode):
    """Base class of the projection an operation starts from."""

    def root(self) -> "ProjectionRoot":
        return self


class BaseSubProjectionNode(BaseProjectionNode):
    """Base class of nested projections, with navigation back up."""

    def __init__(self, parent: BaseProjectionNode, root: ProjectionRoot):
        super().__init__()
        self._parent_node = parent
        self._root_node = root

    def parent(self) -> BaseProjectionNode:
        return self._parent_node

    def root(self) -> ProjectionRoot:
        return self._root_node


class GraphQLQueryRequest:
    """Serializes a carrier and its projection into GraphQL request text."""

    def __init__(self, query: GraphQLQuery, projection: BaseProjectionNode | None = None):
        self.query = query
        self.projection = projection

    def serialize(self) -> str:
        header = self.query.operation
        if self.query.query_name:
            header = f"{header} {self.query.query_name}"

        field = self.query.operation_name + serialize_arguments(self.query.input)
        lines = [f"{header} {{"]
        if self.projection is None:
            lines.append(f"{INDENT}{field}")
        else:
            lines.append(f"{INDENT}{field} {{")
            lines.extend(self._render_selection(self.projection, depth=2))
            lines.append(f"{INDENT}}}")
        lines.append("}")
        return "\n".join(lines)

    def _render_selection(self, node: BaseProjectionNode, depth: int) -> list[str]:
        """Render the fields and fragments of a projection."""
        indent = INDENT * depth
        lines = []
        if node._schema_type is not None:
            lines.append(f"{indent}__typename")

        for name, child in node._selected_fields.items():
            call = name + serialize_arguments(node._arguments.get(name, {}))
            if child is None:
                lines.append(f"{indent}{call}")
            else:
                lines.append(f"{indent}{call} {{")
                lines.extend(self._render_selection(child, depth + 1))
                lines.append(f"{indent}}}")

        for fragment in node._selected_fragments:
            lines.append(f"{indent}... on {fragment._schema_type} {{")
            lines.extend(self._render_selection(fragment, depth + 1))
            lines.append(f"{indent}}}")

        # An empty selection set is invalid GraphQL
        return lines or [f"{indent}__typename"]


def serialize_arguments(arguments: dict[str, Any]) -> str:
    """Render '(name: value, ...)' or an empty string."""
    if not arguments:
        return ""
    rendered = ", ".join(f"{name}: {serialize_value(value)}" for name, value in arguments.items())
    return f"({rendered})"


def serialize_value(value: Any) -> str:
    """Render a Python value as a GraphQL literal.

    Enums render as bare names, pydantic models and dicts as input objects.
    """
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value) if isinstance(value.value, str) else value.name
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, (datetime, date, time)):
        return json.dumps(value.isoformat())
    if isinstance(value, (UUID, Decimal)):
        return json.dumps(str(value))
    if isinstance(value, BaseModel):
        # Convert Pydantic model to dict, using aliases and excluding None
        return serialize_value(value.model_dump(by_alias=True, exclude_none=True))
    if isinstance(value, dict):
        items = ", ".join(f"{key}: {serialize_value(item)}" for key, item in value.items())
        return f"{{{items}}}"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"[{', '.join(serialize_value(item) for item in value)}]"
    raise TypeError(f"Cannot serialize {type(value).__name__} as a GraphQL value")
