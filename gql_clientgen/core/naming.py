"""Class and member naming for generated client code.

Projection class names are derived from the path that leads to a node, so two
nodes reached through different paths never share a name even when they
project the same schema type::

    resolver = NameResolver()
    resolver.resolve(["movies"]).name                   # MoviesProjectionRoot
    resolver.resolve(["movies", "actors"]).name         # Movies_ActorsProjection
    NameResolver(short=True).resolve(
        ["movies", "actors", "movies"]).name            # Mo_Ac_MoviesProjection
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

logger = logging.getLogger(__name__)

# Member names that clash with the projection runtime (parent()/root()) or
# with the target language
RESERVED_MEMBER_NAMES = frozenset({"root", "parent", "import", "_"})

# Python reserved keywords that cannot be used as identifiers
PYTHON_KEYWORDS = {
    'False', 'None', 'True', 'and', 'as', 'assert', 'async', 'await',
    'break', 'class', 'continue', 'def', 'del', 'elif', 'else', 'except',
    'finally', 'for', 'from', 'global', 'if', 'import', 'in', 'is',
    'lambda', 'nonlocal', 'not', 'or', 'pass', 'raise', 'return', 'try',
    'while', 'with', 'yield'
}


class NameKind(Enum):
    """What a resolved name is used for; the value is the class suffix."""
    OPERATION = "GraphQLQuery"
    ROOT = "ProjectionRoot"
    PROJECTION = "Projection"


@dataclass(frozen=True)
class GeneratedClassName:
    """A resolved class name and the inputs it was resolved from."""
    name: str
    path: tuple[str, ...]
    short: bool = False

    def __str__(self) -> str:
        return self.name


def to_snake_case(name: str) -> str:
    """Convert PascalCase or camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def to_pascal_case(name: str) -> str:
    """Convert snake_case or camelCase to PascalCase."""
    return "".join(word.capitalize() for word in to_snake_case(name).split("_"))


def capitalize(segment: str) -> str:
    """Upper-case the first character only: 'favoriteMovie' -> 'FavoriteMovie'."""
    return segment[:1].upper() + segment[1:]


def escape_member_name(name: str) -> str:
    """Escape a schema field name for use as a generated accessor."""
    if name in RESERVED_MEMBER_NAMES:
        return f"_{name}"
    return name


def safe_identifier(name: str) -> str:
    """Make a name safe for Python by suffixing keywords with underscore."""
    if name in PYTHON_KEYWORDS:
        return f"{name}_"
    return name


def fragment_accessor_name(type_name: str) -> str:
    """Accessor that selects an inline fragment, e.g. 'onMovie'."""
    return f"on{capitalize(type_name)}"


class NameResolver:
    """Resolves paths to class names for one generation run.

    Names are a pure function of the path except in one case: short mode
    truncates segments, so two different paths can render the same text.
    The resolver remembers which path claimed each name and gives later
    paths a numeric suffix.
    """

    def __init__(self, short: bool = False):
        self.short = short
        self._claimed: dict[str, tuple] = {}

    def resolve(
        self,
        path: Sequence[str],
        short: bool | None = None,
        kind: NameKind | None = None,
    ) -> GeneratedClassName:
        """Resolve a path to a class name.

        Args:
            path: Segments from the operation root; field names, or type names
                for polymorphic branches
            short: Override the resolver's mode for this call
            kind: Suffix to use; defaults to ROOT for single-segment paths and
                PROJECTION otherwise

        Returns:
            The resolved name
        """
        if not path:
            raise ValueError("Cannot resolve a name for an empty path")
        short = self.short if short is None else short
        if kind is None:
            kind = NameKind.ROOT if len(path) == 1 else NameKind.PROJECTION

        segments = [capitalize(segment) for segment in path]
        # Children of the root keep the full root segment
        if short and len(segments) > 2:
            segments = [s[:2] for s in segments[:-1]] + segments[-1:]

        name = self._claim("_".join(segments) + kind.value, tuple(path), kind)
        return GeneratedClassName(name=name, path=tuple(path), short=short)

    def operation_name(self, operation_name: str) -> GeneratedClassName:
        """Name of the argument carrier for an operation."""
        return self.resolve([operation_name], short=False, kind=NameKind.OPERATION)

    def _claim(self, name: str, path: tuple[str, ...], kind: NameKind) -> str:
        key = (kind,) + path
        candidate = name
        counter = 2
        while candidate in self._claimed and self._claimed[candidate] != key:
            candidate = f"{name[:-len(kind.value)]}{counter}{kind.value}"
            counter += 1
        if candidate != name:
            logger.warning(
                "Class name %s is already used by path %s; using %s for %s",
                name, ".".join(self._claimed[name][1:]), candidate, ".".join(path),
            )
        self._claimed[candidate] = key
        return candidate
