"""Reachability pruning of input and enum types.

Only the input and enum types that the selected operations' arguments need,
directly or through nested input fields, have to be emitted for the client
API. Object, interface and union types are governed by the projections and
are never followed from here.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Iterable

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
    UnionTypeDef,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReachableTypes:
    """The closure of types required by a set of operations, in discovery order."""
    input_types: tuple[InputTypeDef, ...] = ()
    enum_types: tuple[EnumTypeDef, ...] = ()

    @property
    def names(self) -> list[str]:
        return [t.name for t in self.input_types] + [t.name for t in self.enum_types]


class ReachabilityPruner:
    """Computes the input/enum closure of a set of operations."""

    def __init__(self, schema: SchemaModel):
        self.schema = schema

    def prune(self, operations: Iterable[OperationDef]) -> ReachableTypes:
        """Return the input and enum types reachable from the operations' arguments.

        The walk is breadth-first over argument and input-field references,
        seeded with every argument of every operation in order, so the result
        order is the first-discovery order and is stable across runs.

        Raises:
            UnresolvedTypeReference: if an argument or input field names a type
                the schema does not define
        """
        # (reference, path) pairs still to look at
        frontier: deque[tuple[FieldDef, tuple[str, ...]]] = deque()
        for operation in operations:
            for arg in operation.arguments:
                frontier.append((arg, (operation.name, arg.name)))

        seen: set[str] = set()
        inputs: list[InputTypeDef] = []
        enums: list[EnumTypeDef] = []

        while frontier:
            ref, path = frontier.popleft()
            type_name = ref.type_ref.base_name
            if type_name in seen:
                continue
            type_def = self.schema.get_type(type_name)
            if type_def is None:
                raise UnresolvedTypeReference(type_name, path)
            seen.add(type_name)

            if isinstance(type_def, InputTypeDef):
                logger.debug("Input type %s reached via %s", type_name, ".".join(path))
                inputs.append(type_def)
                for input_field in type_def.fields:
                    frontier.append((input_field, (type_name, input_field.name)))
            elif isinstance(type_def, EnumTypeDef):
                logger.debug("Enum type %s reached via %s", type_name, ".".join(path))
                enums.append(type_def)
            elif isinstance(type_def, (ScalarTypeDef, ObjectTypeDef, InterfaceTypeDef, UnionTypeDef)):
                # Not part of the closure; output types belong to the projections
                continue
            else:
                raise TypeError(f"Unhandled type kind: {type(type_def).__name__}")

        return ReachableTypes(input_types=tuple(inputs), enum_types=tuple(enums))
