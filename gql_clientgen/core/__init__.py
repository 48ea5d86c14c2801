"""Core modules for GraphQL client API generation."""

from .arguments import ArgumentBinder, ArgumentPresence, OperationBinding, QueryArgument
from .codegen import CodeGen, CodeGenResult, PolymorphismMarker
from .config import CodeGenConfig
from .errors import (
    CodeGenError,
    InvalidDepthConfiguration,
    SchemaParseError,
    UnresolvedTypeReference,
    UnsupportedRootType,
)
from .generator import CodeGenerator
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
from .naming import GeneratedClassName, NameKind, NameResolver
from .parser import SchemaParser
from .projections import (
    ProjectionBuilder,
    ProjectionField,
    ProjectionLink,
    ProjectionNode,
    ProjectionTree,
)
from .pruner import ReachabilityPruner, ReachableTypes
from .query import (
    BaseProjectionNode,
    BaseSubProjectionNode,
    GraphQLQuery,
    GraphQLQueryBuilder,
    GraphQLQueryRequest,
    ProjectionRoot,
)
from .scalars import NativeType, ScalarHandler, ScalarRegistry

__all__ = [
    # Errors
    "CodeGenError",
    "InvalidDepthConfiguration",
    "SchemaParseError",
    "UnresolvedTypeReference",
    "UnsupportedRootType",
    # IR types
    "EnumTypeDef",
    "FieldDef",
    "InputTypeDef",
    "InterfaceTypeDef",
    "ObjectTypeDef",
    "OperationDef",
    "ScalarTypeDef",
    "SchemaModel",
    "TypeDef",
    "TypeRef",
    "UnionTypeDef",
    # Parser
    "SchemaParser",
    # Naming
    "GeneratedClassName",
    "NameKind",
    "NameResolver",
    # Generation run
    "CodeGen",
    "CodeGenConfig",
    "CodeGenResult",
    "PolymorphismMarker",
    "ReachabilityPruner",
    "ReachableTypes",
    "ProjectionBuilder",
    "ProjectionField",
    "ProjectionLink",
    "ProjectionNode",
    "ProjectionTree",
    "ArgumentBinder",
    "ArgumentPresence",
    "OperationBinding",
    "QueryArgument",
    # Runtime
    "BaseProjectionNode",
    "BaseSubProjectionNode",
    "GraphQLQuery",
    "GraphQLQueryBuilder",
    "GraphQLQueryRequest",
    "ProjectionRoot",
    # Scalars
    "NativeType",
    "ScalarHandler",
    "ScalarRegistry",
    # Emitter
    "CodeGenerator",
]
