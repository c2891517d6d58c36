"""Core modules for GraphQL schema compilation."""

from .binder import ArgumentBinding, Bindings, ResolverBinder, ResolverBinding
from .config import CompilerConfig
from .errors import (
    AmbiguousNumericScalar,
    DuplicateScalarBinding,
    EmitError,
    ExtractionError,
    InvalidGenericArity,
    ResolutionConflict,
    SchemaCompileError,
    ScalarRegistryError,
    UnboundAccessor,
    UnknownScalar,
    UnresolvedTypeReference,
)
from .extractor import DeclarationExtractor, extract, load_unit
from .generator import EmittedSchema, SchemaEmitter
from .generics import GenericEngine, instance_name
from .hooks import (
    HookRunner,
    PostGenerateHook,
    PreGenerateHook,
    SelectDeclarationsHook,
)
from .ir import (
    AccessKind,
    EffectKind,
    EnumDecl,
    FieldDescriptor,
    GenericObjectDecl,
    ObjectDecl,
    ScalarDecl,
    SourceModel,
)
from .metadata import CompilationUnit
from .pipeline import CompiledUnit, PassResult, UnitResult, analyze, compile_model, compile_unit, compile_units
from .resolver import TypeResolver
from .scalars import ScalarRegistry
from .type_graph import (
    EnumType,
    GenericPlaceholder,
    ListType,
    NonNullType,
    ObjectType,
    ScalarType,
    TypeGraph,
)

__all__ = [
    # Errors
    "SchemaCompileError",
    "ExtractionError",
    "UnresolvedTypeReference",
    "ResolutionConflict",
    "ScalarRegistryError",
    "DuplicateScalarBinding",
    "AmbiguousNumericScalar",
    "UnknownScalar",
    "InvalidGenericArity",
    "UnboundAccessor",
    "EmitError",
    # Source model
    "CompilationUnit",
    "SourceModel",
    "ObjectDecl",
    "EnumDecl",
    "ScalarDecl",
    "GenericObjectDecl",
    "FieldDescriptor",
    "AccessKind",
    "EffectKind",
    # Extractor
    "DeclarationExtractor",
    "extract",
    "load_unit",
    # Scalars
    "ScalarRegistry",
    # Type graph
    "TypeGraph",
    "ObjectType",
    "EnumType",
    "ScalarType",
    "ListType",
    "NonNullType",
    "GenericPlaceholder",
    # Resolution
    "TypeResolver",
    "GenericEngine",
    "instance_name",
    # Binder
    "ArgumentBinding",
    "Bindings",
    "ResolverBinder",
    "ResolverBinding",
    # Emitter
    "EmittedSchema",
    "SchemaEmitter",
    # Hooks
    "PreGenerateHook",
    "PostGenerateHook",
    "SelectDeclarationsHook",
    "HookRunner",
    # Pipeline
    "CompilerConfig",
    "CompiledUnit",
    "PassResult",
    "UnitResult",
    "analyze",
    "compile_model",
    "compile_unit",
    "compile_units",
]
