"""Type resolver.

Walks the Source Model in declaration order (then field order) and builds
the Type Graph. The wrapping grammar is applied recursively:

    T | null   -> T           (nullable)
    T          -> T!          (anything without a null marker)
    T[]        -> [resolve(T)] with the same rule applied outside

Named references to object and enum declarations return the node for that
name immediately, as an unfilled shell if its declaration has not been
processed yet; the declaration fills it in when the walk reaches it. This
handles forward and cyclic references without recursing into the target.
"""

import logging
from contextlib import contextmanager

from .errors import (
    ExtractionError,
    InvalidGenericArity,
    ResolutionConflict,
    SchemaCompileError,
    UnknownScalar,
)
from .generics import GenericEngine
from .ir import (
    ArgumentDescriptor,
    EnumDecl,
    FieldDescriptor,
    GenericApplication,
    GenericObjectDecl,
    ListOf,
    NamedRef,
    Nullable,
    ObjectDecl,
    ParamRef,
    ScalarDecl,
    SourceModel,
    TypeExpr,
)
from .scalars import ScalarRegistry
from .type_graph import (
    AppliedGeneric,
    EnumType,
    EnumValueNode,
    GenericObjectType,
    GenericPlaceholder,
    GraphArgument,
    GraphField,
    ListType,
    NamedType,
    NonNullType,
    ObjectType,
    TypeGraph,
    TypeNode,
)

logger = logging.getLogger(__name__)


class TypeResolver:
    """Resolves a SourceModel into a TypeGraph."""

    def __init__(self, model: SourceModel, registry: ScalarRegistry):
        self.model = model
        self.registry = registry
        self.graph = TypeGraph()
        self.engine = GenericEngine(self)
        self._site: tuple[str | None, str | None] = (None, None)

    @property
    def site(self) -> tuple[str | None, str | None]:
        """The declaration and field currently being resolved."""
        return self._site

    @contextmanager
    def at(self, declaration: str, field: str | None = None):
        """Attach the declaration/field being resolved to any error raised."""
        previous = self._site
        self._site = (declaration, field)
        try:
            yield
        except SchemaCompileError as e:
            e.attach(declaration, field)
            raise
        finally:
            self._site = previous

    def resolve(self) -> TypeGraph:
        """Resolve every declaration and verify that no placeholder is left."""
        for decl in self.model.declarations:
            with self.at(decl.name):
                if isinstance(decl, ObjectDecl):
                    self._process_object(decl)
                elif isinstance(decl, EnumDecl):
                    self._process_enum(decl)
                elif isinstance(decl, ScalarDecl):
                    self._process_scalar(decl)
                elif isinstance(decl, GenericObjectDecl):
                    self._process_generic(decl)

        self.graph.assert_complete()
        logger.debug(
            "Resolved unit %s: %d named types, %d generic instantiations",
            self.model.unit,
            len(self.graph),
            len(self.engine.instantiations),
        )
        return self.graph

    # -- declarations -------------------------------------------------------

    def _process_object(self, decl: ObjectDecl):
        node = self.graph.shell(decl.name, ObjectType)
        if node.filled:
            raise ResolutionConflict(f"type '{decl.name}' is defined more than once")
        node.description = decl.description
        node.fields = self.resolve_fields(decl.name, decl.fields)
        node.filled = True

    def _process_enum(self, decl: EnumDecl):
        node = self.graph.shell(decl.name, EnumType)
        node.description = decl.description
        node.values = [EnumValueNode(m.name, m.value, m.description) for m in decl.members]
        node.filled = True

    def _process_scalar(self, decl: ScalarDecl):
        scalar = self.registry.by_name(decl.name)
        if scalar is None:
            raise UnknownScalar(f"scalar '{decl.name}' was not registered before resolution")
        self.graph.adopt(scalar)

    def _process_generic(self, decl: GenericObjectDecl):
        env = {param: GenericPlaceholder(param) for param in decl.type_parameters}
        template = GenericObjectType(
            name=decl.name,
            params=decl.type_parameters,
            description=decl.description,
        )
        template.fields = self.resolve_fields(decl.name, decl.fields, env)
        self.graph.add_generic(template)

    def resolve_fields(
        self,
        owner: str,
        descriptors: tuple[FieldDescriptor, ...],
        env: dict[str, TypeNode] | None = None,
    ) -> list[GraphField]:
        """Resolve field and argument types, keeping declaration order."""
        fields = []
        for descriptor in descriptors:
            with self.at(owner, descriptor.name):
                field_type = None
                if descriptor.type is not None:
                    field_type = self.resolve_expr(descriptor.type, descriptor.tag, env)
                arguments = [self._resolve_argument(arg, env) for arg in descriptor.arguments]
            fields.append(GraphField(descriptor.name, field_type, descriptor, arguments))
        return fields

    def _resolve_argument(self, arg: ArgumentDescriptor, env) -> GraphArgument:
        return GraphArgument(
            name=arg.name,
            type=self.resolve_expr(arg.type, arg.tag, env),
            description=arg.description,
        )

    # -- type expressions ---------------------------------------------------

    def resolve_expr(
        self,
        expr: TypeExpr,
        tag: str | None = None,
        env: dict[str, TypeNode] | None = None,
    ) -> TypeNode:
        """Apply the wrapping grammar to a declared type expression."""
        if isinstance(expr, Nullable):
            return self._resolve_inner(expr.inner, tag, env)
        return NonNullType(self._resolve_inner(expr, tag, env))

    def _resolve_inner(self, expr: TypeExpr, tag, env) -> TypeNode:
        if isinstance(expr, ListOf):
            return ListType(self.resolve_expr(expr.element, tag, env))
        if isinstance(expr, Nullable):
            return self._resolve_inner(expr.inner, tag, env)
        if isinstance(expr, ParamRef):
            if not env or expr.name not in env:
                raise ExtractionError(f"type parameter '{expr.name}' is not bound here")
            return env[expr.name]
        if isinstance(expr, GenericApplication):
            arguments = tuple(self._resolve_inner(a, tag, env) for a in expr.arguments)
            if any(isinstance(a, (GenericPlaceholder, AppliedGeneric)) for a in arguments):
                self._check_generic(expr.name, len(arguments))
                return AppliedGeneric(expr.name, arguments)
            return self.engine.instantiate(expr.name, arguments)
        if isinstance(expr, NamedRef):
            return self.named(expr.name, tag)
        raise ExtractionError(f"unsupported type expression {expr!r}")

    def _check_generic(self, name: str, count: int):
        decl = self.model.get(name)
        if not isinstance(decl, GenericObjectDecl):
            raise InvalidGenericArity(f"'{name}' is not a generic declaration")
        if len(decl.type_parameters) != count:
            raise InvalidGenericArity(
                f"generic '{name}' takes {len(decl.type_parameters)} type argument(s), got {count}"
            )

    def named(self, name: str, tag: str | None = None) -> NamedType:
        """Return the node for a named reference, deduplicated by name."""
        decl = self.model.get(name)
        if isinstance(decl, ObjectDecl):
            return self.graph.shell(name, ObjectType)
        if isinstance(decl, EnumDecl):
            return self.graph.shell(name, EnumType)
        if isinstance(decl, GenericObjectDecl):
            raise InvalidGenericArity(
                f"generic '{name}' takes {len(decl.type_parameters)} type argument(s), got 0"
            )
        if self.registry.has(name):
            return self.graph.adopt(self.registry.lookup(name, tag))

        scalar = self.registry.by_name(name)
        if scalar is not None:
            return self.graph.adopt(scalar)

        if isinstance(decl, ScalarDecl):
            raise UnknownScalar(f"scalar '{name}' was not registered before resolution")
        declaration, field = self.site
        logger.debug("Deferring unknown type %s referenced by %s.%s", name, declaration, field)
        return self.graph.pending(name, declaration, field)


def resolve(model: SourceModel, registry: ScalarRegistry) -> TypeResolver:
    """Resolve a model and return the resolver (graph and generic engine)."""
    resolver = TypeResolver(model, registry)
    resolver.resolve()
    return resolver
