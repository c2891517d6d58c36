"""Resolver binder.

Decides, for every resolved field, how the generated resolver reaches the
value on its parent and whether that value must be awaited:

    stored property, immediate   -> read_property("firstName")
    stored property, deferred    -> read_deferred_property("avatar")
    computed accessor, immediate -> call_accessor("fullName")
    computed accessor, deferred  -> call_deferred_accessor("group")

Accessors with arguments get an ordered argument list used to rebuild the
call; ID-typed arguments are converted into the ID value object first:

    call_accessor("user", argument("id", to_id), argument("limit"))

The binder only records the deferred/immediate distinction; awaiting is
left to the execution runtime.
"""

import logging
from dataclasses import dataclass

from .errors import UnboundAccessor
from .ir import AccessKind, EffectKind, FieldDescriptor
from .scalars import ID_SCALAR
from .type_graph import (
    AppliedGeneric,
    EnumType,
    GenericPlaceholder,
    GraphArgument,
    GraphField,
    ObjectType,
    ScalarType,
    TypeGraph,
    TypeNode,
    render,
    unwrap,
)

logger = logging.getLogger(__name__)

ID_CONVERTER = "to_id"


@dataclass(frozen=True)
class ArgumentBinding:
    name: str
    type: TypeNode
    converter: str | None = None

    @property
    def expression(self) -> str:
        if self.converter:
            return f'argument("{self.name}", {self.converter})'
        return f'argument("{self.name}")'


@dataclass(frozen=True)
class ResolverBinding:
    """Links a field descriptor to the accessor expression emitted for it."""
    type_name: str
    descriptor: FieldDescriptor
    expression: str
    arguments: tuple[ArgumentBinding, ...] = ()

    @property
    def field_name(self) -> str:
        return self.descriptor.name

    @property
    def access(self) -> AccessKind:
        return self.descriptor.access

    @property
    def effect(self) -> EffectKind:
        return self.descriptor.effect

    @property
    def deferred(self) -> bool:
        return self.descriptor.effect is EffectKind.DEFERRED


class Bindings:
    """Resolver bindings keyed by (type name, field name), in binding order."""

    def __init__(self):
        self._bindings: dict[tuple[str, str], ResolverBinding] = {}

    def add(self, binding: ResolverBinding):
        self._bindings[(binding.type_name, binding.field_name)] = binding

    def get(self, type_name: str, field_name: str) -> ResolverBinding:
        return self._bindings[(type_name, field_name)]

    def for_type(self, type_name: str) -> list[ResolverBinding]:
        return [b for (t, _), b in self._bindings.items() if t == type_name]

    def __len__(self) -> int:
        return len(self._bindings)

    def __iter__(self):
        return iter(self._bindings.values())


class ResolverBinder:
    """Binds every field of a resolved type graph to a resolver expression."""

    def __init__(self, graph: TypeGraph):
        self.graph = graph

    def bind(self) -> Bindings:
        bindings = Bindings()
        for node in self.graph.objects():
            for graph_field in node.fields:
                bindings.add(self.bind_field(node.name, graph_field))
        for template in self.graph.generics.values():
            for graph_field in template.fields:
                bindings.add(self.bind_field(template.name, graph_field))
        logger.debug("Bound %d resolvers", len(bindings))
        return bindings

    def bind_field(self, type_name: str, graph_field: GraphField) -> ResolverBinding:
        """Build the resolver binding of one field."""
        descriptor = graph_field.descriptor
        if graph_field.type is None:
            raise UnboundAccessor(
                "accessor has no declared return type that resolves to a schema type",
                declaration=descriptor.owner,
                field=descriptor.name,
            )

        arguments = tuple(self._bind_argument(descriptor, arg) for arg in graph_field.arguments)
        deferred = descriptor.effect is EffectKind.DEFERRED

        if descriptor.access is AccessKind.PROPERTY:
            helper = "read_deferred_property" if deferred else "read_property"
        else:
            helper = "call_deferred_accessor" if deferred else "call_accessor"

        parts = [f'"{descriptor.name}"'] + [a.expression for a in arguments]
        return ResolverBinding(
            type_name=type_name,
            descriptor=descriptor,
            expression=f"{helper}({', '.join(parts)})",
            arguments=arguments,
        )

    @staticmethod
    def _bind_argument(descriptor: FieldDescriptor, arg: GraphArgument) -> ArgumentBinding:
        target = unwrap(arg.type)
        if isinstance(target, (GenericPlaceholder, AppliedGeneric)):
            raise UnboundAccessor(
                f"argument '{arg.name}' cannot be typed with a generic parameter ({render(arg.type)})",
                declaration=descriptor.owner,
                field=descriptor.name,
            )
        if isinstance(target, ObjectType):
            raise UnboundAccessor(
                f"argument '{arg.name}' has output type {render(arg.type)}; "
                "arguments must be scalars or enums",
                declaration=descriptor.owner,
                field=descriptor.name,
            )
        if not isinstance(target, (ScalarType, EnumType)):
            raise UnboundAccessor(
                f"argument '{arg.name}' does not resolve to a schema type",
                declaration=descriptor.owner,
                field=descriptor.name,
            )
        converter = None
        if isinstance(target, ScalarType) and target.name == ID_SCALAR:
            converter = ID_CONVERTER
        return ArgumentBinding(name=arg.name, type=arg.type, converter=converter)


def bind(graph: TypeGraph) -> Bindings:
    return ResolverBinder(graph).bind()
