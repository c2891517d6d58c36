"""Generic instantiation engine.

Instantiates generic object declarations for concrete type arguments.
Results are memoized by ``(generic name, argument names)`` so each pair is
instantiated exactly once per compilation pass:

    engine.instantiate("Connection", ["User"]) is engine.instantiate("Connection", ["User"])

The instantiated type is named by concatenating the argument names with the
generic name, so ``Connection<User>`` becomes ``UserConnection``.
"""

import logging
from typing import TYPE_CHECKING, Sequence

from .errors import ExtractionError, InvalidGenericArity, UnresolvedTypeReference
from .ir import GenericObjectDecl
from .type_graph import (
    EnumType,
    NamedType,
    ObjectType,
    PendingType,
    ScalarType,
)

if TYPE_CHECKING:
    from .resolver import TypeResolver

logger = logging.getLogger(__name__)

InstantiationKey = tuple[str, tuple[str, ...]]


def instance_name(generic_name: str, argument_names: Sequence[str]) -> str:
    """Schema name of an instantiation, e.g. ('Edge', ['User']) -> 'UserEdge'."""
    return "".join(argument_names) + generic_name


class GenericEngine:
    """Memoized factory for generic object instantiations."""

    def __init__(self, resolver: "TypeResolver"):
        self.resolver = resolver
        self._memo: dict[InstantiationKey, ObjectType] = {}
        # Completion order: nested instantiations come before their containers
        self.instantiations: list[ObjectType] = []

    def __len__(self) -> int:
        return len(self._memo)

    def cached(self, generic_name: str, argument_names: Sequence[str]) -> ObjectType | None:
        """Return the memoized instantiation for a key, if any."""
        return self._memo.get((generic_name, tuple(argument_names)))

    def instantiate(self, generic_name: str, concrete_args: Sequence[NamedType | str]) -> ObjectType:
        """Return the object type for a generic applied to concrete arguments."""
        decl = self.resolver.model.get(generic_name)
        if decl is None:
            declaration, field = self.resolver.site
            raise UnresolvedTypeReference(generic_name, declaration, field)
        if not isinstance(decl, GenericObjectDecl):
            raise InvalidGenericArity(f"'{generic_name}' is not a generic declaration")

        arguments = tuple(self._argument(a) for a in concrete_args)
        if len(arguments) != len(decl.type_parameters):
            raise InvalidGenericArity(
                f"generic '{generic_name}' takes {len(decl.type_parameters)} "
                f"type argument(s), got {len(arguments)}"
            )

        key = (generic_name, tuple(a.name for a in arguments))
        cached = self._memo.get(key)
        if cached is not None:
            return cached

        node = ObjectType(
            name=instance_name(generic_name, key[1]),
            description=decl.description,
            generic=generic_name,
            arguments=arguments,
        )
        # Memoized before its fields are resolved so self-references terminate
        self._memo[key] = node
        logger.debug("Instantiating %s as %s", generic_name, node.name)

        env = dict(zip(decl.type_parameters, arguments))
        node.fields = self.resolver.resolve_fields(decl.name, decl.fields, env)
        node.filled = True

        self.resolver.graph.add(node)
        self.instantiations.append(node)
        return node

    def _argument(self, arg: NamedType | str) -> NamedType:
        if isinstance(arg, str):
            return self.resolver.named(arg)
        if not isinstance(arg, (ObjectType, EnumType, ScalarType, PendingType)):
            raise ExtractionError(f"generic arguments must be named types, got {arg!r}")
        return arg

