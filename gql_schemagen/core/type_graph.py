"""Type Graph: the deduplicated schema-level types of one compilation pass.

Named nodes (objects, enums, scalars) are identified by name and exist at
most once per graph. Object and enum nodes start out as unfilled shells so
that forward and cyclic references can point at them before their
declaration has been processed.
"""

from dataclasses import dataclass, field
from typing import Union

from .errors import ResolutionConflict, UnresolvedTypeReference
from .ir import FieldDescriptor


@dataclass(eq=False)
class GraphArgument:
    name: str
    type: "TypeNode"
    description: str | None = None


@dataclass(eq=False)
class GraphField:
    """A resolved field; `descriptor` points back at the declaration member."""
    name: str
    type: Union["TypeNode", None]
    descriptor: FieldDescriptor
    arguments: list[GraphArgument] = field(default_factory=list)

    @property
    def description(self) -> str | None:
        return self.descriptor.description

    @property
    def deprecation_reason(self) -> str | None:
        return self.descriptor.deprecation_reason


@dataclass(eq=False)
class ObjectType:
    name: str
    fields: list[GraphField] = field(default_factory=list)
    description: str | None = None
    # Set for instantiations of a generic declaration
    generic: str | None = None
    arguments: tuple["NamedType", ...] = ()
    filled: bool = False


@dataclass(eq=False)
class EnumValueNode:
    name: str
    value: str | int
    description: str | None = None


@dataclass(eq=False)
class EnumType:
    name: str
    values: list[EnumValueNode] = field(default_factory=list)
    description: str | None = None
    filled: bool = False


@dataclass(eq=False)
class ScalarType:
    name: str
    internal_type: str
    tag: str | None = None
    builtin: bool = False
    implementation: str | None = None
    description: str | None = None
    filled: bool = True


@dataclass(eq=False)
class PendingType:
    """A name referenced before (or without) any declaration for it."""
    name: str
    referenced_by: tuple[str | None, str | None] = (None, None)
    filled: bool = False


@dataclass(frozen=True)
class ListType:
    inner: "TypeNode"


@dataclass(frozen=True)
class NonNullType:
    inner: "TypeNode"


@dataclass(frozen=True)
class GenericPlaceholder:
    """The type parameter of a generic template."""
    param: str


@dataclass(frozen=True)
class AppliedGeneric:
    """A generic applied to at least one placeholder, inside a template."""
    generic: str
    arguments: tuple["TypeNode", ...]


@dataclass(eq=False)
class GenericObjectType:
    """The template a generic factory is emitted from."""
    name: str
    params: tuple[str, ...]
    fields: list[GraphField] = field(default_factory=list)
    description: str | None = None


NamedType = Union[ObjectType, EnumType, ScalarType, PendingType]
TypeNode = Union[NamedType, ListType, NonNullType, GenericPlaceholder, AppliedGeneric]


def unwrap(node: TypeNode) -> TypeNode:
    """Strip list and non-null wrappers."""
    while isinstance(node, (ListType, NonNullType)):
        node = node.inner
    return node


def render(node: TypeNode | None) -> str:
    """Render a type node in GraphQL SDL notation."""
    if node is None:
        return "?"
    if isinstance(node, NonNullType):
        return f"{render(node.inner)}!"
    if isinstance(node, ListType):
        return f"[{render(node.inner)}]"
    if isinstance(node, GenericPlaceholder):
        return node.param
    if isinstance(node, AppliedGeneric):
        return f"{node.generic}<{', '.join(render(a) for a in node.arguments)}>"
    return node.name


class TypeGraph:
    """Owns every named node of a compilation pass."""

    def __init__(self):
        self._named: dict[str, NamedType] = {}
        self.generics: dict[str, GenericObjectType] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._named

    def __len__(self) -> int:
        return len(self._named)

    def get(self, name: str) -> NamedType | None:
        """Look up a named node."""
        return self._named.get(name)

    def add(self, node: NamedType) -> NamedType:
        """Add a new named node; a second node for a name is a conflict."""
        if node.name in self.generics:
            raise ResolutionConflict(f"type '{node.name}' is defined more than once")
        existing = self._named.get(node.name)
        if isinstance(existing, PendingType):
            # Pending names have no declaration, so this is an instantiation
            declaration, field = existing.referenced_by
            raise UnresolvedTypeReference(node.name, declaration, field)
        if existing is not None and existing is not node:
            raise ResolutionConflict(f"type '{node.name}' is defined more than once")
        self._named[node.name] = node
        return node

    def adopt(self, node: ScalarType) -> ScalarType:
        """Add a registry-owned scalar node the first time it is referenced."""
        if self._named.get(node.name) is node:
            return node
        return self.add(node)

    def shell(self, name: str, kind: type) -> NamedType:
        """Return the node for a name, creating an unfilled shell of `kind`."""
        existing = self._named.get(name)
        if existing is not None:
            if isinstance(existing, PendingType):
                raise ResolutionConflict(f"'{name}' was referenced before it was declared as {kind.__name__}")
            if not isinstance(existing, kind):
                raise ResolutionConflict(
                    f"'{name}' is already a {type(existing).__name__}, not {kind.__name__}"
                )
            if getattr(existing, "generic", None):
                raise ResolutionConflict(
                    f"'{name}' is already the instantiation {existing.generic}"
                    f"<{', '.join(a.name for a in existing.arguments)}>"
                )
            return existing
        return self.add(kind(name=name))

    def pending(self, name: str, declaration: str | None, field: str | None) -> NamedType:
        """Return the node for a name, recording an unresolved placeholder if needed."""
        existing = self._named.get(name)
        if getattr(existing, "generic", None):
            # Instantiations are reachable only through their generic application
            raise UnresolvedTypeReference(name, declaration, field)
        if existing is not None:
            return existing
        return self.add(PendingType(name=name, referenced_by=(declaration, field)))

    def add_generic(self, template: GenericObjectType) -> GenericObjectType:
        if template.name in self.generics or template.name in self._named:
            raise ResolutionConflict(f"type '{template.name}' is defined more than once")
        self.generics[template.name] = template
        return template

    def assert_complete(self):
        """Fail if any placeholder is still unfilled."""
        for node in self._named.values():
            if not node.filled:
                declaration, field = getattr(node, "referenced_by", (node.name, None))
                raise UnresolvedTypeReference(node.name, declaration, field)

    def named_types(self) -> list[NamedType]:
        """All named nodes in insertion order."""
        return list(self._named.values())

    def objects(self) -> list[ObjectType]:
        return [n for n in self._named.values() if isinstance(n, ObjectType)]

    def enums(self) -> list[EnumType]:
        return [n for n in self._named.values() if isinstance(n, EnumType)]

    def scalars(self) -> list[ScalarType]:
        return [n for n in self._named.values() if isinstance(n, ScalarType)]
