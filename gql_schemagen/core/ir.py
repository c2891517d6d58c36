"""Source Model: the normalized declarations the compiler works from.

These dataclasses carry no schema knowledge. They are produced by the
extractor, preserve declaration and field order, and are never mutated
once built.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class AccessKind(str, Enum):
    """How a resolver reaches the field value on its parent."""
    PROPERTY = "property"
    ACCESSOR = "accessor"


class EffectKind(str, Enum):
    """Whether the resolver value is available immediately or must be awaited."""
    IMMEDIATE = "immediate"
    DEFERRED = "deferred"


# -- type expressions -------------------------------------------------------


@dataclass(frozen=True)
class NamedRef:
    name: str


@dataclass(frozen=True)
class ParamRef:
    """A reference to the enclosing generic declaration's type parameter."""
    name: str


@dataclass(frozen=True)
class ListOf:
    element: "TypeExpr"


@dataclass(frozen=True)
class Nullable:
    inner: "TypeExpr"


@dataclass(frozen=True)
class GenericApplication:
    name: str
    arguments: tuple["TypeExpr", ...]


TypeExpr = Union[NamedRef, ParamRef, ListOf, Nullable, GenericApplication]


def describe(expr: TypeExpr) -> str:
    """Render a type expression in a compact, host-like notation."""
    if isinstance(expr, Nullable):
        return f"{describe(expr.inner)} | null"
    if isinstance(expr, ListOf):
        inner = describe(expr.element)
        return f"({inner})[]" if isinstance(expr.element, Nullable) else f"{inner}[]"
    if isinstance(expr, GenericApplication):
        return f"{expr.name}<{', '.join(describe(a) for a in expr.arguments)}>"
    return expr.name


def uses_param(expr: TypeExpr) -> bool:
    """Check if a type parameter occurs anywhere in the expression."""
    if isinstance(expr, ParamRef):
        return True
    if isinstance(expr, Nullable):
        return uses_param(expr.inner)
    if isinstance(expr, ListOf):
        return uses_param(expr.element)
    if isinstance(expr, GenericApplication):
        return any(uses_param(a) for a in expr.arguments)
    return False


# -- declarations -----------------------------------------------------------


@dataclass(frozen=True)
class ArgumentDescriptor:
    name: str
    type: TypeExpr
    tag: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class FieldDescriptor:
    """A field or accessor of an object declaration, in declaration order."""
    owner: str
    name: str
    type: TypeExpr | None
    access: AccessKind = AccessKind.PROPERTY
    effect: EffectKind = EffectKind.IMMEDIATE
    arguments: tuple[ArgumentDescriptor, ...] = ()
    tag: str | None = None
    description: str | None = None
    deprecation_reason: str | None = None

    @property
    def nullable(self) -> bool:
        return isinstance(self.type, Nullable)

    @property
    def list_depth(self) -> int:
        depth = 0
        expr = self.type
        while isinstance(expr, (Nullable, ListOf)):
            if isinstance(expr, ListOf):
                depth += 1
                expr = expr.element
            else:
                expr = expr.inner
        return depth

    @property
    def is_callable(self) -> bool:
        return bool(self.arguments)


@dataclass(frozen=True)
class ObjectDecl:
    name: str
    fields: tuple[FieldDescriptor, ...]
    description: str | None = None


@dataclass(frozen=True)
class GenericObjectDecl:
    name: str
    type_parameters: tuple[str, ...]
    fields: tuple[FieldDescriptor, ...]
    description: str | None = None


@dataclass(frozen=True)
class EnumMember:
    name: str
    value: str | int
    description: str | None = None


@dataclass(frozen=True)
class EnumDecl:
    name: str
    members: tuple[EnumMember, ...]
    description: str | None = None


@dataclass(frozen=True)
class ScalarDecl:
    """A registered scalar: internal representation type -> schema scalar."""
    name: str
    internal_type: str
    tag: str | None = None
    implementation: str | None = None
    description: str | None = None


SourceDeclaration = Union[ObjectDecl, GenericObjectDecl, EnumDecl, ScalarDecl]


@dataclass(frozen=True)
class SourceModel:
    """All participating declarations of one compilation unit, in order."""
    unit: str
    declarations: tuple[SourceDeclaration, ...] = ()
    _index: dict[str, SourceDeclaration] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        for decl in self.declarations:
            self._index[decl.name] = decl

    def get(self, name: str) -> SourceDeclaration | None:
        """Look up a declaration by name."""
        return self._index.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def of_kind(self, kind: type) -> list:
        """Return the declarations of one variant, in declaration order."""
        return [d for d in self.declarations if isinstance(d, kind)]

    def replace(self, declarations) -> "SourceModel":
        """Return a new model for the same unit with other declarations."""
        return SourceModel(unit=self.unit, declarations=tuple(declarations))
