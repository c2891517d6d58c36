"""Scalar registry for schema compilation.

Maps internal representation types (the type a declaration's field is
written with, e.g. ``string`` or ``Date``) to schema scalar nodes.

A binding is keyed by ``(internal_type, tag)``. Untagged bindings own their
internal type outright; tagged bindings let several scalars share one
internal type, as the two built-in numeric scalars do:

    registry = ScalarRegistry()
    registry.lookup("number", "Int").name    # "Int"
    registry.lookup("number")                # AmbiguousNumericScalar

Custom scalars come from scalar declarations:

    registry.register("Date", ScalarDecl(name="DateTime", internal_type="Date",
                                         implementation="app.scalars:DateTimeScalar"))

A registry belongs to one compilation pass and is discarded after it.
"""

import logging

from .errors import AmbiguousNumericScalar, DuplicateScalarBinding, UnknownScalar
from .ir import ScalarDecl
from .type_graph import ScalarType

logger = logging.getLogger(__name__)

NUMBER = "number"
ID_SCALAR = "ID"

# (internal type, tag, schema name)
BUILTIN_SCALARS = (
    ("string", None, "String"),
    ("boolean", None, "Boolean"),
    (NUMBER, "Int", "Int"),
    (NUMBER, "Float", "Float"),
    (ID_SCALAR, None, ID_SCALAR),
)


class ScalarRegistry:
    """Registry of scalar bindings for one compilation pass."""

    def __init__(self):
        self._bindings: dict[tuple[str, str | None], ScalarType] = {}
        self._by_name: dict[str, ScalarType] = {}
        self._register_defaults()

    def _register_defaults(self):
        """Register the built-in scalars."""
        for internal_type, tag, name in BUILTIN_SCALARS:
            self._bind(internal_type, tag, ScalarType(name=name, internal_type=internal_type, tag=tag, builtin=True))

    def _bind(self, internal_type: str, tag: str | None, node: ScalarType) -> ScalarType:
        self._bindings[(internal_type, tag)] = node
        self._by_name[node.name] = node
        return node

    def register(self, internal_type: str, decl: ScalarDecl) -> ScalarType:
        """Bind a scalar declaration to an internal representation type."""
        tag = decl.tag
        if decl.name in self._by_name:
            raise DuplicateScalarBinding(f"scalar '{decl.name}' is already registered", declaration=decl.name)
        if tag is None and self.tags(internal_type):
            bound = ", ".join(self._describe(internal_type, t) for t in self.tags(internal_type))
            raise DuplicateScalarBinding(
                f"internal type '{internal_type}' is already bound ({bound}); "
                "add a disambiguation tag",
                declaration=decl.name,
            )
        if (internal_type, tag) in self._bindings:
            existing = self._bindings[(internal_type, tag)]
            raise DuplicateScalarBinding(
                f"{self._describe(internal_type, tag)} is already bound to '{existing.name}'",
                declaration=decl.name,
            )

        logger.debug("Registering scalar %s for %s", decl.name, self._describe(internal_type, tag))
        return self._bind(
            internal_type,
            tag,
            ScalarType(
                name=decl.name,
                internal_type=internal_type,
                tag=tag,
                implementation=decl.implementation,
                description=decl.description,
            ),
        )

    def register_declaration(self, decl: ScalarDecl) -> ScalarType:
        return self.register(decl.internal_type, decl)

    def lookup(self, internal_type: str, tag: str | None = None) -> ScalarType:
        """Return the scalar bound to an internal type (and tag)."""
        node = self._bindings.get((internal_type, tag))
        if node is not None:
            return node

        tags = self.tags(internal_type)
        if tag is None and tags:
            raise AmbiguousNumericScalar(internal_type, [t for t in tags if t is not None])
        if tags:
            raise UnknownScalar(
                f"no scalar bound to {self._describe(internal_type, tag)}; "
                f"known tags: {', '.join(str(t) for t in tags)}"
            )
        raise UnknownScalar(f"no scalar bound to '{internal_type}'")

    def by_name(self, name: str) -> ScalarType | None:
        """Get a scalar by its schema name, or None if not registered."""
        return self._by_name.get(name)

    def has(self, internal_type: str) -> bool:
        """Check if anything is bound to an internal type."""
        return bool(self.tags(internal_type))

    def tags(self, internal_type: str) -> list[str | None]:
        """Return the tags bound to an internal type, in registration order."""
        return [t for (i, t) in self._bindings if i == internal_type]

    def all(self) -> list[ScalarType]:
        """Return every bound scalar in registration order."""
        return list(self._by_name.values())

    @staticmethod
    def _describe(internal_type: str, tag: str | None) -> str:
        return f"'{internal_type}' [{tag}]" if tag else f"'{internal_type}'"
