"""Errors raised while compiling declarations into a schema.

Every error is raised during the compilation pass; none is deferred into
the generated module. Errors carry the identity of the offending
declaration and field when one is known.
"""


class SchemaCompileError(Exception):
    """Base class for all compile-pass errors."""

    def __init__(
        self,
        message: str,
        declaration: str | None = None,
        field: str | None = None,
    ):
        self.message = message
        self.declaration = declaration
        self.field = field
        super().__init__(message)

    def attach(self, declaration: str | None, field: str | None = None) -> "SchemaCompileError":
        """Record the site of the error unless one is already recorded."""
        if self.declaration is None:
            self.declaration = declaration
            self.field = field
        return self

    @property
    def location(self) -> str:
        """Return 'Decl.field', 'Decl' or '' depending on what is known."""
        if self.declaration and self.field:
            return f"{self.declaration}.{self.field}"
        return self.declaration or ""

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ExtractionError(SchemaCompileError):
    """A participating declaration lacks the shape required to compile it."""


class UnresolvedTypeReference(SchemaCompileError):
    """A type name is still unknown after every declaration was processed."""

    def __init__(self, type_name: str, declaration: str | None = None, field: str | None = None):
        self.type_name = type_name
        super().__init__(f"unresolved type reference '{type_name}'", declaration, field)


class ResolutionConflict(SchemaCompileError):
    """A second type graph node was constructed for an existing name."""


class ScalarRegistryError(SchemaCompileError):
    """Base class for scalar registry conflicts."""


class DuplicateScalarBinding(ScalarRegistryError):
    """An internal representation type (or schema name) is already bound."""


class AmbiguousNumericScalar(ScalarRegistryError):
    """An untagged lookup matched several tagged scalar bindings."""

    def __init__(self, internal_type: str, candidates: list[str], declaration=None, field=None):
        self.internal_type = internal_type
        self.candidates = candidates
        super().__init__(
            f"'{internal_type}' is ambiguous; add a disambiguation tag "
            f"(one of: {', '.join(candidates)})",
            declaration,
            field,
        )


class UnknownScalar(ScalarRegistryError):
    """No scalar is bound to the requested internal type and tag."""


class InvalidGenericArity(SchemaCompileError):
    """A generic declaration was applied to the wrong number of arguments."""


class UnboundAccessor(SchemaCompileError):
    """A field resolver could not be bound to its declaration member."""


class EmitError(SchemaCompileError):
    """The emitted module is not valid Python."""
