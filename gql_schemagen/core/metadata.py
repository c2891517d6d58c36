"""Declaration metadata supplied by the host type checker.

The host collaborator parses the application source and hands the compiler
one JSON document per compilation unit. These pydantic models describe that
document; the extractor turns them into the Source Model.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _HostModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class NamedShape(_HostModel):
    """A reference to a type by name (declaration, scalar representation, or type parameter)."""
    kind: Literal["named"] = "named"
    name: str


class NullShape(_HostModel):
    """The null / absence marker inside a union."""
    kind: Literal["null", "undefined"] = "null"


class UnionShape(_HostModel):
    kind: Literal["union"] = "union"
    members: list["TypeShape"]


class ArrayShape(_HostModel):
    kind: Literal["array"] = "array"
    element: "TypeShape"


class GenericShape(_HostModel):
    """A generic declaration applied to type arguments, e.g. Connection<User>."""
    kind: Literal["generic"] = "generic"
    name: str
    arguments: list["TypeShape"]


TypeShape = Annotated[
    Union[NamedShape, NullShape, UnionShape, ArrayShape, GenericShape],
    Field(discriminator="kind"),
]

UnionShape.model_rebuild()
ArrayShape.model_rebuild()
GenericShape.model_rebuild()


class HostArgument(_HostModel):
    name: str
    type: TypeShape
    tag: str | None = None
    description: str | None = None


class HostField(_HostModel):
    name: str
    # Accessors may leave this unset when the host cannot state a return shape.
    type: TypeShape | None = None
    tag: str | None = None
    access: Literal["property", "accessor"] = "property"
    deferred: bool = False
    arguments: list[HostArgument] = Field(default_factory=list)
    description: str | None = None
    deprecation_reason: str | None = None


class HostEnumValue(_HostModel):
    name: str
    value: str | int | None = None
    description: str | None = None


class HostDeclaration(_HostModel):
    kind: Literal["object", "enum", "scalar", "generic_object"]
    name: str
    participates: bool = False
    description: str | None = None
    fields: list[HostField] = Field(default_factory=list)
    type_parameters: list[str] = Field(default_factory=list)
    values: list[HostEnumValue] = Field(default_factory=list)
    internal_type: str | None = None
    tag: str | None = None
    implementation: str | None = None


class Participation(_HostModel):
    """Out-of-band registration for declarations that cannot carry an annotation."""
    participates: bool = True
    description: str | None = None


class CompilationUnit(_HostModel):
    name: str
    declarations: list[HostDeclaration] = Field(default_factory=list)
    participation: dict[str, Participation] = Field(default_factory=dict)
