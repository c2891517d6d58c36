"""Declaration extractor.

Reads host-supplied declaration metadata for one compilation unit and
produces the Source Model. Declaration order and field order are kept as
supplied by the host.
"""

import logging
import re
from typing import Any

from pydantic import ValidationError

from .errors import ExtractionError
from .ir import (
    AccessKind,
    ArgumentDescriptor,
    EffectKind,
    EnumDecl,
    EnumMember,
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
    uses_param,
)
from .metadata import (
    ArrayShape,
    CompilationUnit,
    GenericShape,
    HostDeclaration,
    HostField,
    NamedShape,
    NullShape,
    UnionShape,
)

logger = logging.getLogger(__name__)

NAME_RE = re.compile(r"^[_A-Za-z][_0-9A-Za-z]*$")


def load_unit(data: dict[str, Any]) -> CompilationUnit:
    """Validate raw host metadata, reporting problems as ExtractionError."""
    try:
        return CompilationUnit.model_validate(data)
    except ValidationError as e:
        unit = data.get("name") if isinstance(data, dict) else None
        raise ExtractionError(f"invalid declaration metadata: {e}", declaration=unit) from e


class DeclarationExtractor:
    """Turns a CompilationUnit into a SourceModel."""

    def __init__(self, unit: CompilationUnit):
        self.unit = unit
        self._seen: set[str] = set()
        # Set while processing a generic declaration
        self._type_params: tuple[str, ...] = ()

    def extract(self) -> SourceModel:
        """Extract all participating declarations in source order."""
        declarations = []
        for host_decl in self.unit.declarations:
            if not self._participates(host_decl):
                logger.debug("Skipping non-participating declaration %s", host_decl.name)
                continue
            self._check_name(host_decl.name, host_decl.name)
            if host_decl.name in self._seen:
                raise ExtractionError("duplicate declaration name", declaration=host_decl.name)
            self._seen.add(host_decl.name)

            if host_decl.kind == "object":
                declarations.append(self._process_object(host_decl))
            elif host_decl.kind == "generic_object":
                declarations.append(self._process_generic(host_decl))
            elif host_decl.kind == "enum":
                declarations.append(self._process_enum(host_decl))
            elif host_decl.kind == "scalar":
                declarations.append(self._process_scalar(host_decl))

        logger.debug("Extracted %d declarations from unit %s", len(declarations), self.unit.name)
        return SourceModel(unit=self.unit.name, declarations=tuple(declarations))

    def _participates(self, host_decl: HostDeclaration) -> bool:
        if host_decl.participates:
            return True
        entry = self.unit.participation.get(host_decl.name)
        return entry is not None and entry.participates

    def _description(self, host_decl: HostDeclaration) -> str | None:
        if host_decl.description:
            return host_decl.description
        entry = self.unit.participation.get(host_decl.name)
        return entry.description if entry else None

    @staticmethod
    def _check_name(name: str, declaration: str, field: str | None = None):
        if not NAME_RE.match(name) or name.startswith("__"):
            raise ExtractionError(f"'{name}' is not a valid schema name", declaration, field)

    def _process_object(self, host_decl: HostDeclaration) -> ObjectDecl:
        fields = self._process_fields(host_decl)
        return ObjectDecl(
            name=host_decl.name,
            fields=fields,
            description=self._description(host_decl),
        )

    def _process_generic(self, host_decl: HostDeclaration) -> GenericObjectDecl:
        params = tuple(host_decl.type_parameters)
        if len(params) != 1:
            raise ExtractionError(
                f"generic declarations take exactly one type parameter, got {len(params)}",
                declaration=host_decl.name,
            )
        self._check_name(params[0], host_decl.name)

        self._type_params = params
        try:
            fields = self._process_fields(host_decl)
        finally:
            self._type_params = ()

        if not any(f.type is not None and uses_param(f.type) for f in fields):
            raise ExtractionError(
                f"type parameter '{params[0]}' is not used by any field",
                declaration=host_decl.name,
            )
        return GenericObjectDecl(
            name=host_decl.name,
            type_parameters=params,
            fields=fields,
            description=self._description(host_decl),
        )

    def _process_enum(self, host_decl: HostDeclaration) -> EnumDecl:
        if not host_decl.values:
            raise ExtractionError("enum declares no values", declaration=host_decl.name)
        members = []
        seen = set()
        for value in host_decl.values:
            self._check_name(value.name, host_decl.name, value.name)
            if value.name in seen:
                raise ExtractionError("duplicate enum value", host_decl.name, value.name)
            seen.add(value.name)
            members.append(
                EnumMember(
                    name=value.name,
                    # String-union members use the literal itself
                    value=value.value if value.value is not None else value.name,
                    description=value.description,
                )
            )
        return EnumDecl(
            name=host_decl.name,
            members=tuple(members),
            description=self._description(host_decl),
        )

    def _process_scalar(self, host_decl: HostDeclaration) -> ScalarDecl:
        if not host_decl.internal_type:
            raise ExtractionError(
                "scalar declaration has no internal representation type",
                declaration=host_decl.name,
            )
        return ScalarDecl(
            name=host_decl.name,
            internal_type=host_decl.internal_type,
            tag=host_decl.tag,
            implementation=host_decl.implementation,
            description=self._description(host_decl),
        )

    def _process_fields(self, host_decl: HostDeclaration) -> tuple[FieldDescriptor, ...]:
        """Process field metadata into FieldDescriptors, keeping order."""
        if not host_decl.fields:
            raise ExtractionError("object declaration has no fields", declaration=host_decl.name)

        fields = []
        seen = set()
        for host_field in host_decl.fields:
            self._check_name(host_field.name, host_decl.name, host_field.name)
            if host_field.name in seen:
                raise ExtractionError("duplicate field name", host_decl.name, host_field.name)
            seen.add(host_field.name)
            fields.append(self._process_field(host_decl.name, host_field))
        return tuple(fields)

    def _process_field(self, owner: str, host_field: HostField) -> FieldDescriptor:
        access = AccessKind(host_field.access)
        if access is AccessKind.PROPERTY:
            if host_field.arguments:
                raise ExtractionError("stored properties cannot take arguments", owner, host_field.name)
            if host_field.type is None:
                raise ExtractionError("stored property has no declared type", owner, host_field.name)

        arguments = []
        for host_arg in host_field.arguments:
            self._check_name(host_arg.name, owner, host_field.name)
            arguments.append(
                ArgumentDescriptor(
                    name=host_arg.name,
                    type=self._normalize(host_arg.type, owner, host_field.name),
                    tag=host_arg.tag,
                    description=host_arg.description,
                )
            )
        if len({a.name for a in arguments}) != len(arguments):
            raise ExtractionError("duplicate argument name", owner, host_field.name)

        type_expr = None
        if host_field.type is not None:
            type_expr = self._normalize(host_field.type, owner, host_field.name)

        return FieldDescriptor(
            owner=owner,
            name=host_field.name,
            type=type_expr,
            access=access,
            effect=EffectKind.DEFERRED if host_field.deferred else EffectKind.IMMEDIATE,
            arguments=tuple(arguments),
            tag=host_field.tag,
            description=host_field.description,
            deprecation_reason=host_field.deprecation_reason,
        )

    def _normalize(self, shape, owner: str, field: str) -> TypeExpr:
        """Normalize a raw host type shape into a TypeExpr."""
        if isinstance(shape, NamedShape):
            if shape.name in self._type_params:
                return ParamRef(shape.name)
            return NamedRef(shape.name)

        if isinstance(shape, ArrayShape):
            return ListOf(self._normalize(shape.element, owner, field))

        if isinstance(shape, UnionShape):
            present = [m for m in shape.members if not isinstance(m, NullShape)]
            if len(present) == len(shape.members):
                raise ExtractionError("unions without a null marker are not supported", owner, field)
            if len(present) != 1:
                raise ExtractionError(
                    f"nullable unions must have exactly one non-null member, got {len(present)}",
                    owner,
                    field,
                )
            inner = self._normalize(present[0], owner, field)
            # T | null | undefined and (T | null) | null collapse to one level
            return inner if isinstance(inner, Nullable) else Nullable(inner)

        if isinstance(shape, GenericShape):
            if shape.name in self._type_params:
                raise ExtractionError(f"type parameter '{shape.name}' cannot take arguments", owner, field)
            arguments = []
            for arg in shape.arguments:
                if not isinstance(arg, (NamedShape, GenericShape)):
                    raise ExtractionError(
                        f"arguments of generic '{shape.name}' must be named types",
                        owner,
                        field,
                    )
                arguments.append(self._normalize(arg, owner, field))
            return GenericApplication(shape.name, tuple(arguments))

        if isinstance(shape, NullShape):
            raise ExtractionError("a bare null type cannot be exposed", owner, field)

        raise ExtractionError(f"unsupported type shape {shape!r}", owner, field)


def extract(unit: CompilationUnit | dict[str, Any]) -> SourceModel:
    """Extract the Source Model of one compilation unit."""
    if not isinstance(unit, CompilationUnit):
        unit = load_unit(unit)
    return DeclarationExtractor(unit).extract()
