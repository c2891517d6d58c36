"""Schema emitter.

Renders the resolved Type Graph and its resolver bindings into a Python
module that builds graphql-core types.

Supports custom templates via the template_dir parameter:
    emitter = SchemaEmitter(..., template_dir="./my_templates")

Template lookup order:
1. User's template directory (if provided)
2. Package default templates

The output is deterministic: the same Source Model always yields the same
bytes. Named types are emitted in the order a depth-first walk from the
declared roots first reaches them; fields keep declaration order.
"""

import ast
import keyword
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from .binder import Bindings
from .errors import EmitError
from .hooks import HookRunner
from .type_graph import (
    AppliedGeneric,
    EnumType,
    GenericObjectType,
    GenericPlaceholder,
    GraphField,
    ListType,
    NamedType,
    NonNullType,
    ObjectType,
    ScalarType,
    TypeGraph,
    TypeNode,
    unwrap,
)

logger = logging.getLogger(__name__)

GRAPHQL_BUILTINS = {
    "String": "GraphQLString",
    "Int": "GraphQLInt",
    "Float": "GraphQLFloat",
    "Boolean": "GraphQLBoolean",
    "ID": "GraphQLID",
}

ROOT_OPERATION_TYPES = ("Query", "Mutation", "Subscription")

RUNTIME_NAMES = {
    "ID",
    "argument",
    "call_accessor",
    "call_deferred_accessor",
    "define_scalar",
    "generic_factory",
    "read_deferred_property",
    "read_property",
    "to_id",
}

RESERVED_NAMES = (
    set(keyword.kwlist)
    | set(keyword.softkwlist)
    | RUNTIME_NAMES
    | {"build_schema", "__all__"}
)


def snake_case(name: str) -> str:
    """Convert PascalCase or camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def safe_identifier(name: str) -> str:
    """Make a schema type name usable as a module-level Python name."""
    if name in RESERVED_NAMES or name.startswith("GraphQL"):
        return f"{name}_"
    return name


def param_identifier(param: str) -> str:
    """Local name of a generic factory's type parameter, e.g. 'Node' -> 'node_type'."""
    return f"{snake_case(param)}_type"


@dataclass
class EmittedSchema:
    """The emitted module of one compilation unit."""
    unit: str
    filename: str
    content: str
    type_names: list[str] = field(default_factory=list)


class SchemaEmitter:
    """Generates a graphql-core schema module from a resolved type graph.

    Args:
        unit: Name of the compilation unit (used for the module filename)
        graph: The resolved type graph
        bindings: Resolver bindings for every field
        roots: Declared type names in declaration order
        instantiations: Generic instantiations in completion order
        template_dir: Optional directory with template overrides
    """

    def __init__(
        self,
        unit: str,
        graph: TypeGraph,
        bindings: Bindings,
        roots: Iterable[str],
        instantiations: Iterable[ObjectType] = (),
        *,
        template_dir: Optional[str] = None,
        runtime_module: str = "gql_schemagen.runtime",
        module_docstring: str = "Generated GraphQL schema. Do not edit.",
        header: str = "",
        emit_build_schema: bool = True,
        hooks: HookRunner | None = None,
    ):
        self.unit = unit
        self.graph = graph
        self.bindings = bindings
        self.roots = list(roots)
        self.instantiations = list(instantiations)
        self.runtime_module = runtime_module
        self.module_docstring = module_docstring
        self.header = header
        self.emit_build_schema = emit_build_schema
        self.hooks = hooks or HookRunner()

        loaders = []
        if template_dir:
            template_path = Path(template_dir)
            if template_path.is_dir():
                loaders.append(FileSystemLoader(str(template_path)))
        loaders.append(PackageLoader("gql_schemagen", "templates"))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["repr"] = repr

        self._graphql_names: set[str] = set()
        self._runtime_names: set[str] = set()

    @property
    def filename(self) -> str:
        return f"{snake_case(self.unit).replace('-', '_')}.py"

    # -- ordering -----------------------------------------------------------

    def ordered_types(self) -> list[NamedType]:
        """Named types in first-encountered order of a walk from the roots."""
        order: list[NamedType] = []
        seen: set[str] = set()

        def visit(node: TypeNode | None):
            if node is None:
                return
            node = unwrap(node)
            if isinstance(node, AppliedGeneric):
                for argument in node.arguments:
                    visit(argument)
                return
            if isinstance(node, GenericPlaceholder) or node.name in seen:
                return
            seen.add(node.name)
            order.append(node)
            if isinstance(node, ObjectType):
                visit_fields(node.fields)

        def visit_fields(fields: list[GraphField]):
            for graph_field in fields:
                visit(graph_field.type)
                for argument in graph_field.arguments:
                    visit(argument.type)

        for name in self.roots:
            if name in self.graph.generics:
                visit_fields(self.graph.generics[name].fields)
            else:
                visit(self.graph.get(name))
        return order

    # -- expressions --------------------------------------------------------

    def type_expr(self, node: TypeNode, params: dict[str, str] | None = None) -> str:
        """Python expression building the graphql-core type of a node."""
        if isinstance(node, NonNullType):
            self._graphql_names.add("GraphQLNonNull")
            return f"GraphQLNonNull({self.type_expr(node.inner, params)})"
        if isinstance(node, ListType):
            self._graphql_names.add("GraphQLList")
            return f"GraphQLList({self.type_expr(node.inner, params)})"
        if isinstance(node, GenericPlaceholder):
            return (params or {})[node.param]
        if isinstance(node, AppliedGeneric):
            arguments = ", ".join(self.type_expr(a, params) for a in node.arguments)
            return f"{safe_identifier(node.generic)}({arguments})"
        if isinstance(node, ScalarType) and node.builtin:
            self._graphql_names.add(GRAPHQL_BUILTINS[node.name])
            return GRAPHQL_BUILTINS[node.name]
        return safe_identifier(node.name)

    def _references(self, fields: list[GraphField]) -> set[str]:
        """Module-level names a field map refers to."""
        names = set()
        for graph_field in fields:
            nodes = [graph_field.type] + [a.type for a in graph_field.arguments]
            for node in nodes:
                target = unwrap(node)
                if isinstance(target, ScalarType) and target.builtin:
                    continue
                if isinstance(target, (ObjectType, EnumType, ScalarType)):
                    names.add(safe_identifier(target.name))
        return names

    def _in_cycle(self, node: ObjectType) -> bool:
        """Whether the object can reach itself through field types."""
        stack = [node]
        seen: set[int] = set()
        while stack:
            current = stack.pop()
            for graph_field in current.fields:
                for ref in [graph_field.type] + [a.type for a in graph_field.arguments]:
                    target = unwrap(ref)
                    if not isinstance(target, ObjectType):
                        continue
                    if target is node:
                        return True
                    if id(target) not in seen:
                        seen.add(id(target))
                        stack.append(target)
        return False

    def _field_context(self, type_name: str, fields: list[GraphField], params=None) -> list[dict[str, Any]]:
        self._graphql_names.add("GraphQLField")
        result = []
        for graph_field in fields:
            binding = self.bindings.get(type_name, graph_field.name)
            self._runtime_names.add(binding.expression.split("(", 1)[0])
            for argument in binding.arguments:
                self._runtime_names.add("argument")
                if argument.converter:
                    self._runtime_names.add(argument.converter)
            if graph_field.arguments:
                self._graphql_names.add("GraphQLArgument")
            result.append(
                {
                    "name": graph_field.name,
                    "type": self.type_expr(graph_field.type, params),
                    "args": [
                        {
                            "name": a.name,
                            "type": self.type_expr(a.type, params),
                            "description": a.description,
                        }
                        for a in graph_field.arguments
                    ],
                    "resolve": binding.expression,
                    "description": graph_field.description,
                    "deprecation_reason": graph_field.deprecation_reason,
                }
            )
        return result

    # -- context ------------------------------------------------------------

    def build_context(self) -> dict[str, Any]:
        """Prepare the template context."""
        self._graphql_names = set()
        self._runtime_names = set()

        ordered = self.ordered_types()
        instantiated = {id(n) for n in self.instantiations}
        defined: set[str] = set()

        scalars = []
        for node in ordered:
            if isinstance(node, ScalarType) and not node.builtin:
                self._runtime_names.add("define_scalar")
                scalars.append(
                    {
                        "var": safe_identifier(node.name),
                        "name": node.name,
                        "implementation": node.implementation,
                        "description": node.description,
                    }
                )
                defined.add(safe_identifier(node.name))

        enums = []
        for node in ordered:
            if isinstance(node, EnumType):
                self._graphql_names.update(("GraphQLEnumType", "GraphQLEnumValue"))
                enums.append(
                    {
                        "var": safe_identifier(node.name),
                        "name": node.name,
                        "description": node.description,
                        "values": [
                            {"name": v.name, "value": v.value, "description": v.description}
                            for v in node.values
                        ],
                    }
                )
                defined.add(safe_identifier(node.name))

        factories = []
        for template in self.graph.generics.values():
            factories.append(self._factory_context(template))
            defined.add(safe_identifier(template.name))

        objects = []
        for node in ordered:
            if isinstance(node, ObjectType) and id(node) not in instantiated:
                var = safe_identifier(node.name)
                # Every field map on a cycle is lazy, not only the forward one
                lazy = not self._references(node.fields) <= defined or self._in_cycle(node)
                objects.append(
                    {
                        "var": var,
                        "name": node.name,
                        "description": node.description,
                        "lazy": lazy,
                        "fields": self._field_context(node.name, node.fields),
                    }
                )
                defined.add(var)

        instantiations = []
        for node in self.instantiations:
            instantiations.append(
                {
                    "var": safe_identifier(node.name),
                    "factory": safe_identifier(node.generic),
                    "arguments": [self.type_expr(a) for a in node.arguments],
                }
            )

        if objects or factories:
            self._graphql_names.add("GraphQLObjectType")

        names = (
            [s["var"] for s in scalars]
            + [e["var"] for e in enums]
            + [f["var"] for f in factories]
            + [o["var"] for o in objects]
            + [i["var"] for i in instantiations]
        )

        schema = None
        object_names = {o["name"] for o in objects}
        if self.emit_build_schema and "Query" in object_names:
            self._graphql_names.add("GraphQLSchema")
            schema = {
                "roots": {
                    op.lower(): safe_identifier(op) for op in ROOT_OPERATION_TYPES if op in object_names
                },
                "types": [
                    v for v in names if v not in {f["var"] for f in factories}
                ],
            }

        return {
            "header": self.header.rstrip("\n") if self.header else "",
            "docstring": self.module_docstring,
            "runtime_module": self.runtime_module,
            "graphql_imports": sorted(self._graphql_names),
            "runtime_imports": sorted(self._runtime_names),
            "scalars": scalars,
            "enums": enums,
            "factories": factories,
            "objects": objects,
            "instantiations": instantiations,
            "schema": schema,
            "all_names": names + (["build_schema"] if schema else []),
        }

    def _factory_context(self, template: GenericObjectType) -> dict[str, Any]:
        self._runtime_names.add("generic_factory")
        params = {p: param_identifier(p) for p in template.params}
        name_fstring = "".join(f"{{{params[p]}.name}}" for p in template.params) + template.name
        return {
            "var": safe_identifier(template.name),
            "name": template.name,
            "params": [params[p] for p in template.params],
            "name_fstring": name_fstring,
            "description": template.description,
            "fields": self._field_context(template.name, template.fields, params),
        }

    # -- rendering ----------------------------------------------------------

    def emit(self) -> EmittedSchema:
        """Render, validate and post-process the schema module."""
        context = self.build_context()
        content = self.env.get_template("schema.py.j2").render(context)

        try:
            ast.parse(content)
        except SyntaxError as e:
            raise EmitError(f"generated invalid Python for {self.filename}: {e}", declaration=self.unit)

        content = self.hooks.run_post_hooks(self.filename, content)
        logger.debug("Emitted %s (%d types)", self.filename, len(context["all_names"]))
        return EmittedSchema(
            unit=self.unit,
            filename=self.filename,
            content=content,
            type_names=[n for n in context["all_names"] if n != "build_schema"],
        )
