"""Tests for the schema emitter, including executing the generated modules."""

import ast
import asyncio

import pytest
from graphql import GraphQLObjectType, graphql

from builders import enum, named, nullable, obj, prop, scalar, unit

from gql_schemagen.core.config import CompilerConfig
from gql_schemagen.core.errors import EmitError
from gql_schemagen.core.generator import SchemaEmitter, param_identifier, safe_identifier, snake_case
from gql_schemagen.core.hooks import HookRunner
from gql_schemagen.core.pipeline import compile_unit, emit
from gql_schemagen.runtime import ID


def load_module(schema):
    namespace = {"__name__": schema.unit}
    exec(compile(schema.content, schema.filename, "exec"), namespace)
    return namespace


def run_query(schema, query, root):
    result = asyncio.run(graphql(schema, query, root_value=root))
    assert result.errors is None, result.errors
    return result.data


class TestHelpers:
    def test_snake_case(self):
        assert snake_case("UserGroups") == "user_groups"
        assert snake_case("billing") == "billing"

    def test_safe_identifier(self):
        assert safe_identifier("User") == "User"
        assert safe_identifier("argument") == "argument_"
        assert safe_identifier("GraphQLThing") == "GraphQLThing_"

    def test_param_identifier(self):
        assert param_identifier("Node") == "node_type"


class TestOutput:
    """Shape of the emitted module."""

    def test_valid_python(self, user_unit):
        schema = compile_unit(user_unit)
        ast.parse(schema.content)
        assert schema.filename == "users.py"

    def test_deterministic(self, user_unit, connection_unit):
        assert compile_unit(user_unit).content == compile_unit(user_unit).content
        assert compile_unit(connection_unit).content == compile_unit(connection_unit).content

    def test_type_order(self, user_unit):
        schema = compile_unit(user_unit)
        assert schema.type_names == ["User", "UserGroup", "Query"]
        content = schema.content
        assert content.index("User = ") < content.index("UserGroup = ") < content.index("Query = ")

    def test_field_order(self, user_unit):
        content = compile_unit(user_unit).content
        positions = [content.index(f'"{name}": GraphQLField') for name in ("firstName", "lastName", "fullName")]
        assert positions == sorted(positions)

    def test_forward_reference_is_lazy(self, user_unit):
        content = compile_unit(user_unit).content
        assert 'name="User",\n    fields=lambda: {' in content
        assert 'name="Query",\n    fields={' in content

    def test_every_field_map_on_a_cycle_is_lazy(self, user_unit):
        content = compile_unit(user_unit).content
        assert 'name="UserGroup",\n    fields=lambda: {' in content

    def test_acyclic_backward_reference_is_eager(self):
        content = compile_unit(
            unit(
                obj("Leaf", prop("x", named("string"))),
                obj("Branch", prop("leaf", named("Leaf"))),
            )
        ).content
        assert 'name="Leaf",\n    fields={' in content
        assert 'name="Branch",\n    fields={' in content

    def test_resolver_expressions(self, user_unit):
        content = compile_unit(user_unit).content
        assert 'resolve=call_deferred_accessor("group"),' in content
        assert 'resolve=call_accessor("user", argument("id", to_id)),' in content
        assert '"id": GraphQLArgument(GraphQLNonNull(GraphQLID)),' in content

    def test_imports_only_what_is_used(self, user_unit):
        content = compile_unit(user_unit).content
        assert "GraphQLEnumType" not in content
        assert "define_scalar" not in content
        assert "    read_property,\n" in content

    def test_build_schema(self, user_unit):
        content = compile_unit(user_unit).content
        assert "def build_schema() -> GraphQLSchema:" in content
        assert "        query=Query,\n" in content

    def test_no_build_schema_without_query(self):
        schema = compile_unit(unit(obj("A", prop("x", named("string")))))
        assert "build_schema" not in schema.content

    def test_build_schema_disabled(self, user_unit):
        schema = compile_unit(user_unit, CompilerConfig(emit_build_schema=False))
        assert "build_schema" not in schema.content

    def test_each_instantiation_emitted_once(self, connection_unit):
        content = compile_unit(connection_unit).content
        assert content.count("UserConnection = Connection(User)") == 1
        assert content.count("UserEdge = Edge(User)") == 1
        assert content.index("UserEdge = ") < content.index("UserConnection = ")

    def test_generic_factory(self, connection_unit):
        content = compile_unit(connection_unit).content
        assert "@generic_factory\ndef Connection(node_type):" in content
        assert 'name=f"{node_type.name}Connection",' in content
        assert "GraphQLNonNull(GraphQLList(GraphQLNonNull(Edge(node_type))))" in content

    def test_enums_and_scalars(self):
        content = compile_unit(
            unit(
                scalar("DateTime", "Date", implementation="app.scalars:DateTimeScalar", description="ISO-8601"),
                enum("Color", "RED", {"name": "GREEN", "description": "Go"}),
                obj("Paint", prop("color", named("Color")), prop("dried", nullable(named("Date")))),
            )
        ).content
        assert "DateTime = define_scalar(\n    \"DateTime\",\n    'app.scalars:DateTimeScalar'," in content
        assert "\"GREEN\": GraphQLEnumValue('GREEN', description='Go')," in content
        assert content.index("DateTime = ") < content.index("Color = ") < content.index("Paint = ")

    def test_descriptions_and_deprecation(self):
        content = compile_unit(
            unit(
                obj(
                    "A",
                    prop("x", named("string"), description="The x", deprecation_reason="Use y"),
                    prop("y", named("string")),
                    description="An A",
                )
            )
        ).content
        assert "    description='An A',\n" in content
        assert "description='The x'," in content
        assert "deprecation_reason='Use y'," in content

    def test_reserved_type_name(self):
        schema = compile_unit(unit(obj("argument", prop("x", named("string")))))
        assert 'argument_ = GraphQLObjectType(\n    name="argument",' in schema.content
        assert schema.type_names == ["argument_"]


class TestCustomization:
    """Config, hooks and template overrides."""

    def test_header_and_docstring(self, user_unit):
        config = CompilerConfig(header="# Copyright Example", module_docstring="Users schema.")
        content = compile_unit(user_unit, config).content
        assert content.startswith('# Copyright Example\n\n"""Users schema."""\n')

    def test_runtime_module(self, user_unit):
        content = compile_unit(user_unit, CompilerConfig(runtime_module="myapp.gql_runtime")).content
        assert "from myapp.gql_runtime import (" in content

    def test_post_hook(self, user_unit):
        seen = []

        class Recorder:
            def post_generate(self, filename, content):
                seen.append(filename)
                return content.replace("Generated GraphQL schema.", "Users.")

        content = compile_unit(user_unit, hooks=HookRunner(post_hooks=[Recorder()])).content
        assert seen == ["users.py"]
        assert content.startswith('"""Users. Do not edit."""')

    def test_template_override(self, tmp_path, compiled_users):
        (tmp_path / "schema.py.j2").write_text('"""{{ docstring }}"""\n# {{ all_names | join(", ") }}\n')
        schema = emit(compiled_users, CompilerConfig(template_dir=str(tmp_path)))
        assert schema.content.endswith("# User, UserGroup, Query, build_schema\n")

    def test_invalid_output(self, tmp_path, compiled_users):
        (tmp_path / "schema.py.j2").write_text("def broken(:\n")
        with pytest.raises(EmitError) as exc:
            emit(compiled_users, CompilerConfig(template_dir=str(tmp_path)))
        assert exc.value.declaration == "users"

    def test_emitter_directly(self, compiled_users):
        emitter = SchemaEmitter(
            "AdminUsers",
            compiled_users.graph,
            compiled_users.bindings,
            roots=["Query"],
        )
        assert [n.name for n in emitter.ordered_types()][:3] == ["Query", "User", "String"]
        assert emitter.filename == "admin_users.py"


class TestGeneratedModule:
    """The emitted code builds a working graphql-core schema."""

    def test_user_schema(self, user_unit):
        module = load_module(compile_unit(user_unit))
        assert isinstance(module["User"], GraphQLObjectType)
        assert list(module["User"].fields) == ["firstName", "lastName", "fullName", "group"]
        assert str(module["User"].fields["group"].type) == "UserGroup!"
        assert str(module["UserGroup"].fields["members"].type) == "[User!]!"

    def test_execute_user_query(self, user_unit):
        module = load_module(compile_unit(user_unit))

        class User:
            def __init__(self, first, last, group=None):
                self.firstName = first
                self.lastName = last
                self._group = group

            def fullName(self):
                return f"{self.firstName} {self.lastName}"

            async def group(self):
                return self._group

        admins = {"name": "admins", "members": lambda: members}
        members = [User("Ada", "Lovelace", admins)]
        seen = []

        class Root:
            def user(self, id):
                seen.append(id)
                return members[0]

            async def groups(self):
                return [admins]

        data = run_query(
            module["build_schema"](),
            '{ user(id: "1") { firstName fullName group { name members { lastName } } } groups { name } }',
            Root(),
        )
        assert data == {
            "user": {
                "firstName": "Ada",
                "fullName": "Ada Lovelace",
                "group": {"name": "admins", "members": [{"lastName": "Lovelace"}]},
            },
            "groups": [{"name": "admins"}],
        }
        assert seen == [ID("1")]

    def test_execute_connection_query(self, connection_unit):
        module = load_module(compile_unit(connection_unit))
        assert module["Connection"](module["User"]) is module["UserConnection"]
        assert module["Edge"].cache[("User",)] is module["UserEdge"]

        def connection(names):
            return {
                "edges": [{"node": {"name": n, "friends": None}, "cursor": n} for n in names],
                "pageInfo": {"hasNextPage": False},
                "totalCount": len(names),
            }

        class Root:
            def users(self):
                return connection(["ada", "grace"])

        data = run_query(
            module["build_schema"](),
            "{ users { totalCount pageInfo { hasNextPage } edges { cursor node { name } } } }",
            Root(),
        )
        assert data["users"]["totalCount"] == 2
        assert data["users"]["pageInfo"] == {"hasNextPage": False}
        assert [e["node"]["name"] for e in data["users"]["edges"]] == ["ada", "grace"]

    def test_scalar_without_implementation(self):
        module = load_module(
            compile_unit(
                unit(
                    scalar("Json", "object"),
                    obj("Query", prop("payload", named("object"))),
                )
            )
        )
        schema = module["build_schema"]()
        assert schema.get_type("Json").name == "Json"
