"""Tests for the scalar registry."""

import pytest

from gql_schemagen.core.errors import AmbiguousNumericScalar, DuplicateScalarBinding, UnknownScalar
from gql_schemagen.core.ir import ScalarDecl
from gql_schemagen.core.scalars import ScalarRegistry


@pytest.fixture
def registry():
    return ScalarRegistry()


class TestBuiltins:
    """Built-in bindings are registered for every new registry."""

    def test_string_and_boolean(self, registry):
        assert registry.lookup("string").name == "String"
        assert registry.lookup("boolean").name == "Boolean"

    def test_numeric_scalars_need_a_tag(self, registry):
        assert registry.lookup("number", "Int").name == "Int"
        assert registry.lookup("number", "Float").name == "Float"

    def test_untagged_number_is_ambiguous(self, registry):
        with pytest.raises(AmbiguousNumericScalar) as exc:
            registry.lookup("number")
        assert exc.value.candidates == ["Int", "Float"]

    def test_id(self, registry):
        assert registry.lookup("ID").name == "ID"

    def test_builtins_are_flagged(self, registry):
        assert all(s.builtin for s in registry.all())

    def test_registries_are_isolated(self, registry):
        registry.register("Date", ScalarDecl(name="DateTime", internal_type="Date"))
        assert not ScalarRegistry().has("Date")


class TestRegister:
    """Custom scalar registration."""

    def test_register_custom(self, registry):
        node = registry.register(
            "Date",
            ScalarDecl(name="DateTime", internal_type="Date", implementation="app.scalars:DateTimeScalar"),
        )
        assert registry.lookup("Date") is node
        assert registry.by_name("DateTime") is node
        assert node.implementation == "app.scalars:DateTimeScalar"
        assert not node.builtin

    def test_duplicate_internal_type(self, registry):
        registry.register("Date", ScalarDecl(name="DateTime", internal_type="Date"))
        with pytest.raises(DuplicateScalarBinding) as exc:
            registry.register("Date", ScalarDecl(name="Timestamp", internal_type="Date"))
        assert exc.value.declaration == "Timestamp"

    def test_untagged_duplicate_of_builtin(self, registry):
        with pytest.raises(DuplicateScalarBinding):
            registry.register("string", ScalarDecl(name="Email", internal_type="string"))

    def test_untagged_number_conflicts_with_tagged_builtins(self, registry):
        with pytest.raises(DuplicateScalarBinding):
            registry.register("number", ScalarDecl(name="Money", internal_type="number"))

    def test_tag_extends_internal_type(self, registry):
        email = registry.register("string", ScalarDecl(name="Email", internal_type="string", tag="Email"))
        assert registry.lookup("string", "Email") is email
        assert registry.lookup("string").name == "String"

    def test_same_tag_twice(self, registry):
        registry.register("number", ScalarDecl(name="Money", internal_type="number", tag="Money"))
        with pytest.raises(DuplicateScalarBinding):
            registry.register("number", ScalarDecl(name="Cents", internal_type="number", tag="Money"))

    def test_duplicate_schema_name(self, registry):
        with pytest.raises(DuplicateScalarBinding, match="already registered"):
            registry.register("Date", ScalarDecl(name="String", internal_type="Date"))

    def test_register_declaration(self, registry):
        node = registry.register_declaration(ScalarDecl(name="DateTime", internal_type="Date"))
        assert registry.lookup("Date") is node


class TestLookup:
    """Lookup failures."""

    def test_unknown_internal_type(self, registry):
        with pytest.raises(UnknownScalar):
            registry.lookup("Decimal")

    def test_unknown_tag(self, registry):
        with pytest.raises(UnknownScalar, match="known tags"):
            registry.lookup("number", "Long")

    def test_by_name_missing(self, registry):
        assert registry.by_name("Missing") is None

    def test_tags_in_registration_order(self, registry):
        registry.register("number", ScalarDecl(name="Money", internal_type="number", tag="Money"))
        assert registry.tags("number") == ["Int", "Float", "Money"]
