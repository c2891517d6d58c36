"""Shared fixtures: host metadata for the user and connection examples."""

import pytest

from builders import accessor, arg, array, generic, generic_obj, named, nullable, obj, prop, unit

from gql_schemagen.core.extractor import extract
from gql_schemagen.core.pipeline import analyze


@pytest.fixture
def user_unit():
    """User / UserGroup referencing each other, plus a Query root."""
    return unit(
        obj(
            "User",
            prop("firstName", nullable(named("string"))),
            prop("lastName", nullable(named("string"))),
            accessor("fullName", nullable(named("string"))),
            accessor("group", named("UserGroup"), deferred=True),
        ),
        obj(
            "UserGroup",
            prop("name", named("string")),
            accessor("members", array(named("User"))),
        ),
        obj(
            "Query",
            accessor("user", nullable(named("User")), arguments=[arg("id", named("ID"))]),
            accessor("groups", array(named("UserGroup")), deferred=True),
        ),
        name="users",
    )


@pytest.fixture
def connection_unit():
    """Connection<Node> wrapping Edge<Node>, used as Connection<User>."""
    return unit(
        obj(
            "User",
            prop("name", named("string")),
            accessor(
                "friends",
                generic("Connection", named("User")),
                arguments=[arg("first", nullable(named("number")), tag="Int")],
            ),
        ),
        generic_obj(
            "Connection",
            "Node",
            prop("edges", array(generic("Edge", named("Node")))),
            prop("pageInfo", named("PageInfo")),
            prop("totalCount", named("number"), tag="Int"),
        ),
        generic_obj(
            "Edge",
            "Node",
            prop("node", named("Node")),
            prop("cursor", named("string")),
        ),
        obj("PageInfo", prop("hasNextPage", named("boolean"))),
        obj("Query", accessor("users", generic("Connection", named("User")))),
        name="connections",
    )


@pytest.fixture
def user_model(user_unit):
    return extract(user_unit)


@pytest.fixture
def compiled_users(user_model):
    return analyze(user_model)


@pytest.fixture
def compiled_connections(connection_unit):
    return analyze(extract(connection_unit))
