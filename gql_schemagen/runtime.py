"""Runtime helpers imported by generated schema modules.

Generated modules bind every field to one of the resolver factories below.
Parents may be mappings or plain objects. Deferred resolvers return
awaitables; graphql-core awaits them before serializing the result.
"""

import functools
import importlib
import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from graphql import GraphQLScalarType


@dataclass(frozen=True)
class ID:
    """Identifier value object handed to accessors for ID-typed arguments."""
    value: str

    def __str__(self) -> str:
        return self.value


def to_id(value: Any) -> Any:
    """Convert raw identifier arguments (or lists of them) into ID values."""
    if value is None or isinstance(value, ID):
        return value
    if isinstance(value, (list, tuple)):
        return [to_id(v) for v in value]
    return ID(str(value))


@dataclass(frozen=True)
class ArgumentSpec:
    name: str
    convert: Callable[[Any], Any] | None = None

    def value(self, args: dict[str, Any]) -> Any:
        raw = args.get(self.name)
        return self.convert(raw) if self.convert else raw


def argument(name: str, convert: Callable[[Any], Any] | None = None) -> ArgumentSpec:
    return ArgumentSpec(name, convert)


def _member(parent: Any, name: str) -> Any:
    if isinstance(parent, Mapping):
        return parent.get(name)
    return getattr(parent, name, None)


def read_property(name: str):
    """Resolver reading a stored property off the parent value."""

    def resolve(parent, info, **args):
        return _member(parent, name)

    return resolve


def read_deferred_property(name: str):
    """Resolver reading a stored property whose value must be awaited."""

    async def resolve(parent, info, **args):
        value = _member(parent, name)
        if inspect.isawaitable(value):
            return await value
        return value

    return resolve


def _call(parent: Any, name: str, arguments: tuple[ArgumentSpec, ...], args: dict[str, Any]) -> Any:
    accessor = _member(parent, name)
    if accessor is None:
        return None
    if not callable(accessor):
        raise TypeError(f"{type(parent).__name__}.{name} is not callable")
    return accessor(*(a.value(args) for a in arguments))


def call_accessor(name: str, *arguments: ArgumentSpec):
    """Resolver invoking a computed accessor and returning its value."""

    def resolve(parent, info, **args):
        return _call(parent, name, arguments, args)

    return resolve


def call_deferred_accessor(name: str, *arguments: ArgumentSpec):
    """Resolver invoking a computed accessor whose result must be awaited."""

    async def resolve(parent, info, **args):
        value = _call(parent, name, arguments, args)
        if inspect.isawaitable(value):
            return await value
        return value

    return resolve


def generic_factory(build: Callable[..., Any]):
    """Memoize a generic type factory by the names of its type arguments."""
    cache: dict[tuple[str, ...], Any] = {}

    @functools.wraps(build)
    def factory(*type_arguments):
        key = tuple(t.name for t in type_arguments)
        if key not in cache:
            cache[key] = build(*type_arguments)
        return cache[key]

    factory.cache = cache
    return factory


def _import_path(path: str) -> Any:
    module_name, _, attribute = path.partition(":")
    if not attribute:
        module_name, _, attribute = path.rpartition(".")
    target = importlib.import_module(module_name)
    for part in attribute.split("."):
        target = getattr(target, part)
    return target


def define_scalar(name: str, implementation: str | None = None, description: str | None = None) -> GraphQLScalarType:
    """Build a scalar type from an implementation given as 'module:attribute'.

    The implementation provides ``serialize`` and optionally ``parse_value``
    and ``parse_literal``; a scalar without one passes values through.
    """
    if implementation is None:
        return GraphQLScalarType(name=name, description=description)
    impl = _import_path(implementation)
    if inspect.isclass(impl):
        impl = impl()
    return GraphQLScalarType(
        name=name,
        description=description,
        serialize=getattr(impl, "serialize", None),
        parse_value=getattr(impl, "parse_value", None),
        parse_literal=getattr(impl, "parse_literal", None),
    )
