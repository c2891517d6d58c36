"""Compilation pass orchestration.

A pass runs the pipeline stages strictly in sequence:

    extract -> register scalars -> resolve (+ generic instantiation)
            -> bind resolvers -> emit

The scalar registry and the generic memo table are created for the pass and
dropped with it. When several units are compiled together, extraction runs
in parallel (it reads nothing shared) and the remaining stages run one unit
at a time. A failing unit produces no output; its siblings are unaffected.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .binder import Bindings, ResolverBinder
from .config import CompilerConfig
from .errors import SchemaCompileError
from .extractor import extract, load_unit
from .generator import EmittedSchema, SchemaEmitter
from .hooks import HookRunner
from .ir import ScalarDecl, SourceModel
from .metadata import CompilationUnit
from .resolver import TypeResolver
from .scalars import ScalarRegistry
from .type_graph import TypeGraph

logger = logging.getLogger(__name__)


@dataclass
class CompiledUnit:
    """Everything one pass produced for a compilation unit."""
    model: SourceModel
    registry: ScalarRegistry
    graph: TypeGraph
    resolver: TypeResolver
    bindings: Bindings
    schema: EmittedSchema | None = None


@dataclass
class UnitResult:
    """Outcome of one unit in a multi-unit pass."""
    unit: str
    schema: EmittedSchema | None = None
    error: SchemaCompileError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PassResult:
    results: list[UnitResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failed(self) -> list[UnitResult]:
        return [r for r in self.results if not r.ok]


def build_registry(model: SourceModel) -> ScalarRegistry:
    """Create the pass registry and register the model's scalar declarations."""
    registry = ScalarRegistry()
    for decl in model.of_kind(ScalarDecl):
        try:
            registry.register_declaration(decl)
        except SchemaCompileError as e:
            raise e.attach(decl.name)
    return registry


def analyze(model: SourceModel) -> CompiledUnit:
    """Register scalars, resolve the type graph and bind resolvers."""
    registry = build_registry(model)
    resolver = TypeResolver(model, registry)
    graph = resolver.resolve()
    bindings = ResolverBinder(graph).bind()
    return CompiledUnit(model=model, registry=registry, graph=graph, resolver=resolver, bindings=bindings)


def emit(compiled: CompiledUnit, config: CompilerConfig, hooks: HookRunner | None = None) -> EmittedSchema:
    emitter = SchemaEmitter(
        compiled.model.unit,
        compiled.graph,
        compiled.bindings,
        roots=[d.name for d in compiled.model.declarations],
        instantiations=compiled.resolver.engine.instantiations,
        template_dir=config.template_dir,
        runtime_module=config.runtime_module,
        module_docstring=config.module_docstring,
        header=config.header,
        emit_build_schema=config.emit_build_schema,
        hooks=hooks,
    )
    return emitter.emit()


def _as_unit(unit: CompilationUnit | dict[str, Any]) -> CompilationUnit:
    return unit if isinstance(unit, CompilationUnit) else load_unit(unit)


def compile_model(
    model: SourceModel,
    config: CompilerConfig | None = None,
    hooks: HookRunner | None = None,
) -> CompiledUnit:
    """Run every stage after extraction on an already extracted model."""
    config = config or CompilerConfig()
    hooks = hooks or HookRunner()
    model = hooks.run_pre_hooks(model)
    compiled = analyze(model)
    compiled.schema = emit(compiled, config, hooks)
    logger.info(
        "Compiled unit %s: %d types, %d resolvers",
        model.unit,
        len(compiled.schema.type_names),
        len(compiled.bindings),
    )
    return compiled


def compile_unit(
    unit: CompilationUnit | dict[str, Any],
    config: CompilerConfig | None = None,
    hooks: HookRunner | None = None,
) -> EmittedSchema:
    """Compile one unit of host metadata into a schema module."""
    model = extract(_as_unit(unit))
    return compile_model(model, config, hooks).schema


def _unit_name(unit: Any) -> str:
    if isinstance(unit, CompilationUnit):
        return unit.name
    if isinstance(unit, Mapping):
        return str(unit.get("name", "?"))
    return "?"


def _extract_isolated(unit: CompilationUnit | dict[str, Any]) -> tuple[str, SourceModel | None, SchemaCompileError | None]:
    name = _unit_name(unit)
    try:
        return name, extract(_as_unit(unit)), None
    except SchemaCompileError as e:
        return name, None, e


def compile_units(
    units: Iterable[CompilationUnit | dict[str, Any]],
    config: CompilerConfig | None = None,
    hooks: HookRunner | None = None,
    max_workers: int | None = None,
) -> PassResult:
    """Compile several units, isolating failures per unit."""
    units = list(units)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        extracted = list(pool.map(_extract_isolated, units))

    result = PassResult()
    for name, model, error in extracted:
        if error is not None:
            logger.warning("Unit %s failed during extraction: %s", name, error)
            result.results.append(UnitResult(unit=name, error=error))
            continue
        try:
            schema = compile_model(model, config, hooks).schema
        except SchemaCompileError as e:
            logger.warning("Unit %s failed: %s", name, e)
            result.results.append(UnitResult(unit=name, error=e))
            continue
        result.results.append(UnitResult(unit=name, schema=schema))
    return result
