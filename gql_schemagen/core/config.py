"""Configuration for the schema compiler."""

from dataclasses import asdict, dataclass


@dataclass
class CompilerConfig:
    """Configuration options for a compilation pass."""

    # Module the generated code imports its resolver helpers from
    runtime_module: str = "gql_schemagen.runtime"

    # Docstring of the generated module
    module_docstring: str = "Generated GraphQL schema. Do not edit."

    # Text placed above the module docstring (e.g. a license banner)
    header: str = ""

    # Emit build_schema() when a Query object type is declared
    emit_build_schema: bool = True

    # Directory with template overrides (schema.py.j2)
    template_dir: str | None = None

    @staticmethod
    def from_dict(d: dict) -> "CompilerConfig":
        """Create a config from a dictionary, ignoring unknown keys."""
        config = CompilerConfig()
        for k, v in d.items():
            if hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return asdict(self)
